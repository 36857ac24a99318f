"""
HR Core API Filters - Django Filter Classes for employee profiles.
"""

import django_filters

from accounts.models import User

from .models import EmployeeProfile


class EmployeeFilter(django_filters.FilterSet):
    """
    Filter for EmployeeProfile.

    Filters:
    - status / status__in: employment status
    - employment_type: employment type
    - department: principal department
    - manager: principal's direct manager id
    - is_probation: employees on probation
    - joined_after / joined_before: joining date range
    """

    status = django_filters.ChoiceFilter(choices=EmployeeProfile.EmploymentStatus.choices)
    status__in = django_filters.MultipleChoiceFilter(
        field_name='status',
        choices=EmployeeProfile.EmploymentStatus.choices,
        conjoined=False  # OR logic
    )
    employment_type = django_filters.ChoiceFilter(choices=EmployeeProfile.EmploymentType.choices)
    department = django_filters.ChoiceFilter(
        field_name='user__department',
        choices=User.Department.choices
    )
    manager = django_filters.NumberFilter(field_name='user__manager_id')
    joined_after = django_filters.DateFilter(field_name='joining_date', lookup_expr='gte')
    joined_before = django_filters.DateFilter(field_name='joining_date', lookup_expr='lte')

    class Meta:
        model = EmployeeProfile
        fields = ['status', 'employment_type', 'is_probation']
