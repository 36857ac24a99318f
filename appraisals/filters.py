"""
Appraisals API Filters.
"""

import django_filters

from .models import Appraisal


class AppraisalFilter(django_filters.FilterSet):
    """
    Filter for Appraisal.

    Filters:
    - status / status__in
    - employee, reviewer: principal ids
    - cycle: case-insensitive substring
    - due_after / due_before: due date range
    """

    status = django_filters.ChoiceFilter(choices=Appraisal.Status.choices)
    status__in = django_filters.MultipleChoiceFilter(
        field_name='status',
        choices=Appraisal.Status.choices,
        conjoined=False
    )
    employee = django_filters.NumberFilter(field_name='employee_id')
    reviewer = django_filters.NumberFilter(field_name='reviewer_id')
    cycle = django_filters.CharFilter(lookup_expr='icontains')
    due_after = django_filters.DateFilter(field_name='due_date', lookup_expr='gte')
    due_before = django_filters.DateFilter(field_name='due_date', lookup_expr='lte')

    class Meta:
        model = Appraisal
        fields = ['status', 'employee', 'reviewer']
