"""
Projects API Filters.
"""

import django_filters

from .models import Priority, Project


class ProjectFilter(django_filters.FilterSet):
    """
    Filter for Project.

    Filters:
    - status / status__in, priority
    - manager: manager principal id
    - starts_after / starts_before: start date range
    - budget_min / budget_max
    """

    status = django_filters.ChoiceFilter(choices=Project.Status.choices)
    status__in = django_filters.MultipleChoiceFilter(
        field_name='status',
        choices=Project.Status.choices,
        conjoined=False
    )
    priority = django_filters.ChoiceFilter(choices=Priority.choices)
    manager = django_filters.NumberFilter(field_name='manager_id')
    starts_after = django_filters.DateFilter(field_name='start_date', lookup_expr='gte')
    starts_before = django_filters.DateFilter(field_name='start_date', lookup_expr='lte')
    budget_min = django_filters.NumberFilter(field_name='budget', lookup_expr='gte')
    budget_max = django_filters.NumberFilter(field_name='budget', lookup_expr='lte')

    class Meta:
        model = Project
        fields = ['status', 'priority', 'manager']
