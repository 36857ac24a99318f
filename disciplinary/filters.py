"""
Disciplinary API Filters.
"""

import django_filters

from .models import DisciplinaryWarning


class WarningFilter(django_filters.FilterSet):
    """
    Filter for Warning.

    Filters:
    - status, severity, escalated
    - employee: employee profile id
    - issued_after / issued_before: issue date range
    """

    status = django_filters.ChoiceFilter(choices=DisciplinaryWarning.Status.choices)
    severity = django_filters.ChoiceFilter(choices=DisciplinaryWarning.Severity.choices)
    employee = django_filters.UUIDFilter(field_name='employee_id')
    issued_after = django_filters.DateTimeFilter(field_name='date_issued', lookup_expr='gte')
    issued_before = django_filters.DateTimeFilter(field_name='date_issued', lookup_expr='lte')

    class Meta:
        model = DisciplinaryWarning
        fields = ['status', 'severity', 'escalated']
