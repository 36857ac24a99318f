"""
Disciplinary Analytics - active warning counts for the stats endpoint.
"""

from typing import Any, Dict

from django.db.models import Count

from core.access import WARNING_RESOURCE, Identity, ensure_can_perform

from .models import DisciplinaryWarning
from .services import WarningService


def warning_summary(identity: Identity) -> Dict[str, Any]:
    """
    Active (unexpired) warnings by severity plus the escalated count.

    Managers only see figures for their direct reports.
    """
    ensure_can_perform(identity, 'stats', WARNING_RESOURCE)
    active = WarningService().visible_warnings(identity).currently_active()

    by_severity = {severity: 0 for severity in DisciplinaryWarning.Severity.values}
    for row in active.order_by().values('severity').annotate(count=Count('id')):
        by_severity[row['severity']] = row['count']

    return {
        'total_active': sum(by_severity.values()),
        'by_severity': by_severity,
        'escalated': active.filter(escalated=True).count(),
    }
