"""
Projects Analytics - figures for the project stats endpoint.
"""

from typing import Any, Dict

from django.db.models import Avg, Count, Max, Min, Q, Sum

from core.access import ADMIN, HR, PROJECT_RESOURCE, Identity, ensure_can_perform

from .models import Project, Priority


def _money(value):
    return float(value) if value is not None else None


def project_summary(identity: Identity) -> Dict[str, Any]:
    """
    Projects by status with budget figures, and by priority.

    Managers only count projects they manage or are active members of.
    """
    ensure_can_perform(identity, 'stats', PROJECT_RESOURCE)
    projects = Project.objects.all()
    if identity.role not in (ADMIN, HR):
        involved = Project.objects.filter(
            Q(manager_id=identity.id) | Q(members__user_id=identity.id, members__is_active=True)
        ).values('pk')
        projects = projects.filter(pk__in=involved)

    by_status = {
        row['status']: {
            'count': row['count'],
            'total_budget': _money(row['total_budget']),
            'avg_budget': _money(row['avg_budget']),
            'min_budget': _money(row['min_budget']),
            'max_budget': _money(row['max_budget']),
        }
        for row in projects.order_by().values('status').annotate(
            count=Count('id'),
            total_budget=Sum('budget'),
            avg_budget=Avg('budget'),
            min_budget=Min('budget'),
            max_budget=Max('budget'),
        )
    }

    by_priority = {priority: 0 for priority in Priority.values}
    for row in projects.order_by().values('priority').annotate(count=Count('id')):
        by_priority[row['priority']] = row['count']

    return {
        'total': projects.count(),
        'by_status': by_status,
        'by_priority': by_priority,
    }
