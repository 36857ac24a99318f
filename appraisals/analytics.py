"""
Appraisals Analytics - figures for the appraisal stats endpoint.
"""

from datetime import timedelta
from typing import Any, Dict

from django.db.models import Avg, Count, Max, Min
from django.utils import timezone

from core.access import ADMIN, APPRAISAL_RESOURCE, HR, Identity, ensure_can_perform

from .models import Appraisal

UPCOMING_WINDOW_DAYS = 30


def _brief(appraisal: Appraisal) -> Dict[str, Any]:
    return {
        'id': str(appraisal.pk),
        'employee': appraisal.employee_id,
        'employee_name': appraisal.employee.full_name,
        'reviewer': appraisal.reviewer_id,
        'cycle': appraisal.cycle,
        'status': appraisal.status,
        'due_date': appraisal.due_date.isoformat(),
    }


def appraisal_summary(identity: Identity) -> Dict[str, Any]:
    """
    Appraisal counts and ratings.

    HR and admin see every appraisal; managers only those of their direct
    reports. Overdue and upcoming lists hold unfinished appraisals only.
    """
    ensure_can_perform(identity, 'stats', APPRAISAL_RESOURCE)
    appraisals = Appraisal.objects.select_related('employee')
    if identity.role not in (ADMIN, HR):
        appraisals = appraisals.filter(employee__manager_id=identity.id)

    by_status = {
        row['status']: {
            'count': row['count'],
            'avg_rating': round(row['avg_rating'], 2) if row['avg_rating'] is not None else None,
            'min_rating': row['min_rating'],
            'max_rating': row['max_rating'],
        }
        for row in appraisals.order_by().values('status').annotate(
            count=Count('id'),
            avg_rating=Avg('rating'),
            min_rating=Min('rating'),
            max_rating=Max('rating'),
        )
    }

    by_department = [
        {
            'department': row['employee__department'],
            'count': row['count'],
            'avg_rating': round(row['avg_rating'], 2) if row['avg_rating'] is not None else None,
        }
        for row in appraisals.filter(rating__isnull=False)
        .order_by().values('employee__department')
        .annotate(count=Count('id'), avg_rating=Avg('rating'))
        .order_by('employee__department')
    ]

    today = timezone.localdate()
    unfinished = appraisals.exclude(status__in=Appraisal.TERMINAL_STATUSES)
    overdue = unfinished.filter(due_date__lt=today).order_by('due_date')
    upcoming = unfinished.filter(
        due_date__gte=today,
        due_date__lte=today + timedelta(days=UPCOMING_WINDOW_DAYS),
    ).order_by('due_date')

    return {
        'total': appraisals.count(),
        'by_status': by_status,
        'by_department': by_department,
        'overdue': [_brief(a) for a in overdue],
        'upcoming': [_brief(a) for a in upcoming],
    }
