"""
HR Core Analytics - headcount figures for the employee stats endpoint.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from django.db.models import Count, Q

from core.access import EMPLOYEE_RESOURCE, Identity, ensure_can_perform

from .models import EmployeeProfile

logger = logging.getLogger(__name__)


@dataclass
class HeadcountSummary:
    """Employee counts by department and status."""
    total: int
    on_probation: int
    by_department: List[Dict[str, Any]] = field(default_factory=list)
    by_status: Dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def headcount_summary(identity: Identity) -> HeadcountSummary:
    """Counts over non-deleted profiles. HR and admin only."""
    ensure_can_perform(identity, 'stats', EMPLOYEE_RESOURCE)

    profiles = EmployeeProfile.objects.all()

    by_department = list(
        profiles.values('user__department')
        .annotate(
            count=Count('id'),
            active=Count('id', filter=Q(status=EmployeeProfile.EmploymentStatus.ACTIVE)),
        )
        .order_by('-count')
    )
    by_status = {
        row['status']: row['count']
        for row in profiles.values('status').annotate(count=Count('id')).order_by('status')
    }

    return HeadcountSummary(
        total=profiles.count(),
        on_probation=profiles.filter(is_probation=True).count(),
        by_department=[
            {'department': row['user__department'], 'count': row['count'], 'active': row['active']}
            for row in by_department
        ],
        by_status=by_status,
    )
