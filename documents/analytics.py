"""
Documents Analytics - figures for the document stats endpoint.
"""

from typing import Any, Dict

from django.db.models import Avg, Count, Sum

from core.access import DOCUMENT_RESOURCE, Identity, ensure_can_perform

from .models import Document


def document_summary(identity: Identity) -> Dict[str, Any]:
    """Non-deleted documents by type with size totals. HR and admin only."""
    ensure_can_perform(identity, 'stats', DOCUMENT_RESOURCE)
    documents = Document.objects.all()

    by_type = [
        {
            'document_type': row['document_type'],
            'count': row['count'],
            'total_size': row['total_size'] or 0,
            'avg_size': round(row['avg_size'] or 0, 2),
        }
        for row in documents.order_by().values('document_type').annotate(
            count=Count('id'),
            total_size=Sum('size'),
            avg_size=Avg('size'),
        ).order_by('-count')
    ]

    return {
        'total': documents.count(),
        'total_size': documents.aggregate(total=Sum('size'))['total'] or 0,
        'by_type': by_type,
    }
