"""
Documents API Filters.
"""

import django_filters

from .models import Document


class DocumentFilter(django_filters.FilterSet):
    """
    Filter for Document.

    Filters:
    - document_type, department, is_public
    - uploaded_by: uploader principal id
    - tag: documents carrying the tag
    - uploaded_after / uploaded_before: upload date range
    """

    document_type = django_filters.ChoiceFilter(choices=Document.DocumentType.choices)
    uploaded_by = django_filters.NumberFilter(field_name='uploaded_by_id')
    tag = django_filters.CharFilter(method='filter_tag')
    uploaded_after = django_filters.DateTimeFilter(field_name='created_at', lookup_expr='gte')
    uploaded_before = django_filters.DateTimeFilter(field_name='created_at', lookup_expr='lte')

    class Meta:
        model = Document
        fields = ['document_type', 'department', 'is_public']

    def filter_tag(self, queryset, name, value):
        # JSON text match, portable across database backends
        return queryset.filter(tags__icontains=f'"{value}"')
