"""
Documents API URLs.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .viewsets import DocumentViewSet

app_name = 'documents'

router = DefaultRouter()
router.register(r'documents', DocumentViewSet, basename='document')

urlpatterns = [
    path('', include(router.urls)),
]
