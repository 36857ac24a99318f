"""
Disciplinary API URLs.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .viewsets import WarningViewSet

app_name = 'disciplinary'

router = DefaultRouter()
router.register(r'warnings', WarningViewSet, basename='warning')

urlpatterns = [
    path('', include(router.urls)),
]
