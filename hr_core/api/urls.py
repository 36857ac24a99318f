"""
HR Core API URLs - REST API routing for employee profiles.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .viewsets import EmployeeViewSet

app_name = 'hr'

router = DefaultRouter()
router.register(r'employees', EmployeeViewSet, basename='employee')

urlpatterns = [
    path('', include(router.urls)),
]
