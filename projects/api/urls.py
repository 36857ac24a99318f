"""
Projects API URLs.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .viewsets import ProjectViewSet

app_name = 'projects'

router = DefaultRouter()
router.register(r'projects', ProjectViewSet, basename='project')

urlpatterns = [
    path('', include(router.urls)),
]
