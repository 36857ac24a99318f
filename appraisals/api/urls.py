"""
Appraisals API URLs.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .viewsets import AppraisalViewSet

app_name = 'appraisals'

router = DefaultRouter()
router.register(r'appraisals', AppraisalViewSet, basename='appraisal')

urlpatterns = [
    path('', include(router.urls)),
]
