"""
API v1 URL Configuration

This module consolidates all API v1 endpoints under the ``api_v1``
namespace:
- /api/v1/auth/        - Registration, login, current principal
- /api/v1/employees/   - Employee profiles, status, onboarding documents
- /api/v1/warnings/    - Disciplinary warnings
- /api/v1/appraisals/  - Appraisal workflow
- /api/v1/projects/    - Projects, teams and tasks
- /api/v1/documents/   - Document storage and sharing
"""

from django.urls import include, path

app_name = 'api_v1'

urlpatterns = [
    path('auth/', include('accounts.urls')),
    path('', include('hr_core.api.urls')),
    path('', include('disciplinary.api.urls')),
    path('', include('appraisals.api.urls')),
    path('', include('projects.api.urls')),
    path('', include('documents.api.urls')),
]
