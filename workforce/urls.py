"""
URL configuration for the Workforce project.

- /api/v1/       - versioned REST API (namespace ``api_v1``)
- /api/schema/   - OpenAPI schema
- /api/docs/     - Swagger UI
- /health/       - liveness check
"""

from django.http import JsonResponse
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView


def health_check(request):
    return JsonResponse({'status': 'healthy'})


urlpatterns = [
    path('api/v1/', include('api.urls_v1', namespace='api_v1')),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('health/', health_check, name='health'),
]
