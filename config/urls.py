"""
URL configuration for the access control service.
"""
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/schema/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # Health
    path('api/', include('apps.core.urls')),

    # Authentication endpoints
    path('api/auth/', include('apps.rbac.urls_auth')),  # Register, login, me

    # RBAC endpoints
    path('api/', include('apps.rbac.urls')),  # Users, roles, groups, permissions
]
