"""
API URL configuration for the service queue.
"""

from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView

from apps.accounts.urls import agent_urlpatterns, auth_urlpatterns, user_urlpatterns

urlpatterns = [
    path('auth/', include((auth_urlpatterns, 'accounts'), namespace='auth')),
    path('agents/', include((agent_urlpatterns, 'accounts'), namespace='agents')),
    path('users/', include((user_urlpatterns, 'accounts'), namespace='users')),
    path('companies/', include('apps.companies.urls')),
    path('requests/', include('apps.service_requests.urls')),
    path('notifications/', include('apps.notifications.urls')),
    path('reports/', include('apps.reports.urls')),
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
