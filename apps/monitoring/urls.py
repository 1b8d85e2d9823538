"""
Monitoring URLs configuration.
"""

from django.urls import path

from .views import HealthCheckView, LivenessView

app_name = 'monitoring'

urlpatterns = [
    path('', HealthCheckView.as_view(), name='health'),
    path('live/', LivenessView.as_view(), name='liveness'),
]
