"""
Health monitoring for the service queue.
"""

import logging
import time

import psutil
from django.conf import settings
from django.core.cache import cache
from django.core.files.storage import default_storage
from django.db import connection
from django.http import JsonResponse
from django.utils import timezone
from django.views import View

logger = logging.getLogger(__name__)

RESOURCE_WARNING_PERCENT = 90


def _timed(check):
    started = time.time()
    result = check()
    result.setdefault('status', 'healthy')
    result['response_time_ms'] = round((time.time() - started) * 1000, 2)
    return result


def check_database():
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
    return {}


def check_cache():
    cache.set('health_check', 'ok', 10)
    if cache.get('health_check') != 'ok':
        raise RuntimeError("Cache round trip failed")
    return {}


def check_storage():
    # Listing the upload root is enough to prove the backend is reachable.
    if default_storage.exists('uploads'):
        default_storage.listdir('uploads')
    return {}


def check_system():
    memory = psutil.virtual_memory()
    disk = psutil.disk_usage('/')
    disk_percent = round(disk.used / disk.total * 100, 2)
    result = {
        'memory_usage_percent': memory.percent,
        'disk_usage_percent': disk_percent,
        'cpu_usage_percent': psutil.cpu_percent(interval=None),
    }
    if memory.percent > RESOURCE_WARNING_PERCENT or disk_percent > RESOURCE_WARNING_PERCENT:
        result['status'] = 'warning'
    return result


CHECKS = {
    'database': (check_database, True),
    'cache': (check_cache, True),
    'storage': (check_storage, True),
    'system': (check_system, False),
}


class HealthCheckView(View):
    """
    Health check endpoint for load balancers and uptime monitors.

    Returns 503 when a critical dependency (database, cache, storage) is
    down; system resource warnings are reported but never fail the check.
    """

    def get(self, request):
        start_time = time.time()
        health_data = {
            'status': 'healthy',
            'timestamp': timezone.now().isoformat(),
            'version': getattr(settings, 'VERSION', '1.0.0'),
            'checks': {},
        }

        for name, (check, critical) in CHECKS.items():
            try:
                health_data['checks'][name] = _timed(check)
            except Exception as e:
                logger.warning(f"Health check {name} failed: {e}")
                health_data['checks'][name] = {'status': 'unhealthy', 'error': str(e)}
                if critical:
                    health_data['status'] = 'unhealthy'

        health_data['response_time_ms'] = round((time.time() - start_time) * 1000, 2)
        status_code = 200 if health_data['status'] == 'healthy' else 503
        return JsonResponse(health_data, status=status_code)


class LivenessView(View):
    """Process is up; no dependency checks."""

    def get(self, request):
        return JsonResponse({'status': 'alive', 'timestamp': timezone.now().isoformat()})
