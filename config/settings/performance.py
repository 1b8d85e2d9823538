"""
Performance settings for the service queue: caching, static files and
Celery worker tuning.
"""

# Cache Configuration (Redis-based)
CACHE_PERFORMANCE = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': 'redis://localhost:6379/0',
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
            'CONNECTION_POOL_KWARGS': {
                'max_connections': 50,
                'retry_on_timeout': True,
            },
            'COMPRESSOR': 'django_redis.compressors.zlib.ZlibCompressor',
            'SERIALIZER': 'django_redis.serializers.json.JSONSerializer',
            # The login rate limiter fails open when Redis is down
            'IGNORE_EXCEPTIONS': True,
        },
        'KEY_PREFIX': 'service_queue',
        'TIMEOUT': 300,  # 5 minutes default
        'VERSION': 1,
    },
}

# Static Files Performance
WHITENOISE_USE_FINDERS = True
WHITENOISE_AUTOREFRESH = True

# Celery Performance
CELERY_PERFORMANCE = {
    'broker_connection_retry_on_startup': True,
    'task_acks_late': True,
    'worker_prefetch_multiplier': 1,
    'task_routes': {
        'apps.notifications.tasks.send_event_email': {'queue': 'email'},
        'apps.notifications.tasks.send_due_date_reminders': {'queue': 'notifications'},
        'apps.notifications.tasks.cleanup_old_notifications': {'queue': 'notifications'},
    },
    'task_time_limit': 300,  # 5 minutes
    'task_soft_time_limit': 240,
}

# File Upload Performance
FILE_UPLOAD_HANDLERS = [
    'django.core.files.uploadhandler.MemoryFileUploadHandler',
    'django.core.files.uploadhandler.TemporaryFileUploadHandler',
]
