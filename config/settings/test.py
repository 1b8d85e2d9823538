"""
Test settings: in-memory SQLite, local memory cache, eager Celery.
Used by pytest-django; ``manage.py test`` gets the same switches from base.
"""

import tempfile

from .base import *

DEBUG = False
ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES['default'] = {
    'ENGINE': 'django.db.backends.sqlite3',
    'NAME': ':memory:',
    'ATOMIC_REQUESTS': True,
    'CONN_MAX_AGE': 0,
    'OPTIONS': {},
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'service_queue_test_local_cache',
        'TIMEOUT': 300,
        'KEY_PREFIX': 'service_queue_test',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
MEDIA_ROOT = Path(tempfile.mkdtemp(prefix='service_queue_media_'))

STORAGES['staticfiles'] = {
    'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
}
