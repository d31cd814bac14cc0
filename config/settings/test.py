"""
PartTrack — Test Settings

Used by pytest (see pyproject.toml). SQLite in memory unless
TEST_DATABASE_URL points at a PostgreSQL instance, which the
concurrency tests need.

@file config/settings/test.py
"""

from .base import *  # noqa: F401, F403

DATABASES = {
    'default': env.db('TEST_DATABASE_URL', default='sqlite://:memory:'),  # noqa: F405
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

LOGGING['loggers']['parttrack']['level'] = 'DEBUG'  # noqa: F405
