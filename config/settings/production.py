"""
PartTrack — Production Settings

Hardened configuration for deployment. Activated by:
  DJANGO_SETTINGS_MODULE=config.settings.production

@file config/settings/production.py
"""

from .base import *  # noqa: F401, F403

DEBUG = False

DATABASES['default']['CONN_MAX_AGE'] = 600  # noqa: F405
DATABASES['default']['CONN_HEALTH_CHECKS'] = True  # noqa: F405

LOGGING['loggers']['parttrack']['level'] = 'WARNING'  # noqa: F405
