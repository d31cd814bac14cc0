"""
PartTrack — Development Settings

Local development overrides. Activated by:
  DJANGO_SETTINGS_MODULE=config.settings.development

@file config/settings/development.py
"""

from .base import *  # noqa: F401, F403

DEBUG = True

ALLOWED_HOSTS = ['*']

# Run broadcast tasks inline when no worker is running.
CELERY_TASK_ALWAYS_EAGER = env.bool('CELERY_TASK_ALWAYS_EAGER', default=True)  # noqa: F405

LOGGING['loggers']['parttrack']['level'] = 'DEBUG'  # noqa: F405
