"""
PartTrack — Celery Application

Workers start with:
  celery -A config worker -l info

@file config/celery.py
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('parttrack')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
