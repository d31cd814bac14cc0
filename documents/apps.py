"""
Documents — Application Configuration
"""

from django.apps import AppConfig


class DocumentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'documents'
    verbose_name = 'Receivings, Outgoings & Requests'

    def ready(self):
        from . import events

        events.register_hook(events.broadcast_hook)
