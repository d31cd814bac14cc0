"""
Core — Audit Service

Writes audit log entries on behalf of the other apps' services.

@file core/services.py
"""

import logging
from decimal import Decimal
from typing import Any

from django.forms.models import model_to_dict

from core.models import AuditLog

logger = logging.getLogger('parttrack')


class AuditService:
    """Centralised audit logging for every write operation."""

    @staticmethod
    def log(
        *,
        actor,
        action: str,
        model_name: str,
        object_id: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditLog:
        return AuditLog.objects.create(
            actor=actor,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            old_values=old_values,
            new_values=new_values,
        )

    @staticmethod
    def snapshot(instance, fields=None) -> dict[str, Any]:
        """
        Serialise a model instance to a plain dict suitable for JSON
        storage. DateTimes are ISO-formatted; UUIDs stringified;
        related objects reduced to their PKs.
        """
        data = model_to_dict(instance, fields=fields)
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                cleaned[key] = None
            elif isinstance(value, Decimal):
                cleaned[key] = str(value)
            elif hasattr(value, 'isoformat'):
                cleaned[key] = value.isoformat()
            elif hasattr(value, 'hex'):
                cleaned[key] = str(value)
            elif hasattr(value, 'pk'):
                cleaned[key] = str(value.pk)
            else:
                cleaned[key] = value
        return cleaned
