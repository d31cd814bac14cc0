"""
Documents — Post-commit Event Hooks

Events are handed to registered hooks only after the surrounding
transaction commits. Hooks are fire-and-forget: an exception raised by a
hook is logged and dropped, and can never roll back or block the write
that produced the event.

@file documents/events.py
"""

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

logger = logging.getLogger('parttrack')

REQUEST_ITEMS_FEED_KEY = 'request-items:feed'
REQUEST_ITEMS_FEED_HEAD_KEY = f'{REQUEST_ITEMS_FEED_KEY}:head'


@dataclass(frozen=True)
class RequestItemCreated:
    """Denormalised snapshot of a new request item for live pick screens."""

    item: dict[str, Any]

    @classmethod
    def from_item(cls, item) -> 'RequestItemCreated':
        request = item.document
        part = item.part
        return cls(item={
            'id': str(item.pk),
            'qty': item.qty,
            'is_urgent': item.is_urgent,
            'is_supplied': item.is_supplied,
            'part': {
                'id': str(part.pk),
                'code': part.code,
                'name': part.name,
                'stock': part.stock,
            },
            'request': {
                'id': str(request.pk),
                'number': request.number,
                'destination': request.destination,
                'requested_by': request.actor.get_username(),
                'requested_at': request.occurred_at.isoformat(),
            },
        })

    def as_payload(self) -> dict[str, Any]:
        return asdict(self)


Hook = Callable[[Any], None]

_hooks: list[Hook] = []


def register_hook(hook: Hook) -> None:
    if hook not in _hooks:
        _hooks.append(hook)


def unregister_hook(hook: Hook) -> None:
    if hook in _hooks:
        _hooks.remove(hook)


def dispatch(event) -> None:
    for hook in list(_hooks):
        try:
            hook(event)
        except Exception:
            logger.warning(
                '%s hook %r failed', type(event).__name__, hook, exc_info=True,
            )


def emit_after_commit(event) -> None:
    transaction.on_commit(lambda: dispatch(event))


def broadcast_hook(event) -> None:
    """Default hook: push request-item events to the Celery broadcaster."""
    if not isinstance(event, RequestItemCreated):
        return
    from .tasks import broadcast_request_item_created

    broadcast_request_item_created.delay(event.as_payload())


def feed_entry_key(position: int) -> str:
    return f'{REQUEST_ITEMS_FEED_KEY}:{position}'


def request_item_feed() -> list[dict[str, Any]]:
    """Most recent broadcast request items, newest first."""
    head = cache.get(REQUEST_ITEMS_FEED_HEAD_KEY) or 0
    positions = range(head, max(head - settings.REQUEST_FEED_SIZE, 0), -1)
    entries = cache.get_many([feed_entry_key(p) for p in positions])
    return [entries[key] for key in map(feed_entry_key, positions) if key in entries]
