"""
Documents — Celery Tasks

Broadcast of request-item events to the shared `request-items` feed that
pick screens poll.

@file documents/tasks.py
"""

import logging

from celery import shared_task
from django.conf import settings
from django.core.cache import cache

from .events import REQUEST_ITEMS_FEED_HEAD_KEY, feed_entry_key

logger = logging.getLogger('parttrack')


@shared_task(name='documents.broadcast_request_item_created')
def broadcast_request_item_created(payload: dict):
    """
    Append a RequestItemCreated payload to the capped feed.

    Each call claims its own slot with an atomic increment of the feed
    head, so concurrent workers never overwrite each other's entries.
    """
    cache.add(REQUEST_ITEMS_FEED_HEAD_KEY, 0, timeout=None)
    position = cache.incr(REQUEST_ITEMS_FEED_HEAD_KEY)
    cache.set(feed_entry_key(position), payload, timeout=None)
    expired = position - settings.REQUEST_FEED_SIZE
    if expired > 0:
        cache.delete(feed_entry_key(expired))
    logger.info(
        'Broadcast request item %s (request #%s) at feed position %d.',
        payload['item']['id'], payload['item']['request']['number'], position,
    )
    return {'item_id': payload['item']['id'], 'feed_size': min(position, settings.REQUEST_FEED_SIZE)}
