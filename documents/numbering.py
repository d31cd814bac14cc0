"""
Documents — Number Allocation

Outgoing numbers follow OUT-<DDMMYY>-<SEQ>, SEQ being the highest sequence
already used that day plus one (three digits, zero padded). Request
numbers are a global integer counter. Both read-then-increment schemes
are serialised by locking a DocumentSequence row for the prefix, held
until the caller's transaction ends.

@file documents/numbering.py
"""

import logging
from datetime import datetime

from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from core.constants import (
    OUTGOING_NUMBER_DATE_FORMAT,
    OUTGOING_NUMBER_PREFIX,
    OUTGOING_SEQUENCE_WIDTH,
    REQUEST_SEQUENCE_NAME,
)

from .models import DocumentSequence, Outgoing, Request

logger = logging.getLogger('parttrack')


def lock_sequence(name: str) -> DocumentSequence:
    """
    Select the sequence row for `name` FOR UPDATE, creating it on first use.

    Must run inside a transaction. A concurrent first use can race on the
    insert; the loser rolls back its savepoint and locks the winner's row.
    """
    sequence = DocumentSequence.objects.select_for_update().filter(name=name).first()
    if sequence is not None:
        return sequence
    try:
        with transaction.atomic():
            DocumentSequence.objects.create(name=name)
    except IntegrityError:
        logger.debug('Sequence %s created concurrently; retrying lock.', name)
    return DocumentSequence.objects.select_for_update().get(name=name)


def outgoing_prefix(now: datetime) -> str:
    if timezone.is_aware(now):
        now = timezone.localtime(now)
    return f'{OUTGOING_NUMBER_PREFIX}-{now.strftime(OUTGOING_NUMBER_DATE_FORMAT)}'


def parse_sequence(number: str) -> int | None:
    """Trailing integer of a document number ("OUT-310126-005" -> 5)."""
    tail = number.rsplit('-', 1)[-1]
    return int(tail) if tail.isdigit() else None


def next_outgoing_number(now: datetime) -> str:
    prefix = outgoing_prefix(now)
    lock_sequence(prefix)
    numbers = Outgoing.objects.filter(
        number__startswith=f'{prefix}-',
    ).values_list('number', flat=True)
    last = max((parse_sequence(n) or 0 for n in numbers), default=0)
    number = f'{prefix}-{last + 1:0{OUTGOING_SEQUENCE_WIDTH}d}'
    logger.debug('Allocated outgoing number %s', number)
    return number


def next_request_number() -> int:
    lock_sequence(REQUEST_SEQUENCE_NAME)
    last = Request.objects.aggregate(last=Max('number'))['last'] or 0
    return last + 1
