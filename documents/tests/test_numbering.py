"""
Tests — Document number allocation: OUT-<DDMMYY>-<SEQ> per-day sequence,
global request counter, sequence lock rows.

@file documents/tests/test_numbering.py
"""

from datetime import datetime

import pytest
from django.utils import timezone

from documents import numbering
from documents.models import DocumentSequence, DocumentStatus
from documents.services import OutgoingService, RequestService
from tests.factories import OutgoingFactory, RequestFactory


pytestmark = pytest.mark.django_db


def _at(day, month=1, year=2026, hour=9):
    return timezone.make_aware(datetime(year, month, day, hour, 30))


class TestParsing:

    @pytest.mark.parametrize('number, expected', [
        ('OUT-310126-005', 5),
        ('OUT-310126-120', 120),
        ('OUT-310126-MANUAL', None),
        ('', None),
    ])
    def test_parse_sequence(self, number, expected):
        assert numbering.parse_sequence(number) == expected

    def test_prefix_uses_local_date(self):
        assert numbering.outgoing_prefix(_at(31)) == 'OUT-310126'

    def test_prefix_naive_datetime(self):
        assert numbering.outgoing_prefix(datetime(2026, 2, 1, 8, 0)) == 'OUT-010226'


class TestOutgoingNumbers:

    def test_first_of_day_is_001(self):
        assert numbering.next_outgoing_number(_at(31)) == 'OUT-310126-001'

    def test_increments_from_highest_of_day(self):
        OutgoingFactory(number='OUT-310126-002')
        OutgoingFactory(number='OUT-310126-007')
        OutgoingFactory(number='OUT-310126-MANUAL')
        OutgoingFactory(number='OUT-300126-099')
        assert numbering.next_outgoing_number(_at(31)) == 'OUT-310126-008'

    def test_resets_each_day(self):
        OutgoingFactory(number='OUT-310126-004')
        assert numbering.next_outgoing_number(_at(1, month=2)) == 'OUT-010226-001'

    def test_sequence_grows_past_three_digits(self):
        OutgoingFactory(number='OUT-310126-999')
        assert numbering.next_outgoing_number(_at(31)) == 'OUT-310126-1000'

    def test_sequential_creations_get_distinct_numbers(self, user):
        numbers = [
            OutgoingService.create(actor=user, now=_at(31), status=DocumentStatus.DRAFT, items=[]).number
            for _ in range(3)
        ]
        assert numbers == ['OUT-310126-001', 'OUT-310126-002', 'OUT-310126-003']

    def test_allocation_creates_lock_row_once(self, user):
        OutgoingService.create(actor=user, now=_at(31), status=DocumentStatus.DRAFT, items=[])
        OutgoingService.create(actor=user, now=_at(31), status=DocumentStatus.DRAFT, items=[])
        assert DocumentSequence.objects.filter(name='OUT-310126').count() == 1


class TestRequestNumbers:

    def test_starts_at_one(self):
        assert numbering.next_request_number() == 1

    def test_max_plus_one(self):
        RequestFactory(number=41)
        RequestFactory(number=7)
        assert numbering.next_request_number() == 42

    def test_service_allocates_consecutive_numbers(self, user, now):
        first = RequestService.create(actor=user, now=now, status=DocumentStatus.DRAFT, items=[])
        second = RequestService.create(actor=user, now=now, status=DocumentStatus.DRAFT, items=[])
        assert (first.number, second.number) == (1, 2)


class TestLockSequence:

    def test_creates_then_reuses(self):
        first = numbering.lock_sequence('REQUEST')
        second = numbering.lock_sequence('REQUEST')
        assert first.pk == second.pk
        assert str(first) == 'REQUEST'
