"""
Tests — MovementLedger: record, reverse_for, history and resolve.
Stock and ledger stay in step after many mixed movements; reversal is
idempotent and all-or-nothing.

@file stock/tests/test_services.py
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from core.exceptions import BusinessRuleViolation, InsufficientStockError, ResourceNotFoundError
from core.models import AuditLog
from parts.models import Part
from parts.services import PartRegistry
from stock.models import DocumentKind, PartMovement
from stock.services import DocumentRef, MovementLedger
from tests.factories import OutgoingFactory, PartFactory, ReceivingFactory, UserFactory


pytestmark = pytest.mark.django_db

IN = PartMovement.MovementType.IN
OUT = PartMovement.MovementType.OUT


def _ref(kind=DocumentKind.OTHER):
    return DocumentRef(kind=kind, id=uuid.uuid4())


def _signed_sum(part):
    return sum(m.signed_qty for m in PartMovement.objects.filter(part=part))


class TestRecord:

    def test_record_in(self):
        part = PartFactory(stock=10)
        user = UserFactory()
        ref = _ref(DocumentKind.RECEIVING)
        movement = MovementLedger.record(
            part_id=part.pk, delta=5, movement_type=IN, document_ref=ref, actor=user,
        )
        assert (movement.stock_before, movement.qty, movement.stock_after) == (10, 5, 15)
        assert movement.document_kind == DocumentKind.RECEIVING
        assert movement.document_id == ref.id
        assert movement.created_by == user
        part.refresh_from_db()
        assert part.stock == 15
        assert AuditLog.objects.filter(
            model_name='PartMovement', object_id=str(movement.pk),
        ).exists()

    def test_record_out_snapshot_matches_part(self):
        part = PartFactory(stock=50)
        movement = MovementLedger.record(
            part_id=part.pk, delta=-20, movement_type=OUT, document_ref=_ref(),
        )
        assert (movement.stock_before, movement.qty, movement.stock_after) == (50, 20, 30)
        assert Part.objects.get(pk=part.pk).stock == movement.stock_after

    def test_record_out_insufficient_writes_nothing(self):
        part = PartFactory(stock=3)
        with pytest.raises(InsufficientStockError):
            MovementLedger.record(
                part_id=part.pk, delta=-4, movement_type=OUT, document_ref=_ref(),
            )
        assert PartMovement.objects.count() == 0
        part.refresh_from_db()
        assert part.stock == 3

    @pytest.mark.parametrize('delta, movement_type', [
        (0, IN),
        (-1, IN),
        (1, OUT),
        (1, 'sideways'),
    ])
    def test_sign_and_type_validated(self, delta, movement_type):
        part = PartFactory(stock=10)
        with pytest.raises(BusinessRuleViolation):
            MovementLedger.record(
                part_id=part.pk, delta=delta, movement_type=movement_type, document_ref=_ref(),
            )
        part.refresh_from_db()
        assert part.stock == 10

    def test_stock_equals_initial_plus_signed_sum_after_mixed_movements(self):
        part = PartFactory(stock=7)
        ref = _ref()
        for i in range(60):
            MovementLedger.record(part_id=part.pk, delta=i % 5 + 1, movement_type=IN, document_ref=ref)
        for i in range(40):
            MovementLedger.record(part_id=part.pk, delta=-(i % 3 + 1), movement_type=OUT, document_ref=ref)
        part.refresh_from_db()
        assert part.stock == 7 + _signed_sum(part)
        for movement in PartMovement.objects.filter(part=part):
            assert movement.stock_after == movement.stock_before + movement.signed_qty


class TestReverseFor:

    def test_reverse_restores_stock_and_deletes_rows(self):
        a = PartFactory(stock=50)
        b = PartFactory(stock=5)
        ref = _ref(DocumentKind.OUTGOING)
        MovementLedger.record(part_id=a.pk, delta=-30, movement_type=OUT, document_ref=ref)
        MovementLedger.record(part_id=b.pk, delta=-5, movement_type=OUT, document_ref=ref)

        assert MovementLedger.reverse_for(ref) == 2
        a.refresh_from_db()
        b.refresh_from_db()
        assert (a.stock, b.stock) == (50, 5)
        assert not MovementLedger.movements_for(ref).exists()

    def test_reverse_is_idempotent(self):
        part = PartFactory(stock=0)
        ref = _ref(DocumentKind.RECEIVING)
        MovementLedger.record(part_id=part.pk, delta=9, movement_type=IN, document_ref=ref)
        assert MovementLedger.reverse_for(ref) == 1
        assert MovementLedger.reverse_for(ref) == 0
        part.refresh_from_db()
        assert part.stock == 0

    def test_reverse_leaves_other_documents_alone(self):
        part = PartFactory(stock=0)
        keep, drop = _ref(), _ref()
        MovementLedger.record(part_id=part.pk, delta=4, movement_type=IN, document_ref=keep)
        MovementLedger.record(part_id=part.pk, delta=6, movement_type=IN, document_ref=drop)
        MovementLedger.reverse_for(drop)
        part.refresh_from_db()
        assert part.stock == 4
        assert MovementLedger.movements_for(keep).count() == 1

    def test_reversing_consumed_receipt_rolls_back_everything(self):
        a = PartFactory(stock=0)
        b = PartFactory(stock=0)
        receipt = _ref(DocumentKind.RECEIVING)
        MovementLedger.record(part_id=a.pk, delta=10, movement_type=IN, document_ref=receipt)
        MovementLedger.record(part_id=b.pk, delta=10, movement_type=IN, document_ref=receipt)
        # b's units are issued elsewhere
        MovementLedger.record(part_id=b.pk, delta=-8, movement_type=OUT, document_ref=_ref())

        with pytest.raises(InsufficientStockError) as exc_info:
            MovementLedger.reverse_for(receipt)
        assert exc_info.value.part_code == b.code
        a.refresh_from_db()
        b.refresh_from_db()
        assert (a.stock, b.stock) == (10, 2)
        assert MovementLedger.movements_for(receipt).count() == 2

    def test_reverse_locks_parts_in_id_order(self):
        parts = sorted((PartFactory(stock=0) for _ in range(4)), key=lambda p: str(p.pk))
        ref = _ref(DocumentKind.RECEIVING)
        # recorded highest id first, so creation order disagrees with id order
        for part in reversed(parts):
            MovementLedger.record(part_id=part.pk, delta=2, movement_type=IN, document_ref=ref)

        with patch.object(PartRegistry, 'adjust_stock', wraps=PartRegistry.adjust_stock) as adjust:
            assert MovementLedger.reverse_for(ref) == 4
        locked = [str(c.args[0]) for c in adjust.call_args_list]
        assert locked == [str(p.pk) for p in parts]

    def test_reversal_is_audited(self):
        part = PartFactory(stock=0)
        ref = _ref()
        movement = MovementLedger.record(part_id=part.pk, delta=3, movement_type=IN, document_ref=ref)
        MovementLedger.reverse_for(ref)
        log = AuditLog.objects.get(object_id=str(movement.pk), action=AuditLog.ActionChoices.DELETE)
        assert log.old_values['qty'] == 3
        assert log.new_values == {'stock': 0}


class TestHistory:

    def test_filters(self):
        bracket = PartFactory(code='BRK-1', stock=0)
        housing = PartFactory(code='HSG-1', stock=0)
        ref = _ref()
        MovementLedger.record(part_id=bracket.pk, delta=5, movement_type=IN, document_ref=ref)
        MovementLedger.record(part_id=bracket.pk, delta=-2, movement_type=OUT, document_ref=ref)
        MovementLedger.record(part_id=housing.pk, delta=1, movement_type=IN, document_ref=ref)

        assert MovementLedger.history().count() == 3
        assert MovementLedger.history(part_id=bracket.pk).count() == 2
        assert MovementLedger.history(part_code='brk').count() == 2
        assert MovementLedger.history(movement_type=OUT).count() == 1
        assert MovementLedger.history(part_code='hsg', movement_type=IN).count() == 1

    def test_date_window(self):
        part = PartFactory(stock=0)
        MovementLedger.record(part_id=part.pk, delta=1, movement_type=IN, document_ref=_ref())
        now = timezone.now()
        assert MovementLedger.history(start=now - timedelta(hours=1)).count() == 1
        assert MovementLedger.history(end=now - timedelta(hours=1)).count() == 0


class TestResolve:

    def test_resolve_receiving_and_outgoing(self):
        receiving = ReceivingFactory()
        outgoing = OutgoingFactory()
        assert MovementLedger.resolve(DocumentRef(DocumentKind.RECEIVING, receiving.pk)) == receiving
        assert MovementLedger.resolve(DocumentRef(DocumentKind.OUTGOING, outgoing.pk)) == outgoing

    def test_resolve_unknown_kind(self):
        with pytest.raises(ResourceNotFoundError):
            MovementLedger.resolve(_ref(DocumentKind.OTHER))

    def test_resolve_missing_document(self):
        with pytest.raises(ResourceNotFoundError):
            MovementLedger.resolve(_ref(DocumentKind.RECEIVING))
