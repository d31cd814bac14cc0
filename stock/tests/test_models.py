"""
Tests — PartMovement: insert-only rows, balance validation and the
database check constraints.

@file stock/tests/test_models.py
"""

import uuid

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from stock.models import DocumentKind, PartMovement
from tests.factories import PartFactory


pytestmark = pytest.mark.django_db


def _movement(part, **overrides):
    fields = {
        'part': part,
        'stock_before': 10,
        'movement_type': PartMovement.MovementType.IN,
        'qty': 5,
        'stock_after': 15,
        'document_kind': DocumentKind.RECEIVING,
        'document_id': uuid.uuid4(),
    }
    fields.update(overrides)
    return PartMovement(**fields)


class TestPartMovementModel:

    def test_insert(self):
        movement = _movement(PartFactory())
        movement.save()
        assert movement.pk is not None
        assert movement.signed_qty == 5

    def test_signed_qty_out(self):
        movement = _movement(
            PartFactory(),
            movement_type=PartMovement.MovementType.OUT,
            stock_after=5,
        )
        assert movement.signed_qty == -5

    def test_update_not_allowed(self):
        movement = _movement(PartFactory())
        movement.save()
        movement.qty = 6
        with pytest.raises(NotImplementedError):
            movement.save()
        movement.refresh_from_db()
        assert movement.qty == 5

    def test_instance_delete_not_allowed(self):
        movement = _movement(PartFactory())
        movement.save()
        with pytest.raises(NotImplementedError):
            movement.delete()
        assert PartMovement.objects.filter(pk=movement.pk).exists()

    @pytest.mark.parametrize('overrides', [
        {'stock_after': 16},
        {'movement_type': PartMovement.MovementType.OUT},
        {'qty': 0, 'stock_after': 10},
    ])
    def test_inconsistent_balance_fails_validation(self, overrides):
        with pytest.raises(ValidationError):
            _movement(PartFactory(), **overrides).save()
        assert PartMovement.objects.count() == 0

    def test_check_constraint_rejects_bulk_insert(self):
        part = PartFactory()
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                PartMovement.objects.bulk_create([_movement(part, stock_after=99)])
