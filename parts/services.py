"""
Parts — Service Layer

PartRegistry is the single entry point for reading parts and for changing
their stock. All stock writers (the movement ledger and, through it, the
document lifecycle and supply operations) call adjust_stock, which locks
the part row for the whole read-modify-write.

@file parts/services.py
"""

import logging

from django.db import IntegrityError, transaction

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DELETE, AUDIT_ACTION_UPDATE
from core.exceptions import (
    BusinessRuleViolation,
    DuplicateResourceError,
    InsufficientStockError,
    ResourceNotFoundError,
)
from core.services import AuditService

from .models import Part

logger = logging.getLogger('parttrack')


def normalize_code(code: str) -> str:
    """Canonical form used when comparing scanned and stored part codes."""
    return (code or '').strip().upper()


def _duplicate_code(code: str) -> DuplicateResourceError:
    return DuplicateResourceError(detail={
        'detail': f'Part {code} already exists.',
        'code': code,
    })


class PartRegistry:
    """Part identity and the stock-mutation primitive."""

    @staticmethod
    def get(part_id) -> Part:
        try:
            return Part.objects.get(pk=part_id)
        except Part.DoesNotExist:
            raise ResourceNotFoundError(detail=f'Part {part_id} not found.')

    @staticmethod
    def get_for_update(part_id) -> Part:
        """Fetch and row-lock a part. Must be called inside a transaction."""
        try:
            return Part.objects.select_for_update().get(pk=part_id)
        except Part.DoesNotExist:
            raise ResourceNotFoundError(detail=f'Part {part_id} not found.')

    @staticmethod
    def find_by_code(code: str) -> Part:
        part = Part.objects.filter(code__iexact=normalize_code(code)).first()
        if part is None:
            raise ResourceNotFoundError(detail=f'Part {code!r} not found.')
        return part

    @staticmethod
    @transaction.atomic
    def adjust_stock(part_id, delta: int) -> Part:
        """
        Apply a signed delta to a part's stock under a row lock.

        Raises InsufficientStockError, leaving the row untouched, when the
        result would be negative. Returns the part with its new stock.
        """
        part = PartRegistry.get_for_update(part_id)
        stock_after = part.stock + delta
        if stock_after < 0:
            raise InsufficientStockError(
                part_code=part.code,
                available=part.stock,
                required=-delta,
            )
        part.stock = stock_after
        part.save(update_fields=['stock', 'updated_at'])
        return part

    @staticmethod
    @transaction.atomic
    def create(*, code: str, name: str, stock: int = 0, actor=None, **fields) -> Part:
        """Register a new part. `stock` is its opening balance."""
        if stock < 0:
            raise BusinessRuleViolation(detail='Opening stock cannot be negative.')
        code = (code or '').strip()
        if Part.objects.filter(code__iexact=code).exists():
            raise _duplicate_code(code)
        part = Part(code=code, name=name, stock=stock, created_by=actor, **fields)
        part.full_clean()
        try:
            with transaction.atomic():
                part.save()
        except IntegrityError:
            raise _duplicate_code(code)
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='Part',
            object_id=str(part.pk),
            new_values=AuditService.snapshot(part),
        )
        logger.info('Part %s created (%s) stock=%s', part.code, part.pk, part.stock)
        return part

    @staticmethod
    @transaction.atomic
    def set_active(*, part_id, is_active: bool, actor=None) -> Part:
        part = PartRegistry.get_for_update(part_id)
        if part.is_active == is_active:
            return part
        part.is_active = is_active
        part.updated_by = actor
        part.save(update_fields=['is_active', 'updated_by', 'updated_at'])
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='Part',
            object_id=str(part.pk),
            old_values={'is_active': not is_active},
            new_values={'is_active': is_active},
        )
        return part

    @staticmethod
    @transaction.atomic
    def delete(*, part_id, actor=None) -> None:
        """Hard-delete a part that no document or movement has referenced."""
        part = PartRegistry.get_for_update(part_id)
        if part.has_transactions():
            raise BusinessRuleViolation(
                detail=f'Cannot delete part {part.code} with existing transactions.',
            )
        snapshot = AuditService.snapshot(part)
        part.delete()
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_DELETE,
            model_name='Part',
            object_id=str(part_id),
            old_values=snapshot,
        )
        logger.info('Part %s deleted.', snapshot['code'])
