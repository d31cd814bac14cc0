"""
Stock — Service Layer

MovementLedger writes and reverses PartMovement rows. Every movement is
recorded in the same transaction as the PartRegistry.adjust_stock call
that produced it, so stock and ledger can never diverge.

@file stock/services.py
"""

import logging
from datetime import datetime
from typing import NamedTuple
from uuid import UUID

from django.apps import apps
from django.db import transaction

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DELETE
from core.exceptions import BusinessRuleViolation, ResourceNotFoundError
from core.services import AuditService
from parts.services import PartRegistry

from .models import DocumentKind, PartMovement

logger = logging.getLogger('parttrack')

# Lookup table used to resolve a movement's document reference.
REFERENCE_MODELS = {
    DocumentKind.RECEIVING: 'documents.Receiving',
    DocumentKind.OUTGOING: 'documents.Outgoing',
}


class DocumentRef(NamedTuple):
    """Polymorphic pointer from a movement to its source document."""
    kind: str
    id: UUID

    @classmethod
    def for_document(cls, document, kind: str) -> 'DocumentRef':
        return cls(kind=kind, id=document.pk)


class MovementLedger:
    """Append-only stock movement log with per-document reversal."""

    @staticmethod
    @transaction.atomic
    def record(
        *,
        part_id,
        delta: int,
        movement_type: str,
        document_ref: DocumentRef,
        actor=None,
    ) -> PartMovement:
        """
        Adjust stock by `delta` and persist the matching movement.

        `delta` must be positive for `in` and negative for `out`. Raises
        InsufficientStockError (from the registry) for an `out` that would
        drive stock negative; nothing is written in that case.
        """
        if movement_type not in PartMovement.MovementType.values:
            raise BusinessRuleViolation(detail=f'Invalid movement type: {movement_type}')
        if delta == 0:
            raise BusinessRuleViolation(detail='Quantity must be positive.')
        if (delta > 0) != (movement_type == PartMovement.MovementType.IN):
            raise BusinessRuleViolation(
                detail=f'Delta {delta} does not match movement type {movement_type}.',
            )

        part = PartRegistry.adjust_stock(part_id, delta)
        stock_after = part.stock
        stock_before = stock_after - delta

        movement = PartMovement(
            part=part,
            stock_before=stock_before,
            movement_type=movement_type,
            qty=abs(delta),
            stock_after=stock_after,
            document_kind=document_ref.kind,
            document_id=document_ref.id,
            created_by=actor,
        )
        movement.save()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='PartMovement',
            object_id=str(movement.pk),
            new_values={
                'part_id': str(part.pk),
                'movement_type': movement_type,
                'qty': movement.qty,
                'stock_before': stock_before,
                'stock_after': stock_after,
                'document_kind': document_ref.kind,
                'document_id': str(document_ref.id),
            },
        )
        logger.debug(
            'Stock movement applied part=%s type=%s qty=%s %s->%s ref=%s:%s',
            part.code, movement_type, movement.qty, stock_before, stock_after,
            document_ref.kind, document_ref.id,
        )
        return movement

    @staticmethod
    @transaction.atomic
    def reverse_for(document_ref: DocumentRef, actor=None) -> int:
        """
        Undo every movement recorded for a document and delete the rows.

        Each movement's inverse delta goes through PartRegistry, so
        reversing an `in` may raise InsufficientStockError when that stock
        has since been consumed; the whole reversal then rolls back.
        Returns the number of movements reversed (0 when none remain).
        Parts are locked in part-id order, as when the document was applied.
        """
        movements = list(
            PartMovement.objects.filter(
                document_kind=document_ref.kind,
                document_id=document_ref.id,
            ).order_by('part_id', 'created_at', 'id')
        )
        for movement in movements:
            part = PartRegistry.adjust_stock(movement.part_id, -movement.signed_qty)
            PartMovement.objects.filter(pk=movement.pk).delete()
            AuditService.log(
                actor=actor,
                action=AUDIT_ACTION_DELETE,
                model_name='PartMovement',
                object_id=str(movement.pk),
                old_values={
                    'part_id': str(movement.part_id),
                    'movement_type': movement.movement_type,
                    'qty': movement.qty,
                    'stock_before': movement.stock_before,
                    'stock_after': movement.stock_after,
                },
                new_values={'stock': part.stock},
            )
            logger.debug(
                'Stock movement reversed part=%s type=%s qty=%s stock now %s ref=%s:%s',
                part.code, movement.movement_type, movement.qty, part.stock,
                document_ref.kind, document_ref.id,
            )
        return len(movements)

    @staticmethod
    def movements_for(document_ref: DocumentRef):
        return PartMovement.objects.filter(
            document_kind=document_ref.kind,
            document_id=document_ref.id,
        ).select_related('part')

    @staticmethod
    def history(
        *,
        part_id=None,
        part_code: str | None = None,
        movement_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ):
        """Movements newest first, optionally filtered."""
        qs = PartMovement.objects.select_related('part')
        if part_id is not None:
            qs = qs.filter(part_id=part_id)
        if part_code:
            qs = qs.filter(part__code__icontains=part_code.strip())
        if movement_type:
            qs = qs.filter(movement_type=movement_type)
        if start is not None:
            qs = qs.filter(created_at__gte=start)
        if end is not None:
            qs = qs.filter(created_at__lte=end)
        return qs.order_by('-created_at')

    @staticmethod
    def resolve(document_ref: DocumentRef):
        """Return the document a reference points at."""
        label = REFERENCE_MODELS.get(document_ref.kind)
        if label is None:
            raise ResourceNotFoundError(
                detail=f'No document model registered for kind {document_ref.kind}.',
            )
        model = apps.get_model(label)
        try:
            return model.objects.get(pk=document_ref.id)
        except model.DoesNotExist:
            raise ResourceNotFoundError(
                detail=f'{document_ref.kind} {document_ref.id} not found.',
            )
