"""
Documents — Service Layer

One lifecycle engine drives receivings, outgoings and requests. Each kind
is a DocumentLifecycleService subclass configured with a capability set
(does it move stock, in which direction, does it carry a confirmation
flag) and a numbering strategy.

Transitions:
  create:  persist header + items; completed → one ledger record per item
  update:  forbidden once confirmed or cancelled; a completed document is
            reversed first, items are replaced, and a completed target is
            re-applied
  cancel:  reverse if completed, then mark cancelled
  toggle_confirmation: flip the GR/GI flag, no stock effect

SupplyService turns one request item into a completed single-line
outgoing in the same transaction.

@file documents/services.py
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from django.db import IntegrityError, transaction

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_STATUS_CHANGE, AUDIT_ACTION_UPDATE
from core.exceptions import (
    BusinessRuleViolation,
    DuplicateResourceError,
    ForbiddenOperationError,
    InsufficientStockError,
    InvalidStateTransition,
    PartMismatchError,
    QuantityExceededError,
    ResourceNotFoundError,
)
from core.services import AuditService
from parts.services import PartRegistry, normalize_code
from stock.models import DocumentKind, PartMovement
from stock.services import DocumentRef, MovementLedger

from . import events, numbering
from .models import (
    DocumentStatus,
    Outgoing,
    OutgoingItem,
    Receiving,
    ReceivingItem,
    Request,
    RequestItem,
)

logger = logging.getLogger('parttrack')

CREATABLE_STATUSES = {DocumentStatus.DRAFT, DocumentStatus.COMPLETED}


@dataclass(frozen=True)
class DocumentCapabilities:
    """What a document kind does to stock when it is completed."""

    applies_stock: bool
    has_confirmation_flag: bool
    stock_sign: int = 0
    ref_kind: str = DocumentKind.OTHER

    @property
    def movement_type(self) -> str:
        if self.stock_sign > 0:
            return PartMovement.MovementType.IN
        return PartMovement.MovementType.OUT


class DocumentLifecycleService:
    """Generic state machine; subclasses bind the model and capabilities."""

    model = None
    item_model = None
    capabilities: DocumentCapabilities = None

    # ------------------------------------------------------------------
    # Kind-specific hooks
    # ------------------------------------------------------------------

    @classmethod
    def allocate_number(cls, *, number, now: datetime):
        raise NotImplementedError

    @classmethod
    def header_fields(cls, extra: dict) -> dict:
        """Kind-specific header columns picked from the create/update payload."""
        return {}

    @classmethod
    def item_fields(cls, row: dict) -> dict:
        return {}

    @classmethod
    def after_items_created(cls, document, items: list) -> None:
        pass

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @classmethod
    def get(cls, document_id):
        try:
            return cls.model.objects.select_related('actor').prefetch_related(
                'items__part',
            ).get(pk=document_id)
        except cls.model.DoesNotExist:
            raise ResourceNotFoundError(
                detail=f'{cls.model._meta.verbose_name.title()} {document_id} not found.',
            )

    @classmethod
    def document_ref(cls, document) -> DocumentRef:
        return DocumentRef.for_document(document, cls.capabilities.ref_kind)

    @classmethod
    def _get_for_update(cls, document_id):
        try:
            return cls.model.objects.select_for_update().get(pk=document_id)
        except cls.model.DoesNotExist:
            raise ResourceNotFoundError(
                detail=f'{cls.model._meta.verbose_name.title()} {document_id} not found.',
            )

    @classmethod
    def _assert_editable(cls, document) -> None:
        if cls.capabilities.has_confirmation_flag and document.is_confirmed:
            raise ForbiddenOperationError(
                document_id=document.pk,
                reason=f'Cannot edit {document.number}: it has been confirmed.',
            )
        if document.is_cancelled:
            raise ForbiddenOperationError(
                document_id=document.pk,
                reason=f'Cannot edit {document.number}: it is cancelled.',
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @classmethod
    def _save(cls, document, **kwargs) -> None:
        try:
            with transaction.atomic():
                document.save(**kwargs)
        except IntegrityError:
            raise DuplicateResourceError(number=document.number)

    @classmethod
    def _create_items(cls, document, items: list[dict], actor) -> list:
        created = [
            cls.item_model(
                document=document,
                part_id=row['part_id'],
                qty=row['qty'],
                position=position,
                created_by=actor,
                **cls.item_fields(row),
            )
            for position, row in enumerate(items)
        ]
        cls.item_model.objects.bulk_create(created)
        cls.after_items_created(document, created)
        return created

    @classmethod
    def _replace_items(cls, document, items: list[dict], actor) -> list:
        document.items.all().delete()
        return cls._create_items(document, items, actor)

    @classmethod
    def _apply_stock(cls, document, actor) -> None:
        caps = cls.capabilities
        if not caps.applies_stock:
            return
        ref = cls.document_ref(document)
        # Lock parts in a stable order so two documents sharing parts
        # cannot deadlock each other.
        for item in sorted(document.items.all(), key=lambda i: (str(i.part_id), i.position)):
            MovementLedger.record(
                part_id=item.part_id,
                delta=caps.stock_sign * item.qty,
                movement_type=caps.movement_type,
                document_ref=ref,
                actor=actor,
            )

    @classmethod
    def _reverse_stock(cls, document, actor) -> int:
        if not cls.capabilities.applies_stock:
            return 0
        return MovementLedger.reverse_for(cls.document_ref(document), actor=actor)

    @classmethod
    @transaction.atomic
    def create(
        cls,
        *,
        actor,
        now: datetime,
        status: str,
        items: list[dict],
        number=None,
        occurred_at: datetime | None = None,
        notes: str = '',
        **extra,
    ):
        """
        Create a document in DRAFT or COMPLETED status.

        A completed receiving/outgoing is applied to stock immediately; an
        outgoing that would drive any part negative raises
        InsufficientStockError and nothing is persisted.
        """
        if status not in CREATABLE_STATUSES:
            raise InvalidStateTransition(
                detail=f'Documents can only be created as draft or completed, not {status}.',
            )
        document = cls.model(
            number=cls.allocate_number(number=number, now=now),
            actor=actor,
            occurred_at=occurred_at or now,
            status=status,
            notes=notes or '',
            created_by=actor,
            **cls.header_fields(extra),
        )
        cls._save(document, force_insert=True)
        cls._create_items(document, items, actor)
        if status == DocumentStatus.COMPLETED:
            cls._apply_stock(document, actor)

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name=cls.model.__name__,
            object_id=str(document.pk),
            new_values={
                'number': document.number,
                'status': status,
                'items': [{'part_id': str(row['part_id']), 'qty': row['qty']} for row in items],
            },
        )
        logger.info(
            '%s %s created (%s) status=%s items=%d',
            cls.model.__name__, document.number, document.pk, status, len(items),
        )
        return document

    @classmethod
    @transaction.atomic
    def update(
        cls,
        *,
        document_id,
        actor,
        status: str,
        items: list[dict],
        number=None,
        occurred_at: datetime | None = None,
        notes: str | None = None,
        **extra,
    ):
        """
        Replace a document's header fields and items.

        A completed document is reversed before its items are replaced and
        re-applied afterwards when the target status is completed. The
        reversal can fail with InsufficientStockError if the stock it would
        remove has since been consumed.
        """
        document = cls._get_for_update(document_id)
        cls._assert_editable(document)
        if status not in CREATABLE_STATUSES:
            raise InvalidStateTransition(
                detail='Use cancel() to cancel a document.',
            )

        old_values = {'number': document.number, 'status': document.status}
        if document.is_completed:
            cls._reverse_stock(document, actor)

        if number is not None:
            document.number = number
        if occurred_at is not None:
            document.occurred_at = occurred_at
        if notes is not None:
            document.notes = notes
        for field, value in cls.header_fields(extra).items():
            setattr(document, field, value)
        document.status = status
        document.updated_by = actor
        cls._save(document)

        cls._replace_items(document, items, actor)
        if status == DocumentStatus.COMPLETED:
            cls._apply_stock(document, actor)

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name=cls.model.__name__,
            object_id=str(document.pk),
            old_values=old_values,
            new_values={
                'number': document.number,
                'status': status,
                'items': [{'part_id': str(row['part_id']), 'qty': row['qty']} for row in items],
            },
        )
        logger.info(
            '%s %s updated status %s -> %s',
            cls.model.__name__, document.number, old_values['status'], status,
        )
        return document

    @classmethod
    @transaction.atomic
    def cancel(cls, *, document_id, actor):
        document = cls._get_for_update(document_id)
        if document.is_cancelled:
            raise ForbiddenOperationError(
                document_id=document.pk,
                reason=f'{document.number} is already cancelled.',
            )
        old_status = document.status
        reversed_count = 0
        if document.is_completed:
            reversed_count = cls._reverse_stock(document, actor)

        document.status = DocumentStatus.CANCELLED
        document.updated_by = actor
        document.save(update_fields=['status', 'updated_by', 'updated_at'])
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_STATUS_CHANGE,
            model_name=cls.model.__name__,
            object_id=str(document.pk),
            old_values={'status': old_status},
            new_values={'status': DocumentStatus.CANCELLED, 'movements_reversed': reversed_count},
        )
        logger.info(
            '%s %s cancelled (was %s, %d movements reversed)',
            cls.model.__name__, document.number, old_status, reversed_count,
        )
        return document

    @classmethod
    @transaction.atomic
    def toggle_confirmation(cls, *, document_id, actor):
        """Flip the GR/GI flag. Status and stock are untouched."""
        if not cls.capabilities.has_confirmation_flag:
            raise BusinessRuleViolation(
                detail=f'{cls.model.__name__} documents have no confirmation flag.',
            )
        document = cls._get_for_update(document_id)
        if document.is_cancelled:
            raise ForbiddenOperationError(
                document_id=document.pk,
                reason=f'Cannot confirm {document.number}: it is cancelled.',
            )
        document.is_confirmed = not document.is_confirmed
        document.updated_by = actor
        document.save(update_fields=['is_confirmed', 'updated_by', 'updated_at'])
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name=cls.model.__name__,
            object_id=str(document.pk),
            old_values={'is_confirmed': not document.is_confirmed},
            new_values={'is_confirmed': document.is_confirmed},
        )
        logger.info(
            '%s %s confirmation set to %s',
            cls.model.__name__, document.number, document.is_confirmed,
        )
        return document


class ReceivingService(DocumentLifecycleService):
    """Inbound goods: completed receivings add stock."""

    model = Receiving
    item_model = ReceivingItem
    capabilities = DocumentCapabilities(
        applies_stock=True,
        has_confirmation_flag=True,
        stock_sign=1,
        ref_kind=DocumentKind.RECEIVING,
    )

    @classmethod
    def allocate_number(cls, *, number, now):
        number = (number or '').strip()
        if not number:
            raise BusinessRuleViolation(detail='A receiving document number is required.')
        if Receiving.objects.filter(number=number).exists():
            raise DuplicateResourceError(number=number)
        return number


class OutgoingService(DocumentLifecycleService):
    """Outbound goods: completed outgoings remove stock."""

    model = Outgoing
    item_model = OutgoingItem
    capabilities = DocumentCapabilities(
        applies_stock=True,
        has_confirmation_flag=True,
        stock_sign=-1,
        ref_kind=DocumentKind.OUTGOING,
    )

    @classmethod
    def allocate_number(cls, *, number, now):
        if number:
            if Outgoing.objects.filter(number=number).exists():
                raise DuplicateResourceError(number=number)
            return number
        return numbering.next_outgoing_number(now)


class RequestService(DocumentLifecycleService):
    """Pick requests: items only, no stock until supplied."""

    model = Request
    item_model = RequestItem
    capabilities = DocumentCapabilities(
        applies_stock=False,
        has_confirmation_flag=False,
    )

    @classmethod
    def allocate_number(cls, *, number, now):
        if number:
            if Request.objects.filter(number=number).exists():
                raise DuplicateResourceError(number=number)
            return number
        return numbering.next_request_number()

    @classmethod
    def header_fields(cls, extra):
        if 'destination' in extra:
            return {'destination': extra['destination'] or ''}
        return {}

    @classmethod
    def item_fields(cls, row):
        return {
            'is_urgent': bool(row.get('is_urgent', False)),
            'is_supplied': bool(row.get('is_supplied', False)),
        }

    @classmethod
    def after_items_created(cls, document, items):
        for item in RequestItem.objects.filter(
            pk__in=[i.pk for i in items],
        ).select_related('part', 'document__actor'):
            events.emit_after_commit(events.RequestItemCreated.from_item(item))


class SupplyService:
    """Fulfil a request item from stock as a completed outgoing."""

    @staticmethod
    @transaction.atomic
    def supply(
        *,
        request_item_id,
        scanned_code: str,
        actor,
        now: datetime,
        qty: int | None = None,
    ) -> Outgoing:
        """
        Check the scanned part and quantity, then issue a completed
        single-line outgoing and mark the request item supplied.

        `qty` defaults to the requested quantity. Raises PartMismatchError,
        QuantityExceededError or InsufficientStockError before any write.
        """
        try:
            item = RequestItem.objects.select_for_update().get(pk=request_item_id)
        except RequestItem.DoesNotExist:
            raise ResourceNotFoundError(detail=f'Request item {request_item_id} not found.')
        request = Request.objects.get(pk=item.document_id)
        # Same lock order as OutgoingService.create: sequence row, then part.
        number = numbering.next_outgoing_number(now)
        part = PartRegistry.get_for_update(item.part_id)

        expected = normalize_code(part.code)
        scanned = normalize_code(scanned_code)
        if scanned != expected:
            raise PartMismatchError(expected=expected, scanned=scanned)

        if qty is None:
            qty = item.qty
        if qty <= 0:
            raise BusinessRuleViolation(detail='Supply quantity must be positive.')
        if qty > item.qty:
            raise QuantityExceededError(requested=item.qty, supplied=qty)
        if part.stock < qty:
            raise InsufficientStockError(part_code=part.code, available=part.stock, required=qty)

        outgoing = OutgoingService.create(
            actor=actor,
            now=now,
            status=DocumentStatus.COMPLETED,
            items=[{'part_id': part.pk, 'qty': qty}],
            number=number,
            notes=f'Auto-generated from request #{request.number} - {request.destination}',
        )

        item.is_supplied = True
        item.updated_by = actor
        item.save(update_fields=['is_supplied', 'updated_by', 'updated_at'])
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='RequestItem',
            object_id=str(item.pk),
            old_values={'is_supplied': False},
            new_values={'is_supplied': True, 'outgoing': outgoing.number, 'qty': qty},
        )
        logger.info(
            'Request #%s item %s supplied: %s x%s via %s',
            request.number, item.pk, part.code, qty, outgoing.number,
        )
        return outgoing
