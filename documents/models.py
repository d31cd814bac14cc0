"""
Documents — Models

Receivings (inbound), outgoings (outbound) and requests (internal pick
lists) share one shape: a numbered header with actor, timestamp, status
and notes, plus positioned line items. Receivings and outgoings carry an
extra goods-receipt / goods-issue confirmation flag; requests carry a
destination and per-item urgent / supplied flags.

State machine: DRAFT ⇄ COMPLETED, DRAFT/COMPLETED → CANCELLED (terminal).

@file documents/models.py
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class DocumentStatus(models.TextChoices):
    DRAFT = 'draft', _('Draft')
    COMPLETED = 'completed', _('Completed')
    CANCELLED = 'cancelled', _('Cancelled')


class DocumentSequence(models.Model):
    """
    Lock row per number prefix (e.g. OUT-310126, REQUEST).

    Number allocation selects this row FOR UPDATE so concurrent creations
    on the same prefix are serialised until the allocating transaction ends.
    """

    name = models.CharField(_('name'), max_length=50, unique=True)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('document sequence')
        verbose_name_plural = _('document sequences')

    def __str__(self):
        return self.name


class Document(BaseModel):
    """Fields shared by every document kind."""

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='%(class)s_documents',
        verbose_name=_('actor'),
    )
    occurred_at = models.DateTimeField(_('occurred at'), db_index=True)
    status = models.CharField(
        _('status'), max_length=10,
        choices=DocumentStatus.choices,
        default=DocumentStatus.DRAFT,
        db_index=True,
    )
    notes = models.TextField(_('notes'), blank=True)

    class Meta:
        abstract = True
        ordering = ['-occurred_at']

    @property
    def is_completed(self) -> bool:
        return self.status == DocumentStatus.COMPLETED

    @property
    def is_cancelled(self) -> bool:
        return self.status == DocumentStatus.CANCELLED


class ConfirmableDocument(Document):
    """Document with a physical hand-over checkpoint (GR / GI)."""

    is_confirmed = models.BooleanField(_('confirmed'), default=False, db_index=True)

    class Meta(Document.Meta):
        abstract = True


class Receiving(ConfirmableDocument):
    """Inbound goods. `actor` received them; is_confirmed is the GR flag."""

    number = models.CharField(_('document number'), max_length=32, unique=True)

    class Meta(ConfirmableDocument.Meta):
        verbose_name = _('receiving')
        verbose_name_plural = _('receivings')
        indexes = [
            models.Index(fields=['status', 'is_confirmed'], name='receiving_status_conf_idx'),
        ]

    def __str__(self):
        return f'{self.number} ({self.status})'


class Outgoing(ConfirmableDocument):
    """Outbound goods. `actor` issued them; is_confirmed is the GI flag."""

    number = models.CharField(_('document number'), max_length=32, unique=True)

    class Meta(ConfirmableDocument.Meta):
        verbose_name = _('outgoing')
        verbose_name_plural = _('outgoings')
        indexes = [
            models.Index(fields=['status', 'is_confirmed'], name='outgoing_status_conf_idx'),
        ]

    def __str__(self):
        return f'{self.number} ({self.status})'


class Request(Document):
    """Internal pick request. Never touches stock until an item is supplied."""

    number = models.PositiveIntegerField(_('request number'), unique=True)
    destination = models.CharField(_('destination'), max_length=255, blank=True)

    class Meta(Document.Meta):
        verbose_name = _('request')
        verbose_name_plural = _('requests')

    def __str__(self):
        return f'Request #{self.number} → {self.destination or "-"} ({self.status})'


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------

class LineItem(BaseModel):
    qty = models.PositiveIntegerField(_('quantity'))
    position = models.PositiveIntegerField(_('position'), default=0)

    class Meta:
        abstract = True
        ordering = ['position']

    def __str__(self):
        return f'{self.document_id} — {self.part_id} × {self.qty}'


class ReceivingItem(LineItem):
    document = models.ForeignKey(
        Receiving,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('receiving'),
    )
    part = models.ForeignKey(
        'parts.Part',
        on_delete=models.PROTECT,
        related_name='receiving_items',
        verbose_name=_('part'),
    )

    class Meta(LineItem.Meta):
        verbose_name = _('receiving item')
        verbose_name_plural = _('receiving items')


class OutgoingItem(LineItem):
    document = models.ForeignKey(
        Outgoing,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('outgoing'),
    )
    part = models.ForeignKey(
        'parts.Part',
        on_delete=models.PROTECT,
        related_name='outgoing_items',
        verbose_name=_('part'),
    )

    class Meta(LineItem.Meta):
        verbose_name = _('outgoing item')
        verbose_name_plural = _('outgoing items')


class RequestItem(LineItem):
    document = models.ForeignKey(
        Request,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('request'),
    )
    part = models.ForeignKey(
        'parts.Part',
        on_delete=models.PROTECT,
        related_name='request_items',
        verbose_name=_('part'),
    )
    is_urgent = models.BooleanField(_('urgent'), default=False)
    is_supplied = models.BooleanField(_('supplied'), default=False, db_index=True)

    class Meta(LineItem.Meta):
        verbose_name = _('request item')
        verbose_name_plural = _('request items')
