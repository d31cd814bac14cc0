"""
Stock — Models

Append-only ledger of part stock changes. Each PartMovement records one
adjustment of Part.stock (before, after, signed type, quantity) and the
document that caused it. Rows are never updated; undoing a document
deletes its rows through MovementLedger.reverse_for.

@file stock/models.py
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _


class DocumentKind(models.TextChoices):
    RECEIVING = 'RECEIVING', _('Receiving')
    OUTGOING = 'OUTGOING', _('Outgoing')
    OTHER = 'OTHER', _('Other')


class PartMovement(models.Model):
    """
    A single immutable stock change for one part.

    document_kind + document_id identify the source document; the FK is
    resolved in the application layer (MovementLedger.resolve).
    """

    class MovementType(models.TextChoices):
        IN = 'in', _('In')
        OUT = 'out', _('Out')

    id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False,
    )
    part = models.ForeignKey(
        'parts.Part',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('part'),
    )
    stock_before = models.IntegerField(_('stock before'))
    movement_type = models.CharField(
        _('type'), max_length=3,
        choices=MovementType.choices, db_index=True,
    )
    qty = models.PositiveIntegerField(_('quantity'))
    stock_after = models.IntegerField(_('stock after'))
    document_kind = models.CharField(
        _('document kind'), max_length=16,
        choices=DocumentKind.choices,
    )
    document_id = models.UUIDField(
        _('document ID'),
        help_text=_('UUID of the receiving / outgoing; resolved per kind'),
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('created by'),
    )
    created_at = models.DateTimeField(
        _('created at'), auto_now_add=True, db_index=True,
    )
    # No updated_at: immutable record.

    class Meta:
        verbose_name = _('part movement')
        verbose_name_plural = _('part movements')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['document_kind', 'document_id'], name='movement_document_idx'),
            models.Index(fields=['part', 'created_at'], name='movement_part_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(qty__gt=0),
                name='movement_qty_positive',
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(
                        movement_type='in',
                        stock_after=models.F('stock_before') + models.F('qty'),
                    )
                    | models.Q(
                        movement_type='out',
                        stock_after=models.F('stock_before') - models.F('qty'),
                    )
                ),
                name='movement_balance_consistent',
            ),
        ]

    def __str__(self):
        return f'{self.movement_type} {self.qty} part={self.part_id} {self.stock_before}->{self.stock_after}'

    @property
    def signed_qty(self) -> int:
        return self.qty if self.movement_type == self.MovementType.IN else -self.qty

    def clean(self):
        if self.qty is None or self.qty <= 0:
            raise ValidationError({'qty': _('Quantity must be positive.')})
        if self.stock_after != self.stock_before + self.signed_qty:
            raise ValidationError(
                _('stock_after must equal stock_before %(sign)s qty for an %(type)s movement.'),
                params={
                    'sign': '+' if self.movement_type == self.MovementType.IN else '-',
                    'type': self.movement_type,
                },
            )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise NotImplementedError('PartMovement is insert-only; updates are not allowed.')
        self.clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError(
            'PartMovement rows are removed only by MovementLedger.reverse_for.',
        )
