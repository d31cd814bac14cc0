"""
Parts — Models

Registry of physical parts and their single authoritative stock counter.
Part.stock is written only by PartRegistry.adjust_stock; every change is
paired with a PartMovement row in the stock ledger.

@file parts/models.py
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from core.constants import DEFAULT_LOW_STOCK_THRESHOLD
from core.models import BaseModel


def low_stock_threshold() -> int:
    return getattr(settings, 'LOW_STOCK_THRESHOLD', DEFAULT_LOW_STOCK_THRESHOLD)


class PartQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)

    def inactive(self):
        return self.filter(is_active=False)

    def in_stock(self):
        return self.filter(stock__gt=0)

    def out_of_stock(self):
        return self.filter(stock__lte=0)

    def low_stock(self, threshold: int | None = None):
        if threshold is None:
            threshold = low_stock_threshold()
        return self.filter(stock__gt=0, stock__lte=threshold)

    def search(self, term: str):
        term = term.strip()
        return self.filter(
            models.Q(code__icontains=term)
            | models.Q(name__icontains=term)
            | models.Q(customer_code__icontains=term)
            | models.Q(supplier_code__icontains=term)
            | models.Q(model_code__icontains=term)
        )


class Part(BaseModel):
    """
    A stocked part identified by its unique code (part number).

    `address` is the storage bin used by pickers; `standard_packing` the
    number of units per standard pack.
    """

    class StockStatus(models.TextChoices):
        IN_STOCK = 'in_stock', _('In stock')
        LOW_STOCK = 'low_stock', _('Low stock')
        OUT_OF_STOCK = 'out_of_stock', _('Out of stock')

    code = models.CharField(
        _('part number'), max_length=64, unique=True,
    )
    name = models.CharField(_('part name'), max_length=255)
    customer_code = models.CharField(_('customer code'), max_length=64, blank=True)
    supplier_code = models.CharField(_('supplier code'), max_length=64, blank=True)
    model_code = models.CharField(_('model'), max_length=100, blank=True)
    variant = models.CharField(_('variant'), max_length=100, blank=True)
    standard_packing = models.PositiveIntegerField(_('standard packing'), default=1)
    stock = models.IntegerField(_('stock'), default=0, db_index=True)
    address = models.CharField(
        _('address'), max_length=100, blank=True,
        help_text=_('Storage location / bin'),
    )
    is_active = models.BooleanField(_('active'), default=True, db_index=True)

    objects = PartQuerySet.as_manager()

    class Meta:
        verbose_name = _('part')
        verbose_name_plural = _('parts')
        ordering = ['code']
        indexes = [
            models.Index(fields=['is_active', 'stock'], name='part_active_stock_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name='part_stock_non_negative',
            ),
        ]

    def __str__(self):
        return f'{self.code} — {self.name}'

    @property
    def stock_status(self) -> str:
        if self.stock <= 0:
            return self.StockStatus.OUT_OF_STOCK
        if self.stock <= low_stock_threshold():
            return self.StockStatus.LOW_STOCK
        return self.StockStatus.IN_STOCK

    def has_transactions(self) -> bool:
        return (
            self.receiving_items.exists()
            or self.outgoing_items.exists()
            or self.request_items.exists()
            or self.movements.exists()
        )
