"""
Tests — Part model: stock check constraint, stock_status and the
queryset filters used by part listings.

@file parts/tests/test_models.py
"""

import pytest
from django.db import IntegrityError, transaction

from parts.models import Part
from tests.factories import PartFactory, RequestItemFactory


pytestmark = pytest.mark.django_db


class TestStockConstraint:

    def test_negative_stock_rejected_by_database(self):
        part = PartFactory(stock=1)
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Part.objects.filter(pk=part.pk).update(stock=-1)
        part.refresh_from_db()
        assert part.stock == 1

    def test_code_unique(self):
        PartFactory(code='DUP-1')
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                PartFactory(code='DUP-1')


class TestStockStatus:

    @pytest.mark.parametrize('stock, expected', [
        (0, Part.StockStatus.OUT_OF_STOCK),
        (1, Part.StockStatus.LOW_STOCK),
        (10, Part.StockStatus.LOW_STOCK),
        (11, Part.StockStatus.IN_STOCK),
    ])
    def test_default_threshold(self, stock, expected):
        assert PartFactory(stock=stock).stock_status == expected

    def test_threshold_from_settings(self, settings):
        settings.LOW_STOCK_THRESHOLD = 3
        assert PartFactory(stock=4).stock_status == Part.StockStatus.IN_STOCK
        assert PartFactory(stock=3).stock_status == Part.StockStatus.LOW_STOCK


class TestPartQuerySet:

    def test_stock_filters(self):
        empty = PartFactory(stock=0)
        low = PartFactory(stock=5)
        plenty = PartFactory(stock=500)
        assert set(Part.objects.in_stock()) == {low, plenty}
        assert list(Part.objects.out_of_stock()) == [empty]
        assert list(Part.objects.low_stock()) == [low]
        assert set(Part.objects.low_stock(threshold=1000)) == {low, plenty}

    def test_active_filters(self):
        active = PartFactory()
        retired = PartFactory(is_active=False)
        assert list(Part.objects.active()) == [active]
        assert list(Part.objects.inactive()) == [retired]

    def test_search_matches_codes_and_name(self):
        bracket = PartFactory(code='BRK-100', name='Front bracket', customer_code='C-77')
        PartFactory(code='HSG-200', name='Housing', customer_code='C-88')
        assert list(Part.objects.search(' brk ')) == [bracket]
        assert list(Part.objects.search('front')) == [bracket]
        assert list(Part.objects.search('c-77')) == [bracket]


class TestHasTransactions:

    def test_fresh_part_has_none(self):
        assert PartFactory().has_transactions() is False

    def test_line_item_counts(self):
        item = RequestItemFactory()
        assert item.part.has_transactions() is True
