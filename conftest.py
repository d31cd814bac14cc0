"""
PartTrack — Root conftest for pytest

Shared fixtures available to all test modules.

@file conftest.py
"""

import pytest
from django.core.cache import cache
from django.utils import timezone

from documents import events
from tests.factories import PartFactory, SuperuserFactory, UserFactory


@pytest.fixture(autouse=True)
def _clear_cache():
    """The request-item feed lives in the cache; start every test empty."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user(db):
    """Active operator with default password TestPass2026!"""
    return UserFactory()


@pytest.fixture
def admin_user(db):
    """Superuser with default password TestPass2026!"""
    return SuperuserFactory()


@pytest.fixture
def now():
    return timezone.now()


@pytest.fixture
def part(db):
    """Part 'ABC-1' holding 50 units."""
    return PartFactory(code='ABC-1', name='Bracket', stock=50)


@pytest.fixture
def captured_events():
    """Registers a recording hook for RequestItemCreated and yields the list."""
    received = []
    events.register_hook(received.append)
    yield received
    events.unregister_hook(received.append)
