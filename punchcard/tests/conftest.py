"""Pytest fixtures for Punchcard tests."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from punchcard.guard import TokenGuard
from punchcard.scan import ScanValidator
from punchcard.services import customer as customer_service
from punchcard.store import DjangoLedgerStore, InMemoryLedgerStore
from punchcard.utils import to_ms

TENANT = "bar-sole"
OTHER_TENANT = "bar-sprint"

# 2024-03-10 12:00:00 Europe/Rome
NOW = to_ms(datetime(2024, 3, 10, 12, 0, 0, tzinfo=ZoneInfo("Europe/Rome")))


@pytest.fixture
def tenant():
    return TENANT


@pytest.fixture
def memory_store():
    """Fresh in-memory ledger store."""
    return InMemoryLedgerStore()


@pytest.fixture
def django_store(db):
    """ORM-backed ledger store."""
    return DjangoLedgerStore()


@pytest.fixture
def guard(memory_store):
    return TokenGuard(memory_store)


@pytest.fixture
def validator(memory_store):
    return ScanValidator(memory_store)


@pytest.fixture
def customer(memory_store):
    """Registered customer with an empty card."""
    return customer_service.register(TENANT, "Mario Rossi", store=memory_store)


@pytest.fixture
def customer_at(memory_store, customer):
    """Factory: the test customer with a given balance."""

    def _at(coffees):
        return customer_service.set_points(
            TENANT, customer.id, coffees, store=memory_store
        ).customer

    return _at
