"""Tests for the ledger store backends."""

from unittest.mock import patch

import pytest
from django.db import DatabaseError

from punchcard.exceptions import PunchcardError
from punchcard.models import LedgerRecord
from punchcard.protocols.store import CONSUMED_TOKENS, CUSTOMERS, SCAN_HISTORY, LedgerStore
from punchcard.store import DjangoLedgerStore, InMemoryLedgerStore, get_store
from punchcard.tests.conftest import OTHER_TENANT, TENANT


@pytest.fixture(params=["memory_store", "django_store"])
def store(request):
    return request.getfixturevalue(request.param)


class TestLedgerStoreContract:
    def test_implements_protocol(self, store):
        assert isinstance(store, LedgerStore)

    def test_get_absent(self, store):
        assert store.get(TENANT, CUSTOMERS, "missing") is None

    def test_put_get_overwrite(self, store):
        store.put(TENANT, CUSTOMERS, "c1", {"id": "c1", "name": "Mario", "coffees": 1})
        store.put(TENANT, CUSTOMERS, "c1", {"id": "c1", "name": "Mario", "coffees": 2})
        assert store.get(TENANT, CUSTOMERS, "c1")["coffees"] == 2
        assert len(store.list_all(TENANT, CUSTOMERS)) == 1

    def test_add_only_inserts_absent_keys(self, store):
        assert store.add(TENANT, CONSUMED_TOKENS, "tok", 1)
        assert not store.add(TENANT, CONSUMED_TOKENS, "tok", 2)
        assert store.get(TENANT, CONSUMED_TOKENS, "tok") == 1
        assert store.add(OTHER_TENANT, CONSUMED_TOKENS, "tok", 3)

    def test_add_conflict_keeps_atomic_block_usable(self, store):
        store.add(TENANT, CONSUMED_TOKENS, "tok", 1)
        with store.atomic(TENANT):
            assert not store.add(TENANT, CONSUMED_TOKENS, "tok", 2)
            store.put(TENANT, CUSTOMERS, "c1", {"id": "c1"})
        assert store.get(TENANT, CUSTOMERS, "c1") == {"id": "c1"}

    def test_delete(self, store):
        store.put(TENANT, CONSUMED_TOKENS, "tok", 123)
        store.delete(TENANT, CONSUMED_TOKENS, "tok")
        store.delete(TENANT, CONSUMED_TOKENS, "never-there")
        assert store.get(TENANT, CONSUMED_TOKENS, "tok") is None

    def test_list_all_keeps_insertion_order(self, store):
        for i in (3, 1, 2):
            store.put(TENANT, SCAN_HISTORY, f"k{i}", {"customerId": "c", "scanTimestamp": i})
        assert [key for key, _ in store.list_all(TENANT, SCAN_HISTORY)] == ["k3", "k1", "k2"]

    def test_partitions_are_isolated(self, store):
        store.put(TENANT, CUSTOMERS, "c1", {"id": "c1"})
        assert store.get(OTHER_TENANT, CUSTOMERS, "c1") is None
        assert store.list_all(OTHER_TENANT, CUSTOMERS) == []
        assert store.get(TENANT, CONSUMED_TOKENS, "c1") is None

    def test_atomic_rolls_back_on_error(self, store):
        store.put(TENANT, CUSTOMERS, "c1", {"coffees": 1})
        with pytest.raises(RuntimeError):
            with store.atomic(TENANT):
                store.put(TENANT, CUSTOMERS, "c1", {"coffees": 2})
                store.put(TENANT, CONSUMED_TOKENS, "tok", 1)
                raise RuntimeError("boom")
        assert store.get(TENANT, CUSTOMERS, "c1") == {"coffees": 1}
        assert store.get(TENANT, CONSUMED_TOKENS, "tok") is None

    def test_atomic_is_reentrant(self, store):
        with store.atomic(TENANT):
            with store.atomic(TENANT):
                store.put(TENANT, CUSTOMERS, "c1", {"coffees": 1})
        assert store.get(TENANT, CUSTOMERS, "c1") == {"coffees": 1}

    def test_replace_tenant(self, store):
        store.put(TENANT, CUSTOMERS, "old", {"id": "old"})
        store.put(TENANT, CONSUMED_TOKENS, "tok", 1)
        store.put(OTHER_TENANT, CUSTOMERS, "keep", {"id": "keep"})

        store.replace_tenant(TENANT, {CUSTOMERS: [("new", {"id": "new"})]})

        assert store.list_all(TENANT, CUSTOMERS) == [("new", {"id": "new"})]
        assert store.list_all(TENANT, CONSUMED_TOKENS) == []
        assert store.get(OTHER_TENANT, CUSTOMERS, "keep") == {"id": "keep"}

    def test_tenants(self, store):
        store.put(TENANT, CUSTOMERS, "c1", {"id": "c1"})
        store.put(OTHER_TENANT, CONSUMED_TOKENS, "tok", 1)
        assert sorted(store.tenants()) == sorted([TENANT, OTHER_TENANT])


class TestInMemoryLedgerStore:
    def test_values_are_copies(self, memory_store):
        value = {"coffees": 1}
        memory_store.put(TENANT, CUSTOMERS, "c1", value)
        value["coffees"] = 9
        memory_store.get(TENANT, CUSTOMERS, "c1")["coffees"] = 5
        assert memory_store.get(TENANT, CUSTOMERS, "c1") == {"coffees": 1}


class TestDjangoLedgerStore:
    def test_rows_are_tenant_keyed(self, django_store):
        django_store.put(TENANT, CUSTOMERS, "c1", {"id": "c1"})
        record = LedgerRecord.objects.get()
        assert (record.tenant, record.collection, record.key) == (TENANT, CUSTOMERS, "c1")
        assert str(record) == f"{TENANT}/{CUSTOMERS}/c1"

    def test_database_errors_become_storage_unavailable(self, django_store):
        with patch.object(
            LedgerRecord.objects, "update_or_create", side_effect=DatabaseError("down")
        ):
            with pytest.raises(PunchcardError) as exc_info:
                django_store.put(TENANT, CUSTOMERS, "c1", {"id": "c1"})
        assert exc_info.value.code == "STORAGE_UNAVAILABLE"


class TestGetStore:
    def test_default_backend(self, settings):
        assert isinstance(get_store(), DjangoLedgerStore)

    def test_configured_backend_is_shared(self, settings):
        settings.PUNCHCARD = {"STORE_BACKEND": "punchcard.store.InMemoryLedgerStore"}
        first = get_store()
        assert isinstance(first, InMemoryLedgerStore)
        assert get_store() is first
