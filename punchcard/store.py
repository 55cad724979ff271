"""
Ledger store implementations.

InMemoryLedgerStore: process-local dicts, used by tests and single-terminal
    deployments.
DjangoLedgerStore: persists through the LedgerRecord model.

Both serialize writers per tenant with a re-entrant lock held for the whole
atomic() block, and both roll the partition back when the block raises.
"""

import copy
import logging
import threading
from contextlib import contextmanager
from functools import lru_cache
from typing import Any

from django.db import DatabaseError, IntegrityError, transaction
from django.utils.module_loading import import_string

from punchcard.conf import punchcard_settings
from punchcard.exceptions import PunchcardError
from punchcard.protocols.store import LedgerStore

logger = logging.getLogger(__name__)


class _TenantLocks:
    """Registry of one re-entrant lock per tenant."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def for_tenant(self, tenant: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(tenant)
            if lock is None:
                lock = self._locks[tenant] = threading.RLock()
            return lock


class InMemoryLedgerStore:
    """Dict-backed store. Values are deep-copied in and out."""

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        self._locks = _TenantLocks()

    def _collection(self, tenant: str, collection: str) -> dict[str, Any]:
        return self._data.setdefault(tenant, {}).setdefault(collection, {})

    def get(self, tenant: str, collection: str, key: str) -> Any | None:
        with self._locks.for_tenant(tenant):
            value = self._collection(tenant, collection).get(key)
            return copy.deepcopy(value)

    def put(self, tenant: str, collection: str, key: str, value: Any) -> None:
        with self._locks.for_tenant(tenant):
            self._collection(tenant, collection)[key] = copy.deepcopy(value)

    def add(self, tenant: str, collection: str, key: str, value: Any) -> bool:
        with self._locks.for_tenant(tenant):
            items = self._collection(tenant, collection)
            if key in items:
                return False
            items[key] = copy.deepcopy(value)
            return True

    def delete(self, tenant: str, collection: str, key: str) -> None:
        with self._locks.for_tenant(tenant):
            self._collection(tenant, collection).pop(key, None)

    def list_all(self, tenant: str, collection: str) -> list[tuple[str, Any]]:
        with self._locks.for_tenant(tenant):
            items = self._collection(tenant, collection).items()
            return [(key, copy.deepcopy(value)) for key, value in items]

    def replace_tenant(
        self, tenant: str, collections: dict[str, list[tuple[str, Any]]]
    ) -> None:
        partition = {
            name: {key: copy.deepcopy(value) for key, value in items}
            for name, items in collections.items()
        }
        with self._locks.for_tenant(tenant):
            self._data[tenant] = partition

    @contextmanager
    def atomic(self, tenant: str):
        with self._locks.for_tenant(tenant):
            snapshot = copy.deepcopy(self._data.get(tenant))
            try:
                yield self
            except BaseException:
                if snapshot is None:
                    self._data.pop(tenant, None)
                else:
                    self._data[tenant] = snapshot
                raise

    def tenants(self) -> list[str]:
        return [
            tenant
            for tenant, partition in list(self._data.items())
            if any(partition.values())
        ]


class DjangoLedgerStore:
    """
    ORM-backed store (one LedgerRecord row per key).

    The per-tenant lock is process-local. Across processes:
    - get() inside atomic() locks the row it reads (SELECT ... FOR UPDATE
      where the database supports it), so read-modify-write of an existing
      record is serialized;
    - add() relies on the unique (tenant, collection, key) constraint, so
      exactly one of several concurrent inserts of the same key succeeds.
    """

    # Shared by every instance in the process.
    _locks = _TenantLocks()

    @contextmanager
    def _translate_errors(self):
        try:
            yield
        except DatabaseError as exc:
            logger.exception("Ledger store: database failure")
            raise PunchcardError("STORAGE_UNAVAILABLE", detail=str(exc)) from exc

    def get(self, tenant: str, collection: str, key: str) -> Any | None:
        from punchcard.models import LedgerRecord

        with self._translate_errors():
            records = LedgerRecord.objects.filter(
                tenant=tenant, collection=collection, key=key
            )
            if transaction.get_connection().in_atomic_block:
                records = records.select_for_update()
            return records.values_list("value", flat=True).first()

    def put(self, tenant: str, collection: str, key: str, value: Any) -> None:
        from punchcard.models import LedgerRecord

        with self._translate_errors():
            LedgerRecord.objects.update_or_create(
                tenant=tenant,
                collection=collection,
                key=key,
                defaults={"value": value},
            )

    def add(self, tenant: str, collection: str, key: str, value: Any) -> bool:
        from punchcard.models import LedgerRecord

        with self._translate_errors():
            try:
                with transaction.atomic():
                    LedgerRecord.objects.create(
                        tenant=tenant, collection=collection, key=key, value=value
                    )
            except IntegrityError:
                # Unique constraint hit: the key exists, unless this was
                # another integrity problem
                if LedgerRecord.objects.filter(
                    tenant=tenant, collection=collection, key=key
                ).exists():
                    return False
                raise
        return True

    def delete(self, tenant: str, collection: str, key: str) -> None:
        from punchcard.models import LedgerRecord

        with self._translate_errors():
            LedgerRecord.objects.filter(
                tenant=tenant, collection=collection, key=key
            ).delete()

    def list_all(self, tenant: str, collection: str) -> list[tuple[str, Any]]:
        from punchcard.models import LedgerRecord

        with self._translate_errors():
            return list(
                LedgerRecord.objects.filter(tenant=tenant, collection=collection)
                .order_by("id")
                .values_list("key", "value")
            )

    def replace_tenant(
        self, tenant: str, collections: dict[str, list[tuple[str, Any]]]
    ) -> None:
        from punchcard.models import LedgerRecord

        rows = [
            LedgerRecord(tenant=tenant, collection=name, key=key, value=value)
            for name, items in collections.items()
            for key, value in items
        ]
        with self.atomic(tenant):
            LedgerRecord.objects.filter(tenant=tenant).delete()
            LedgerRecord.objects.bulk_create(rows)

    @contextmanager
    def atomic(self, tenant: str):
        with self._locks.for_tenant(tenant):
            with self._translate_errors(), transaction.atomic():
                yield self

    def tenants(self) -> list[str]:
        from punchcard.models import LedgerRecord

        with self._translate_errors():
            return list(
                LedgerRecord.objects.order_by("tenant")
                .values_list("tenant", flat=True)
                .distinct()
            )


@lru_cache(maxsize=None)
def _load_store(path: str) -> LedgerStore:
    return import_string(path)()


def get_store() -> LedgerStore:
    """Return the configured default store (one instance per backend path)."""
    return _load_store(punchcard_settings.STORE_BACKEND)
