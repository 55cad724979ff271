"""Ledger store protocol."""

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

# Collections inside a tenant partition
CUSTOMERS = "customers"
CONSUMED_TOKENS = "consumed_tokens"
SCAN_HISTORY = "scan_history"

COLLECTIONS = (CUSTOMERS, CONSUMED_TOKENS, SCAN_HISTORY)


@runtime_checkable
class LedgerStore(Protocol):
    """
    Tenant-scoped key-value storage.

    Every method takes the tenant id and only touches that tenant's
    partition. Values are JSON-compatible documents. put() is
    last-write-wins; callers serialize concurrent writers with atomic().
    add() is the check-and-insert primitive for single-use keys.
    """

    def get(self, tenant: str, collection: str, key: str) -> Any | None:
        """Return the stored value, or None if absent."""
        ...

    def put(self, tenant: str, collection: str, key: str, value: Any) -> None:
        """Insert or overwrite a value."""
        ...

    def add(self, tenant: str, collection: str, key: str, value: Any) -> bool:
        """
        Insert a value only if the key is absent.

        Returns False, leaving the stored value alone, if the key exists.
        Must be race-free across every writer of the store, not only the
        callers sharing one atomic() lock.
        """
        ...

    def delete(self, tenant: str, collection: str, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        ...

    def list_all(self, tenant: str, collection: str) -> list[tuple[str, Any]]:
        """Return (key, value) pairs in insertion order."""
        ...

    def replace_tenant(
        self, tenant: str, collections: dict[str, list[tuple[str, Any]]]
    ) -> None:
        """
        Atomically replace the whole partition.

        Collections absent from the mapping end up empty.
        """
        ...

    def atomic(self, tenant: str) -> AbstractContextManager:
        """
        Mutual exclusion plus all-or-nothing writes for one tenant.

        Nested use from the same thread is allowed.
        """
        ...

    def tenants(self) -> list[str]:
        """List tenants that currently hold any data."""
        ...
