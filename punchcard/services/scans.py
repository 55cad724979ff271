"""Scan history service - append-only records and the daily query.

Scan records are {"customerId": str, "scanTimestamp": int(ms)} values in the
SCAN_HISTORY collection, keyed by a random id, listed in append order.

The daily query is a linear pass over the tenant's history. A secondary
index by day would be the place to grow if histories get large.
"""

import uuid
from datetime import date, tzinfo

from punchcard.ledger import Customer
from punchcard.protocols.store import CUSTOMERS, SCAN_HISTORY, LedgerStore
from punchcard.store import get_store
from punchcard.utils import coerce_date, day_bounds_ms, now_ms


def record_scan(
    tenant: str,
    customer_id: str,
    now: int | None = None,
    store: LedgerStore | None = None,
) -> dict:
    """Append a scan record. Returns the stored record."""
    store = store or get_store()
    record = {
        "customerId": customer_id,
        "scanTimestamp": now_ms() if now is None else now,
    }
    store.put(tenant, SCAN_HISTORY, uuid.uuid4().hex, record)
    return record


def history(tenant: str, store: LedgerStore | None = None) -> list[dict]:
    """Full scan history of a tenant, oldest first."""
    store = store or get_store()
    return [record for _, record in store.list_all(tenant, SCAN_HISTORY)]


def scanned_on(
    tenant: str,
    day: date | str,
    tz: tzinfo | None = None,
    store: LedgerStore | None = None,
) -> list[Customer]:
    """
    Customers with at least one scan on ``day`` (local to ``tz``).

    Each customer appears once, in first-scan order, with the current
    balance. Records of customers that no longer exist are skipped.
    """
    store = store or get_store()
    start, end = day_bounds_ms(coerce_date(day), tz)

    seen: dict[str, None] = {}
    for record in history(tenant, store):
        if start <= record["scanTimestamp"] < end:
            seen.setdefault(record["customerId"], None)

    customers = {key: data for key, data in store.list_all(tenant, CUSTOMERS)}
    return [Customer.from_dict(customers[cid]) for cid in seen if cid in customers]
