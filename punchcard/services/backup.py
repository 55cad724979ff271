"""Backup service - export and restore a tenant's whole partition.

Backup document:

    {
        "tenantId": str,
        "exportTimestamp": ISO-8601 str,
        "customers": [{"id": str, "name": str, "coffees": int}, ...],
        "consumedTokens": {token: int(ms), ...},
        "scanHistory": [{"customerId": str, "scanTimestamp": int(ms)}, ...],
    }

Import validates the complete document before touching the store, then
swaps the partition in one replace_tenant() call.
"""

import logging
import uuid

from django.utils import timezone

from punchcard.conf import punchcard_settings
from punchcard.exceptions import PunchcardError
from punchcard.protocols.store import (
    CONSUMED_TOKENS,
    CUSTOMERS,
    SCAN_HISTORY,
    LedgerStore,
)
from punchcard.signals import tenant_restored
from punchcard.store import get_store

logger = logging.getLogger(__name__)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def export_tenant(tenant: str, store: LedgerStore | None = None) -> dict:
    """Snapshot a tenant's customers, consumed tokens and scan history."""
    store = store or get_store()
    with store.atomic(tenant):
        customers = [data for _, data in store.list_all(tenant, CUSTOMERS)]
        tokens = dict(store.list_all(tenant, CONSUMED_TOKENS))
        history = [data for _, data in store.list_all(tenant, SCAN_HISTORY)]

    return {
        "tenantId": tenant,
        "exportTimestamp": timezone.now().isoformat(),
        "customers": customers,
        "consumedTokens": tokens,
        "scanHistory": history,
    }


def validate_backup(tenant: str, data) -> None:
    """
    Check shape and ownership of a backup document.

    Raises:
        PunchcardError: BACKUP_INVALID or BACKUP_WRONG_TENANT
    """
    if (
        not isinstance(data, dict)
        or not isinstance(data.get("customers"), list)
        or not isinstance(data.get("consumedTokens"), dict)
        or not isinstance(data.get("scanHistory"), list)
    ):
        raise PunchcardError("BACKUP_INVALID")

    if data.get("tenantId") != tenant:
        raise PunchcardError(
            "BACKUP_WRONG_TENANT", backup_tenant=data.get("tenantId"), tenant=tenant
        )

    target = punchcard_settings.STAMPS_TARGET
    seen_ids = set()
    for index, customer in enumerate(data["customers"]):
        if (
            not isinstance(customer, dict)
            or not isinstance(customer.get("id"), str)
            or not customer["id"]
            or not isinstance(customer.get("name"), str)
            or not _is_int(customer.get("coffees"))
            or not 0 <= customer["coffees"] <= target
            or customer["id"] in seen_ids
        ):
            raise PunchcardError("BACKUP_INVALID", collection="customers", index=index)
        seen_ids.add(customer["id"])

    for token, consumed_at in data["consumedTokens"].items():
        if not token or not _is_int(consumed_at):
            raise PunchcardError("BACKUP_INVALID", collection="consumedTokens", token=token)

    for index, record in enumerate(data["scanHistory"]):
        if (
            not isinstance(record, dict)
            or not isinstance(record.get("customerId"), str)
            or not _is_int(record.get("scanTimestamp"))
        ):
            raise PunchcardError("BACKUP_INVALID", collection="scanHistory", index=index)


def import_tenant(tenant: str, data, store: LedgerStore | None = None) -> dict:
    """
    Replace a tenant's state with a backup document.

    All-or-nothing: an invalid document raises before any write.

    Returns:
        Counts of restored customers, tokens and scan records

    Raises:
        PunchcardError: BACKUP_INVALID, BACKUP_WRONG_TENANT or STORAGE_UNAVAILABLE
    """
    validate_backup(tenant, data)
    store = store or get_store()

    collections = {
        CUSTOMERS: [
            (c["id"], {"id": c["id"], "name": c["name"], "coffees": c["coffees"]})
            for c in data["customers"]
        ],
        CONSUMED_TOKENS: list(data["consumedTokens"].items()),
        SCAN_HISTORY: [
            (
                uuid.uuid4().hex,
                {"customerId": r["customerId"], "scanTimestamp": r["scanTimestamp"]},
            )
            for r in data["scanHistory"]
        ],
    }
    store.replace_tenant(tenant, collections)

    counts = {
        "customers": len(collections[CUSTOMERS]),
        "consumed_tokens": len(collections[CONSUMED_TOKENS]),
        "scan_history": len(collections[SCAN_HISTORY]),
    }
    logger.info("Restored tenant %s from backup: %s", tenant, counts)
    tenant_restored.send(sender=None, tenant=tenant)
    return counts
