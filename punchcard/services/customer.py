"""Customer service - registration and point mutations.

Every mutation is a read-modify-write inside store.atomic(tenant), so
concurrent writers on the same tenant are serialized.
"""

import logging
from typing import Callable

from punchcard import ledger
from punchcard.exceptions import PunchcardError
from punchcard.ledger import Customer, Transition
from punchcard.protocols.store import CUSTOMERS, LedgerStore
from punchcard.signals import customer_registered, points_changed
from punchcard.store import get_store

logger = logging.getLogger(__name__)


def _require_tenant(tenant: str) -> None:
    if not tenant:
        raise PunchcardError("TENANT_REQUIRED")


def get(tenant: str, customer_id: str, store: LedgerStore | None = None) -> Customer | None:
    """Get customer by id within a tenant."""
    _require_tenant(tenant)
    store = store or get_store()
    data = store.get(tenant, CUSTOMERS, customer_id)
    return Customer.from_dict(data) if data else None


def list_customers(tenant: str, store: LedgerStore | None = None) -> list[Customer]:
    """All customers of a tenant (staff overview)."""
    _require_tenant(tenant)
    store = store or get_store()
    return [Customer.from_dict(data) for _, data in store.list_all(tenant, CUSTOMERS)]


def register(tenant: str, name: str, store: LedgerStore | None = None) -> Customer:
    """
    Create a new customer with an empty card.

    Names are not unique; surrounding whitespace is trimmed.

    Raises:
        PunchcardError: INVALID_NAME if the name is blank
    """
    _require_tenant(tenant)
    name = (name or "").strip()
    if not name:
        raise PunchcardError("INVALID_NAME")

    store = store or get_store()
    customer = Customer.new(name)
    with store.atomic(tenant):
        store.put(tenant, CUSTOMERS, customer.id, customer.to_dict())

    logger.info("Registered customer %s in %s", customer.id, tenant)
    customer_registered.send(sender=Customer, tenant=tenant, customer=customer)
    return customer


def _apply(
    tenant: str,
    customer_id: str,
    operation: str,
    transition: Callable[[Customer], Transition],
    store: LedgerStore | None,
) -> Transition:
    _require_tenant(tenant)
    store = store or get_store()

    with store.atomic(tenant):
        data = store.get(tenant, CUSTOMERS, customer_id)
        if not data:
            raise PunchcardError("CUSTOMER_NOT_FOUND", customer_id=customer_id)
        result = transition(Customer.from_dict(data))
        if result.ok:
            store.put(tenant, CUSTOMERS, customer_id, result.customer.to_dict())

    if result.ok:
        logger.info(
            "%s: customer %s in %s now at %d",
            operation,
            customer_id,
            tenant,
            result.customer.coffees,
        )
        points_changed.send(
            sender=Customer, tenant=tenant, customer=result.customer, operation=operation
        )
    return result


def accrue(tenant: str, customer_id: str, store: LedgerStore | None = None) -> Transition:
    """Add one stamp. No-op (ok=False) on a full card."""
    return _apply(tenant, customer_id, "accrue", ledger.accrue, store)


def redeem(tenant: str, customer_id: str, store: LedgerStore | None = None) -> Transition:
    """Reset a full card to zero. No-op (ok=False) below the target."""
    return _apply(tenant, customer_id, "redeem", ledger.redeem, store)


def set_points(
    tenant: str, customer_id: str, points: int, store: LedgerStore | None = None
) -> Transition:
    """
    Manual correction; the value is clamped into [0, STAMPS_TARGET].

    Raises:
        PunchcardError: INVALID_POINTS if points is not an integer
    """
    if isinstance(points, bool) or not isinstance(points, int):
        raise PunchcardError("INVALID_POINTS", points=points)
    return _apply(
        tenant,
        customer_id,
        "set_points",
        lambda customer: ledger.set_points(customer, points),
        store,
    )
