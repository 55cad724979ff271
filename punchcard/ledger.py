"""
Point ledger - pure transitions over a customer record.

    accrue(customer)        coffees < target  -> coffees + 1
    redeem(customer)        coffees >= target -> 0
    set_points(customer, n) unconditional, n clamped into [0, target]

Transitions never mutate their input. A failed precondition is not an
error: it returns Transition(ok=False) carrying the unchanged record.
"""

import uuid
from dataclasses import asdict, dataclass, replace

from punchcard.conf import punchcard_settings


@dataclass(frozen=True)
class Customer:
    """A stamp-card holder inside one tenant."""

    id: str
    name: str
    coffees: int = 0

    @classmethod
    def new(cls, name: str) -> "Customer":
        return cls(id=str(uuid.uuid4()), name=name, coffees=0)

    @classmethod
    def from_dict(cls, data: dict) -> "Customer":
        return cls(id=data["id"], name=data["name"], coffees=int(data["coffees"]))

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def can_redeem(self) -> bool:
        return self.coffees >= punchcard_settings.STAMPS_TARGET

    @property
    def stamps_remaining(self) -> int:
        return max(0, punchcard_settings.STAMPS_TARGET - self.coffees)


@dataclass(frozen=True)
class Transition:
    """Result of a ledger transition."""

    ok: bool
    customer: Customer


def accrue(customer: Customer) -> Transition:
    if customer.coffees >= punchcard_settings.STAMPS_TARGET:
        return Transition(False, customer)
    return Transition(True, replace(customer, coffees=customer.coffees + 1))


def redeem(customer: Customer) -> Transition:
    if customer.coffees < punchcard_settings.STAMPS_TARGET:
        return Transition(False, customer)
    return Transition(True, replace(customer, coffees=0))


def set_points(customer: Customer, points: int) -> Transition:
    """Administrative override for manual corrections."""
    clamped = max(0, min(punchcard_settings.STAMPS_TARGET, int(points)))
    return Transition(True, replace(customer, coffees=clamped))
