"""Punchcard protocols."""

from punchcard.protocols.activation import ActivationBackend, ActivationStatus
from punchcard.protocols.store import (
    COLLECTIONS,
    CONSUMED_TOKENS,
    CUSTOMERS,
    SCAN_HISTORY,
    LedgerStore,
)

__all__ = [
    # Store
    "LedgerStore",
    "CUSTOMERS",
    "CONSUMED_TOKENS",
    "SCAN_HISTORY",
    "COLLECTIONS",
    # Activation
    "ActivationBackend",
    "ActivationStatus",
]
