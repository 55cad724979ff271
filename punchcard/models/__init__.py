"""Punchcard models.

LedgerRecord backs the ORM implementation of the ledger store; customers,
consumed tokens and scan history are all stored as LedgerRecord rows.
"""

from punchcard.models.ledger_record import LedgerRecord

__all__ = [
    "LedgerRecord",
]
