"""Punchcard services.

- customer: registration and point mutations
- scans: scan history and the daily query
- backup: tenant export/import
"""

from punchcard.services import backup
from punchcard.services import customer
from punchcard.services import scans

__all__ = ["customer", "scans", "backup"]
