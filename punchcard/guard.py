"""
Token guard - consumed-token bookkeeping per tenant.

Consumed tokens live in the CONSUMED_TOKENS collection as token -> consumption
timestamp (ms). Entries older than TOKEN_RETENTION_SECONDS are purged inline
by mark_consumed() and consume(); there is no background timer. Retention is
never shorter than the credential TTL (enforced by PunchcardSettings) and
the freshness gate bounds how far ahead issuedAt may lie, so a purged token
belongs to a credential that would fail the freshness check anyway.
"""

import logging

from punchcard.conf import punchcard_settings
from punchcard.protocols.store import CONSUMED_TOKENS, LedgerStore
from punchcard.store import get_store
from punchcard.utils import now_ms

logger = logging.getLogger(__name__)


class TokenGuard:
    """Tracks which credential tokens have been consumed."""

    def __init__(self, store: LedgerStore | None = None):
        self.store = store or get_store()

    def is_consumed(self, tenant: str, token: str) -> bool:
        return self.store.get(tenant, CONSUMED_TOKENS, token) is not None

    def mark_consumed(self, tenant: str, token: str, now: int | None = None) -> None:
        """Record consumption, purging expired entries first."""
        now = now_ms() if now is None else now
        with self.store.atomic(tenant):
            self.purge_expired(tenant, now)
            self.store.put(tenant, CONSUMED_TOKENS, token, now)

    def consume(self, tenant: str, token: str, now: int | None = None) -> bool:
        """
        Check-and-mark in one step.

        Returns True if this call consumed the token, False if it was
        already consumed, by this process or any other writer of the store.
        """
        now = now_ms() if now is None else now
        with self.store.atomic(tenant):
            self.purge_expired(tenant, now)
            return self.store.add(tenant, CONSUMED_TOKENS, token, now)

    def purge_expired(self, tenant: str, now: int | None = None) -> int:
        """Remove entries older than the retention window. Returns count."""
        now = now_ms() if now is None else now
        cutoff = now - punchcard_settings.token_retention_ms
        removed = 0
        with self.store.atomic(tenant):
            for token, consumed_at in self.store.list_all(tenant, CONSUMED_TOKENS):
                if consumed_at < cutoff:
                    self.store.delete(tenant, CONSUMED_TOKENS, token)
                    removed += 1
        if removed:
            logger.debug("Token guard: purged %d expired tokens for %s", removed, tenant)
        return removed
