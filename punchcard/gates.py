"""
Punchcard Gates - scan validation rules.

Applied by ScanValidator in this order; cheaper gates short-circuit the
later ones:

S1: CredentialWellFormed - raw scan bytes parse into a Credential
S2: TenantMatch - credential was issued for the scanning tenant
S3: Freshness - credential is at most CREDENTIAL_TTL_SECONDS old
S4: TokenUnused - token has not been consumed in this tenant
S5: CustomerKnown - credential's customer exists in this tenant
"""

from dataclasses import dataclass

from django.db import models
from django.utils.translation import gettext_lazy as _

from punchcard.conf import punchcard_settings
from punchcard.credentials import Credential, MalformedCredential
from punchcard.guard import TokenGuard
from punchcard.ledger import Customer
from punchcard.protocols.store import CUSTOMERS, LedgerStore


class RejectionReason(models.TextChoices):
    """Closed set of scan rejection reasons. Labels are operator messages."""

    MALFORMED_CREDENTIAL = "malformed_credential", _("Invalid code.")
    WRONG_TENANT = "wrong_tenant", _("This card belongs to another venue.")
    EXPIRED = "expired", _("Code expired. Ask the customer to show a fresh one.")
    ALREADY_USED = "already_used", _("This code has already been used.")
    UNKNOWN_CUSTOMER = "unknown_customer", _("Card not found. Invalid code.")
    STORAGE_UNAVAILABLE = "storage_unavailable", _(
        "The system could not record the scan. Check the connection and try again."
    )

    @property
    def is_system_failure(self) -> bool:
        """True when the system failed, False when the credential was bad."""
        return self is RejectionReason.STORAGE_UNAVAILABLE


class GateError(Exception):
    """Gate validation error."""

    def __init__(
        self,
        gate_name: str,
        reason: RejectionReason,
        message: str,
        details: dict | None = None,
    ):
        self.gate_name = gate_name
        self.reason = reason
        self.message = message
        self.details = details or {}
        super().__init__(f"[{gate_name}] {message}")


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""


class Gates:
    """Scan validation gates."""

    # =========================================================================
    # S1: Credential Well-Formed
    # =========================================================================

    @classmethod
    def credential_well_formed(cls, raw: bytes | str) -> Credential:
        """
        S1: Parse raw scan input.

        Returns:
            The parsed Credential

        Raises:
            GateError: If the input is not a well-formed credential
        """
        try:
            return Credential.decode(raw)
        except MalformedCredential as exc:
            raise GateError(
                "S1_CredentialWellFormed",
                RejectionReason.MALFORMED_CREDENTIAL,
                str(exc),
            ) from exc

    # =========================================================================
    # S2: Tenant Match
    # =========================================================================

    @classmethod
    def tenant_match(cls, credential: Credential, tenant: str) -> GateResult:
        """
        S2: Credential must be issued for the scanning tenant.

        Raises:
            GateError: If the tenant ids differ
        """
        if credential.tenant_id != tenant:
            raise GateError(
                "S2_TenantMatch",
                RejectionReason.WRONG_TENANT,
                "Credential issued for another tenant.",
                {"credential_tenant": credential.tenant_id, "tenant": tenant},
            )
        return GateResult(True, "S2_TenantMatch")

    # =========================================================================
    # S3: Freshness
    # =========================================================================

    @classmethod
    def freshness(
        cls,
        credential: Credential,
        now: int,
        ttl_ms: int | None = None,
    ) -> GateResult:
        """
        S3: now - issuedAt must not exceed the credential TTL.

        issuedAt may lie at most retention - TTL ahead of now. A token
        consumed at t stays guarded until t + retention, so it is never
        purged while its credential is still fresh.

        Args:
            credential: Parsed credential
            now: Current time (epoch ms)
            ttl_ms: Override CREDENTIAL_TTL_SECONDS (milliseconds)

        Raises:
            GateError: If the credential is too old or too far in the future
        """
        if ttl_ms is None:
            ttl_ms = punchcard_settings.credential_ttl_ms
        age = now - credential.issued_at
        if age > ttl_ms:
            raise GateError(
                "S3_Freshness",
                RejectionReason.EXPIRED,
                f"Credential too old ({age}ms > {ttl_ms}ms).",
                {"age_ms": age},
            )
        max_skew = punchcard_settings.token_retention_ms - ttl_ms
        if -age > max_skew:
            raise GateError(
                "S3_Freshness",
                RejectionReason.EXPIRED,
                f"Credential issued in the future ({-age}ms > {max_skew}ms).",
                {"age_ms": age},
            )
        return GateResult(True, "S3_Freshness")

    # =========================================================================
    # S4: Token Unused
    # =========================================================================

    @classmethod
    def token_unused(cls, guard: TokenGuard, tenant: str, token: str) -> GateResult:
        """
        S4: Token must not be consumed yet.

        Only a check: consumption is recorded at commit time by
        TokenGuard.consume(), which also refuses a token that another
        worker consumed after this check ran.

        Raises:
            GateError: If the token was already consumed (replay)
        """
        if guard.is_consumed(tenant, token):
            raise GateError(
                "S4_TokenUnused",
                RejectionReason.ALREADY_USED,
                "Replay detected: token already consumed.",
                {"token": token[:8]},
            )
        return GateResult(True, "S4_TokenUnused")

    # =========================================================================
    # S5: Customer Known
    # =========================================================================

    @classmethod
    def customer_known(
        cls, store: LedgerStore, tenant: str, customer_id: str
    ) -> Customer:
        """
        S5: Resolve the credential's customer in the tenant's ledger.

        Returns:
            The current Customer record

        Raises:
            GateError: If no such customer exists in this tenant
        """
        data = store.get(tenant, CUSTOMERS, customer_id)
        if not data:
            raise GateError(
                "S5_CustomerKnown",
                RejectionReason.UNKNOWN_CUSTOMER,
                "Customer not found.",
                {"customer_id": customer_id},
            )
        return Customer.from_dict(data)
