"""
Scan validator - turns one scanned credential into at most one ledger commit.

States:
    received -> tenant_checked -> freshness_checked -> token_checked
             -> customer_resolved -> committed
    or rejected(reason) at any gate.

Token and customer gates run under the tenant lock together with the
commit. The commit consumes the token with an insert-only write, so two
concurrent scans of the same bytes yield exactly one commit even when they
run in different processes. Token consumption, the scan record and the
stamp are written inside one store.atomic() block: a storage failure rolls
all of it back and the scan is reported as STORAGE_UNAVAILABLE.
"""

import logging
from dataclasses import dataclass

from django.db import models
from django.utils.translation import gettext
from django.utils.translation import gettext_lazy as _

from punchcard import ledger
from punchcard.credentials import Credential
from punchcard.exceptions import PunchcardError
from punchcard.gates import GateError, Gates, RejectionReason
from punchcard.guard import TokenGuard
from punchcard.ledger import Customer
from punchcard.protocols.store import CUSTOMERS, LedgerStore
from punchcard.services import scans as scan_service
from punchcard.signals import points_changed, scan_committed
from punchcard.store import get_store
from punchcard.utils import now_ms

logger = logging.getLogger("punchcard.scan")


class ScanState(models.TextChoices):
    RECEIVED = "received", _("Received")
    TENANT_CHECKED = "tenant_checked", _("Tenant checked")
    FRESHNESS_CHECKED = "freshness_checked", _("Freshness checked")
    TOKEN_CHECKED = "token_checked", _("Token checked")
    CUSTOMER_RESOLVED = "customer_resolved", _("Customer resolved")
    COMMITTED = "committed", _("Committed")
    REJECTED = "rejected", _("Rejected")


@dataclass(frozen=True)
class ScanOutcome:
    """
    Result of ScanValidator.validate().

    prompt_redemption comes from the persisted balance after the commit;
    credential.is_redemption only picks the success message.
    """

    state: ScanState
    reason: RejectionReason | None = None
    customer: Customer | None = None
    credential: Credential | None = None
    accrued: bool = False
    prompt_redemption: bool = False
    # Last state reached before a rejection
    failed_at: ScanState | None = None

    @property
    def accepted(self) -> bool:
        return self.state == ScanState.COMMITTED

    @property
    def message(self) -> str:
        if self.reason is not None:
            return str(self.reason.label)
        if self.credential is not None and self.credential.is_redemption:
            return gettext("%(name)s's card is ready for a free coffee!") % {
                "name": self.customer.name
            }
        return gettext("%(name)s's card scanned.") % {"name": self.customer.name}

    def as_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "state": self.state.value,
            "reason": self.reason.value if self.reason else None,
            "system_failure": bool(self.reason and self.reason.is_system_failure),
            "message": self.message,
            "customer": self.customer.to_dict() if self.customer else None,
            "accrued": self.accrued,
            "prompt_redemption": self.prompt_redemption,
        }


class ScanValidator:
    """Validates scanned credentials and commits accepted scans."""

    def __init__(self, store: LedgerStore | None = None, guard: TokenGuard | None = None):
        self.store = store or get_store()
        self.guard = guard or TokenGuard(self.store)

    def validate(self, raw: bytes | str, tenant: str, now: int | None = None) -> ScanOutcome:
        """
        Run every gate in order and commit on success.

        Args:
            raw: Scanned bytes, exactly as produced by the code reader
            tenant: Scanning tenant
            now: Current time (epoch ms), defaults to the wall clock

        Returns:
            ScanOutcome; rejected outcomes leave no trace in the store
        """
        now = now_ms() if now is None else now
        state = ScanState.RECEIVED
        credential = None

        try:
            credential = Gates.credential_well_formed(raw)
            Gates.tenant_match(credential, tenant)
            state = ScanState.TENANT_CHECKED
            Gates.freshness(credential, now)
            state = ScanState.FRESHNESS_CHECKED

            with self.store.atomic(tenant):
                Gates.token_unused(self.guard, tenant, credential.token)
                state = ScanState.TOKEN_CHECKED
                customer = Gates.customer_known(self.store, tenant, credential.customer_id)
                state = ScanState.CUSTOMER_RESOLVED

                if not self.guard.consume(tenant, credential.token, now):
                    raise GateError(
                        "S4_TokenUnused",
                        RejectionReason.ALREADY_USED,
                        "Replay detected: token consumed by a concurrent scan.",
                        {"token": credential.token[:8]},
                    )
                scan_service.record_scan(tenant, customer.id, now, self.store)
                transition = ledger.accrue(customer)
                if transition.ok:
                    self.store.put(tenant, CUSTOMERS, customer.id, transition.customer.to_dict())

        except GateError as exc:
            logger.info(
                "Scan rejected in %s: %s (%s)", tenant, exc.reason.value, exc.message
            )
            return ScanOutcome(
                ScanState.REJECTED, reason=exc.reason, credential=credential, failed_at=state
            )
        except (PunchcardError, OSError) as exc:
            if isinstance(exc, PunchcardError) and exc.code != "STORAGE_UNAVAILABLE":
                raise
            logger.exception("Scan failed in %s: storage unavailable", tenant)
            return ScanOutcome(
                ScanState.REJECTED,
                reason=RejectionReason.STORAGE_UNAVAILABLE,
                credential=credential,
                failed_at=state,
            )

        customer = transition.customer
        logger.info(
            "Scan committed in %s: customer %s token %s... (coffees=%d)",
            tenant,
            customer.id,
            credential.token[:8],
            customer.coffees,
        )
        scan_committed.send(
            sender=self.__class__, tenant=tenant, customer=customer, token=credential.token
        )
        if transition.ok:
            points_changed.send(
                sender=Customer, tenant=tenant, customer=customer, operation="accrue"
            )

        return ScanOutcome(
            ScanState.COMMITTED,
            customer=customer,
            credential=credential,
            accrued=transition.ok,
            prompt_redemption=customer.can_redeem,
        )
