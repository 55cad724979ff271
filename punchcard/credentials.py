"""
Presentation credentials.

A credential is the short-lived payload shown by the customer's device as a
scannable code. Wire shape (JSON object, exact field names):

    {"customerId": str, "tenantId": str, "issuedAt": int (ms),
     "token": str, "isRedemption": bool}

The token is a random UUID4 (122 bits of entropy) and is single-use: the
scanning side records it in the token guard on commit. isRedemption is a
hint for the terminal's messaging only.
"""

import json
import uuid
from dataclasses import dataclass

from punchcard.conf import punchcard_settings
from punchcard.ledger import Customer
from punchcard.utils import now_ms

_WIRE_FIELDS = {
    "customerId": str,
    "tenantId": str,
    "issuedAt": int,
    "token": str,
    "isRedemption": bool,
}


class MalformedCredential(ValueError):
    """Raw scan input is not a well-formed credential."""


@dataclass(frozen=True)
class Credential:
    customer_id: str
    tenant_id: str
    issued_at: int
    token: str
    is_redemption: bool = False

    def to_wire(self) -> dict:
        return {
            "customerId": self.customer_id,
            "tenantId": self.tenant_id,
            "issuedAt": self.issued_at,
            "token": self.token,
            "isRedemption": self.is_redemption,
        }

    def encode(self) -> str:
        return json.dumps(self.to_wire(), separators=(",", ":"))

    @classmethod
    def decode(cls, raw: bytes | str) -> "Credential":
        """
        Parse scanned bytes.

        Raises:
            MalformedCredential: undecodable, not a JSON object, missing
                fields or wrong field types
        """
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            data = json.loads(raw)
        except (UnicodeDecodeError, ValueError, TypeError) as exc:
            raise MalformedCredential(f"Undecodable credential: {exc}") from exc

        if not isinstance(data, dict):
            raise MalformedCredential("Credential must be a JSON object.")

        for name, kind in _WIRE_FIELDS.items():
            value = data.get(name)
            # bool is an int subclass; issuedAt must be a real integer.
            if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
                raise MalformedCredential(f"Field '{name}' missing or not {kind.__name__}.")

        if not data["customerId"] or not data["token"]:
            raise MalformedCredential("customerId and token must not be empty.")

        return cls(
            customer_id=data["customerId"],
            tenant_id=data["tenantId"],
            issued_at=data["issuedAt"],
            token=data["token"],
            is_redemption=data["isRedemption"],
        )


class CredentialIssuer:
    """
    Produces fresh credentials for the presenting side.

    Stateless: the presenting device calls issue() again every
    CREDENTIAL_REFRESH_SECONDS (see needs_refresh()).
    """

    @classmethod
    def issue(cls, customer: Customer, tenant: str, now: int | None = None) -> Credential:
        return Credential(
            customer_id=customer.id,
            tenant_id=tenant,
            issued_at=now_ms() if now is None else now,
            token=str(uuid.uuid4()),
            is_redemption=customer.can_redeem,
        )

    @classmethod
    def needs_refresh(cls, credential: Credential, now: int | None = None) -> bool:
        now = now_ms() if now is None else now
        return now - credential.issued_at >= punchcard_settings.credential_refresh_ms
