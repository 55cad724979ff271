"""
Punchcard configuration.

Usage in settings.py:
    PUNCHCARD = {
        "CREDENTIAL_TTL_SECONDS": 30,
        "TOKEN_RETENTION_SECONDS": 300,
        "ACTIVATION_URL": "https://example.com/bars.json",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


@dataclass
class PunchcardSettings:
    """Punchcard configuration settings."""

    # Card size; also the redemption threshold
    STAMPS_TARGET: int = 10

    # Presentation credentials
    CREDENTIAL_TTL_SECONDS: int = 30
    CREDENTIAL_REFRESH_SECONDS: int = 20

    # Consumed-token guard
    TOKEN_RETENTION_SECONDS: int = 300

    # Default ledger store
    STORE_BACKEND: str = "punchcard.store.DjangoLedgerStore"

    # Remote tenant activation registry
    ACTIVATION_URL: str = ""
    ACTIVATION_TIMEOUT_SECONDS: float = 5.0

    def __post_init__(self):
        if self.TOKEN_RETENTION_SECONDS < self.CREDENTIAL_TTL_SECONDS:
            raise ImproperlyConfigured(
                "PUNCHCARD['TOKEN_RETENTION_SECONDS'] must not be shorter than "
                "PUNCHCARD['CREDENTIAL_TTL_SECONDS']."
            )

    @property
    def credential_ttl_ms(self) -> int:
        return self.CREDENTIAL_TTL_SECONDS * 1000

    @property
    def credential_refresh_ms(self) -> int:
        return self.CREDENTIAL_REFRESH_SECONDS * 1000

    @property
    def token_retention_ms(self) -> int:
        return self.TOKEN_RETENTION_SECONDS * 1000


def get_punchcard_settings() -> PunchcardSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "PUNCHCARD", {})
    return PunchcardSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_punchcard_settings(), name)


punchcard_settings = _LazySettings()
