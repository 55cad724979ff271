"""
Tenant activation check against a remote JSON registry.

Registry format (served at PUNCHCARD["ACTIVATION_URL"]):

    {
        "bar-sole": {"status": "active", "expires": "2025-12-31"},
        "bar-sprint": {"status": "active"},
        "bar-late": {"status": "suspended"}
    }

A tenant missing from the registry is NOT_FOUND. An "expires" date before
today turns an active tenant into SUSPENDED. Any transport or format
problem is reported as ERROR, never raised.
"""

import logging
from datetime import date

import httpx
from django.utils import timezone
from django.utils.dateparse import parse_date

from punchcard.conf import punchcard_settings
from punchcard.protocols.activation import ActivationBackend, ActivationStatus
from punchcard.utils import now_ms

logger = logging.getLogger(__name__)


class HttpActivationBackend:
    """ActivationBackend that fetches the registry with httpx."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        self.url = punchcard_settings.ACTIVATION_URL if url is None else url
        self.timeout = (
            punchcard_settings.ACTIVATION_TIMEOUT_SECONDS if timeout is None else timeout
        )
        self.client = client

    def _fetch(self) -> dict:
        # Cache-busting parameter; registries are often served from CDNs.
        params = {"cachebust": now_ms()}
        if self.client is not None:
            response = self.client.get(self.url, params=params, timeout=self.timeout)
        else:
            response = httpx.get(self.url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def check(self, tenant: str, today: date | None = None) -> ActivationStatus:
        if not self.url:
            logger.error("Activation check: PUNCHCARD['ACTIVATION_URL'] is not configured")
            return ActivationStatus.ERROR

        try:
            registry = self._fetch()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Activation check for %s failed: %s", tenant, exc)
            return ActivationStatus.ERROR

        if not isinstance(registry, dict):
            logger.warning("Activation check: registry is not a JSON object")
            return ActivationStatus.ERROR

        info = registry.get(tenant)
        if not info:
            return ActivationStatus.NOT_FOUND
        if not isinstance(info, dict) or info.get("status") not in (
            ActivationStatus.ACTIVE,
            ActivationStatus.SUSPENDED,
        ):
            logger.warning("Activation check: bad registry entry for %s", tenant)
            return ActivationStatus.ERROR

        expires = info.get("expires")
        if expires:
            try:
                expiry = parse_date(expires) if isinstance(expires, str) else None
            except ValueError:
                expiry = None
            if expiry is None:
                logger.warning("Activation check: bad expiry %r for %s", expires, tenant)
                return ActivationStatus.ERROR
            if expiry < (today or timezone.localdate()):
                return ActivationStatus.SUSPENDED

        return ActivationStatus(info["status"])


def get_activation_backend() -> ActivationBackend:
    return HttpActivationBackend()
