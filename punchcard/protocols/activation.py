"""Tenant activation protocol."""

from typing import Protocol, runtime_checkable

from django.db import models
from django.utils.translation import gettext_lazy as _


class ActivationStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    SUSPENDED = "suspended", _("Suspended")
    NOT_FOUND = "not_found", _("Not found")
    ERROR = "error", _("Error")


@runtime_checkable
class ActivationBackend(Protocol):
    """Protocol for the remote check that gates a tenant's use of the system."""

    def check(self, tenant: str) -> ActivationStatus:
        """
        Return the tenant's activation status.

        Consulted once per session, never per scan. Must not raise:
        transport and parsing problems map to ActivationStatus.ERROR.
        """
        ...
