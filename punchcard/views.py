"""
Punchcard JSON endpoints.

All endpoints are scoped by the <tenant> URL segment and use the
configured default store.

Scan flow (ScanView):
    1. Body is handed unmodified to ScanValidator
    2. 200 on commit, 409 on a rejected credential,
       503 when the system failed (STORAGE_UNAVAILABLE)
"""

from __future__ import annotations

import json
import logging

from django.http import JsonResponse
from django.utils import timezone
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from punchcard.activation import get_activation_backend
from punchcard.conf import punchcard_settings
from punchcard.credentials import CredentialIssuer
from punchcard.exceptions import PunchcardError
from punchcard.scan import ScanValidator
from punchcard.services import backup as backup_service
from punchcard.services import customer as customer_service
from punchcard.services import scans as scan_service

logger = logging.getLogger("punchcard.views")

_ERROR_STATUS = {
    "CUSTOMER_NOT_FOUND": 404,
    "STORAGE_UNAVAILABLE": 503,
}


def _error(exc: PunchcardError) -> JsonResponse:
    return JsonResponse({"error": exc.as_dict()}, status=_ERROR_STATUS.get(exc.code, 400))


def _json_body(request) -> dict | None:
    try:
        data = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


class ActivationView(View):
    """GET: remote activation status of the tenant (once per session)."""

    def get(self, request, tenant):
        status = get_activation_backend().check(tenant)
        return JsonResponse({"tenant": tenant, "status": status.value})


@method_decorator(csrf_exempt, name="dispatch")
class CustomerCollectionView(View):
    """GET: list customers. POST {"name": ...}: register a customer."""

    def get(self, request, tenant):
        try:
            customers = customer_service.list_customers(tenant)
        except PunchcardError as exc:
            return _error(exc)
        return JsonResponse({"customers": [c.to_dict() for c in customers]})

    def post(self, request, tenant):
        data = _json_body(request)
        if data is None:
            return JsonResponse({"error": "Invalid JSON"}, status=400)
        try:
            customer = customer_service.register(tenant, data.get("name", ""))
        except PunchcardError as exc:
            return _error(exc)
        return JsonResponse({"customer": customer.to_dict()}, status=201)


class CredentialView(View):
    """GET: a fresh presentation credential for the customer's device."""

    def get(self, request, tenant, customer_id):
        try:
            customer = customer_service.get(tenant, customer_id)
        except PunchcardError as exc:
            return _error(exc)
        if customer is None:
            return _error(PunchcardError("CUSTOMER_NOT_FOUND", customer_id=customer_id))

        credential = CredentialIssuer.issue(customer, tenant)
        return JsonResponse(
            {
                "credential": credential.to_wire(),
                "payload": credential.encode(),
                "refreshAfterMs": punchcard_settings.credential_refresh_ms,
                "customer": customer.to_dict(),
            }
        )


@method_decorator(csrf_exempt, name="dispatch")
class PointsView(View):
    """
    POST staff-driven point operations.

    Body: {"action": "accrue" | "redeem" | "set", "value": int (for "set")}
    A failed precondition (full card, card not full) answers 409.
    """

    def post(self, request, tenant, customer_id):
        data = _json_body(request)
        if data is None:
            return JsonResponse({"error": "Invalid JSON"}, status=400)

        action = data.get("action")
        try:
            if action == "accrue":
                result = customer_service.accrue(tenant, customer_id)
            elif action == "redeem":
                result = customer_service.redeem(tenant, customer_id)
            elif action == "set":
                result = customer_service.set_points(tenant, customer_id, data.get("value"))
            else:
                return JsonResponse({"error": f"Unknown action: {action!r}"}, status=400)
        except PunchcardError as exc:
            return _error(exc)

        return JsonResponse(
            {"ok": result.ok, "customer": result.customer.to_dict()},
            status=200 if result.ok else 409,
        )


@method_decorator(csrf_exempt, name="dispatch")
class ScanView(View):
    """POST raw scanned credential bytes."""

    def post(self, request, tenant):
        outcome = ScanValidator().validate(request.body, tenant)
        if outcome.accepted:
            status = 200
        elif outcome.reason.is_system_failure:
            status = 503
        else:
            status = 409
        return JsonResponse(outcome.as_dict(), status=status)


class DailyScansView(View):
    """GET ?date=YYYY-MM-DD: customers scanned that day (default: today)."""

    def get(self, request, tenant):
        day = request.GET.get("date") or timezone.localdate()
        try:
            customers = scan_service.scanned_on(tenant, day)
        except ValueError:
            return JsonResponse({"error": "Invalid date"}, status=400)
        except PunchcardError as exc:
            return _error(exc)
        return JsonResponse(
            {"date": str(day), "customers": [c.to_dict() for c in customers]}
        )


@method_decorator(csrf_exempt, name="dispatch")
class BackupView(View):
    """GET: export the tenant. POST: replace the tenant with a backup."""

    def get(self, request, tenant):
        try:
            return JsonResponse(backup_service.export_tenant(tenant))
        except PunchcardError as exc:
            return _error(exc)

    def post(self, request, tenant):
        try:
            data = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
            return _error(PunchcardError("BACKUP_INVALID"))
        try:
            counts = backup_service.import_tenant(tenant, data)
        except PunchcardError as exc:
            return _error(exc)
        return JsonResponse({"status": "restored", "counts": counts})
