"""
Tests for the JSON endpoints.

Views run against the default (ORM) store.
"""

import json
from unittest.mock import patch

import pytest
from django.test import RequestFactory
from django.urls import reverse

from punchcard.exceptions import PunchcardError
from punchcard.protocols.activation import ActivationStatus
from punchcard.services import customer as customer_service
from punchcard.tests.conftest import OTHER_TENANT, TENANT
from punchcard.views import (
    ActivationView,
    BackupView,
    CredentialView,
    CustomerCollectionView,
    DailyScansView,
    PointsView,
    ScanView,
)


@pytest.fixture(autouse=True)
def _enable_db(db):
    """Enable DB access for all tests."""


@pytest.fixture
def factory():
    return RequestFactory()


@pytest.fixture
def mario():
    return customer_service.register(TENANT, "Mario Rossi")


def _post_json(factory, path, data):
    return factory.post(path, data=json.dumps(data), content_type="application/json")


def _body(response):
    return json.loads(response.content)


def _payload(factory, customer):
    response = CredentialView.as_view()(factory.get("/"), tenant=TENANT, customer_id=customer.id)
    return _body(response)["payload"]


def _scan(factory, raw, tenant=TENANT):
    request = factory.post("/", data=raw, content_type="application/json")
    return ScanView.as_view()(request, tenant=tenant)


class TestCustomers:
    def test_register(self, factory):
        response = CustomerCollectionView.as_view()(
            _post_json(factory, "/", {"name": "Mario Rossi"}), tenant=TENANT
        )
        assert response.status_code == 201
        assert _body(response)["customer"]["coffees"] == 0

    def test_register_blank_name(self, factory):
        response = CustomerCollectionView.as_view()(
            _post_json(factory, "/", {"name": "  "}), tenant=TENANT
        )
        assert response.status_code == 400
        assert _body(response)["error"]["code"] == "INVALID_NAME"

    def test_register_invalid_json(self, factory):
        request = factory.post("/", data="{oops", content_type="application/json")
        response = CustomerCollectionView.as_view()(request, tenant=TENANT)
        assert response.status_code == 400

    def test_list(self, factory, mario):
        response = CustomerCollectionView.as_view()(factory.get("/"), tenant=TENANT)
        assert [c["id"] for c in _body(response)["customers"]] == [mario.id]


class TestCredential:
    def test_issue(self, factory, mario):
        response = CredentialView.as_view()(factory.get("/"), tenant=TENANT, customer_id=mario.id)
        data = _body(response)
        assert response.status_code == 200
        assert data["credential"]["customerId"] == mario.id
        assert data["credential"]["tenantId"] == TENANT
        assert json.loads(data["payload"]) == data["credential"]
        assert data["refreshAfterMs"] == 20_000

    def test_unknown_customer(self, factory):
        response = CredentialView.as_view()(factory.get("/"), tenant=TENANT, customer_id="nobody")
        assert response.status_code == 404


class TestPoints:
    def _post(self, factory, customer_id, data):
        return PointsView.as_view()(
            _post_json(factory, "/", data), tenant=TENANT, customer_id=customer_id
        )

    def test_accrue(self, factory, mario):
        response = self._post(factory, mario.id, {"action": "accrue"})
        assert response.status_code == 200
        assert _body(response)["customer"]["coffees"] == 1

    def test_redeem_below_target_conflicts(self, factory, mario):
        response = self._post(factory, mario.id, {"action": "redeem"})
        assert response.status_code == 409
        assert _body(response)["ok"] is False

    def test_set_then_redeem(self, factory, mario):
        assert self._post(factory, mario.id, {"action": "set", "value": 99}).status_code == 200
        response = self._post(factory, mario.id, {"action": "redeem"})
        assert _body(response)["customer"]["coffees"] == 0

    def test_set_requires_integer(self, factory, mario):
        response = self._post(factory, mario.id, {"action": "set", "value": "ten"})
        assert response.status_code == 400

    def test_unknown_action(self, factory, mario):
        assert self._post(factory, mario.id, {"action": "double"}).status_code == 400

    def test_unknown_customer(self, factory):
        assert self._post(factory, "nobody", {"action": "accrue"}).status_code == 404


class TestScan:
    def test_commit_then_replay(self, factory, mario):
        payload = _payload(factory, mario)

        first = _scan(factory, payload)
        assert first.status_code == 200
        assert _body(first)["customer"]["coffees"] == 1

        second = _scan(factory, payload)
        assert second.status_code == 409
        assert _body(second)["reason"] == "already_used"
        assert _body(second)["system_failure"] is False

    def test_wrong_tenant(self, factory, mario):
        response = _scan(factory, _payload(factory, mario), tenant=OTHER_TENANT)
        assert _body(response)["reason"] == "wrong_tenant"

    def test_malformed(self, factory):
        response = _scan(factory, "not a credential")
        assert response.status_code == 409
        assert _body(response)["reason"] == "malformed_credential"

    def test_storage_failure_is_503(self, factory, mario):
        payload = _payload(factory, mario)
        with patch(
            "punchcard.services.scans.record_scan",
            side_effect=PunchcardError("STORAGE_UNAVAILABLE"),
        ):
            response = _scan(factory, payload)
        assert response.status_code == 503
        assert _body(response)["system_failure"] is True
        assert customer_service.get(TENANT, mario.id).coffees == 0


class TestDailyScans:
    def test_today(self, factory, mario):
        payload = _payload(factory, mario)
        _scan(factory, payload)

        response = DailyScansView.as_view()(factory.get("/"), tenant=TENANT)
        assert [c["id"] for c in _body(response)["customers"]] == [mario.id]

    def test_other_day_empty(self, factory, mario):
        response = DailyScansView.as_view()(factory.get("/", {"date": "2001-01-01"}), tenant=TENANT)
        assert _body(response)["customers"] == []

    def test_invalid_date(self, factory):
        response = DailyScansView.as_view()(factory.get("/", {"date": "yesterday"}), tenant=TENANT)
        assert response.status_code == 400


class TestBackup:
    def test_export_import(self, factory, mario):
        exported = _body(BackupView.as_view()(factory.get("/"), tenant=TENANT))
        assert exported["tenantId"] == TENANT

        customer_service.register(TENANT, "Extra")
        response = BackupView.as_view()(_post_json(factory, "/", exported), tenant=TENANT)
        assert response.status_code == 200
        assert [c.id for c in customer_service.list_customers(TENANT)] == [mario.id]

    def test_import_wrong_tenant(self, factory, mario):
        exported = _body(BackupView.as_view()(factory.get("/"), tenant=TENANT))
        response = BackupView.as_view()(_post_json(factory, "/", exported), tenant=OTHER_TENANT)
        assert response.status_code == 400
        assert _body(response)["error"]["code"] == "BACKUP_WRONG_TENANT"
        assert customer_service.list_customers(OTHER_TENANT) == []

    def test_import_garbage(self, factory):
        request = factory.post("/", data="not json", content_type="application/json")
        response = BackupView.as_view()(request, tenant=TENANT)
        assert _body(response)["error"]["code"] == "BACKUP_INVALID"


class TestActivation:
    def test_reports_backend_status(self, factory):
        with patch("punchcard.views.get_activation_backend") as backend:
            backend.return_value.check.return_value = ActivationStatus.SUSPENDED
            response = ActivationView.as_view()(factory.get("/"), tenant=TENANT)
        assert _body(response) == {"tenant": TENANT, "status": "suspended"}


class TestUrls:
    def test_routes_resolve(self):
        assert reverse("punchcard:scan", kwargs={"tenant": TENANT}) == f"/punchcard/{TENANT}/scan/"
        assert reverse(
            "punchcard:points", kwargs={"tenant": TENANT, "customer_id": "c1"}
        ) == f"/punchcard/{TENANT}/customers/c1/points/"
