"""Tests for management commands."""

import json
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from punchcard.guard import TokenGuard
from punchcard.protocols.store import CONSUMED_TOKENS
from punchcard.services import customer as customer_service
from punchcard.store import get_store
from punchcard.tests.conftest import OTHER_TENANT, TENANT
from punchcard.utils import now_ms

pytestmark = pytest.mark.django_db


class TestCleanup:
    def test_purges_expired_tokens_in_all_tenants(self):
        store = get_store()
        store.put(TENANT, CONSUMED_TOKENS, "old-1", 0)
        store.put(OTHER_TENANT, CONSUMED_TOKENS, "old-2", 0)
        store.put(TENANT, CONSUMED_TOKENS, "fresh", now_ms())

        out = StringIO()
        call_command("punchcard_cleanup", stdout=out)

        assert "Deleted 2 expired tokens" in out.getvalue()
        guard = TokenGuard(store)
        assert guard.is_consumed(TENANT, "fresh")
        assert not guard.is_consumed(TENANT, "old-1")

    def test_single_tenant(self):
        store = get_store()
        store.put(TENANT, CONSUMED_TOKENS, "old-1", 0)
        store.put(OTHER_TENANT, CONSUMED_TOKENS, "old-2", 0)

        call_command("punchcard_cleanup", tenant=TENANT, stdout=StringIO())

        assert TokenGuard(store).is_consumed(OTHER_TENANT, "old-2")


class TestExportImport:
    def test_round_trip_through_file(self, tmp_path):
        mario = customer_service.register(TENANT, "Mario Rossi")
        customer_service.set_points(TENANT, mario.id, 4)
        path = tmp_path / "backup.json"

        call_command("punchcard_export", TENANT, output=str(path), stdout=StringIO())
        assert json.loads(path.read_text())["tenantId"] == TENANT

        customer_service.set_points(TENANT, mario.id, 0)
        out = StringIO()
        call_command("punchcard_import", TENANT, str(path), stdout=out)

        assert "Restored 1 customers" in out.getvalue()
        assert customer_service.get(TENANT, mario.id).coffees == 4

    def test_export_to_stdout(self):
        customer_service.register(TENANT, "Mario Rossi")
        out = StringIO()
        call_command("punchcard_export", TENANT, stdout=out)
        assert json.loads(out.getvalue())["customers"][0]["name"] == "Mario Rossi"

    def test_import_wrong_tenant(self, tmp_path):
        customer_service.register(TENANT, "Mario Rossi")
        path = tmp_path / "backup.json"
        call_command("punchcard_export", TENANT, output=str(path), stdout=StringIO())

        with pytest.raises(CommandError, match="another tenant"):
            call_command("punchcard_import", OTHER_TENANT, str(path), stdout=StringIO())
        assert customer_service.list_customers(OTHER_TENANT) == []

    def test_import_unreadable_file(self, tmp_path):
        with pytest.raises(CommandError, match="Cannot read backup"):
            call_command("punchcard_import", TENANT, str(tmp_path / "missing.json"))
