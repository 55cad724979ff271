"""Management command to restore a tenant from a JSON backup."""

import json

from django.core.management.base import BaseCommand, CommandError

from punchcard.exceptions import PunchcardError
from punchcard.services import backup as backup_service


class Command(BaseCommand):
    help = "Replace a tenant's ledger with the contents of a backup file"

    def add_arguments(self, parser):
        parser.add_argument("tenant", help="Tenant id")
        parser.add_argument("path", help="Backup file produced by punchcard_export")

    def handle(self, *args, **options):
        try:
            with open(options["path"], encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise CommandError(f"Cannot read backup: {exc}") from exc

        try:
            counts = backup_service.import_tenant(options["tenant"], data)
        except PunchcardError as exc:
            raise CommandError(exc.message) from exc

        self.stdout.write(
            self.style.SUCCESS(
                f"Restored {counts['customers']} customers, "
                f"{counts['consumed_tokens']} tokens, "
                f"{counts['scan_history']} scans."
            )
        )
