"""Management command to export a tenant's ledger as a JSON backup."""

import json

from django.core.management.base import BaseCommand

from punchcard.services import backup as backup_service


class Command(BaseCommand):
    help = "Export a tenant's customers, consumed tokens and scan history"

    def add_arguments(self, parser):
        parser.add_argument("tenant", help="Tenant id")
        parser.add_argument(
            "--output",
            default=None,
            help="Write to this file instead of stdout",
        )

    def handle(self, *args, **options):
        data = backup_service.export_tenant(options["tenant"])
        content = json.dumps(data, indent=2)

        if options["output"]:
            with open(options["output"], "w", encoding="utf-8") as fh:
                fh.write(content)
            self.stdout.write(
                self.style.SUCCESS(
                    f"Exported {len(data['customers'])} customers to {options['output']}."
                )
            )
        else:
            self.stdout.write(content)
