"""Management command to purge consumed tokens past the retention window."""

from django.core.management.base import BaseCommand

from punchcard.guard import TokenGuard
from punchcard.store import get_store


class Command(BaseCommand):
    help = "Remove consumed credential tokens older than TOKEN_RETENTION_SECONDS"

    def add_arguments(self, parser):
        parser.add_argument(
            "--tenant",
            default=None,
            help="Only clean this tenant (default: all tenants)",
        )

    def handle(self, *args, **options):
        store = get_store()
        guard = TokenGuard(store)
        tenants = [options["tenant"]] if options["tenant"] else store.tenants()

        deleted_count = sum(guard.purge_expired(tenant) for tenant in tenants)
        self.stdout.write(
            self.style.SUCCESS(f"Deleted {deleted_count} expired tokens.")
        )
