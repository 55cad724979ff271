"""Punchcard admin (read-only view of ledger records)."""

from django.contrib import admin
from django.utils.html import format_html

from punchcard.conf import punchcard_settings
from punchcard.models import LedgerRecord


@admin.register(LedgerRecord)
class LedgerRecordAdmin(admin.ModelAdmin):
    list_display = [
        "tenant",
        "collection",
        "key",
        "value_display",
        "updated_at",
    ]
    list_filter = ["collection", "tenant"]
    search_fields = ["tenant", "key"]
    readonly_fields = ["tenant", "collection", "key", "value", "created_at", "updated_at"]
    date_hierarchy = "created_at"

    # Writes go through the services so tenant locking applies.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def value_display(self, obj):
        value = obj.value
        if isinstance(value, dict) and "coffees" in value:
            return format_html(
                "{} <strong>{}/{}</strong>",
                value.get("name", ""),
                value["coffees"],
                punchcard_settings.STAMPS_TARGET,
            )
        return format_html("<code>{}</code>", str(value)[:60])

    value_display.short_description = "Value"
