"""
LedgerRecord model - row storage for DjangoLedgerStore.

One row per (tenant, collection, key). The value is an opaque JSON document;
the store owns durability only, semantics live in the services.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class LedgerRecord(models.Model):
    """A single keyed value inside a tenant's ledger partition."""

    tenant = models.CharField(verbose_name=_("tenant"), max_length=100, db_index=True)
    collection = models.CharField(verbose_name=_("collection"), max_length=50)
    key = models.CharField(verbose_name=_("key"), max_length=255)
    value = models.JSONField(verbose_name=_("value"))
    created_at = models.DateTimeField(verbose_name=_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(verbose_name=_("updated at"), auto_now=True)

    class Meta:
        db_table = "punchcard_ledger_record"
        verbose_name = _("ledger record")
        verbose_name_plural = _("ledger records")
        # Insertion order (id) matters for scan history.
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "collection", "key"],
                name="punchcard_unique_tenant_collection_key",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant", "collection"], name="punchcard_tenant_coll_idx"),
        ]

    def __str__(self):
        return f"{self.tenant}/{self.collection}/{self.key[:20]}"
