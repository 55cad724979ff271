# Generated migration for LedgerRecord

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LedgerRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "tenant",
                    models.CharField(db_index=True, max_length=100, verbose_name="tenant"),
                ),
                ("collection", models.CharField(max_length=50, verbose_name="collection")),
                ("key", models.CharField(max_length=255, verbose_name="key")),
                ("value", models.JSONField(verbose_name="value")),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="created at"),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, verbose_name="updated at"),
                ),
            ],
            options={
                "verbose_name": "ledger record",
                "verbose_name_plural": "ledger records",
                "db_table": "punchcard_ledger_record",
                "ordering": ["id"],
                "indexes": [
                    models.Index(
                        fields=["tenant", "collection"],
                        name="punchcard_tenant_coll_idx",
                    )
                ],
            },
        ),
        migrations.AddConstraint(
            model_name="ledgerrecord",
            constraint=models.UniqueConstraint(
                fields=("tenant", "collection", "key"),
                name="punchcard_unique_tenant_collection_key",
            ),
        ),
    ]
