from django.apps import AppConfig


class PunchcardConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "punchcard"
    verbose_name = "Punchcard - Stamp Card Loyalty"
