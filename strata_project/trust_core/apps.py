from django.apps import AppConfig


class TrustCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "trust_core"
    verbose_name = "Trust accounting"

    # ensure receivers are registered
    def ready(self):
        import trust_core.signals  # noqa: F401
