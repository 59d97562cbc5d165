from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.orders"
    verbose_name = "Orders"

    def ready(self) -> None:
        notifier_path = getattr(settings, "ORDER_NOTIFIER", "")
        try:
            import_string(notifier_path)
        except ImportError as exc:
            raise ImproperlyConfigured(f"ORDER_NOTIFIER cannot be imported: {notifier_path}") from exc
        if int(getattr(settings, "FORCE_STATUS_MAX_ATTEMPTS", 0)) < 1:
            raise ImproperlyConfigured("FORCE_STATUS_MAX_ATTEMPTS must be at least 1.")
