from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.payments"
    verbose_name = "Payments"

    def ready(self) -> None:
        from apps.payments.application.facade import PaymentGatewayFacade

        provider = getattr(settings, "PAYMENT_PROVIDER", "")
        if not PaymentGatewayFacade.is_registered(provider):
            raise ImproperlyConfigured(f"PAYMENT_PROVIDER is not a registered gateway: {provider!r}")
        if not settings.PAYMENT_WEBHOOK_SECRETS.get(provider):
            raise ImproperlyConfigured(f"PAYMENT_WEBHOOK_SECRETS has no secret for {provider!r}.")
