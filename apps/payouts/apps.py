from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


class PayoutsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.payouts"
    verbose_name = "Payouts"

    def ready(self) -> None:
        from apps.payouts.application.facade import PayoutGatewayFacade

        rate = float(getattr(settings, "PLATFORM_FEE_RATE", -1))
        if not 0 <= rate < 1:
            raise ImproperlyConfigured(f"PLATFORM_FEE_RATE must be within [0, 1), got {rate}.")
        provider = getattr(settings, "PAYOUT_PROVIDER", "")
        if not PayoutGatewayFacade.is_registered(provider):
            raise ImproperlyConfigured(f"PAYOUT_PROVIDER is not a registered gateway: {provider!r}")
        if int(getattr(settings, "EARNING_COOLING_OFF_HOURS", -1)) < 0:
            raise ImproperlyConfigured("EARNING_COOLING_OFF_HOURS must not be negative.")
