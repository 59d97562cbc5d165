from __future__ import annotations

from django.conf import settings

from apps.payments.domain.errors import UnknownPaymentProviderError
from apps.payments.domain.ports import PaymentGatewayPort
from apps.payments.infrastructure.gateways.dummy_gateway import DummyGateway
from apps.payments.infrastructure.gateways.sandbox_stub import SandboxStubGateway


class PaymentGatewayFacade:
    """Registry of card-hold gateways keyed by provider code."""

    _registry: dict[str, PaymentGatewayPort] = {
        DummyGateway.code: DummyGateway(),
        SandboxStubGateway.code: SandboxStubGateway(),
    }

    @staticmethod
    def _normalize(provider_code: str) -> str:
        return (provider_code or "").strip().lower()

    @classmethod
    def get(cls, provider_code: str) -> PaymentGatewayPort:
        adapter = cls._registry.get(cls._normalize(provider_code))
        if adapter is None:
            raise UnknownPaymentProviderError(provider_code)
        return adapter

    @classmethod
    def configured(cls) -> PaymentGatewayPort:
        """Gateway that new payments are opened against (``PAYMENT_PROVIDER``)."""
        return cls.get(settings.PAYMENT_PROVIDER)

    @classmethod
    def is_registered(cls, provider_code: str) -> bool:
        return cls._normalize(provider_code) in cls._registry

    @classmethod
    def available_providers(cls) -> list[dict]:
        return [
            {"code": adapter.code, "name": adapter.name, "default": adapter.code == cls._normalize(settings.PAYMENT_PROVIDER)}
            for adapter in cls._registry.values()
        ]
