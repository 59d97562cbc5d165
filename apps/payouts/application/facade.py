from __future__ import annotations

from apps.payouts.domain.errors import UnknownPayoutProviderError
from apps.payouts.domain.ports import PayoutGatewayPort
from apps.payouts.infrastructure.gateways.manual_transfer import ManualTransferGateway


class PayoutGatewayFacade:
    _registry: dict[str, PayoutGatewayPort] = {
        ManualTransferGateway.code: ManualTransferGateway(),
    }

    @classmethod
    def get(cls, provider_code: str) -> PayoutGatewayPort:
        key = (provider_code or "").strip().lower()
        if key not in cls._registry:
            raise UnknownPayoutProviderError(provider_code)
        return cls._registry[key]

    @classmethod
    def is_registered(cls, provider_code: str) -> bool:
        return (provider_code or "").strip().lower() in cls._registry
