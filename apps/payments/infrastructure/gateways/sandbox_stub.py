from __future__ import annotations

from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.infrastructure.gateways.base import InMemoryHoldGateway


class SandboxStubGateway(InMemoryHoldGateway):
    """Redirect-based flow: the hold is authorized later through a webhook."""

    code = "sandbox"
    name = "Sandbox Stub"
    reference_prefix = "SANDBOX"
    initial_status = PaymentStatus.REQUIRES_ACTION

    def _checkout_url(self, *, reference: str, return_url: str) -> str | None:
        return f"{return_url}?provider=sandbox&payment={reference}"
