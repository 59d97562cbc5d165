from __future__ import annotations

from apps.payments.domain.state_machine import PaymentStatus
from apps.payments.infrastructure.gateways.base import InMemoryHoldGateway


class DummyGateway(InMemoryHoldGateway):
    """Authorizes every hold immediately, without a checkout redirect."""

    code = "dummy"
    name = "Dummy Gateway"
    reference_prefix = "DUMMY"
    initial_status = PaymentStatus.AUTHORIZED
