from __future__ import annotations

from django.test import TestCase
from rest_framework.test import APIClient

from apps.chat.application.use_cases.is_chat_open import IsChatOpenCommand, IsChatOpenUseCase
from apps.chat.domain.policies import CHAT_OPEN_STATUSES, is_chat_open
from apps.core.testing import actor_headers, admin_actor, client_actor, create_order, create_pro, pro_actor
from apps.orders.application.use_cases.force_order_status import (
    ForceOrderStatusCommand,
    ForceOrderStatusUseCase,
)
from apps.orders.domain.errors import OrderActionForbiddenError, OrderNotFoundError
from apps.orders.domain.state_machine import OrderStatus


class ChatPolicyTests(TestCase):
    def test_chat_is_open_only_while_the_job_is_active(self):
        expected_open = {
            OrderStatus.ACCEPTED,
            OrderStatus.CONFIRMED,
            OrderStatus.IN_PROGRESS,
            OrderStatus.AWAITING_CLIENT_APPROVAL,
        }
        for status in OrderStatus:
            self.assertEqual(is_chat_open(status), status in expected_open, status)
        self.assertEqual(CHAT_OPEN_STATUSES, expected_open)

    def test_raw_status_values_are_accepted(self):
        self.assertTrue(is_chat_open("in_progress"))
        self.assertFalse(is_chat_open("disputed"))

    def test_unknown_status_keeps_chat_closed(self):
        self.assertFalse(is_chat_open("archived"))
        self.assertFalse(is_chat_open(None))


class IsChatOpenUseCaseTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.pro = create_pro()
        self.order = create_order(pro=self.pro, status=OrderStatus.CONFIRMED)

    def test_answer_follows_the_persisted_status(self):
        before = IsChatOpenUseCase.execute(IsChatOpenCommand(order_id=self.order.id))
        ForceOrderStatusUseCase.execute(
            ForceOrderStatusCommand(order_id=self.order.id, target_status="disputed", actor=admin_actor())
        )
        after = IsChatOpenUseCase.execute(IsChatOpenCommand(order_id=self.order.id))

        self.assertTrue(before.is_open)
        self.assertFalse(after.is_open)
        self.assertEqual(after.status, "disputed")

    def test_only_parties_can_ask(self):
        stranger = create_pro(user_id="pro-2")
        with self.assertRaises(OrderActionForbiddenError):
            IsChatOpenUseCase.execute(IsChatOpenCommand(order_id=self.order.id, actor=pro_actor(stranger)))
        self.assertTrue(
            IsChatOpenUseCase.execute(IsChatOpenCommand(order_id=self.order.id, actor=pro_actor(self.pro))).is_open
        )

    def test_missing_order(self):
        with self.assertRaises(OrderNotFoundError):
            IsChatOpenUseCase.execute(IsChatOpenCommand(order_id=999_999))


class ChatApiTests(TestCase):
    def test_chat_endpoint(self):
        pro = create_pro()
        order = create_order(pro=pro, status=OrderStatus.PAID)
        api = APIClient()

        response = api.get(f"/api/orders/{order.id}/chat/", **actor_headers(client_actor()))
        forbidden = api.get(f"/api/orders/{order.id}/chat/", **actor_headers(client_actor("client-2")))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"], {"order_id": order.id, "status": "paid", "is_open": False})
        self.assertEqual(forbidden.status_code, 403)
