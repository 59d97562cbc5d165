from __future__ import annotations

from django.test import RequestFactory, SimpleTestCase, TestCase

from apps.core.domain.actors import ActorContext, ActorRole, parse_role
from apps.core.domain.errors import (
    ConflictError,
    NotFoundError,
    PermanentProviderError,
    PermissionDeniedError,
    RetryableProviderError,
    ValidationError,
)
from apps.core.infrastructure.signatures import sign_payload, signature_matches
from apps.core.interfaces.api.actor import actor_from_request
from apps.core.interfaces.api.responses import domain_error


class ActorTests(SimpleTestCase):
    def test_parse_role(self):
        self.assertEqual(parse_role(" Admin "), ActorRole.ADMIN)
        with self.assertRaises(ValidationError):
            parse_role("superuser")

    def test_system_actor(self):
        system = ActorContext.system()
        self.assertEqual(system.role, ActorRole.SYSTEM)
        self.assertFalse(system.is_admin)
        with self.assertRaises(PermissionDeniedError):
            system.require_admin("force order status")

    def test_actor_from_request_headers(self):
        factory = RequestFactory()

        actor = actor_from_request(factory.get("/", HTTP_X_ACTOR_ID="u-1", HTTP_X_ACTOR_ROLE="pro"))
        self.assertEqual(actor, ActorContext(actor_id="u-1", role=ActorRole.PRO))

        with self.assertRaises(PermissionDeniedError):
            actor_from_request(factory.get("/", HTTP_X_ACTOR_ROLE="client"))
        with self.assertRaises(PermissionDeniedError):
            actor_from_request(factory.get("/", HTTP_X_ACTOR_ID="cron", HTTP_X_ACTOR_ROLE="system"))


class SignatureTests(SimpleTestCase):
    def test_signature_round_trip(self):
        body = b'{"event_id": "evt-1"}'
        signature = sign_payload("secret", body)

        self.assertTrue(signature_matches("secret", body, signature))
        self.assertFalse(signature_matches("secret", body + b" ", signature))
        self.assertFalse(signature_matches("other", body, signature))

    def test_missing_secret_or_signature_never_matches(self):
        self.assertFalse(signature_matches("", b"{}", sign_payload("", b"{}")))
        self.assertFalse(signature_matches("secret", b"{}", None))


class DomainErrorResponseTests(SimpleTestCase):
    def test_status_codes(self):
        cases = [
            (ValidationError("bad", field="status"), 400),
            (PermissionDeniedError("no"), 403),
            (NotFoundError("missing"), 404),
            (ConflictError("stale", current_status="accepted"), 409),
            (RetryableProviderError("timeout"), 503),
            (PermanentProviderError("declined"), 502),
        ]
        for exc, expected in cases:
            self.assertEqual(domain_error(exc).status_code, expected, exc.code)

    def test_conflict_payload_carries_current_status(self):
        response = domain_error(ConflictError("stale", current_status="accepted"))

        self.assertEqual(
            response.data,
            {
                "success": False,
                "data": {},
                "error": {"message": "stale", "code": "conflict", "current_status": "accepted"},
            },
        )

    def test_validation_payload_names_the_field(self):
        response = domain_error(ValidationError("Unknown order status.", field="target_status"))
        self.assertEqual(response.data["error"]["field"], "target_status")


class RequestContextMiddlewareTests(TestCase):
    def test_request_id_and_timing_headers(self):
        with self.assertLogs("arreglatodo.request", level="INFO") as logs:
            response = self.client.get("/api/payments/providers/")

        self.assertEqual(len(response["X-Request-Id"]), 36)
        self.assertGreaterEqual(int(response["X-Response-Time-ms"]), 0)
        self.assertTrue(any("request_completed" in line for line in logs.output))

    def test_caller_request_id_is_propagated(self):
        response = self.client.get("/api/payments/providers/", HTTP_X_REQUEST_ID="req-42")
        self.assertEqual(response["X-Request-Id"], "req-42")
