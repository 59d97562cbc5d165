"""
Payments.

One card hold per order at a time: a Payment is opened when the order is
accepted, captured once the client approves the work and retired
(FAILED/CANCELLED) otherwise. Provider notifications applied to a payment are
kept as PaymentEvent rows so a redelivered event is detected and ignored.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q

from apps.payments.domain.state_machine import RETIRED_STATUSES, PaymentStatus


class PaymentQuerySet(models.QuerySet):
    def active(self):
        return self.exclude(status__in=[status.value for status in RETIRED_STATUSES])

    def active_for_order(self, order_id):
        return self.active().filter(order_id=order_id).order_by("-id").first()


class Payment(models.Model):
    STATUS_CHOICES = [(status.value, status.value.replace("_", " ").capitalize()) for status in PaymentStatus]

    order = models.ForeignKey("orders.Order", on_delete=models.PROTECT, related_name="payments")
    provider = models.CharField(max_length=32)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PaymentStatus.CREATED.value)
    currency = models.CharField(max_length=3, default="UYU")
    amount_estimated = models.PositiveIntegerField()
    amount_authorized = models.PositiveIntegerField(null=True, blank=True)
    amount_captured = models.PositiveIntegerField(null=True, blank=True)
    provider_reference = models.CharField(max_length=128, blank=True, default="")
    checkout_url = models.CharField(max_length=500, blank=True, default="")
    idempotency_key = models.CharField(max_length=100, unique=True)
    version = models.PositiveIntegerField(default=0)
    failure_reason = models.TextField(blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    authorized_at = models.DateTimeField(null=True, blank=True)
    captured_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PaymentQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=~Q(status__in=["failed", "cancelled"]),
                name="payment_one_active_per_order",
            ),
        ]
        indexes = [
            models.Index(fields=["provider", "provider_reference"], name="payment_provider_ref_idx"),
            models.Index(fields=["status", "created_at"], name="payment_status_time_idx"),
        ]

    @property
    def payment_status(self) -> PaymentStatus:
        return PaymentStatus(self.status)

    def __str__(self) -> str:
        return f"Payment(id={self.id}, order={self.order_id}, status={self.status})"


class PaymentEvent(models.Model):
    """Provider event applied to a payment; (payment, provider_event_id) is the replay key."""

    payment = models.ForeignKey(Payment, on_delete=models.CASCADE, related_name="events")
    provider_event_id = models.CharField(max_length=128)
    event_type = models.CharField(max_length=64, blank=True, default="")
    status = models.CharField(max_length=20, blank=True, default="")
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("created_at", "id")
        constraints = [
            models.UniqueConstraint(fields=["payment", "provider_event_id"], name="payment_event_unique"),
        ]

    def __str__(self) -> str:
        return f"PaymentEvent({self.provider_event_id} -> {self.status})"
