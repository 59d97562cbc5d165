"""
Orders.

An order is the booking between a client and a professional. Its `status` is
only ever written through the transition/force-status use cases, which guard
every write with a compare-and-swap on the previous status.
"""

from __future__ import annotations

from django.db import models

from apps.orders.domain.pricing import PricingMode
from apps.orders.domain.state_machine import OrderStatus


class Order(models.Model):
    STATUS_CHOICES = [(status.value, status.value.replace("_", " ").capitalize()) for status in OrderStatus]
    PRICING_MODE_CHOICES = [
        (PricingMode.HOURLY.value, "Hourly"),
        (PricingMode.FIXED.value, "Fixed price"),
    ]

    client_user_id = models.CharField(max_length=64, db_index=True)
    pro = models.ForeignKey(
        "pros.ProProfile", on_delete=models.PROTECT, related_name="orders", null=True, blank=True
    )
    category = models.CharField(max_length=64)
    title = models.CharField(max_length=200, blank=True, default="")
    description = models.TextField(blank=True, default="")
    address_text = models.CharField(max_length=255, blank=True, default="")
    scheduled_window_start_at = models.DateTimeField()
    scheduled_window_end_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=OrderStatus.DRAFT.value)
    version = models.PositiveIntegerField(default=0)

    pricing_mode = models.CharField(max_length=10, choices=PRICING_MODE_CHOICES, default=PricingMode.HOURLY.value)
    hourly_rate_cents = models.PositiveIntegerField(default=0)
    quoted_amount_cents = models.PositiveIntegerField(null=True, blank=True)
    estimated_hours = models.DecimalField(max_digits=6, decimal_places=2)
    final_hours_submitted = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    approved_hours = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    total_amount_cents = models.PositiveIntegerField(null=True, blank=True)
    currency = models.CharField(max_length=3, default="UYU")

    cancel_reason = models.TextField(blank=True, default="")
    dispute_reason = models.TextField(blank=True, default="")
    dispute_opened_by = models.CharField(max_length=64, blank=True, default="")

    submitted_at = models.DateTimeField(null=True, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    arrived_at = models.DateTimeField(null=True, blank=True)
    work_submitted_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    disputed_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_time_idx"),
            models.Index(fields=["pro", "status"], name="order_pro_status_idx"),
        ]

    @property
    def order_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def __str__(self) -> str:
        return f"Order(id={self.id}, status={self.status})"
