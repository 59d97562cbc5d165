"""
Earnings and payouts.

Each captured order yields one Earning (gross, platform fee, net). It stays
PENDING until its cooling-off window (`available_at`) has passed. A Payout
claims a pro's due earnings exclusively; a failed payout keeps its
earnings so a resend reuses them instead of claiming again.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.payouts.domain.state_machine import EarningStatus, PayoutStatus


class Payout(models.Model):
    STATUS_CHOICES = [(status.value, status.value.capitalize()) for status in PayoutStatus]

    pro = models.ForeignKey("pros.ProProfile", on_delete=models.PROTECT, related_name="payouts")
    provider = models.CharField(max_length=32)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PayoutStatus.CREATED.value)
    amount_cents = models.PositiveIntegerField()
    currency = models.CharField(max_length=3, default="UYU")
    provider_reference = models.CharField(max_length=128, blank=True, default="")
    destination = models.JSONField(default=dict, blank=True)
    attempts = models.PositiveIntegerField(default=0)
    version = models.PositiveIntegerField(default=0)
    failure_reason = models.TextField(blank=True, default="")

    sent_at = models.DateTimeField(null=True, blank=True)
    settled_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["pro", "status"], name="payout_pro_status_idx"),
            models.Index(fields=["provider", "provider_reference"], name="payout_provider_ref_idx"),
        ]

    @property
    def payout_status(self) -> PayoutStatus:
        return PayoutStatus(self.status)

    def __str__(self) -> str:
        return f"Payout(id={self.id}, pro={self.pro_id}, status={self.status})"


class EarningQuerySet(models.QuerySet):
    def unclaimed(self) -> "EarningQuerySet":
        return self.filter(
            status__in=[EarningStatus.PENDING.value, EarningStatus.PAYABLE.value], payout__isnull=True
        )

    def pending_due(self, now=None) -> "EarningQuerySet":
        return self.filter(status=EarningStatus.PENDING.value, available_at__lte=now or timezone.now())

    def due(self, now=None) -> "EarningQuerySet":
        """Unclaimed earnings past their cooling-off window."""
        now = now or timezone.now()
        return self.filter(payout__isnull=True).filter(
            Q(status=EarningStatus.PAYABLE.value)
            | Q(status=EarningStatus.PENDING.value, available_at__lte=now)
        )


class Earning(models.Model):
    STATUS_CHOICES = [(status.value, status.value.capitalize()) for status in EarningStatus]

    order = models.OneToOneField("orders.Order", on_delete=models.PROTECT, related_name="earning")
    payment = models.ForeignKey("payments.Payment", on_delete=models.PROTECT, related_name="earnings")
    pro = models.ForeignKey("pros.ProProfile", on_delete=models.PROTECT, related_name="earnings")
    payout = models.ForeignKey(
        Payout, on_delete=models.PROTECT, related_name="earnings", null=True, blank=True
    )
    gross_amount_cents = models.PositiveIntegerField()
    platform_fee_cents = models.PositiveIntegerField()
    net_amount_cents = models.PositiveIntegerField()
    currency = models.CharField(max_length=3, default="UYU")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=EarningStatus.PENDING.value)
    available_at = models.DateTimeField(null=True, blank=True)

    paid_at = models.DateTimeField(null=True, blank=True)
    reversed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EarningQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["pro", "status"], name="earning_pro_status_idx"),
            models.Index(fields=["status", "available_at"], name="earning_status_available_idx"),
        ]

    def __str__(self) -> str:
        return f"Earning(order={self.order_id}, net={self.net_amount_cents}, status={self.status})"


class PayoutEvent(models.Model):
    payout = models.ForeignKey(Payout, on_delete=models.CASCADE, related_name="events")
    provider_event_id = models.CharField(max_length=128)
    status = models.CharField(max_length=20, blank=True, default="")
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("created_at", "id")
        constraints = [
            models.UniqueConstraint(fields=["payout", "provider_event_id"], name="payout_event_unique"),
        ]
