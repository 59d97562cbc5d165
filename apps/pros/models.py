from __future__ import annotations

from django.db import models


class ProProfile(models.Model):
    """Service professional: pricing snapshot source and payout destination."""

    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_SUSPENDED = "suspended"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending approval"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_SUSPENDED, "Suspended"),
    ]

    user_id = models.CharField(max_length=64, unique=True)
    display_name = models.CharField(max_length=200)
    hourly_rate_cents = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default="UYU")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    approved_at = models.DateTimeField(null=True, blank=True)
    suspended_at = models.DateTimeField(null=True, blank=True)

    payout_full_name = models.CharField(max_length=200, blank=True, default="")
    payout_document_id = models.CharField(max_length=32, blank=True, default="")
    payout_bank_name = models.CharField(max_length=100, blank=True, default="")
    payout_account_number = models.CharField(max_length=64, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["status"], name="pro_status_idx"),
        ]

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_APPROVED

    @property
    def payout_profile_complete(self) -> bool:
        return all(
            (value or "").strip()
            for value in (
                self.payout_full_name,
                self.payout_document_id,
                self.payout_bank_name,
                self.payout_account_number,
            )
        )

    def __str__(self) -> str:
        return f"ProProfile(id={self.id}, {self.display_name}, {self.status})"
