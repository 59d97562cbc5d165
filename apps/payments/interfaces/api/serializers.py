from __future__ import annotations

from rest_framework import serializers

from apps.payments.models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "order_id",
            "provider",
            "status",
            "currency",
            "amount_estimated",
            "amount_authorized",
            "amount_captured",
            "provider_reference",
            "checkout_url",
            "failure_reason",
            "authorized_at",
            "captured_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RefundSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")
