from __future__ import annotations

from rest_framework import serializers

from apps.payouts.models import Earning, Payout


class EarningSerializer(serializers.ModelSerializer):
    class Meta:
        model = Earning
        fields = [
            "id",
            "order_id",
            "gross_amount_cents",
            "platform_fee_cents",
            "net_amount_cents",
            "currency",
            "status",
            "available_at",
            "paid_at",
        ]
        read_only_fields = fields


class PayoutSerializer(serializers.ModelSerializer):
    pro_profile_id = serializers.IntegerField(source="pro_id", read_only=True)
    earnings = EarningSerializer(many=True, read_only=True)

    class Meta:
        model = Payout
        fields = [
            "id",
            "pro_profile_id",
            "provider",
            "status",
            "amount_cents",
            "currency",
            "provider_reference",
            "attempts",
            "failure_reason",
            "sent_at",
            "settled_at",
            "created_at",
            "earnings",
        ]
        read_only_fields = fields
