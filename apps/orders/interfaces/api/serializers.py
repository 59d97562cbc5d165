from __future__ import annotations

from rest_framework import serializers

from apps.orders.domain.pricing import PricingMode
from apps.orders.domain.state_machine import OrderStatus
from apps.orders.models import Order

_STATUS_VALUES = [status.value for status in OrderStatus]


class OrderSerializer(serializers.ModelSerializer):
    pro_profile_id = serializers.IntegerField(source="pro_id", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "status",
            "version",
            "client_user_id",
            "pro_profile_id",
            "category",
            "title",
            "description",
            "address_text",
            "scheduled_window_start_at",
            "scheduled_window_end_at",
            "pricing_mode",
            "hourly_rate_cents",
            "quoted_amount_cents",
            "estimated_hours",
            "final_hours_submitted",
            "approved_hours",
            "total_amount_cents",
            "currency",
            "cancel_reason",
            "dispute_reason",
            "submitted_at",
            "accepted_at",
            "confirmed_at",
            "started_at",
            "arrived_at",
            "work_submitted_at",
            "completed_at",
            "disputed_at",
            "paid_at",
            "canceled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CreateOrderSerializer(serializers.Serializer):
    pro_profile_id = serializers.IntegerField(min_value=1)
    category = serializers.CharField(max_length=64)
    title = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    address_text = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    scheduled_window_start_at = serializers.DateTimeField()
    scheduled_window_end_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    estimated_hours = serializers.DecimalField(max_digits=6, decimal_places=2)
    pricing_mode = serializers.ChoiceField(choices=[mode.value for mode in PricingMode], default=PricingMode.HOURLY.value)
    quoted_amount_cents = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)


class TransitionOrderSerializer(serializers.Serializer):
    # Free-form on purpose: unknown values are rejected by the domain with a field error.
    target_status = serializers.CharField(max_length=40)
    expected_status = serializers.CharField(max_length=40)
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")
    final_hours = serializers.DecimalField(max_digits=6, decimal_places=2, required=False, allow_null=True, default=None)


class ExpectedStatusSerializer(serializers.Serializer):
    expected_status = serializers.ChoiceField(choices=_STATUS_VALUES, required=False, allow_null=True, default=None)


class ReasonSerializer(ExpectedStatusSerializer):
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class CancelOrderSerializer(ReasonSerializer):
    expected_status = serializers.ChoiceField(choices=_STATUS_VALUES)


class SubmitHoursSerializer(ExpectedStatusSerializer):
    final_hours = serializers.DecimalField(max_digits=6, decimal_places=2)


class ForceStatusSerializer(serializers.Serializer):
    target_status = serializers.CharField(max_length=40)
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")
