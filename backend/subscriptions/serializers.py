"""DRF serializers for the subscription ledger."""
from __future__ import annotations

from rest_framework import serializers

from subscriptions.models import SubscriptionRecord


class SubscriptionRecordSerializer(serializers.ModelSerializer):
    is_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = SubscriptionRecord
        fields = (
            "id",
            "user_id",
            "stripe_customer_id",
            "stripe_subscription_id",
            "stripe_price_id",
            "status",
            "is_active",
            "current_period_start",
            "current_period_end",
            "cancel_at_period_end",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields
