from django.contrib import admin

from .models import SubscriptionRecord


@admin.register(SubscriptionRecord)
class SubscriptionRecordAdmin(admin.ModelAdmin):
    """Inspect relayed subscriptions; rows are written by the webhook only."""

    list_display = (
        "stripe_subscription_id",
        "user_id",
        "status",
        "current_period_end",
        "cancel_at_period_end",
        "updated_at",
    )
    search_fields = ("stripe_subscription_id", "stripe_customer_id", "user_id")
    list_filter = ("status", "cancel_at_period_end", "created_at")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-created_at",)

    fieldsets = (
        ("Ownership", {"fields": ("user_id", "stripe_customer_id")}),
        ("Stripe", {"fields": ("stripe_subscription_id", "stripe_price_id", "status", "cancel_at_period_end")}),
        ("Billing period", {"fields": ("current_period_start", "current_period_end")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )
