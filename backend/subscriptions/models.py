"""Local ledger of Stripe subscriptions relayed from webhook events."""
from django.db import models


class SubscriptionRecord(models.Model):
    """
    Subscription Ledger Entry - Mirrors one Stripe subscription

    Keeps the owning user, the Stripe identifiers, and the latest known status
    and billing period. Rows are retired by status, never deleted by the relay.
    """

    class Status(models.TextChoices):
        INCOMPLETE = "incomplete", "Incomplete"
        INCOMPLETE_EXPIRED = "incomplete_expired", "Incomplete Expired"
        TRIALING = "trialing", "Trialing"
        ACTIVE = "active", "Active"
        PAST_DUE = "past_due", "Past Due"
        CANCELED = "canceled", "Canceled"
        UNPAID = "unpaid", "Unpaid"
        PAUSED = "paused", "Paused"

    user_id = models.CharField(
        max_length=64,
        help_text="Identifier of the owning user in the user-record service",
    )

    # Stripe subscription information
    stripe_customer_id = models.CharField(
        max_length=200,
        db_index=True,
        help_text="Stripe customer ID",
    )
    stripe_subscription_id = models.CharField(
        max_length=200,
        unique=True,
        help_text="Stripe subscription ID",
    )
    stripe_price_id = models.CharField(
        max_length=200,
        help_text="Stripe price ID of the first subscription item",
    )

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.INCOMPLETE,
        help_text="Subscription status",
    )

    # Time management
    current_period_start = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Start time of the current billing cycle",
    )
    current_period_end = models.DateTimeField(
        null=True,
        blank=True,
        help_text="End time of the current billing cycle",
    )
    cancel_at_period_end = models.BooleanField(
        default=False,
        help_text="Whether Stripe will cancel the subscription when the period ends",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "subscription_record"
        ordering = ("-created_at",)
        indexes = [
            models.Index(fields=["user_id", "status"], name="subscription_user_status"),
        ]

    def __str__(self):
        return f"{self.stripe_subscription_id} ({self.status})"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE
