"""URL routes for subscription endpoints."""
from django.urls import path

from .views import StripeWebhookView, SubscriptionRecordView

app_name = "subscriptions"

urlpatterns = [
    path("webhook", StripeWebhookView.as_view(), name="stripe-webhook"),
    path(
        "records/<str:stripe_subscription_id>",
        SubscriptionRecordView.as_view(),
        name="subscription-record",
    ),
]
