"""HTTP endpoints for Stripe subscription webhooks and the local ledger."""
from __future__ import annotations

import logging
import time
from typing import Optional

from django.apps import apps
from django.http import Http404
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from subscriptions.config import RelayConfig
from subscriptions.observability.logging import log_relay_event
from subscriptions.observability.metrics import (
    WEBHOOK_DISPATCH_LATENCY,
    WEBHOOK_EVENT_COUNT,
    WEBHOOK_REQUEST_COUNT,
)
from subscriptions.serializers import SubscriptionRecordSerializer
from subscriptions.services import ledger
from subscriptions.services.stripe_gateway import StripeGateway, StripeServiceError
from subscriptions.services.user_service import UserServiceClient
from subscriptions.webhooks import WebhookDispatcher

logger = logging.getLogger(__name__)

SECRET_NOT_CONFIGURED = "Webhook secret not configured"
PROCESSING_FAILED = "Webhook processing failed"


def get_relay_config() -> RelayConfig:
    return apps.get_app_config("subscriptions").relay_config


def _error(message: str, status: int) -> Response:
    WEBHOOK_REQUEST_COUNT.labels(status=str(status)).inc()
    return Response({"error": message}, status=status)


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(APIView):
    """Verify a Stripe delivery and relay it to the user service and the ledger.

    Stripe always gets a 200 once the signature checks out; downstream
    failures are logged, not reported.
    """

    authentication_classes = []
    permission_classes = []
    http_method_names = ["post"]

    def get_gateway(self, config: RelayConfig) -> StripeGateway:
        return StripeGateway.from_config(config)

    def get_user_service(self, config: RelayConfig) -> UserServiceClient:
        return UserServiceClient.from_config(config)

    def get_dispatcher(self, gateway: StripeGateway, users: UserServiceClient) -> WebhookDispatcher:
        return WebhookDispatcher(provider=gateway, users=users)

    def post(self, request, *args, **kwargs):  # noqa: D401 - DRF signature
        config = get_relay_config()
        if not config.has_webhook_secret:
            logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not configured.")
            return _error(SECRET_NOT_CONFIGURED, 400)

        payload = self._decode_payload(request.body)
        if payload is None:
            return _error("Webhook Error: Request body is not valid UTF-8", 400)

        gateway = self.get_gateway(config)
        try:
            envelope = gateway.verify_and_parse(payload, request.headers.get("Stripe-Signature"), config.webhook_secret)
        except StripeServiceError as exc:
            return _error(f"Webhook Error: {exc}", 400)

        event_id = envelope.get("id")
        event_type = envelope.get("type")
        start = time.monotonic()
        try:
            with self.get_user_service(config) as users:
                result = self.get_dispatcher(gateway, users).dispatch(envelope)
        except Exception:
            logger.exception("Error processing webhook %s (%s).", event_id, event_type)
            WEBHOOK_EVENT_COUNT.labels(event_type=event_type or "unknown", outcome="failed").inc()
            return _error(PROCESSING_FAILED, 500)
        finally:
            WEBHOOK_DISPATCH_LATENCY.labels(event_type=event_type or "unknown").observe(time.monotonic() - start)

        WEBHOOK_EVENT_COUNT.labels(event_type=event_type or "unknown", outcome=result.status).inc()
        log_relay_event(
            message="Stripe webhook processed",
            event_id=event_id,
            event_type=event_type,
            user_id=result.user_id,
            extra={
                "status": result.status,
                "detail": result.detail,
                "subscription_id": result.subscription_id,
                "errors": list(result.errors),
            },
        )

        WEBHOOK_REQUEST_COUNT.labels(status="200").inc()
        return Response({"received": True}, status=200)

    @staticmethod
    def _decode_payload(body: bytes) -> Optional[str]:
        if not body:
            return ""
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError:
            return None


class SubscriptionRecordView(APIView):
    """Staff-only read access to one ledger entry."""

    permission_classes = [IsAdminUser]
    http_method_names = ["get"]

    def get(self, request, stripe_subscription_id: str, *args, **kwargs):
        record = ledger.get_subscription(stripe_subscription_id)
        if record is None:
            raise Http404("Subscription record not found.")
        return Response(SubscriptionRecordSerializer(record).data)
