"""Stripe webhook handler implementations and helpers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from subscriptions.models import SubscriptionRecord
from subscriptions.observability.metrics import DOWNSTREAM_FAILURE_COUNT
from subscriptions.services import ledger
from subscriptions.services.user_service import UserServiceError

logger = logging.getLogger(__name__)


class WebhookProcessingError(Exception):
    """Raised when a verified event cannot be routed to a handler."""


@dataclass(frozen=True)
class HandlerResult:
    """Outcome of a webhook handler invocation."""

    status: str
    detail: str = ""
    subscription_id: Optional[str] = None
    user_id: Optional[str] = None
    errors: Tuple[str, ...] = ()

    PROCESSED = "processed"
    PARTIAL = "partial"
    SKIPPED = "skipped"
    IGNORED = "ignored"
    ERROR = "error"


def _reference_id(value: Any) -> Optional[str]:
    """Return the id of a Stripe reference that may or may not be expanded."""

    if isinstance(value, dict):
        value = value.get("id")
    return str(value) if value else None


def _metadata_user_id(snapshot: Dict[str, Any]) -> Optional[str]:
    metadata = snapshot.get("metadata") or {}
    user_id = metadata.get("userId")
    return str(user_id) if user_id else None


def _invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    reference = _reference_id(invoice.get("subscription"))
    if reference:
        return reference
    # Newer API versions nest the reference under the invoice parent.
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return _reference_id(details.get("subscription"))


class WebhookDispatcher:
    """Route verified Stripe events to premium-flag and ledger side effects.

    ``provider`` must offer ``retrieve_subscription(id)`` and ``users`` must
    offer ``set_premium(user_id, is_premium)``. Handlers never raise: each side
    effect is attempted independently and its failure is recorded on the
    returned :class:`HandlerResult`.
    """

    def __init__(self, *, provider, users):
        self.provider = provider
        self.users = users
        self._handlers: Dict[str, Callable[[Dict[str, Any]], HandlerResult]] = {
            "checkout.session.completed": self._handle_checkout_session_completed,
            "customer.subscription.created": self._handle_subscription_created,
            "customer.subscription.updated": self._handle_subscription_updated,
            "customer.subscription.deleted": self._handle_subscription_deleted,
            "invoice.payment_succeeded": self._handle_invoice_payment_succeeded,
            "invoice.payment_failed": self._handle_invoice_payment_failed,
        }

    def dispatch(self, envelope: Dict[str, Any]) -> HandlerResult:
        event_type = envelope.get("type")
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("Unhandled event type: %s", event_type)
            return HandlerResult(status=HandlerResult.IGNORED, detail="Unsupported event type")

        snapshot = (envelope.get("data") or {}).get("object")
        if not isinstance(snapshot, dict):
            raise WebhookProcessingError(f"Event {envelope.get('id')} ({event_type}) has no data object.")

        try:
            return handler(snapshot)
        except Exception as exc:
            logger.exception("Error handling %s event %s.", event_type, envelope.get("id"))
            return HandlerResult(status=HandlerResult.ERROR, detail=str(exc))

    def _run_step(self, errors: List[str], target: str, func: Callable[..., Any], *args: Any) -> None:
        try:
            func(*args)
        except Exception as exc:
            logger.exception("Webhook side effect '%s' failed.", target)
            DOWNSTREAM_FAILURE_COUNT.labels(target=target).inc()
            errors.append(f"{target}: {exc}")

    def _set_premium(self, user_id: str, is_premium: bool) -> None:
        if not self.users.set_premium(user_id, is_premium):
            raise UserServiceError(f"premium update for user {user_id} was rejected")

    def _apply(self, *, user_id: str, subscription_id: Optional[str], is_premium: bool,
               ledger_write: Callable[..., Any], ledger_args: Tuple[Any, ...], detail: str) -> HandlerResult:
        errors: List[str] = []
        self._run_step(errors, "user_service", self._set_premium, user_id, is_premium)
        self._run_step(errors, "ledger", ledger_write, *ledger_args)

        return HandlerResult(
            status=HandlerResult.PARTIAL if errors else HandlerResult.PROCESSED,
            detail=detail,
            subscription_id=subscription_id,
            user_id=user_id,
            errors=tuple(errors),
        )

    def _activate(self, subscription: Dict[str, Any], detail: str) -> HandlerResult:
        user_id = _metadata_user_id(subscription)
        if not user_id:
            return HandlerResult(status=HandlerResult.SKIPPED, subscription_id=subscription.get("id"))

        return self._apply(
            user_id=user_id,
            subscription_id=subscription.get("id"),
            is_premium=True,
            ledger_write=ledger.upsert_subscription,
            ledger_args=(subscription,),
            detail=detail,
        )

    def _handle_checkout_session_completed(self, session: Dict[str, Any]) -> HandlerResult:
        subscription_id = _reference_id(session.get("subscription"))
        if session.get("mode") != "subscription" or not subscription_id:
            return HandlerResult(status=HandlerResult.SKIPPED, detail="Checkout session is not a subscription")

        subscription = self.provider.retrieve_subscription(subscription_id)
        return self._activate(subscription, "Subscription checkout completed")

    def _handle_subscription_created(self, subscription: Dict[str, Any]) -> HandlerResult:
        return self._activate(subscription, "Subscription created")

    def _handle_subscription_updated(self, subscription: Dict[str, Any]) -> HandlerResult:
        user_id = _metadata_user_id(subscription)
        if not user_id:
            return HandlerResult(status=HandlerResult.SKIPPED, subscription_id=subscription.get("id"))

        return self._apply(
            user_id=user_id,
            subscription_id=subscription.get("id"),
            is_premium=subscription.get("status") == SubscriptionRecord.Status.ACTIVE,
            ledger_write=ledger.update_subscription,
            ledger_args=(subscription,),
            detail=f"Subscription updated to {subscription.get('status')}",
        )

    def _handle_subscription_deleted(self, subscription: Dict[str, Any]) -> HandlerResult:
        user_id = _metadata_user_id(subscription)
        if not user_id:
            return HandlerResult(status=HandlerResult.SKIPPED, subscription_id=subscription.get("id"))

        return self._apply(
            user_id=user_id,
            subscription_id=subscription.get("id"),
            is_premium=False,
            ledger_write=ledger.mark_subscription_canceled,
            ledger_args=(subscription.get("id"),),
            detail="Subscription canceled",
        )

    def _handle_invoice(self, invoice: Dict[str, Any], *, is_premium: bool, status: str) -> HandlerResult:
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            return HandlerResult(status=HandlerResult.SKIPPED, detail="Invoice has no subscription")

        subscription = self.provider.retrieve_subscription(subscription_id)
        user_id = _metadata_user_id(subscription)
        if not user_id:
            return HandlerResult(status=HandlerResult.SKIPPED, subscription_id=subscription_id)

        return self._apply(
            user_id=user_id,
            subscription_id=subscription.get("id") or subscription_id,
            is_premium=is_premium,
            ledger_write=ledger.set_subscription_status,
            ledger_args=(subscription.get("id") or subscription_id, status),
            detail=f"Invoice payment recorded as {status}",
        )

    def _handle_invoice_payment_succeeded(self, invoice: Dict[str, Any]) -> HandlerResult:
        return self._handle_invoice(invoice, is_premium=True, status=SubscriptionRecord.Status.ACTIVE)

    def _handle_invoice_payment_failed(self, invoice: Dict[str, Any]) -> HandlerResult:
        return self._handle_invoice(invoice, is_premium=False, status=SubscriptionRecord.Status.PAST_DUE)


__all__ = [
    "HandlerResult",
    "WebhookDispatcher",
    "WebhookProcessingError",
]
