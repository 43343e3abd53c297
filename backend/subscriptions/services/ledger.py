"""Write paths for the local subscription ledger."""
from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Optional, Tuple

from django.db import transaction
from django.utils import timezone

from subscriptions.models import SubscriptionRecord

logger = logging.getLogger(__name__)

UNKNOWN_PRICE_ID = "unknown"

VALID_STATUSES = frozenset(SubscriptionRecord.Status.values)


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Convert a Stripe Unix timestamp into an aware UTC datetime."""

    if value in (None, ""):
        return None
    try:
        return datetime.fromtimestamp(float(value), tz=dt_timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _first_item(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    items = (snapshot.get("items") or {}).get("data") or []
    if items and isinstance(items[0], dict):
        return items[0]
    return {}


def _customer_id(snapshot: Dict[str, Any]) -> str:
    customer = snapshot.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")
    return str(customer or "")


def _price_id(snapshot: Dict[str, Any]) -> str:
    price = _first_item(snapshot).get("price") or {}
    if isinstance(price, dict):
        return str(price.get("id") or UNKNOWN_PRICE_ID)
    return str(price or UNKNOWN_PRICE_ID)


def extract_period(snapshot: Dict[str, Any]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Return the current billing period of a subscription snapshot.

    API versions from 2025-03 moved the period onto subscription items, so
    the first item is consulted when the subscription itself has none.
    """

    item = _first_item(snapshot)
    start = snapshot.get("current_period_start") or item.get("current_period_start")
    end = snapshot.get("current_period_end") or item.get("current_period_end")
    return coerce_timestamp(start), coerce_timestamp(end)


def _validated_status(status: Any) -> str:
    if status not in VALID_STATUSES:
        raise ValueError(f"Unsupported subscription status '{status}'.")
    return status


def snapshot_to_fields(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    """Map a Stripe subscription snapshot onto ``SubscriptionRecord`` fields."""

    period_start, period_end = extract_period(snapshot)
    metadata = snapshot.get("metadata") or {}
    return {
        "user_id": str(metadata.get("userId") or ""),
        "stripe_customer_id": _customer_id(snapshot),
        "stripe_price_id": _price_id(snapshot),
        "status": _validated_status(snapshot.get("status") or SubscriptionRecord.Status.INCOMPLETE),
        "current_period_start": period_start,
        "current_period_end": period_end,
        "cancel_at_period_end": bool(snapshot.get("cancel_at_period_end")),
    }


def upsert_subscription(snapshot: Dict[str, Any]) -> SubscriptionRecord:
    """Create or refresh the ledger row keyed by the Stripe subscription id."""

    subscription_id = snapshot.get("id")
    if not subscription_id:
        raise ValueError("Subscription snapshot is missing its id.")

    defaults = snapshot_to_fields(snapshot)
    with transaction.atomic():
        record, created = SubscriptionRecord.objects.update_or_create(
            stripe_subscription_id=subscription_id,
            defaults=defaults,
        )

    logger.info(
        "%s subscription record %s for user %s (status=%s).",
        "Created" if created else "Updated",
        subscription_id,
        record.user_id,
        record.status,
    )
    return record


def update_subscription(snapshot: Dict[str, Any]) -> int:
    """Apply status and period changes from a snapshot; missing rows are left alone."""

    subscription_id = snapshot.get("id")
    if not subscription_id:
        raise ValueError("Subscription snapshot is missing its id.")

    period_start, period_end = extract_period(snapshot)
    updated = SubscriptionRecord.objects.filter(stripe_subscription_id=subscription_id).update(
        status=_validated_status(snapshot.get("status")),
        current_period_start=period_start,
        current_period_end=period_end,
        updated_at=timezone.now(),
    )
    if not updated:
        logger.info("No subscription record to update for %s.", subscription_id)
    return updated


def set_subscription_status(subscription_id: str, status: str) -> int:
    updated = SubscriptionRecord.objects.filter(stripe_subscription_id=subscription_id).update(
        status=_validated_status(status),
        updated_at=timezone.now(),
    )
    if not updated:
        logger.info("No subscription record found for %s; status %s not recorded.", subscription_id, status)
    return updated


def mark_subscription_canceled(subscription_id: str) -> int:
    return set_subscription_status(subscription_id, SubscriptionRecord.Status.CANCELED)


def get_subscription(subscription_id: str) -> Optional[SubscriptionRecord]:
    return SubscriptionRecord.objects.filter(stripe_subscription_id=subscription_id).first()
