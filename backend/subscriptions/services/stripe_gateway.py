"""Stripe webhook verification and subscription lookups used by the relay."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Union

import stripe

from subscriptions.config import RelayConfig

logger = logging.getLogger(__name__)


class StripeConfigurationError(RuntimeError):
    """Raised when mandatory Stripe configuration is missing."""


class StripeServiceError(RuntimeError):
    """Raised when Stripe returns an operational error."""


class StripeWebhookSignatureError(StripeServiceError):
    """Raised when webhook signature validation fails."""


def stripe_obj_to_dict(obj: Any) -> Optional[Dict[str, Any]]:
    """Flatten a ``StripeObject`` (or plain mapping) into a dictionary."""

    if obj is None:
        return None
    for attribute in ("to_dict_recursive", "to_dict"):
        converter = getattr(obj, attribute, None)
        if callable(converter):
            return converter()
    if isinstance(obj, dict):
        return dict(obj)
    return None


class StripeGateway:
    """Thin wrapper around the Stripe SDK calls the dispatcher depends on.

    Signature verification only needs the endpoint secret; subscription
    lookups need the account's API key.
    """

    def __init__(self, api_key: str = "", api_version: Optional[str] = None):
        self.api_key = api_key
        self.api_version = api_version

    @classmethod
    def from_config(cls, config: RelayConfig) -> "StripeGateway":
        return cls(api_key=config.stripe_secret_key, api_version=config.stripe_api_version)

    def _configure(self) -> None:
        if not self.api_key:
            raise StripeConfigurationError("STRIPE_SECRET_KEY is not configured.")

        stripe.api_key = self.api_key
        if self.api_version:
            stripe.api_version = self.api_version

    def verify_and_parse(self, payload: Union[str, bytes], sig_header: Optional[str], secret: str) -> Dict[str, Any]:
        """Validate the ``Stripe-Signature`` header and return the event envelope.

        The raised exception's message is the SDK's failure text so callers
        can echo it back to Stripe.
        """

        if not secret:
            raise StripeConfigurationError("STRIPE_WEBHOOK_SECRET is not configured.")

        try:
            event = stripe.Webhook.construct_event(payload=payload, sig_header=sig_header or "", secret=secret)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Stripe webhook signature verification failed: %s", exc)
            raise StripeWebhookSignatureError(str(exc)) from exc
        except ValueError as exc:
            logger.error("Received malformed Stripe webhook payload: %s", exc)
            raise StripeServiceError(str(exc)) from exc
        except (AttributeError, TypeError) as exc:
            # Signed JSON that is not an object (``[]``, ``null``, ``123``).
            logger.error("Received non-object Stripe webhook payload: %s", exc)
            raise StripeServiceError("Webhook payload must be a JSON object") from exc

        envelope = stripe_obj_to_dict(event)
        if envelope is None:
            raise StripeServiceError("Stripe event could not be decoded.")
        return envelope

    def retrieve_subscription(self, subscription_id: str, *, expand: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Fetch a Stripe subscription object as a plain dictionary."""

        if not subscription_id:
            raise ValueError("subscription_id is required.")

        self._configure()

        kwargs: Dict[str, Any] = {}
        if expand:
            kwargs["expand"] = list(expand)

        try:
            subscription = stripe.Subscription.retrieve(subscription_id, **kwargs)
        except stripe.StripeError as exc:
            logger.warning("Failed to retrieve Stripe subscription %s: %s", subscription_id, exc)
            raise StripeServiceError(str(exc)) from exc

        snapshot = stripe_obj_to_dict(subscription)
        if snapshot is None:
            raise StripeServiceError(f"Stripe subscription {subscription_id} could not be decoded.")
        return snapshot
