"""
Root pytest configuration for the relay project.

Provides a configured ``RelayConfig`` and helpers that produce genuinely signed
Stripe webhook deliveries.
"""
import json

import pytest
from django.apps import apps

from subscriptions.config import RelayConfig
from subscriptions.tests.stripe_signing import WEBHOOK_SECRET, sign_payload

USER_SERVICE_URL = "http://users.test/api"


@pytest.fixture
def relay_config(monkeypatch):
    config = RelayConfig(
        webhook_secret=WEBHOOK_SECRET,
        stripe_secret_key="sk_test_relay",
        stripe_api_version="2023-10-16",
        user_service_base_url=USER_SERVICE_URL,
        user_service_timeout=5.0,
    )
    monkeypatch.setattr(apps.get_app_config("subscriptions"), "relay_config", config)
    return config


@pytest.fixture
def make_subscription():
    def _make(**overrides):
        snapshot = {
            "id": "sub_test123",
            "object": "subscription",
            "customer": "cus_test123",
            "status": "active",
            "cancel_at_period_end": False,
            "current_period_start": 1735689600,
            "current_period_end": 1738368000,
            "metadata": {"userId": "507f1f77bcf86cd799439011"},
            "items": {"object": "list", "data": [{"id": "si_1", "price": {"id": "price_test123"}}]},
        }
        snapshot.update(overrides)
        return snapshot

    return _make


@pytest.fixture
def make_event():
    def _make(event_type, data_object, event_id="evt_test123"):
        return {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": data_object},
        }

    return _make


@pytest.fixture
def signed_delivery():
    """Serialize an event and return ``(payload, signature_header)``."""

    def _sign(event, secret=WEBHOOK_SECRET):
        payload = json.dumps(event)
        return payload, sign_payload(payload, secret)

    return _sign
