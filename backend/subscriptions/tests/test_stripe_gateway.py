import json
import time
from unittest.mock import patch

import pytest
import stripe

from subscriptions.services.stripe_gateway import (
    StripeConfigurationError,
    StripeGateway,
    StripeServiceError,
    StripeWebhookSignatureError,
    stripe_obj_to_dict,
)
from subscriptions.tests.stripe_signing import WEBHOOK_SECRET, sign_payload


@pytest.fixture
def gateway():
    return StripeGateway(api_key="sk_test_relay")


def test_verify_and_parse_returns_plain_envelope(gateway, make_event, make_subscription):
    payload = json.dumps(make_event("customer.subscription.created", make_subscription()))

    envelope = gateway.verify_and_parse(payload, sign_payload(payload), WEBHOOK_SECRET)

    assert envelope["type"] == "customer.subscription.created"
    snapshot = envelope["data"]["object"]
    assert snapshot["metadata"]["userId"] == "507f1f77bcf86cd799439011"
    assert snapshot["items"]["data"][0]["price"]["id"] == "price_test123"


def test_wrong_secret_is_a_signature_error(gateway, make_event):
    payload = json.dumps(make_event("customer.subscription.created", {"id": "sub_1"}))

    with pytest.raises(StripeWebhookSignatureError) as excinfo:
        gateway.verify_and_parse(payload, sign_payload(payload, secret="whsec_other"), WEBHOOK_SECRET)

    assert str(excinfo.value)


def test_missing_header_is_a_signature_error(gateway):
    with pytest.raises(StripeWebhookSignatureError):
        gateway.verify_and_parse("{}", None, WEBHOOK_SECRET)


def test_stale_timestamp_is_rejected(gateway):
    payload = json.dumps({"id": "evt_1", "object": "event", "type": "ping", "data": {"object": {}}})
    header = sign_payload(payload, timestamp=time.time() - 3600)

    with pytest.raises(StripeWebhookSignatureError):
        gateway.verify_and_parse(payload, header, WEBHOOK_SECRET)


def test_malformed_json_with_valid_signature_is_a_service_error(gateway):
    payload = "{not json"

    with pytest.raises(StripeServiceError) as excinfo:
        gateway.verify_and_parse(payload, sign_payload(payload), WEBHOOK_SECRET)

    assert not isinstance(excinfo.value, StripeWebhookSignatureError)


@pytest.mark.parametrize("payload", ["[]", "null", "123", '"x"'])
def test_signed_non_object_payload_is_a_service_error(gateway, payload):
    with pytest.raises(StripeServiceError, match="must be a JSON object") as excinfo:
        gateway.verify_and_parse(payload, sign_payload(payload), WEBHOOK_SECRET)

    assert not isinstance(excinfo.value, StripeWebhookSignatureError)


def test_verify_requires_secret(gateway):
    with pytest.raises(StripeConfigurationError):
        gateway.verify_and_parse("{}", "t=1,v1=abc", "")


def test_retrieve_subscription_requires_api_key():
    with pytest.raises(StripeConfigurationError):
        StripeGateway(api_key="").retrieve_subscription("sub_1")


def test_retrieve_subscription_requires_id(gateway):
    with pytest.raises(ValueError):
        gateway.retrieve_subscription("")


def test_retrieve_subscription_returns_dict(gateway, make_subscription):
    with patch("subscriptions.services.stripe_gateway.stripe.Subscription.retrieve") as retrieve:
        retrieve.return_value = make_subscription()
        snapshot = gateway.retrieve_subscription("sub_test123")

    retrieve.assert_called_once_with("sub_test123")
    assert snapshot["id"] == "sub_test123"
    assert stripe.api_key == "sk_test_relay"


def test_retrieve_subscription_wraps_stripe_errors(gateway):
    with patch("subscriptions.services.stripe_gateway.stripe.Subscription.retrieve") as retrieve:
        retrieve.side_effect = stripe.InvalidRequestError("No such subscription: 'sub_x'", "id")

        with pytest.raises(StripeServiceError, match="No such subscription"):
            gateway.retrieve_subscription("sub_x")


def test_stripe_obj_to_dict_handles_plain_values():
    assert stripe_obj_to_dict(None) is None
    assert stripe_obj_to_dict({"id": "sub_1"}) == {"id": "sub_1"}
    assert stripe_obj_to_dict("sub_1") is None
