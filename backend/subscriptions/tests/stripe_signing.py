"""Produce ``Stripe-Signature`` headers the way Stripe signs deliveries."""
import hashlib
import hmac
import time

WEBHOOK_SECRET = "whsec_test_secret"


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    """Build a ``Stripe-Signature`` header for ``payload`` (v1 scheme)."""
    timestamp = int(timestamp if timestamp is not None else time.time())
    signed_payload = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"
