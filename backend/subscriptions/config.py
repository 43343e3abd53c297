"""Process-wide relay configuration, resolved once from Django settings."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_USER_SERVICE_BASE_URL = "http://localhost:3004/api"
DEFAULT_USER_SERVICE_TIMEOUT = 10.0


@dataclass(frozen=True)
class RelayConfig:
    """Secrets and endpoints the webhook relay needs for one process lifetime."""

    webhook_secret: str = ""
    stripe_secret_key: str = ""
    stripe_api_version: Optional[str] = None
    user_service_base_url: str = DEFAULT_USER_SERVICE_BASE_URL
    user_service_timeout: float = DEFAULT_USER_SERVICE_TIMEOUT

    @property
    def has_webhook_secret(self) -> bool:
        return bool(self.webhook_secret)

    @classmethod
    def from_settings(cls, settings) -> "RelayConfig":
        timeout = getattr(settings, "USER_SERVICE_TIMEOUT", DEFAULT_USER_SERVICE_TIMEOUT)
        return cls(
            webhook_secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", "") or "",
            stripe_secret_key=getattr(settings, "STRIPE_SECRET_KEY", "") or "",
            stripe_api_version=getattr(settings, "STRIPE_API_VERSION", None) or None,
            user_service_base_url=(
                getattr(settings, "USER_SERVICE_BASE_URL", "") or DEFAULT_USER_SERVICE_BASE_URL
            ).rstrip("/"),
            user_service_timeout=float(timeout or DEFAULT_USER_SERVICE_TIMEOUT),
        )
