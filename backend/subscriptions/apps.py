import logging

from django.apps import AppConfig

from .config import RelayConfig

logger = logging.getLogger(__name__)


class SubscriptionsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "subscriptions"

    relay_config: RelayConfig = RelayConfig()

    def ready(self):
        from django.conf import settings

        # Settings are read once per process; handlers only see this object.
        self.relay_config = RelayConfig.from_settings(settings)

        if not self.relay_config.has_webhook_secret:
            logger.warning("STRIPE_WEBHOOK_SECRET is not configured; webhook deliveries will be rejected.")
        if not self.relay_config.stripe_secret_key:
            logger.warning("STRIPE_SECRET_KEY is not configured; subscription lookups will fail.")
