"""Expose the collaborators the webhook dispatcher is built from."""

from .stripe_gateway import (
    StripeConfigurationError,
    StripeGateway,
    StripeServiceError,
    StripeWebhookSignatureError,
)
from .user_service import UserServiceClient, UserServiceError
