"""ASGI entry point for the relay project."""
import os

from django.core.asgi import get_asgi_application

# Set the default Django settings module
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "relay.settings")

application = get_asgi_application()
