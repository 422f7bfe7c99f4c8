"""ASGI config for the Game Hub API."""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "gamehub.settings")

application = get_asgi_application()
