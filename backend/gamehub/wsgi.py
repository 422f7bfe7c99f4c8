"""WSGI config for the Game Hub API."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "gamehub.settings")

application = get_wsgi_application()
