"""ASGI entry point for the glamping booking platform.

Serves the same HTTP API as the WSGI entry point for deployments running
under an ASGI server such as uvicorn or daphne.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

# Production servers should set DJANGO_SETTINGS_MODULE explicitly.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
