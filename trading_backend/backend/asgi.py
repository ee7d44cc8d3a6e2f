# backend/asgi.py
"""
PATH: backend/asgi.py

ASGI entry point for the trading ledger API.
Uses dev settings unless the host sets DJANGO_SETTINGS_MODULE
(production must point it at backend.settings.prod).
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_asgi_application()
