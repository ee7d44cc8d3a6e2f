# backend/wsgi.py
"""
PATH: backend/wsgi.py

WSGI entry point for the trading ledger API (gunicorn / uwsgi).

The ledger locks rows with SELECT ... FOR UPDATE, so production must run
with DJANGO_SETTINGS_MODULE=backend.settings.prod (Postgres only).
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_wsgi_application()
