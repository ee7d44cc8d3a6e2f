# ledger/apps.py

"""
LEDGER APP CONFIG

Party and fund accounts, immutable transactions, cheques.
"""

from django.apps import AppConfig


class LedgerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ledger"
    verbose_name = "Ledger"
