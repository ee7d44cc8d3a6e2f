# trading/apps.py

"""
TRADING APP CONFIG

Sales, expenses, product returns and damage write-offs.
Each record is posted to the ledger through ledger.services.
"""

from django.apps import AppConfig


class TradingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "trading"
    verbose_name = "Trading"
