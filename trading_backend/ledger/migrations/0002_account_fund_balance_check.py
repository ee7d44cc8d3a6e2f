"""
======================================================
PATH: ledger/migrations/0002_account_fund_balance_check.py
======================================================
MIGRATION: bank / cash balances can never be stored negative
"""

from __future__ import annotations

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("ledger", "0001_initial"),
    ]

    operations = [
        migrations.AddConstraint(
            model_name="account",
            constraint=models.CheckConstraint(
                condition=models.Q(
                    ("balance__gte", 0),
                    models.Q(("account_type__in", ["bank", "cash"]), _negated=True),
                    _connector="OR",
                ),
                name="chk_ledger_fund_balance_non_negative",
            ),
        ),
    ]
