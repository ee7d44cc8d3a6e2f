# ledger/tests/helpers.py

"""
Small builders shared by the ledger, trading and reporting tests.
"""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model

from ledger.models import Account
from ledger.services.account_service import create_account

User = get_user_model()


def make_user(role: str, email: str | None = None):
    return User.objects.create_user(
        email=email or f"{role}@example.com",
        password="pass",
        role=role,
    )


def make_account(account_type: str, name: str | None = None, balance="0.00", **extra) -> Account:
    """
    Account with a reconciled opening balance (recorded as an `opening` row).
    """
    return create_account(
        name=name or f"Test {account_type}",
        account_type=account_type,
        opening_balance=Decimal(str(balance)),
        bank_name=extra.pop("bank_name", "Test Bank" if account_type == Account.BANK else ""),
        **extra,
    )


def reload(account: Account) -> Account:
    account.refresh_from_db()
    return account
