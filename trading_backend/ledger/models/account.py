# ledger/models/account.py

"""
======================================================
PATH: ledger/models/account.py
======================================================
ACCOUNT MODEL

One row per balance-carrying party or fund:
- customer  : positive balance = customer owes the business (receivable)
- supplier  : positive balance = business owes the supplier (payable)
- shipper   : positive balance = business owes the shipper (payable)
- bank/cash : positive balance = available funds (never negative)

Guarantees:
- balance is only changed by ledger services, always together with a Transaction
- exactly one active cash account
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Account(models.Model):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"
    SHIPPER = "shipper"
    BANK = "bank"
    CASH = "cash"

    ACCOUNT_TYPES = [
        (CUSTOMER, "Customer"),
        (SUPPLIER, "Supplier"),
        (SHIPPER, "Shipper"),
        (BANK, "Bank"),
        (CASH, "Cash"),
    ]

    PARTY_TYPES = (CUSTOMER, SUPPLIER, SHIPPER)
    FUND_TYPES = (BANK, CASH)

    # Parties where a positive balance means the business owes them.
    PAYABLE_TYPES = (SUPPLIER, SHIPPER)

    name = models.CharField(max_length=150)

    account_type = models.CharField(
        max_length=10,
        choices=ACCOUNT_TYPES,
    )

    phone = models.CharField(max_length=40, blank=True, default="")

    bank_name = models.CharField(max_length=150, blank=True, default="")
    account_number = models.CharField(max_length=60, blank=True, default="")

    balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Signed balance; sign convention depends on account_type",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["account_type", "name"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["account_type"], name="ledger_account_type_idx"),
            models.Index(fields=["is_active"], name="ledger_account_active_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["account_type"],
                condition=Q(account_type="cash", is_active=True),
                name="uniq_active_cash_account",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_ledger_account_name_not_blank",
            ),
            models.CheckConstraint(
                condition=Q(balance__gte=0) | ~Q(account_type__in=["bank", "cash"]),
                name="chk_ledger_fund_balance_non_negative",
            ),
        ]

    def __str__(self):
        if self.account_type == self.BANK and self.bank_name:
            return f"{self.name} ({self.bank_name})"
        return f"{self.name} [{self.account_type}]"

    @property
    def is_party(self) -> bool:
        return self.account_type in self.PARTY_TYPES

    @property
    def is_fund(self) -> bool:
        return self.account_type in self.FUND_TYPES

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError("Account name is required")

        if self.account_type not in dict(self.ACCOUNT_TYPES):
            raise ValidationError("Invalid account_type")

        if self.is_fund and self.balance is not None and self.balance < 0:
            raise ValidationError("Bank and cash balances cannot be negative")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
