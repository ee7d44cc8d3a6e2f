# ledger/models/transaction.py

"""
======================================================
PATH: ledger/models/transaction.py
======================================================
TRANSACTION MODEL

A single signed movement on one Account.

Guarantees:
- amount is always positive; direction says which way the stored balance moved
  (CREDIT = balance increased, DEBIT = balance decreased)
- immutable once created (no updates)
- ORM deletes are blocked; the privileged hard-delete service removes a whole
  posting group and reverses its balance effect
- every row written by one mutation shares the same posting_ref
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from ledger.models.account import Account


class Transaction(models.Model):
    CREDIT = "credit"
    DEBIT = "debit"

    DIRECTIONS = [
        (CREDIT, "Credit"),
        (DEBIT, "Debit"),
    ]

    METHOD_CASH = "cash"
    METHOD_ONLINE = "online"
    METHOD_CHEQUE = "cheque"
    METHOD_OWN_CHEQUE = "owncheque"
    METHOD_CREDIT = "credit"

    PAYMENT_METHODS = [
        (METHOD_CASH, "Cash"),
        (METHOD_ONLINE, "Online"),
        (METHOD_CHEQUE, "Cheque"),
        (METHOD_OWN_CHEQUE, "Own cheque"),
        (METHOD_CREDIT, "Credit (ledger only)"),
    ]

    SOURCE_OPENING = "opening"
    SOURCE_PAYMENT = "payment"
    SOURCE_SALE = "sale"
    SOURCE_EXPENSE = "expense"
    SOURCE_RETURN = "return"
    SOURCE_DISCOUNT = "discount"
    SOURCE_TRANSFER = "transfer"
    SOURCE_CHEQUE = "cheque"
    SOURCE_REVERSAL = "reversal"

    SOURCES = [
        (SOURCE_OPENING, "Opening balance"),
        (SOURCE_PAYMENT, "Payment"),
        (SOURCE_SALE, "Sale"),
        (SOURCE_EXPENSE, "Expense"),
        (SOURCE_RETURN, "Product return"),
        (SOURCE_DISCOUNT, "Discount"),
        (SOURCE_TRANSFER, "Fund transfer"),
        (SOURCE_CHEQUE, "Cheque settlement"),
        (SOURCE_REVERSAL, "Reversal"),
    ]

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="transactions",
    )

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        help_text="Positive monetary value",
    )

    direction = models.CharField(max_length=6, choices=DIRECTIONS)

    payment_method = models.CharField(
        max_length=10,
        choices=PAYMENT_METHODS,
        default=METHOD_CREDIT,
    )

    source = models.CharField(
        max_length=10,
        choices=SOURCES,
        default=SOURCE_PAYMENT,
    )

    operation_kind = models.CharField(max_length=30, blank=True, default="")

    description = models.CharField(max_length=255, blank=True, default="")

    bank = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="linked_transactions",
        limit_choices_to={"account_type": Account.BANK},
    )

    cheque_date = models.DateField(null=True, blank=True)

    proof_image = models.CharField(max_length=500, blank=True, default="")

    posting_ref = models.UUIDField(default=uuid.uuid4, db_index=True)

    is_reversal = models.BooleanField(default=False)

    reverses = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversals",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ledger_transactions",
    )

    effective_date = models.DateField(default=timezone.localdate)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["effective_date", "created_at", "id"]
        verbose_name = "Transaction"
        verbose_name_plural = "Transactions"
        indexes = [
            models.Index(fields=["account", "effective_date"], name="ledger_tx_account_date_idx"),
            models.Index(fields=["source"], name="ledger_tx_source_idx"),
            models.Index(fields=["created_at"], name="ledger_tx_created_idx"),
        ]

    def __str__(self):
        return f"{self.direction} {self.amount} → {self.account}"

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.direction == self.CREDIT else -self.amount

    def clean(self):
        if self.direction not in (self.CREDIT, self.DEBIT):
            raise ValidationError("Invalid direction")

        if self.amount is None or self.amount <= 0:
            raise ValidationError("Transaction amount must be > 0")

        self.description = (self.description or "").strip()

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("Transaction records are immutable and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "Transactions cannot be deleted directly; use the privileged delete service"
        )
