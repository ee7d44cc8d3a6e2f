# ledger/models/cheque.py

"""
======================================================
PATH: ledger/models/cheque.py
======================================================
CHEQUE MODEL

A cheque given or received against a party account.

States (single column, mutually exclusive):
- pending              : recognized on the party, funds not moved yet
- cleared              : cashed out into (or paid from) a bank/cash account
- cancelled            : party recognition reversed
- transferred_pending  : handed over to another party, not settled yet
- transferred_cashed   : settled by the new holder (no fund effect here)

The boolean flags used by older clients (status / cancelled / transferred /
transferred_cashed_out) are derived from `state`.

Transitions are owned by ledger.services.cheque_lifecycle and
ledger.services.cheque_service. Never set `state` directly elsewhere.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from ledger.models.account import Account


class Cheque(models.Model):
    STATE_PENDING = "pending"
    STATE_CLEARED = "cleared"
    STATE_CANCELLED = "cancelled"
    STATE_TRANSFERRED_PENDING = "transferred_pending"
    STATE_TRANSFERRED_CASHED = "transferred_cashed"

    STATES = [
        (STATE_PENDING, "Pending"),
        (STATE_CLEARED, "Cleared"),
        (STATE_CANCELLED, "Cancelled"),
        (STATE_TRANSFERRED_PENDING, "Transferred (pending)"),
        (STATE_TRANSFERRED_CASHED, "Transferred (cashed out)"),
    ]

    TYPE_CUSTOMER = "customer"
    TYPE_SUPPLIER = "supplier"
    TYPE_SHIPPER = "shipper"
    TYPE_PRODUCT = "product"

    CHEQUE_TYPES = [
        (TYPE_CUSTOMER, "Customer"),
        (TYPE_SUPPLIER, "Supplier"),
        (TYPE_SHIPPER, "Shipper"),
        (TYPE_PRODUCT, "Product purchase"),
    ]

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="cheques",
        help_text="Party the cheque was originally recorded against",
    )

    beneficiary = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="held_cheques",
        help_text="Party currently carrying the recognized balance effect",
    )

    cheque_type = models.CharField(max_length=10, choices=CHEQUE_TYPES)

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )

    bank = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="bank_cheques",
        limit_choices_to={"account_type": Account.BANK},
    )

    cheque_date = models.DateField()
    cheque_number = models.CharField(max_length=60, blank=True, default="")
    cheque_image = models.CharField(max_length=500, blank=True, default="")

    state = models.CharField(
        max_length=20,
        choices=STATES,
        default=STATE_PENDING,
        db_index=True,
    )

    is_own = models.BooleanField(default=False)

    party_effect = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Signed delta currently recognized on the beneficiary balance",
    )

    origin_transaction = models.ForeignKey(
        "ledger.Transaction",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cheques",
    )

    cleared_to = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cleared_cheques",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    cleared_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    transferred_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["cheque_date", "created_at", "id"]
        verbose_name = "Cheque"
        verbose_name_plural = "Cheques"
        indexes = [
            models.Index(fields=["state", "cheque_date"], name="ledger_cheque_state_date_idx"),
            models.Index(fields=["beneficiary", "state"], name="ledger_cheque_holder_idx"),
        ]

    def __str__(self):
        return f"Cheque {self.cheque_number or self.pk} {self.amount} [{self.state}]"

    # --------------------------------------------------
    # Boolean view
    # --------------------------------------------------
    @property
    def status(self) -> bool:
        return self.state == self.STATE_CLEARED

    @property
    def cancelled(self) -> bool:
        return self.state == self.STATE_CANCELLED

    @property
    def transferred(self) -> bool:
        return self.state in (self.STATE_TRANSFERRED_PENDING, self.STATE_TRANSFERRED_CASHED)

    @property
    def transferred_cashed_out(self) -> bool:
        return self.state == self.STATE_TRANSFERRED_CASHED

    @property
    def is_pending(self) -> bool:
        return self.state == self.STATE_PENDING

    def clean(self):
        if self.amount is None or self.amount <= 0:
            raise ValidationError("Cheque amount must be > 0")

        if self.state not in dict(self.STATES):
            raise ValidationError("Invalid cheque state")

        if self.cheque_type not in dict(self.CHEQUE_TYPES):
            raise ValidationError("Invalid cheque_type")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
