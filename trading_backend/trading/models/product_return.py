# trading/models/product_return.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from ledger.models import Account, Transaction


class ProductReturn(models.Model):
    """
    Goods returned by a customer or returned to a supplier.

    Posted through process_return_refund:
    - credit          the refund stays owing on the party
    - cash / online   the refund is settled at once from / into the fund
    """

    REFUND_METHODS = [
        (Transaction.METHOD_CASH, "Cash"),
        (Transaction.METHOD_ONLINE, "Online"),
        (Transaction.METHOD_CREDIT, "Credit (on account)"),
    ]

    party = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="product_returns",
        limit_choices_to={"account_type__in": (Account.CUSTOMER, Account.SUPPLIER)},
    )

    product_name = models.CharField(max_length=150)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    amount = models.DecimalField(max_digits=14, decimal_places=2)

    refund_method = models.CharField(
        max_length=10,
        choices=REFUND_METHODS,
        default=Transaction.METHOD_CREDIT,
    )
    bank = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="bank_returns",
        limit_choices_to={"account_type": Account.BANK},
    )

    reason = models.CharField(max_length=100, blank=True, default="")
    description = models.CharField(max_length=255, blank=True, default="")
    return_date = models.DateField(default=timezone.localdate)

    posting_ref = models.UUIDField(default=uuid.uuid4, db_index=True)
    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="product_returns",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="trading_returns",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-return_date", "-created_at"]
        verbose_name = "Product return"
        verbose_name_plural = "Product returns"
        indexes = [
            models.Index(fields=["return_date"], name="trading_return_date_idx"),
        ]

    def __str__(self):
        return f"Return #{self.pk} {self.quantity} x {self.product_name} ({self.amount})"
