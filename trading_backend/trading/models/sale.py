# trading/models/sale.py

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from ledger.models import Account, Transaction


class Sale(models.Model):
    """
    A sale of goods to a customer on account.

    GUARANTEES:
    - total_amount = quantity * unit_price
    - cogs_amount  = quantity * unit_cost
    - recording a sale recognizes the receivable on the customer
      (ledger-only add_balance, source=sale); `transaction` points at it
    - deleting that ledger row (privileged hard delete) removes the sale
    """

    customer = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="sales",
        limit_choices_to={"account_type": Account.CUSTOMER},
    )

    product_name = models.CharField(max_length=150)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    unit_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    unit_cost = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    total_amount = models.DecimalField(max_digits=14, decimal_places=2)
    cogs_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Cost of goods sold (quantity x unit_cost)",
    )

    sale_date = models.DateField(default=timezone.localdate)
    description = models.CharField(max_length=255, blank=True, default="")

    payment_method = models.CharField(
        max_length=10,
        choices=Transaction.PAYMENT_METHODS,
        default=Transaction.METHOD_CREDIT,
        help_text="How the customer settled at the time of sale (credit = on account)",
    )

    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="sales",
    )
    payment_transaction = models.ForeignKey(
        Transaction,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sale_payments",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="trading_sales",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-sale_date", "-created_at"]
        verbose_name = "Sale"
        verbose_name_plural = "Sales"
        indexes = [
            models.Index(fields=["sale_date"], name="trading_sale_date_idx"),
            models.Index(fields=["customer", "sale_date"], name="trading_sale_customer_idx"),
        ]

    def __str__(self):
        return f"Sale #{self.pk} {self.quantity} x {self.product_name} ({self.total_amount})"

    @property
    def gross_profit(self) -> Decimal:
        return (self.total_amount or Decimal("0.00")) - (self.cogs_amount or Decimal("0.00"))
