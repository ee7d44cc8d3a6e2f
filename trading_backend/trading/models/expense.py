# trading/models/expense.py

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from ledger.models import Account, Transaction


class Expense(models.Model):
    """
    Business expense paid from the cash account or a bank.

    Rules:
    - Posting debits the paying fund (InsufficientFunds if it would go negative)
    - Expenses are never edited; a mistake is undone by a reversal
    - A reversal is its own Expense row (is_reversal=True, reverses=original)
      backed by a credit transaction on the same fund
    - Reversal rows AND reversed originals are excluded from report totals
    """

    PAYMENT_METHODS = [
        (Transaction.METHOD_CASH, "Cash"),
        (Transaction.METHOD_ONLINE, "Online"),
        (Transaction.METHOD_OWN_CHEQUE, "Own cheque"),
    ]

    category = models.CharField(max_length=100)

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )

    payment_method = models.CharField(
        max_length=10,
        choices=PAYMENT_METHODS,
        default=Transaction.METHOD_CASH,
    )

    bank = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="bank_expenses",
        limit_choices_to={"account_type": Account.BANK},
    )

    expense_date = models.DateField(default=timezone.localdate)
    description = models.CharField(max_length=255, blank=True, default="")

    is_reversal = models.BooleanField(default=False)
    reverses = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversed_by",
    )

    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="expenses",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="trading_expenses",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-expense_date", "-created_at"]
        verbose_name = "Expense"
        verbose_name_plural = "Expenses"
        indexes = [
            models.Index(fields=["expense_date"], name="trading_expense_date_idx"),
            models.Index(fields=["is_reversal"], name="trading_expense_rev_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(is_reversal=False, reverses__isnull=True)
                | Q(is_reversal=True, reverses__isnull=False),
                name="chk_trading_expense_reversal_link",
            )
        ]

    def __str__(self):
        prefix = "Reversal of " if self.is_reversal else ""
        return f"{prefix}Expense #{self.pk} {self.category} ({self.amount})"

    @property
    def is_reversed(self) -> bool:
        return Expense.objects.filter(reverses_id=self.pk).exists()

    def clean(self):
        if self.payment_method != Transaction.METHOD_CASH and self.bank_id is None:
            raise ValidationError({"bank": "A bank is required for online and own cheque payments."})

    def save(self, *args, **kwargs):
        if self.pk and type(self).objects.filter(pk=self.pk).exists():
            raise ValidationError("Expense records are immutable once posted")
        self.full_clean()
        return super().save(*args, **kwargs)
