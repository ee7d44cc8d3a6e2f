"""
======================================================
PATH: trading/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Sale, Expense, ProductReturn, DamageWriteOff
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


PAYMENT_METHOD_CHOICES = [
    ("cash", "Cash"),
    ("online", "Online"),
    ("cheque", "Cheque"),
    ("owncheque", "Own cheque"),
    ("credit", "Credit (ledger only)"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("ledger", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # --------------------------------------------------
        # SALE
        # --------------------------------------------------
        migrations.CreateModel(
            name="Sale",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_name", models.CharField(max_length=150)),
                (
                    "quantity",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                (
                    "unit_price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                (
                    "unit_cost",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "cogs_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Cost of goods sold (quantity x unit_cost)",
                        max_digits=14,
                    ),
                ),
                ("sale_date", models.DateField(default=django.utils.timezone.localdate)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "payment_method",
                    models.CharField(
                        choices=PAYMENT_METHOD_CHOICES,
                        default="credit",
                        help_text="How the customer settled at the time of sale (credit = on account)",
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "customer",
                    models.ForeignKey(
                        limit_choices_to={"account_type": "customer"},
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales",
                        to="ledger.account",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sales",
                        to="ledger.transaction",
                    ),
                ),
                (
                    "payment_transaction",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sale_payments",
                        to="ledger.transaction",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="trading_sales",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Sale",
                "verbose_name_plural": "Sales",
                "ordering": ["-sale_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["sale_date"], name="trading_sale_date_idx"),
                    models.Index(fields=["customer", "sale_date"], name="trading_sale_customer_idx"),
                ],
            },
        ),
        # --------------------------------------------------
        # EXPENSE
        # --------------------------------------------------
        migrations.CreateModel(
            name="Expense",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("category", models.CharField(max_length=100)),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("cash", "Cash"), ("online", "Online"), ("owncheque", "Own cheque")],
                        default="cash",
                        max_length=10,
                    ),
                ),
                ("expense_date", models.DateField(default=django.utils.timezone.localdate)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("is_reversal", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "bank",
                    models.ForeignKey(
                        blank=True,
                        limit_choices_to={"account_type": "bank"},
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bank_expenses",
                        to="ledger.account",
                    ),
                ),
                (
                    "reverses",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversed_by",
                        to="trading.expense",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="expenses",
                        to="ledger.transaction",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="trading_expenses",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Expense",
                "verbose_name_plural": "Expenses",
                "ordering": ["-expense_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["expense_date"], name="trading_expense_date_idx"),
                    models.Index(fields=["is_reversal"], name="trading_expense_rev_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("is_reversal", False), ("reverses__isnull", True)),
                            models.Q(("is_reversal", True), ("reverses__isnull", False)),
                            _connector="OR",
                        ),
                        name="chk_trading_expense_reversal_link",
                    ),
                ],
            },
        ),
        # --------------------------------------------------
        # PRODUCT RETURN
        # --------------------------------------------------
        migrations.CreateModel(
            name="ProductReturn",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_name", models.CharField(max_length=150)),
                (
                    "quantity",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                (
                    "unit_price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "refund_method",
                    models.CharField(
                        choices=[("cash", "Cash"), ("online", "Online"), ("credit", "Credit (on account)")],
                        default="credit",
                        max_length=10,
                    ),
                ),
                ("reason", models.CharField(blank=True, default="", max_length=100)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("return_date", models.DateField(default=django.utils.timezone.localdate)),
                ("posting_ref", models.UUIDField(db_index=True, default=uuid.uuid4)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "party",
                    models.ForeignKey(
                        limit_choices_to={"account_type__in": ("customer", "supplier")},
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="product_returns",
                        to="ledger.account",
                    ),
                ),
                (
                    "bank",
                    models.ForeignKey(
                        blank=True,
                        limit_choices_to={"account_type": "bank"},
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bank_returns",
                        to="ledger.account",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="product_returns",
                        to="ledger.transaction",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="trading_returns",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Product return",
                "verbose_name_plural": "Product returns",
                "ordering": ["-return_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["return_date"], name="trading_return_date_idx"),
                ],
            },
        ),
        # --------------------------------------------------
        # DAMAGE WRITE-OFF
        # --------------------------------------------------
        migrations.CreateModel(
            name="DamageWriteOff",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("product_name", models.CharField(max_length=150)),
                (
                    "quantity",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                (
                    "unit_cost",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("loss_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("damage_date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("physical_damage", "Physical damage"),
                            ("expired", "Expired"),
                            ("manufacturing_defect", "Manufacturing defect"),
                            ("water_damage", "Water damage"),
                            ("fire_damage", "Fire damage"),
                            ("theft_loss", "Theft / loss"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=30,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="trading_damages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Damage write-off",
                "verbose_name_plural": "Damage write-offs",
                "ordering": ["-damage_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["damage_date"], name="trading_damage_date_idx"),
                ],
            },
        ),
    ]
