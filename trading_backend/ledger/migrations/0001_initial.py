"""
======================================================
PATH: ledger/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Account, Transaction, Cheque

- Account: one table for customer / supplier / shipper / bank / cash
- Transaction: immutable signed movements grouped by posting_ref
- Cheque: single-state lifecycle record
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # --------------------------------------------------
        # ACCOUNT
        # --------------------------------------------------
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("customer", "Customer"),
                            ("supplier", "Supplier"),
                            ("shipper", "Shipper"),
                            ("bank", "Bank"),
                            ("cash", "Cash"),
                        ],
                        max_length=10,
                    ),
                ),
                ("phone", models.CharField(blank=True, default="", max_length=40)),
                ("bank_name", models.CharField(blank=True, default="", max_length=150)),
                ("account_number", models.CharField(blank=True, default="", max_length=60)),
                (
                    "balance",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Signed balance; sign convention depends on account_type",
                        max_digits=14,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Account",
                "verbose_name_plural": "Accounts",
                "ordering": ["account_type", "name"],
                "indexes": [
                    models.Index(fields=["account_type"], name="ledger_account_type_idx"),
                    models.Index(fields=["is_active"], name="ledger_account_active_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("account_type", "cash"), ("is_active", True)),
                        fields=("account_type",),
                        name="uniq_active_cash_account",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("name", ""), _negated=True),
                        name="chk_ledger_account_name_not_blank",
                    ),
                ],
            },
        ),
        # --------------------------------------------------
        # TRANSACTION
        # --------------------------------------------------
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Positive monetary value",
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                (
                    "direction",
                    models.CharField(choices=[("credit", "Credit"), ("debit", "Debit")], max_length=6),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("cash", "Cash"),
                            ("online", "Online"),
                            ("cheque", "Cheque"),
                            ("owncheque", "Own cheque"),
                            ("credit", "Credit (ledger only)"),
                        ],
                        default="credit",
                        max_length=10,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("opening", "Opening balance"),
                            ("payment", "Payment"),
                            ("sale", "Sale"),
                            ("expense", "Expense"),
                            ("return", "Product return"),
                            ("discount", "Discount"),
                            ("transfer", "Fund transfer"),
                            ("cheque", "Cheque settlement"),
                            ("reversal", "Reversal"),
                        ],
                        default="payment",
                        max_length=10,
                    ),
                ),
                ("operation_kind", models.CharField(blank=True, default="", max_length=30)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("cheque_date", models.DateField(blank=True, null=True)),
                ("proof_image", models.CharField(blank=True, default="", max_length=500)),
                ("posting_ref", models.UUIDField(db_index=True, default=uuid.uuid4)),
                ("is_reversal", models.BooleanField(default=False)),
                ("effective_date", models.DateField(default=django.utils.timezone.localdate)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
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
                        related_name="linked_transactions",
                        to="ledger.account",
                    ),
                ),
                (
                    "reverses",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversals",
                        to="ledger.transaction",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="ledger_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Transaction",
                "verbose_name_plural": "Transactions",
                "ordering": ["effective_date", "created_at", "id"],
                "indexes": [
                    models.Index(fields=["account", "effective_date"], name="ledger_tx_account_date_idx"),
                    models.Index(fields=["source"], name="ledger_tx_source_idx"),
                    models.Index(fields=["created_at"], name="ledger_tx_created_idx"),
                ],
            },
        ),
        # --------------------------------------------------
        # CHEQUE
        # --------------------------------------------------
        migrations.CreateModel(
            name="Cheque",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "cheque_type",
                    models.CharField(
                        choices=[
                            ("customer", "Customer"),
                            ("supplier", "Supplier"),
                            ("shipper", "Shipper"),
                            ("product", "Product purchase"),
                        ],
                        max_length=10,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("cheque_date", models.DateField()),
                ("cheque_number", models.CharField(blank=True, default="", max_length=60)),
                ("cheque_image", models.CharField(blank=True, default="", max_length=500)),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("cleared", "Cleared"),
                            ("cancelled", "Cancelled"),
                            ("transferred_pending", "Transferred (pending)"),
                            ("transferred_cashed", "Transferred (cashed out)"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("is_own", models.BooleanField(default=False)),
                (
                    "party_effect",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Signed delta currently recognized on the beneficiary balance",
                        max_digits=14,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("cleared_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("transferred_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "account",
                    models.ForeignKey(
                        help_text="Party the cheque was originally recorded against",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="cheques",
                        to="ledger.account",
                    ),
                ),
                (
                    "beneficiary",
                    models.ForeignKey(
                        help_text="Party currently carrying the recognized balance effect",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="held_cheques",
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
                        related_name="bank_cheques",
                        to="ledger.account",
                    ),
                ),
                (
                    "origin_transaction",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="cheques",
                        to="ledger.transaction",
                    ),
                ),
                (
                    "cleared_to",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="cleared_cheques",
                        to="ledger.account",
                    ),
                ),
            ],
            options={
                "verbose_name": "Cheque",
                "verbose_name_plural": "Cheques",
                "ordering": ["cheque_date", "created_at", "id"],
                "indexes": [
                    models.Index(fields=["state", "cheque_date"], name="ledger_cheque_state_date_idx"),
                    models.Index(fields=["beneficiary", "state"], name="ledger_cheque_holder_idx"),
                ],
            },
        ),
    ]
