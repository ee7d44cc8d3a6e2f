# trading/services/expense_service.py

"""
======================================================
PATH: trading/services/expense_service.py
======================================================
EXPENSE POSTING SERVICE

Responsibilities:
- Validate expense payload
- Resolve the paying fund (cash account, or bank for online / own cheque)
- Debit the fund and create the Expense record (atomic)
- Reverse a posted expense (privileged: ledger.reverse)

Ledger Effect:
- post:     fund -amount   (source=expense, InsufficientFunds on overdraw)
- reverse:  fund +amount   (source=expense, is_reversal=True,
                            reverses=<original transaction>)
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from ledger.models import Transaction
from ledger.services.access import require_capability, require_capability_if_user
from ledger.services.exceptions import LedgerValidationError, NotFoundError
from ledger.services.posting import (
    get_bank,
    get_cash_account,
    lock_accounts,
    new_posting_ref,
    post_delta,
)
from permissions.roles import CAP_LEDGER_POST, CAP_LEDGER_REVERSE
from trading.models import Expense
from trading.services.common import clean_date, clean_price, clean_text

logger = logging.getLogger("trading")

EXPENSE_METHODS = tuple(code for code, _label in Expense.PAYMENT_METHODS)
OP_EXPENSE = "expense"
OP_EXPENSE_REVERSAL = "expense_reversal"


def _created_by(user):
    return user if getattr(user, "is_authenticated", False) else None


def record_expense(
    *,
    category: str,
    amount,
    payment_method: str | None = None,
    bank_id=None,
    expense_date=None,
    description: str = "",
    user=None,
) -> Expense:
    require_capability_if_user(user, CAP_LEDGER_POST, action="post expenses")

    errors: dict[str, str] = {}
    category = clean_text(category, field="category", errors=errors, max_length=100)
    amt = clean_price(amount, field="amount", errors=errors)
    day = clean_date(expense_date, field="expense_date", errors=errors) or timezone.localdate()
    description = clean_text(description, field="description", errors=errors, required=False)

    method = (payment_method or Transaction.METHOD_CASH).strip().lower()
    if method not in EXPENSE_METHODS:
        errors["payment_method"] = f"Must be one of: {', '.join(EXPENSE_METHODS)}."
    elif method != Transaction.METHOD_CASH and bank_id in (None, ""):
        errors["bank_id"] = f"A bank account is required for '{method}' payments."

    if errors:
        raise LedgerValidationError(fields=errors)

    with transaction.atomic():
        bank = None
        if method == Transaction.METHOD_CASH:
            fund = get_cash_account()
        else:
            bank = get_bank(bank_id)
            fund = bank

        fund = lock_accounts([fund.pk])[fund.pk]

        tx = post_delta(
            account=fund,
            delta=-amt,
            posting_ref=new_posting_ref(),
            source=Transaction.SOURCE_EXPENSE,
            payment_method=method,
            operation_kind=OP_EXPENSE,
            description=description or category,
            bank=bank,
            user=user,
            effective_date=day,
        )

        expense = Expense.objects.create(
            category=category,
            amount=amt,
            payment_method=method,
            bank=bank,
            expense_date=day,
            description=description,
            transaction=tx,
            created_by=_created_by(user),
        )

    logger.info(
        "Expense posted",
        extra={
            "expense_id": expense.pk,
            "fund_account_id": fund.pk,
            "amount": str(amt),
            "payment_method": method,
        },
    )
    return expense


def reverse_expense(*, expense_id, user, description: str = "") -> Expense:
    """
    Undo a posted expense by writing a reversal-marked Expense and a credit
    transaction on the same fund. The original row is never modified.
    """
    require_capability(user, CAP_LEDGER_REVERSE, action="reverse expenses")

    with transaction.atomic():
        original = (
            Expense.objects.select_for_update()
            .select_related("transaction")
            .filter(pk=expense_id)
            .first()
        )
        if original is None:
            raise NotFoundError(f"Expense {expense_id} not found")

        if original.is_reversal:
            raise LedgerValidationError(fields={"expense_id": "A reversal cannot be reversed."})

        if Expense.objects.filter(reverses=original).exists():
            raise LedgerValidationError(
                fields={"expense_id": "This expense has already been reversed."},
                code="ALREADY_REVERSED",
            )

        if original.transaction is None:
            raise LedgerValidationError(fields={"expense_id": "Expense has no ledger posting to reverse."})

        fund_id = original.transaction.account_id
        fund = lock_accounts([fund_id])[fund_id]
        today = timezone.localdate()
        text = (description or "").strip() or f"Reversal of expense #{original.pk}: {original.category}"

        tx = post_delta(
            account=fund,
            delta=original.amount,
            posting_ref=new_posting_ref(),
            source=Transaction.SOURCE_EXPENSE,
            payment_method=original.payment_method,
            operation_kind=OP_EXPENSE_REVERSAL,
            description=text,
            bank=original.bank,
            user=user,
            effective_date=today,
            is_reversal=True,
            reverses=original.transaction,
        )

        reversal = Expense.objects.create(
            category=original.category,
            amount=original.amount,
            payment_method=original.payment_method,
            bank=original.bank,
            expense_date=today,
            description=text[:255],
            is_reversal=True,
            reverses=original,
            transaction=tx,
            created_by=_created_by(user),
        )

    logger.info(
        "Expense reversed",
        extra={
            "expense_id": original.pk,
            "reversal_id": reversal.pk,
            "fund_account_id": fund_id,
            "amount": str(original.amount),
        },
    )
    return reversal
