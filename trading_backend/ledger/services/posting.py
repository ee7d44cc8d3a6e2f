# ledger/services/posting.py

"""
======================================================
PATH: ledger/services/posting.py
======================================================
POSTING ENGINE

The only place that changes Account.balance.

Every balance change goes through post_delta(), which:
- writes exactly one immutable Transaction for the change
- updates the stored balance by the same signed amount
- refuses to drive a bank/cash account negative (InsufficientFundsError)

Callers MUST:
- run inside transaction.atomic()
- lock the accounts they touch with lock_accounts() first
- validate everything before the first post_delta() call

This keeps the invariant:
    Account.balance == SUM(credit) - SUM(debit) over its transactions
"""

from __future__ import annotations

import uuid
from datetime import date as date_type, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from ledger.models import Account, Transaction
from ledger.services.exceptions import (
    InsufficientFundsError,
    LedgerValidationError,
    NotFoundError,
)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


# ======================================================
# VALUE HELPERS
# ======================================================

def _money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def parse_amount(value, *, field: str = "amount") -> Decimal:
    """
    Positive, finite, 2dp amount or LedgerValidationError.
    """
    if value is None or value == "":
        raise LedgerValidationError(fields={field: "This field is required."})

    if isinstance(value, bool):
        raise LedgerValidationError(fields={field: "Must be a number."})

    try:
        raw = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise LedgerValidationError(fields={field: "Must be a number."}) from exc

    if not raw.is_finite():
        raise LedgerValidationError(fields={field: "Must be a finite number."})

    amt = raw.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    if amt <= ZERO:
        raise LedgerValidationError(fields={field: "Must be greater than zero."})

    return amt


def parse_date(value, *, field: str) -> date_type | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    try:
        return date_type.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise LedgerValidationError(fields={field: "Use YYYY-MM-DD."}) from exc


def new_posting_ref() -> uuid.UUID:
    return uuid.uuid4()


# ======================================================
# ACCOUNT RESOLUTION + LOCKING
# ======================================================

def get_account(*, account_id, account_type: str | None = None) -> Account:
    qs = Account.objects.filter(pk=account_id, is_active=True)
    if account_type:
        qs = qs.filter(account_type=account_type)

    account = qs.first()
    if account is None:
        label = account_type or "account"
        raise NotFoundError(f"{label.capitalize()} {account_id} not found")
    return account


def get_bank(bank_id, *, field: str = "bank_id") -> Account:
    if bank_id in (None, ""):
        raise LedgerValidationError(fields={field: "A bank account is required."})

    bank = Account.objects.filter(
        pk=bank_id,
        account_type=Account.BANK,
        is_active=True,
    ).first()
    if bank is None:
        raise LedgerValidationError(fields={field: f"Bank account {bank_id} not found."})
    return bank


def _active_cash_account() -> Account | None:
    return Account.objects.filter(account_type=Account.CASH, is_active=True).first()


def get_cash_account() -> Account:
    """
    The single active cash account, created empty on first use.

    Two first postings may race to create it; uniq_active_cash_account lets
    only one insert win and the loser reads the winner's row.
    """
    cash = _active_cash_account()
    if cash is not None:
        return cash

    try:
        with transaction.atomic():
            cash = Account(name="Cash", account_type=Account.CASH, balance=ZERO)
            cash.save()
    except (IntegrityError, DjangoValidationError):
        cash = _active_cash_account()
        if cash is None:
            raise
    return cash


def lock_accounts(account_ids: Iterable) -> dict:
    """
    SELECT ... FOR UPDATE on every id, always in primary-key order so that
    two concurrent postings over the same accounts cannot deadlock.

    Returns {pk: Account} with fresh balances.
    """
    ids = sorted({int(i) for i in account_ids if i is not None})
    if not ids:
        return {}

    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("lock_accounts() must be called inside transaction.atomic()")

    locked = {
        acc.pk: acc
        for acc in Account.objects.select_for_update().filter(pk__in=ids).order_by("pk")
    }

    missing = [i for i in ids if i not in locked]
    if missing:
        raise NotFoundError(f"Account {missing[0]} not found")

    return locked


# ======================================================
# CORE: one signed balance change
# ======================================================

def ensure_funds(*, account: Account, delta: Decimal) -> None:
    if not account.is_fund or delta >= ZERO:
        return

    if _money(account.balance) + delta < ZERO:
        raise InsufficientFundsError(
            f"Insufficient funds in {account.name}: balance {_money(account.balance)}, "
            f"required {-delta}"
        )


def post_delta(
    *,
    account: Account,
    delta,
    posting_ref,
    source: str,
    payment_method: str = Transaction.METHOD_CREDIT,
    operation_kind: str = "",
    description: str = "",
    bank: Account | None = None,
    cheque_date=None,
    proof_image: str = "",
    user=None,
    effective_date=None,
    is_reversal: bool = False,
    reverses: Transaction | None = None,
) -> Transaction:
    """
    Apply one signed delta to a locked account and record it.
    """
    delta = _money(delta)
    if delta == ZERO:
        raise LedgerValidationError(fields={"amount": "Must be greater than zero."})

    ensure_funds(account=account, delta=delta)

    tx = Transaction(
        account=account,
        amount=abs(delta),
        direction=Transaction.CREDIT if delta > ZERO else Transaction.DEBIT,
        payment_method=payment_method or Transaction.METHOD_CREDIT,
        source=source,
        operation_kind=operation_kind or "",
        description=(description or "")[:255],
        bank=bank,
        cheque_date=cheque_date,
        proof_image=proof_image or "",
        posting_ref=posting_ref,
        is_reversal=is_reversal,
        reverses=reverses,
        created_by=user if getattr(user, "is_authenticated", False) else None,
        effective_date=effective_date or timezone.localdate(),
    )
    tx.save()

    account.balance = _money(account.balance) + delta
    account.save(update_fields=["balance", "updated_at"])

    return tx
