# ledger/services/ledger_service.py

"""
LEDGER READ SERVICE

list_ledger() locks one account row and reads its transactions while the
lock is held, so the stored balance and the rows come from the same
committed state even under READ COMMITTED. It then runs the
running-balance calculator and checks the result against the stored balance.

A mismatch is never hidden:
- the statement is returned with is_reconciled=False and the discrepancy
- an error is logged on "ledger.reconciliation"
- strict=True raises ReconciliationError instead
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Case, DecimalField, F, Sum, Value, When
from django.db.models.functions import Coalesce

from ledger.models import Account, Transaction
from ledger.services.exceptions import ReconciliationError
from ledger.services.ledger_entries import (
    ZERO,
    LedgerRecord,
    LedgerStatement,
    build_running_ledger,
)
from ledger.services.posting import get_account, lock_accounts

logger = logging.getLogger("ledger.reconciliation")


def list_ledger(*, account_type: str, account_id, strict: bool = False) -> LedgerStatement:
    account_type = (account_type or "").strip().lower()

    with transaction.atomic():
        account = get_account(account_id=account_id, account_type=account_type)
        # Row lock: postings on this account wait until the rows below are read.
        account = lock_accounts([account.pk])[account.pk]
        txs = list(
            Transaction.objects.select_related("account")
            .filter(account=account)
            .order_by("effective_date", "created_at", "id")
        )

    records = [LedgerRecord.from_transaction(tx) for tx in txs]
    entries = build_running_ledger(records, account.account_type)

    statement = LedgerStatement(
        account_id=account.pk,
        account_type=account.account_type,
        account_name=account.name,
        entries=entries,
        closing_balance=entries[-1].running_balance if entries else ZERO,
        stored_balance=Decimal(account.balance),
        total_debit=sum((e.debit for e in entries), ZERO),
        total_credit=sum((e.credit for e in entries), ZERO),
    )

    if not statement.is_reconciled:
        logger.error(
            "Ledger running balance does not match stored balance: "
            "account_id=%s type=%s stored=%s ledger=%s discrepancy=%s",
            account.pk,
            account.account_type,
            statement.stored_balance,
            statement.closing_balance,
            statement.discrepancy,
            extra={
                "account_id": account.pk,
                "account_type": account.account_type,
                "stored_balance": str(statement.stored_balance),
                "ledger_balance": str(statement.closing_balance),
                "discrepancy": str(statement.discrepancy),
            },
        )
        if strict:
            raise ReconciliationError(
                f"{account.name}: stored balance {statement.stored_balance} "
                f"!= ledger balance {statement.closing_balance}"
            )

    return statement


def find_balance_mismatches(*, account_type: str | None = None) -> list[dict]:
    """
    Every account whose stored balance differs from SUM(credit) - SUM(debit).
    """
    signed = Case(
        When(transactions__direction=Transaction.CREDIT, then=F("transactions__amount")),
        When(transactions__direction=Transaction.DEBIT, then=-F("transactions__amount")),
        default=Value(ZERO),
        output_field=DecimalField(max_digits=16, decimal_places=2),
    )

    qs = Account.objects.all()
    if account_type:
        qs = qs.filter(account_type=account_type)

    qs = qs.annotate(
        ledger_balance=Coalesce(
            Sum(signed),
            Value(ZERO),
            output_field=DecimalField(max_digits=16, decimal_places=2),
        )
    ).order_by("account_type", "id")

    mismatches = []
    for acc in qs:
        ledger_balance = Decimal(acc.ledger_balance).quantize(Decimal("0.01"))
        stored = Decimal(acc.balance).quantize(Decimal("0.01"))
        if ledger_balance != stored:
            mismatches.append(
                {
                    "account_id": acc.pk,
                    "account_type": acc.account_type,
                    "name": acc.name,
                    "stored_balance": stored,
                    "ledger_balance": ledger_balance,
                    "discrepancy": stored - ledger_balance,
                }
            )
    return mismatches
