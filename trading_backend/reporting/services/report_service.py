# reporting/services/report_service.py

"""
======================================================
PATH: reporting/services/report_service.py
======================================================
FINANCIAL REPORT SERVICE

Read-only projection over accounts, transactions, cheques and trading
records. No mutations, no postings.

Position totals (current, not period-bound):
- cash_balance / bank_balance / banks
- pending_cheques {count, amount}
- customers  {receivable, receivable_count, advance, advance_count}
- suppliers / shippers {payable, payable_count, prepaid, prepaid_count}

Period totals (calendar boundaries, never a rolling window):
- revenue, sales_returns, net_revenue, cogs, gross_profit
- expenses (reversal rows and reversed originals excluded)
- discounts_given (customers), discounts_received (suppliers / shippers)
- damage_loss
- net_profit = gross_profit - expenses - discounts_given
               + discounts_received - damage_loss
- cash_in / cash_out (cash account movements, reversals and opening rows excluded)

All reads run inside report_snapshot(). On PostgreSQL the outermost block
runs at REPEATABLE READ, so every query sees the same committed state.
SQLite transactions are serializable already. When the report is nested in
an outer transaction, the outer transaction decides the isolation level.
"""

from __future__ import annotations

import calendar
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Count, Q, Sum

from ledger.models import Account, Cheque, Transaction
from ledger.services.exceptions import LedgerValidationError
from trading.models import DamageWriteOff, Expense, ProductReturn, Sale

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

PERIOD_DAILY = "daily"
PERIOD_MONTHLY = "monthly"
PERIOD_YEARLY = "yearly"
PERIODS = (PERIOD_DAILY, PERIOD_MONTHLY, PERIOD_YEARLY)


def _q2(amount) -> Decimal:
    return (amount or ZERO).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@contextmanager
def report_snapshot():
    connection = transaction.get_connection()
    outermost = not connection.in_atomic_block

    with transaction.atomic():
        if outermost and connection.vendor == "postgresql":
            with connection.cursor() as cursor:
                cursor.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ READ ONLY")
        yield


@dataclass(frozen=True)
class ReportPeriod:
    period: str
    start: date
    end: date

    def as_dict(self) -> dict:
        return {
            "period": self.period,
            "start_date": self.start.isoformat(),
            "end_date": self.end.isoformat(),
        }


def _as_int(value, *, field: str, errors: dict) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        errors[field] = "Must be a whole number."
        return None


def resolve_period(*, period, year, month=None, day=None) -> ReportPeriod:
    """
    Calendar boundaries for the requested period.

    - yearly:  1 Jan .. 31 Dec of `year`
    - monthly: the calendar month (month required)
    - daily:   one date when `day` is given, otherwise the calendar month
    """
    errors: dict[str, str] = {}

    period = (period or "").strip().lower()
    if period not in PERIODS:
        errors["period"] = f"Must be one of: {', '.join(PERIODS)}."

    y = _as_int(year, field="year", errors=errors)
    m = _as_int(month, field="month", errors=errors)
    d = _as_int(day, field="day", errors=errors)

    if y is None and "year" not in errors:
        errors["year"] = "This field is required."
    elif y is not None and not 1900 <= y <= 9999:
        errors["year"] = "Must be between 1900 and 9999."

    if period in (PERIOD_DAILY, PERIOD_MONTHLY):
        if m is None and "month" not in errors:
            errors["month"] = "This field is required for daily and monthly reports."
        elif m is not None and not 1 <= m <= 12:
            errors["month"] = "Must be between 1 and 12."

    if errors:
        raise LedgerValidationError(fields=errors)

    if period == PERIOD_YEARLY:
        return ReportPeriod(period, date(y, 1, 1), date(y, 12, 31))

    last_day = calendar.monthrange(y, m)[1]
    if period == PERIOD_DAILY and d is not None:
        if not 1 <= d <= last_day:
            raise LedgerValidationError(fields={"day": f"Must be between 1 and {last_day}."})
        one = date(y, m, d)
        return ReportPeriod(period, one, one)

    return ReportPeriod(period, date(y, m, 1), date(y, m, last_day))


# ======================================================
# POSITION TOTALS
# ======================================================

def _fund_totals() -> dict:
    funds = Account.objects.filter(is_active=True, account_type__in=Account.FUND_TYPES)

    cash = ZERO
    bank = ZERO
    banks = []
    for acc in funds.order_by("account_type", "name", "pk"):
        if acc.account_type == Account.CASH:
            cash += acc.balance
        else:
            bank += acc.balance
            banks.append({"id": acc.pk, "name": acc.name, "balance": _q2(acc.balance)})

    return {"cash_balance": _q2(cash), "bank_balance": _q2(bank), "banks": banks}


def _party_totals(account_type: str, *, positive: str, negative: str) -> dict:
    """
    Split a party type into the sum of positive balances and the
    (unsigned) sum of negative balances, with counts.
    """
    row = Account.objects.filter(is_active=True, account_type=account_type).aggregate(
        pos_total=Sum("balance", filter=Q(balance__gt=0)),
        pos_count=Count("id", filter=Q(balance__gt=0)),
        neg_total=Sum("balance", filter=Q(balance__lt=0)),
        neg_count=Count("id", filter=Q(balance__lt=0)),
    )
    return {
        positive: _q2(row["pos_total"]),
        f"{positive}_count": row["pos_count"] or 0,
        negative: _q2(-(row["neg_total"] or ZERO)),
        f"{negative}_count": row["neg_count"] or 0,
    }


def _pending_cheques() -> dict:
    row = Cheque.objects.filter(state=Cheque.STATE_PENDING).aggregate(
        count=Count("id"),
        amount=Sum("amount"),
    )
    return {"count": row["count"] or 0, "amount": _q2(row["amount"])}


# ======================================================
# PERIOD TOTALS
# ======================================================

def _sum(qs, field: str) -> Decimal:
    return _q2(qs.aggregate(total=Sum(field))["total"])


def _discount_total(window: ReportPeriod, account_types) -> Decimal:
    qs = Transaction.objects.filter(
        source=Transaction.SOURCE_DISCOUNT,
        is_reversal=False,
        account__account_type__in=account_types,
        effective_date__range=(window.start, window.end),
    )
    return _sum(qs, "amount")


def _cash_flows(window: ReportPeriod) -> tuple[Decimal, Decimal]:
    row = (
        Transaction.objects.filter(
            account__account_type=Account.CASH,
            is_reversal=False,
            effective_date__range=(window.start, window.end),
        )
        .exclude(source=Transaction.SOURCE_OPENING)
        .aggregate(
            cash_in=Sum("amount", filter=Q(direction=Transaction.CREDIT)),
            cash_out=Sum("amount", filter=Q(direction=Transaction.DEBIT)),
        )
    )
    return _q2(row["cash_in"]), _q2(row["cash_out"])


def get_report(*, period, year, month=None, day=None) -> dict:
    window = resolve_period(period=period, year=year, month=month, day=day)
    span = (window.start, window.end)

    with report_snapshot():
        funds = _fund_totals()
        pending = _pending_cheques()
        customers = _party_totals(Account.CUSTOMER, positive="receivable", negative="advance")
        suppliers = _party_totals(Account.SUPPLIER, positive="payable", negative="prepaid")
        shippers = _party_totals(Account.SHIPPER, positive="payable", negative="prepaid")

        sales = Sale.objects.filter(sale_date__range=span)
        revenue = _sum(sales, "total_amount")
        cogs = _sum(sales, "cogs_amount")

        sales_returns = _sum(
            ProductReturn.objects.filter(
                return_date__range=span,
                party__account_type=Account.CUSTOMER,
            ),
            "amount",
        )

        expenses = _sum(
            Expense.objects.filter(
                expense_date__range=span,
                is_reversal=False,
                reversed_by__isnull=True,
            ),
            "amount",
        )

        discounts_given = _discount_total(window, (Account.CUSTOMER,))
        discounts_received = _discount_total(window, Account.PAYABLE_TYPES)
        damage_loss = _sum(DamageWriteOff.objects.filter(damage_date__range=span), "loss_amount")
        cash_in, cash_out = _cash_flows(window)

    net_revenue = _q2(revenue - sales_returns)
    gross_profit = _q2(net_revenue - cogs)
    net_profit = _q2(gross_profit - expenses - discounts_given + discounts_received - damage_loss)

    return {
        **window.as_dict(),
        **funds,
        "pending_cheques": pending,
        "customers": customers,
        "suppliers": suppliers,
        "shippers": shippers,
        "revenue": revenue,
        "sales_returns": sales_returns,
        "net_revenue": net_revenue,
        "cogs": cogs,
        "gross_profit": gross_profit,
        "expenses": expenses,
        "discounts_given": discounts_given,
        "discounts_received": discounts_received,
        "damage_loss": damage_loss,
        "net_profit": net_profit,
        "cash_in": cash_in,
        "cash_out": cash_out,
    }
