# ledger/services/ledger_entries.py

"""
======================================================
PATH: ledger/services/ledger_entries.py
======================================================
LEDGER ENTRY MODEL + RUNNING BALANCE CALCULATOR (PURE)

Turns heterogeneous records (stored transactions, legacy sale / expense /
bank / cash dicts) into one shape:

    {date, description, debit, credit, running_balance}

RULES:
- No database access, no global state
- Input order never matters; output order is
  (effective day, created_at, reference) ascending
- running_balance accumulates credit - debit
- A record with no amount falls back to "<qty> x <item> @ <price>" in its
  description; if that fails it contributes zero but is still returned

TAG → SIDE:
- sale                       credit  (debit when reversal)
- expense / return / discount debit   (credit when reversal)
- bankTx / cashTx / payment  follow the record's own direction
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date as date_type, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping

from django.utils.dateparse import parse_date as _parse_date, parse_datetime as _parse_datetime

from ledger.services.exceptions import LedgerValidationError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

CREDIT = "credit"
DEBIT = "debit"

TAG_SALE = "sale"
TAG_EXPENSE = "expense"
TAG_BANK_TX = "bankTx"
TAG_CASH_TX = "cashTx"
TAG_RETURN = "return"
TAG_DISCOUNT = "discount"
TAG_PAYMENT = "payment"

TAGS = (
    TAG_SALE,
    TAG_EXPENSE,
    TAG_BANK_TX,
    TAG_CASH_TX,
    TAG_RETURN,
    TAG_DISCOUNT,
    TAG_PAYMENT,
)

FIXED_SIDE = {
    TAG_SALE: CREDIT,
    TAG_EXPENSE: DEBIT,
    TAG_RETURN: DEBIT,
    TAG_DISCOUNT: DEBIT,
}

# Transaction.source -> tag (anything else is a payment-like movement)
SOURCE_TAGS = {
    "sale": TAG_SALE,
    "expense": TAG_EXPENSE,
    "return": TAG_RETURN,
    "discount": TAG_DISCOUNT,
}

_CREDIT_WORDS = {"credit", "deposit"}
_DEBIT_WORDS = {"debit", "deduct", "withdraw", "expense", "subtract_funds"}

# Parties where "add" lowers the stored balance.
_PAYABLE_ACCOUNT_TYPES = {"supplier", "shipper"}
_KNOWN_ACCOUNT_TYPES = {"customer", "supplier", "shipper", "bank", "cash"}

_QTY_PRICE_RE = re.compile(r"(\d+)\s*[x×]\s.*?@\s*([0-9]+(?:\.[0-9]+)?)", re.IGNORECASE)

_REVERSAL_PREFIX = "reversal of entry"


def _money(v) -> Decimal:
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ======================================================
# NORMALIZATION
# ======================================================

def normalize_direction(raw_type, account_type: str) -> str:
    """
    Closed mapping from the many legacy type words to credit/debit.

    add / subtract depend on the account: "add" raises a customer, bank or
    cash balance but lowers what we owe a supplier or shipper.
    """
    word = str(raw_type or "").strip().lower()
    acc = str(account_type or "").strip().lower()

    if word in _CREDIT_WORDS:
        return CREDIT
    if word in _DEBIT_WORDS:
        return DEBIT

    if word in ("add", "subtract"):
        if acc not in _KNOWN_ACCOUNT_TYPES:
            raise LedgerValidationError(
                fields={"account_type": f"Unknown account type '{account_type}'."}
            )
        payable = acc in _PAYABLE_ACCOUNT_TYPES
        if word == "add":
            return DEBIT if payable else CREDIT
        return CREDIT if payable else DEBIT

    raise LedgerValidationError(fields={"type": f"Unknown transaction type '{raw_type}'."})


def parse_quantity_unit_price(description) -> tuple[int, Decimal] | None:
    """
    "10 x Widget @ 200" -> (10, Decimal("200"))
    """
    if not description:
        return None
    match = _QTY_PRICE_RE.search(str(description))
    if not match:
        return None
    return int(match.group(1)), Decimal(match.group(2))


def _coerce_amount(value) -> Decimal | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def _coerce_date(value) -> date_type | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    text = str(value).strip()
    try:
        dt = _parse_datetime(text)
        if dt is not None:
            return dt.date()
        return _parse_date(text[:10])
    except ValueError:
        return None


def _coerce_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date_type):
        return datetime(value.year, value.month, value.day)
    try:
        return _parse_datetime(str(value).strip())
    except ValueError:
        return None


def _first(data: Mapping, *keys, default=None):
    for key in keys:
        if key in data and data[key] not in (None, ""):
            return data[key]
    return default


# ======================================================
# TYPES
# ======================================================

@dataclass(frozen=True)
class LedgerRecord:
    """
    One tagged input record for a single account.
    """

    tag: str
    amount: Decimal | None
    direction: str | None = None
    date: date_type | None = None
    created_at: datetime | None = None
    description: str = ""
    reference: str = ""
    is_reversal: bool = False

    def __post_init__(self):
        if self.tag not in TAGS:
            raise LedgerValidationError(fields={"tag": f"Unknown ledger tag '{self.tag}'."})
        if self.tag not in FIXED_SIDE and self.direction not in (CREDIT, DEBIT):
            raise LedgerValidationError(
                fields={"direction": f"'{self.tag}' records need a credit/debit direction."}
            )

    @property
    def effective_day(self) -> date_type:
        if self.date is not None:
            return self.date
        if self.created_at is not None:
            return self.created_at.date()
        return date_type.min

    def sort_key(self) -> tuple:
        ts = self.created_at.timestamp() if self.created_at is not None else float("-inf")
        return (self.effective_day, ts, self.reference)

    def resolved_amount(self) -> Decimal:
        if self.amount is not None:
            return _money(abs(self.amount))
        parsed = parse_quantity_unit_price(self.description)
        if parsed is None:
            return ZERO
        qty, unit_price = parsed
        return _money(qty * unit_price)

    def side(self) -> str:
        fixed = FIXED_SIDE.get(self.tag)
        if fixed is None:
            return self.direction
        if self.is_reversal:
            return DEBIT if fixed == CREDIT else CREDIT
        return fixed

    @classmethod
    def from_transaction(cls, tx) -> "LedgerRecord":
        """
        Build from a stored ledger.Transaction (duck-typed, no DB access).
        """
        account_type = getattr(getattr(tx, "account", None), "account_type", "")
        tag = SOURCE_TAGS.get(tx.source)
        if tag is None:
            tag = _movement_tag(account_type)

        return cls(
            tag=tag,
            amount=Decimal(tx.amount),
            direction=tx.direction,
            date=tx.effective_date,
            created_at=tx.created_at,
            description=tx.description or "",
            reference=f"tx-{tx.pk:012d}" if tx.pk is not None else "",
            is_reversal=bool(tx.is_reversal),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, account_type: str) -> "LedgerRecord":
        """
        Build from a legacy dict. camelCase and snake_case keys are both accepted.
        """
        tag = _first(data, "tag", "kind")
        if tag is None:
            source = str(_first(data, "source", default="")).lower()
            tag = SOURCE_TAGS.get(source) or _movement_tag(account_type)

        description = str(_first(data, "description", "desc", default=""))
        meta = data.get("meta") or {}
        is_reversal = bool(
            data.get("is_reversal")
            or data.get("isReversal")
            or (isinstance(meta, Mapping) and meta.get("kind") == "reversal")
            or description.strip().lower().startswith(_REVERSAL_PREFIX)
        )

        direction = None
        if tag not in FIXED_SIDE:
            raw = _first(data, "direction", "type")
            direction = normalize_direction(raw, account_type)

        return cls(
            tag=tag,
            amount=_coerce_amount(_first(data, "amount", "totalAmount", "total_amount")),
            direction=direction,
            date=_coerce_date(
                _first(data, "date", "effective_date", "effectiveDate", "saleDate", "sale_date")
            ),
            created_at=_coerce_datetime(_first(data, "createdAt", "created_at")),
            description=description,
            reference=str(_first(data, "reference", "id", "_id", default="")),
            is_reversal=is_reversal,
        )


@dataclass(frozen=True)
class LedgerEntry:
    record: LedgerRecord
    debit: Decimal
    credit: Decimal
    running_balance: Decimal
    amount_missing: bool = False

    @property
    def date(self) -> date_type:
        return self.record.effective_day

    def as_dict(self) -> dict:
        return {
            "date": self.record.effective_day if self.record.effective_day != date_type.min else None,
            "created_at": self.record.created_at,
            "tag": self.record.tag,
            "description": self.record.description,
            "reference": self.record.reference,
            "debit": self.debit,
            "credit": self.credit,
            "running_balance": self.running_balance,
            "is_reversal": self.record.is_reversal,
            "amount_missing": self.amount_missing,
        }


@dataclass
class LedgerStatement:
    account_id: int
    account_type: str
    account_name: str
    entries: list = field(default_factory=list)
    opening_balance: Decimal = ZERO
    closing_balance: Decimal = ZERO
    stored_balance: Decimal = ZERO
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO

    @property
    def discrepancy(self) -> Decimal:
        return _money(self.stored_balance - self.closing_balance)

    @property
    def is_reconciled(self) -> bool:
        return self.discrepancy == ZERO


def _movement_tag(account_type: str) -> str:
    acc = str(account_type or "").lower()
    if acc == "bank":
        return TAG_BANK_TX
    if acc == "cash":
        return TAG_CASH_TX
    return TAG_PAYMENT


# ======================================================
# CALCULATOR
# ======================================================

def build_running_ledger(
    records: Iterable,
    account_type: str,
    *,
    opening_balance=ZERO,
) -> list[LedgerEntry]:
    """
    Sort, classify and accumulate. Pure and idempotent.

    `records` may mix LedgerRecord instances and legacy mappings.
    """
    normalized = [
        r if isinstance(r, LedgerRecord) else LedgerRecord.from_mapping(r, account_type=account_type)
        for r in records
    ]
    normalized.sort(key=LedgerRecord.sort_key)

    balance = _money(opening_balance)
    entries: list[LedgerEntry] = []

    for record in normalized:
        amount = record.resolved_amount()
        missing = record.amount is None and amount == ZERO

        if record.side() == CREDIT:
            debit, credit = ZERO, amount
        else:
            debit, credit = amount, ZERO

        balance = _money(balance + credit - debit)
        entries.append(
            LedgerEntry(
                record=record,
                debit=debit,
                credit=credit,
                running_balance=balance,
                amount_missing=missing,
            )
        )

    return entries
