# trading/services/common.py

"""
Input helpers shared by the trading services.

Every helper records problems into an `errors` dict instead of raising,
so a service can report all field errors at once.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ledger.services.exceptions import LedgerValidationError
from ledger.services.posting import TWOPLACES, ZERO, parse_amount, parse_date


def clean_text(value, *, field: str, errors: dict, required: bool = True, max_length: int = 255) -> str:
    text = str(value or "").strip()
    if required and not text:
        errors[field] = "This field is required."
    elif len(text) > max_length:
        errors[field] = f"Ensure this field has no more than {max_length} characters."
    return text


def clean_quantity(value, *, errors: dict, field: str = "quantity") -> int:
    try:
        qty = int(str(value).strip())
    except (TypeError, ValueError):
        errors[field] = "Must be a whole number."
        return 0

    if isinstance(value, bool) or qty < 1:
        errors[field] = "Must be at least 1."
        return 0
    return qty


def clean_price(value, *, field: str, errors: dict) -> Decimal:
    try:
        return parse_amount(value, field=field)
    except LedgerValidationError as exc:
        errors.update(exc.fields)
        return ZERO


def clean_cost(value, *, field: str, errors: dict) -> Decimal:
    """
    Non-negative, 2dp. Missing means zero.
    """
    if value in (None, ""):
        return ZERO
    try:
        cost = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        errors[field] = "Must be a number."
        return ZERO

    if not cost.is_finite() or cost < ZERO:
        errors[field] = "Must be zero or more."
        return ZERO
    return cost.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def clean_date(value, *, field: str, errors: dict):
    try:
        return parse_date(value, field=field)
    except LedgerValidationError as exc:
        errors.update(exc.fields)
        return None


def line_total(quantity: int, unit_amount: Decimal) -> Decimal:
    return (Decimal(quantity) * unit_amount).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
