# ledger/services/mutation_rules.py

"""
======================================================
PATH: ledger/services/mutation_rules.py
======================================================
BALANCE MUTATION RULES

apply_account_mutation() is the single write entry point for party balances
(customer / supplier / shipper). It decides every side effect of an operation
and applies them in one database transaction.

OPERATION KINDS (party delta, fund delta):
- add_balance       customer +amt, supplier/shipper -amt ; funds OUT (-amt)
- subtract_balance  customer -amt, supplier/shipper +amt ; funds IN  (+amt)
- apply_discount    party -amt (bounded by outstanding)   ; no funds
- process_return_refund
                    party -amt (source=return); cash/online settle at once:
                    party +amt (source=payment) and funds OUT for customers,
                    IN for suppliers

PAYMENT METHODS:
- cash       cash account moves now
- online     bank (bank_id) moves now; InsufficientFunds on overdraw
- cheque     pending Cheque created; funds untouched until cash-out
- owncheque  bank moves now; Cheque created already cleared
- credit     ledger only

GUARANTEES:
- all validation happens before the first write
- every affected account is locked (SELECT FOR UPDATE, pk order)
- balance + Transaction rows are persisted together or not at all
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ledger.models import Account, Cheque, Transaction
from ledger.services.access import require_capability_if_user
from ledger.services.exceptions import (
    DiscountExceedsOutstandingError,
    LedgerValidationError,
)
from ledger.services.posting import (
    ZERO,
    _money,
    get_account,
    get_bank,
    get_cash_account,
    lock_accounts,
    new_posting_ref,
    parse_amount,
    parse_date,
    post_delta,
    ensure_funds,
)
from permissions.roles import CAP_LEDGER_POST

logger = logging.getLogger("ledger.mutations")


# ======================================================
# CONSTANTS
# ======================================================

OP_ADD_BALANCE = "add_balance"
OP_SUBTRACT_BALANCE = "subtract_balance"
OP_APPLY_DISCOUNT = "apply_discount"
OP_PROCESS_RETURN_REFUND = "process_return_refund"

OPERATION_KINDS = (
    OP_ADD_BALANCE,
    OP_SUBTRACT_BALANCE,
    OP_APPLY_DISCOUNT,
    OP_PROCESS_RETURN_REFUND,
)

OPERATION_ALIASES = {
    "addBalance": OP_ADD_BALANCE,
    "subtractBalance": OP_SUBTRACT_BALANCE,
    "applyDiscount": OP_APPLY_DISCOUNT,
    "processReturnRefund": OP_PROCESS_RETURN_REFUND,
}

PAYMENT_METHODS = (
    Transaction.METHOD_CASH,
    Transaction.METHOD_ONLINE,
    Transaction.METHOD_CHEQUE,
    Transaction.METHOD_OWN_CHEQUE,
    Transaction.METHOD_CREDIT,
)

BANK_METHODS = {Transaction.METHOD_ONLINE, Transaction.METHOD_OWN_CHEQUE}
CHEQUE_METHODS = {Transaction.METHOD_CHEQUE, Transaction.METHOD_OWN_CHEQUE}
PROOF_METHODS = {
    Transaction.METHOD_ONLINE,
    Transaction.METHOD_CHEQUE,
    Transaction.METHOD_OWN_CHEQUE,
}
FUND_METHODS = {
    Transaction.METHOD_CASH,
    Transaction.METHOD_ONLINE,
    Transaction.METHOD_OWN_CHEQUE,
}

RETURN_PARTY_TYPES = (Account.CUSTOMER, Account.SUPPLIER)
RETURN_METHODS = (
    Transaction.METHOD_CASH,
    Transaction.METHOD_ONLINE,
    Transaction.METHOD_CREDIT,
)

DEFAULT_SOURCES = {
    OP_ADD_BALANCE: Transaction.SOURCE_PAYMENT,
    OP_SUBTRACT_BALANCE: Transaction.SOURCE_PAYMENT,
    OP_APPLY_DISCOUNT: Transaction.SOURCE_DISCOUNT,
    OP_PROCESS_RETURN_REFUND: Transaction.SOURCE_RETURN,
}


# ======================================================
# DIRECTION TABLE
# ======================================================

def party_delta_for(*, account_type: str, operation_kind: str, amount: Decimal) -> Decimal:
    """
    Signed change on the party balance for one operation.
    """
    payable = account_type in Account.PAYABLE_TYPES

    if operation_kind == OP_ADD_BALANCE:
        return -amount if payable else amount
    if operation_kind == OP_SUBTRACT_BALANCE:
        return amount if payable else -amount
    if operation_kind in (OP_APPLY_DISCOUNT, OP_PROCESS_RETURN_REFUND):
        return -amount

    raise LedgerValidationError(fields={"operation_kind": f"Unknown operation '{operation_kind}'."})


def fund_delta_for(*, account_type: str, operation_kind: str, amount: Decimal) -> Decimal:
    """
    Signed change on cash/bank when the payment method moves money.
    """
    if operation_kind == OP_ADD_BALANCE:
        return -amount
    if operation_kind == OP_SUBTRACT_BALANCE:
        return amount
    if operation_kind == OP_PROCESS_RETURN_REFUND:
        # customer refund: we pay out; supplier refund: supplier pays us
        return -amount if account_type == Account.CUSTOMER else amount
    return ZERO


def normalize_operation(operation_kind: str) -> str:
    raw = (operation_kind or "").strip()
    return OPERATION_ALIASES.get(raw, raw.lower())


def _normalize_method(payment_method) -> str | None:
    if payment_method in (None, ""):
        return None
    return str(payment_method).strip().lower()


# ======================================================
# VALIDATION (no writes)
# ======================================================

def _validate(
    *,
    account_type: str,
    operation_kind: str,
    amount,
    payment_method: str | None,
    bank_id,
    cheque_date,
    proof_image,
    cheque_type: str | None,
) -> dict:
    """
    Collect every field error, then raise once.

    Returns the cleaned values.
    """
    errors: dict[str, str] = {}
    cleaned: dict = {}

    if operation_kind not in OPERATION_KINDS:
        errors["operation_kind"] = f"Must be one of: {', '.join(OPERATION_KINDS)}."

    if account_type in Account.FUND_TYPES:
        errors["account_type"] = (
            "Bank and cash accounts cannot be mutated directly; "
            "use fund transfers or expenses."
        )
    elif account_type not in Account.PARTY_TYPES:
        errors["account_type"] = f"Must be one of: {', '.join(Account.PARTY_TYPES)}."

    try:
        cleaned["amount"] = parse_amount(amount)
    except LedgerValidationError as exc:
        errors.update(exc.fields)

    method = _normalize_method(payment_method)

    if operation_kind == OP_APPLY_DISCOUNT:
        if method not in (None, Transaction.METHOD_CREDIT):
            errors["payment_method"] = "Discounts are ledger-only; use 'credit' or omit."
        method = Transaction.METHOD_CREDIT
    elif method is None:
        errors["payment_method"] = "This field is required."
    elif method not in PAYMENT_METHODS:
        errors["payment_method"] = f"Must be one of: {', '.join(PAYMENT_METHODS)}."

    if operation_kind == OP_PROCESS_RETURN_REFUND:
        if account_type in Account.PARTY_TYPES and account_type not in RETURN_PARTY_TYPES:
            errors["account_type"] = "Returns apply to customers and suppliers only."
        if method and method in PAYMENT_METHODS and method not in RETURN_METHODS:
            errors["payment_method"] = f"Refund method must be one of: {', '.join(RETURN_METHODS)}."

    cleaned["payment_method"] = method

    needs_bank = method in BANK_METHODS
    if needs_bank and bank_id in (None, ""):
        errors["bank_id"] = f"A bank account is required for '{method}' payments."

    parsed_cheque_date = None
    try:
        parsed_cheque_date = parse_date(cheque_date, field="cheque_date")
    except LedgerValidationError as exc:
        errors.update(exc.fields)

    if method in CHEQUE_METHODS:
        if parsed_cheque_date is None and "cheque_date" not in errors:
            errors["cheque_date"] = f"A cheque date is required for '{method}' payments."
        elif parsed_cheque_date is not None and parsed_cheque_date < timezone.localdate():
            errors["cheque_date"] = "Cheque date cannot be in the past."
        cleaned["cheque_date"] = parsed_cheque_date
    else:
        cleaned["cheque_date"] = None

    if (
        method in PROOF_METHODS
        and getattr(settings, "LEDGER_REQUIRE_PROOF_IMAGE", True)
        and not (proof_image or "").strip()
    ):
        errors["proof_image"] = f"Proof of payment image is required for '{method}' payments."

    resolved_type = None
    if method in CHEQUE_METHODS:
        resolved_type = (cheque_type or account_type or "").strip().lower()
        allowed = {account_type}
        if account_type == Account.SUPPLIER:
            allowed.add(Cheque.TYPE_PRODUCT)
        if resolved_type not in allowed:
            errors["cheque_type"] = f"Must be one of: {', '.join(sorted(t for t in allowed if t))}."
    elif cheque_type:
        errors["cheque_type"] = "Only valid for cheque and owncheque payments."
    cleaned["cheque_type"] = resolved_type

    if errors:
        raise LedgerValidationError(fields=errors)

    return cleaned


def _check_discount_bounds(*, account: Account, amount: Decimal) -> None:
    outstanding = _money(account.balance)
    if outstanding <= ZERO:
        raise DiscountExceedsOutstandingError(
            f"{account.name} has no outstanding balance to discount (balance {outstanding})."
        )
    if amount > outstanding:
        raise DiscountExceedsOutstandingError(
            f"Discount {amount} exceeds outstanding balance {outstanding} for {account.name}."
        )


# ======================================================
# PUBLIC API
# ======================================================

@dataclass(frozen=True)
class MutationResult:
    account: Account
    party_transaction: Transaction
    posting_ref: uuid.UUID
    cheque: Cheque | None = None


def apply_account_mutation(**kwargs) -> Account:
    """
    Apply one balance operation to a party account.

    Returns the authoritative, freshly persisted Account.
    See perform_account_mutation() for the arguments.
    """
    return perform_account_mutation(**kwargs).account


def perform_account_mutation(
    *,
    account_type: str,
    account_id,
    operation_kind: str,
    amount,
    payment_method: str | None = None,
    bank_id=None,
    cheque_date=None,
    description: str = "",
    proof_image: str | None = None,
    cheque_type: str | None = None,
    cheque_number: str = "",
    user=None,
    source: str | None = None,
    effective_date=None,
) -> MutationResult:
    """
    Same as apply_account_mutation() but returns every artefact of the
    posting, for callers (sales, returns) that link records to it.
    """
    require_capability_if_user(user, CAP_LEDGER_POST, action="post ledger entries")

    account_type = (account_type or "").strip().lower()
    operation_kind = normalize_operation(operation_kind)

    cleaned = _validate(
        account_type=account_type,
        operation_kind=operation_kind,
        amount=amount,
        payment_method=payment_method,
        bank_id=bank_id,
        cheque_date=cheque_date,
        proof_image=proof_image,
        cheque_type=cheque_type,
    )
    effective = parse_date(effective_date, field="effective_date")

    with transaction.atomic():
        return _apply(
            account_type=account_type,
            account_id=account_id,
            operation_kind=operation_kind,
            amount=cleaned["amount"],
            method=cleaned["payment_method"],
            bank_id=bank_id,
            cheque_date=cleaned["cheque_date"],
            cheque_type=cleaned["cheque_type"],
            cheque_number=cheque_number,
            description=description,
            proof_image=(proof_image or "").strip(),
            user=user,
            source=source,
            effective_date=effective,
        )


def _apply(
    *,
    account_type: str,
    account_id,
    operation_kind: str,
    amount: Decimal,
    method: str,
    bank_id,
    cheque_date,
    cheque_type,
    cheque_number: str,
    description: str,
    proof_image: str,
    user,
    source: str | None,
    effective_date,
):
    party = get_account(account_id=account_id, account_type=account_type)

    bank = None
    if bank_id not in (None, ""):
        bank = get_bank(bank_id)

    fund = None
    fund_delta = ZERO
    moves_funds = method in FUND_METHODS
    if operation_kind == OP_APPLY_DISCOUNT:
        moves_funds = False

    if moves_funds:
        fund_delta = fund_delta_for(
            account_type=account_type,
            operation_kind=operation_kind,
            amount=amount,
        )
        fund = get_cash_account() if method == Transaction.METHOD_CASH else bank

    locked = lock_accounts([party.pk, fund.pk if fund else None])
    party = locked[party.pk]
    if fund is not None:
        fund = locked[fund.pk]

    if operation_kind == OP_APPLY_DISCOUNT:
        _check_discount_bounds(account=party, amount=amount)

    if fund is not None:
        ensure_funds(account=fund, delta=fund_delta)

    party_delta = party_delta_for(
        account_type=account_type,
        operation_kind=operation_kind,
        amount=amount,
    )

    posting_ref = new_posting_ref()
    tx_source = source or DEFAULT_SOURCES[operation_kind]
    common = {
        "posting_ref": posting_ref,
        "payment_method": method,
        "operation_kind": operation_kind,
        "description": description,
        "bank": bank,
        "cheque_date": cheque_date,
        "proof_image": proof_image,
        "user": user,
        "effective_date": effective_date,
    }

    party_tx = post_delta(account=party, delta=party_delta, source=tx_source, **common)

    if fund is not None:
        if operation_kind == OP_PROCESS_RETURN_REFUND:
            # settle the refund now; the party no longer carries it
            post_delta(
                account=party,
                delta=-party_delta,
                source=Transaction.SOURCE_PAYMENT,
                **common,
            )
        post_delta(
            account=fund,
            delta=fund_delta,
            source=Transaction.SOURCE_PAYMENT,
            **common,
        )

    cheque = None
    if method in CHEQUE_METHODS:
        cheque = _create_cheque(
            party=party,
            party_tx=party_tx,
            party_delta=party_delta,
            method=method,
            amount=amount,
            bank=bank,
            cheque_date=cheque_date,
            cheque_type=cheque_type,
            cheque_number=cheque_number,
            proof_image=proof_image,
            description=description,
        )

    logger.info(
        "Account mutation applied",
        extra={
            "account_id": party.pk,
            "account_type": account_type,
            "operation_kind": operation_kind,
            "payment_method": method,
            "amount": str(amount),
            "fund_account_id": getattr(fund, "pk", None),
            "cheque_id": getattr(cheque, "pk", None),
            "posting_ref": str(posting_ref),
        },
    )

    party.refresh_from_db()
    return MutationResult(
        account=party,
        party_transaction=party_tx,
        posting_ref=posting_ref,
        cheque=cheque,
    )


def _create_cheque(
    *,
    party: Account,
    party_tx: Transaction,
    party_delta: Decimal,
    method: str,
    amount: Decimal,
    bank,
    cheque_date,
    cheque_type: str,
    cheque_number: str,
    proof_image: str,
    description: str,
) -> Cheque:
    is_own = method == Transaction.METHOD_OWN_CHEQUE
    now = timezone.now()

    cheque = Cheque(
        account=party,
        beneficiary=party,
        cheque_type=cheque_type,
        amount=amount,
        bank=bank,
        cheque_date=cheque_date,
        cheque_number=(cheque_number or "").strip(),
        cheque_image=proof_image,
        state=Cheque.STATE_CLEARED if is_own else Cheque.STATE_PENDING,
        is_own=is_own,
        party_effect=party_delta,
        origin_transaction=party_tx,
        cleared_to=bank if is_own else None,
        cleared_at=now if is_own else None,
        description=(description or "")[:255],
    )
    cheque.save()
    return cheque
