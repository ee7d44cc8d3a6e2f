# ledger/services/account_service.py

"""
ACCOUNT SERVICE

create_account() is the only way accounts come into existence through the API.
update_account() edits details only; deactivate_account() retires a settled account.
A non-zero opening balance is recorded as an `opening` transaction so the
stored balance always equals the transaction history.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q

from ledger.models import Account, Cheque, Transaction
from ledger.services.access import require_capability_if_user
from ledger.services.exceptions import InvalidChequeStateError, LedgerValidationError
from ledger.services.posting import (
    ZERO,
    _money,
    get_account,
    lock_accounts,
    new_posting_ref,
    post_delta,
)
from permissions.roles import CAP_ACCOUNTS_MANAGE

logger = logging.getLogger("ledger.mutations")

OPEN_CHEQUE_STATES = (Cheque.STATE_PENDING, Cheque.STATE_TRANSFERRED_PENDING)


def create_account(
    *,
    name: str,
    account_type: str,
    opening_balance=None,
    phone: str = "",
    bank_name: str = "",
    account_number: str = "",
    user=None,
) -> Account:
    require_capability_if_user(user, CAP_ACCOUNTS_MANAGE, action="manage accounts")

    errors = {}
    name = (name or "").strip()
    account_type = (account_type or "").strip().lower()

    if not name:
        errors["name"] = "This field is required."
    if account_type not in dict(Account.ACCOUNT_TYPES):
        errors["account_type"] = f"Must be one of: {', '.join(dict(Account.ACCOUNT_TYPES))}."

    opening = ZERO
    try:
        opening = _money(opening_balance)
    except (InvalidOperation, ValueError):
        errors["opening_balance"] = "Must be a number."

    if account_type in Account.FUND_TYPES and opening < ZERO:
        errors["opening_balance"] = "Bank and cash opening balances cannot be negative."

    if account_type == Account.CASH and Account.objects.filter(
        account_type=Account.CASH, is_active=True
    ).exists():
        errors["account_type"] = "An active cash account already exists."

    if errors:
        raise LedgerValidationError(fields=errors)

    with transaction.atomic():
        try:
            account = Account(
                name=name,
                account_type=account_type,
                phone=(phone or "").strip(),
                bank_name=(bank_name or "").strip() if account_type == Account.BANK else "",
                account_number=(account_number or "").strip() if account_type == Account.BANK else "",
                balance=ZERO,
            )
            account.save()
        except DjangoValidationError as exc:
            raise LedgerValidationError(fields={"account": "; ".join(exc.messages)}) from exc
        except IntegrityError as exc:
            raise LedgerValidationError(fields={"account_type": str(exc)}) from exc

        if opening != ZERO:
            account = Account.objects.select_for_update().get(pk=account.pk)
            post_delta(
                account=account,
                delta=Decimal(opening),
                posting_ref=new_posting_ref(),
                source=Transaction.SOURCE_OPENING,
                operation_kind="opening_balance",
                description="Opening balance",
                user=user,
            )

    logger.info(
        "Account created",
        extra={
            "account_id": account.pk,
            "account_type": account_type,
            "opening_balance": str(opening),
        },
    )
    return account


# ======================================================
# UPDATE + DEACTIVATE
# ======================================================

EDITABLE_FIELDS = ("name", "phone", "bank_name", "account_number")
BANK_ONLY_FIELDS = ("bank_name", "account_number")


def update_account(*, account_id, changes: dict, user=None) -> Account:
    """
    Edit contact / bank details. balance and account_type are never editable;
    balances only move through postings.
    """
    require_capability_if_user(user, CAP_ACCOUNTS_MANAGE, action="manage accounts")

    errors = {}
    for key in changes:
        if key not in EDITABLE_FIELDS:
            errors[key] = "This field cannot be changed."
    if errors:
        raise LedgerValidationError(fields=errors)

    with transaction.atomic():
        account = get_account(account_id=account_id)
        account = lock_accounts([account.pk])[account.pk]

        cleaned = {key: (value or "").strip() for key, value in changes.items()}
        if "name" in cleaned and not cleaned["name"]:
            errors["name"] = "This field is required."
        if account.account_type != Account.BANK:
            for key in BANK_ONLY_FIELDS:
                if cleaned.get(key):
                    errors[key] = "Only bank accounts carry bank details."
        elif "bank_name" in cleaned and not cleaned["bank_name"]:
            errors["bank_name"] = "bank_name is required for bank accounts"
        if errors:
            raise LedgerValidationError(fields=errors)

        for key, value in cleaned.items():
            setattr(account, key, value)
        try:
            account.save(update_fields=[*cleaned, "updated_at"])
        except DjangoValidationError as exc:
            raise LedgerValidationError(fields={"account": "; ".join(exc.messages)}) from exc

    logger.info(
        "Account updated",
        extra={"account_id": account.pk, "fields": sorted(cleaned)},
    )
    return account


def deactivate_account(*, account_id, user=None) -> Account:
    """
    Retire an account. Refused while it still carries a balance or is
    involved in a cheque that has not been settled.
    """
    require_capability_if_user(user, CAP_ACCOUNTS_MANAGE, action="manage accounts")

    with transaction.atomic():
        account = get_account(account_id=account_id)
        account = lock_accounts([account.pk])[account.pk]

        if _money(account.balance) != ZERO:
            raise LedgerValidationError(
                fields={
                    "balance": f"Balance must be zero to deactivate (currently {_money(account.balance)})."
                }
            )

        open_cheques = Cheque.objects.filter(
            Q(account=account) | Q(beneficiary=account) | Q(bank=account),
            state__in=OPEN_CHEQUE_STATES,
        ).count()
        if open_cheques:
            raise InvalidChequeStateError(
                f"{account.name} has {open_cheques} unsettled cheque(s); "
                "clear, cancel or settle them first."
            )

        account.is_active = False
        account.save(update_fields=["is_active", "updated_at"])

    logger.info(
        "Account deactivated",
        extra={"account_id": account.pk, "account_type": account.account_type},
    )
    return account
