# ledger/services/transfer_service.py

"""
FUND TRANSFER SERVICE

Moves money between the business's own funds:
- bank -> cash, cash -> bank, bank -> bank

Rules:
- source and destination must differ
- the source may not go negative (InsufficientFundsError)
- both legs share one posting_ref and commit together
"""

from __future__ import annotations

import logging

from django.db import transaction

from ledger.models import Account, Transaction
from ledger.services.access import require_capability_if_user
from ledger.services.exceptions import LedgerValidationError
from ledger.services.posting import (
    get_bank,
    get_cash_account,
    lock_accounts,
    new_posting_ref,
    parse_amount,
    post_delta,
)
from permissions.roles import CAP_ACCOUNTS_MANAGE

logger = logging.getLogger("ledger.mutations")


def _resolve_fund(*, fund_type: str, bank_id, field: str) -> Account:
    fund_type = (fund_type or "").strip().lower()
    if fund_type == Account.CASH:
        return get_cash_account()
    if fund_type == Account.BANK:
        return get_bank(bank_id, field=field)
    raise LedgerValidationError(
        fields={field.replace("bank_id", "type"): "Must be 'bank' or 'cash'."}
    )


def transfer_funds(
    *,
    from_type: str,
    to_type: str,
    amount,
    from_bank_id=None,
    to_bank_id=None,
    description: str = "",
    user=None,
):
    """
    Returns (source_account, destination_account) after the move.
    """
    require_capability_if_user(user, CAP_ACCOUNTS_MANAGE, action="transfer funds")

    amt = parse_amount(amount)
    source = _resolve_fund(fund_type=from_type, bank_id=from_bank_id, field="from_bank_id")
    destination = _resolve_fund(fund_type=to_type, bank_id=to_bank_id, field="to_bank_id")

    if source.pk == destination.pk:
        raise LedgerValidationError(
            fields={"to_bank_id": "Source and destination must be different accounts."}
        )

    with transaction.atomic():
        locked = lock_accounts([source.pk, destination.pk])
        source = locked[source.pk]
        destination = locked[destination.pk]

        posting_ref = new_posting_ref()
        method = (
            Transaction.METHOD_CASH
            if Account.BANK not in (source.account_type, destination.account_type)
            else Transaction.METHOD_ONLINE
        )
        text = description or f"Transfer {source.name} -> {destination.name}"

        post_delta(
            account=source,
            delta=-amt,
            posting_ref=posting_ref,
            source=Transaction.SOURCE_TRANSFER,
            payment_method=method,
            operation_kind="transfer_out",
            description=text,
            bank=source if source.account_type == Account.BANK else None,
            user=user,
        )
        post_delta(
            account=destination,
            delta=amt,
            posting_ref=posting_ref,
            source=Transaction.SOURCE_TRANSFER,
            payment_method=method,
            operation_kind="transfer_in",
            description=text,
            bank=destination if destination.account_type == Account.BANK else None,
            user=user,
        )

    logger.info(
        "Funds transferred",
        extra={
            "from_account_id": source.pk,
            "to_account_id": destination.pk,
            "amount": str(amt),
            "posting_ref": str(posting_ref),
        },
    )
    return source, destination
