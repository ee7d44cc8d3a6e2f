# ledger/services/transaction_service.py

"""
======================================================
PATH: ledger/services/transaction_service.py
======================================================
PRIVILEGED HARD DELETE

Transactions are immutable. The only way to remove one is
delete_transaction(), which removes the WHOLE posting group the row
belongs to (party row, fund row, settlement row) and reverses the balance
effect of every row, atomically.

Refuses when:
- the caller lacks ledger.delete                     -> PermissionDeniedError
- a cheque created by the posting is not pending    -> InvalidChequeStateError
- the posting is a cheque transition (cash-out etc.) -> InvalidChequeStateError
- a row in the group has since been reversed         -> LedgerValidationError
- removing it would overdraw a bank/cash account     -> InsufficientFundsError
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction

from ledger.models import Cheque, Transaction
from ledger.services.access import require_capability
from ledger.services.cheque_lifecycle import ACTIONS as CHEQUE_ACTIONS
from ledger.services.exceptions import (
    InvalidChequeStateError,
    LedgerValidationError,
    NotFoundError,
)
from ledger.services.posting import ZERO, _money, ensure_funds, lock_accounts
from permissions.roles import CAP_LEDGER_DELETE

logger = logging.getLogger("ledger.mutations")


@transaction.atomic
def delete_transaction(*, account_id, transaction_id, user) -> dict:
    require_capability(user, CAP_LEDGER_DELETE, action="delete transactions")

    tx = Transaction.objects.filter(pk=transaction_id, account_id=account_id).first()
    if tx is None:
        raise NotFoundError(f"Transaction {transaction_id} not found on account {account_id}")

    group = list(
        Transaction.objects.select_for_update()
        .filter(posting_ref=tx.posting_ref)
        .order_by("id")
    )
    group_ids = [row.pk for row in group]

    if any(row.operation_kind in CHEQUE_ACTIONS for row in group):
        raise InvalidChequeStateError(
            "Cheque transition postings cannot be deleted; use the cheque actions instead."
        )

    cheques = list(Cheque.objects.select_for_update().filter(origin_transaction_id__in=group_ids))
    blocked = [c for c in cheques if c.state != Cheque.STATE_PENDING]
    if blocked:
        raise InvalidChequeStateError(
            f"Cheque {blocked[0].pk} is '{blocked[0].state}'; only pending cheques can be deleted."
        )

    if Transaction.objects.filter(reverses_id__in=group_ids).exclude(pk__in=group_ids).exists():
        raise LedgerValidationError(
            fields={"transaction_id": "This posting has been reversed; delete the reversal first."}
        )

    deltas: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for row in group:
        deltas[row.account_id] -= row.signed_amount

    locked = lock_accounts(deltas.keys())
    for acc_id, delta in deltas.items():
        ensure_funds(account=locked[acc_id], delta=_money(delta))

    cheque_ids = [c.pk for c in cheques]
    for cheque in cheques:
        cheque.delete()

    Transaction.objects.filter(pk__in=group_ids).delete()

    for acc_id, delta in deltas.items():
        account = locked[acc_id]
        account.balance = _money(account.balance) + _money(delta)
        account.save(update_fields=["balance", "updated_at"])

    logger.warning(
        "Transaction posting hard-deleted: transaction_id=%s posting_ref=%s rows=%s user_id=%s",
        tx.pk,
        tx.posting_ref,
        len(group_ids),
        getattr(user, "pk", None),
        extra={
            "transaction_id": tx.pk,
            "posting_ref": str(tx.posting_ref),
            "rows": len(group_ids),
            "cheques": cheque_ids,
            "user_id": getattr(user, "pk", None),
        },
    )

    return {
        "posting_ref": str(tx.posting_ref),
        "deleted_transaction_ids": group_ids,
        "deleted_cheque_ids": cheque_ids,
        "accounts": {acc_id: str(locked[acc_id].balance) for acc_id in locked},
    }
