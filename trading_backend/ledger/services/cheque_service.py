# ledger/services/cheque_service.py

"""
======================================================
PATH: ledger/services/cheque_service.py
======================================================
CHEQUE TRANSITION SERVICE (DOMAIN-CONTROLLED)

Applies the side effects of each cheque transition. The allowed
transitions themselves live in ledger.services.cheque_lifecycle.

SIDE EFFECTS:
- cash_out              pending -> cleared
                        payout type (supplier/shipper/product): destination DEBITED
                        receipt type (customer):                destination CREDITED
- cancel                pending | transferred_pending -> cancelled
                        reverses party_effect on the current beneficiary; no funds
- transfer              pending -> transferred_pending
                        reverses party_effect on the beneficiary, recognizes
                        add_balance on the target (customer +amt, supplier -amt)
- cash_out_transferred  transferred_pending -> transferred_cashed; no funds

GUARANTEES:
- each transition runs in one atomic block with the cheque row locked
- batch cash-out is best-effort: one failure never rolls back earlier items
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ledger.models import Account, Cheque, Transaction
from ledger.services.access import require_capability, require_capability_if_user
from ledger.services.cheque_lifecycle import (
    ACTION_CANCEL,
    ACTION_CASH_OUT,
    ACTION_CASH_OUT_TRANSFERRED,
    ACTION_TRANSFER,
    is_payout_type,
    normalize_action,
    validate_action,
)
from ledger.services.exceptions import (
    LedgerServiceError,
    LedgerValidationError,
    NotFoundError,
)
from ledger.services.mutation_rules import OP_ADD_BALANCE, party_delta_for
from ledger.services.posting import (
    ZERO,
    get_account,
    get_bank,
    get_cash_account,
    lock_accounts,
    new_posting_ref,
    post_delta,
)
from permissions.roles import (
    CAP_CHEQUES_CANCEL,
    CAP_CHEQUES_CASH_OUT,
    CAP_CHEQUES_TRANSFER,
)

logger = logging.getLogger("ledger.cheques")

DESTINATION_BANK = "bank"
DESTINATION_CASH = "cash"
DESTINATIONS = (DESTINATION_BANK, DESTINATION_CASH)

TRANSFER_TARGET_TYPES = (Account.CUSTOMER, Account.SUPPLIER)


@dataclass
class BatchResult:
    succeeded: list = field(default_factory=list)
    failed: list = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


# ======================================================
# HELPERS
# ======================================================

def _lock_cheque(cheque_id) -> Cheque:
    cheque = (
        Cheque.objects.select_for_update()
        .filter(pk=cheque_id)
        .first()
    )
    if cheque is None:
        raise NotFoundError(f"Cheque {cheque_id} not found")
    return cheque


def _resolve_destination(*, cheque: Cheque, destination: str | None, bank_id) -> Account:
    """
    A cheque with a linked bank clears into it unless cash is asked for.
    """
    dest = (destination or "").strip().lower() or None
    if dest is not None and dest not in DESTINATIONS:
        raise LedgerValidationError(fields={"destination": "Must be 'bank' or 'cash'."})

    if dest == DESTINATION_CASH:
        return get_cash_account()

    if cheque.bank_id and bank_id in (None, ""):
        return cheque.bank

    if dest is None and bank_id in (None, ""):
        raise LedgerValidationError(
            fields={"destination": "Choose 'bank' or 'cash' for a cheque without a linked bank."}
        )

    return get_bank(bank_id)


def _reverse_party_effect(*, cheque: Cheque, party: Account, posting_ref, user, reason: str):
    if cheque.party_effect == ZERO:
        return None

    return post_delta(
        account=party,
        delta=-cheque.party_effect,
        posting_ref=posting_ref,
        source=Transaction.SOURCE_REVERSAL,
        payment_method=Transaction.METHOD_CHEQUE,
        operation_kind=reason,
        description=f"Reversal of cheque {cheque.cheque_number or cheque.pk}: {reason}",
        bank=cheque.bank,
        cheque_date=cheque.cheque_date,
        user=user,
        is_reversal=True,
        reverses=cheque.origin_transaction if party.pk == cheque.account_id else None,
    )


# ======================================================
# TRANSITIONS
# ======================================================

def cash_out_cheque(*, cheque_id, destination: str | None = None, bank_id=None, user=None) -> Cheque:
    """
    pending -> cleared. Moves the cheque amount into or out of bank/cash.
    """
    require_capability_if_user(user, CAP_CHEQUES_CASH_OUT, action="cash out cheques")

    with transaction.atomic():
        cheque = _lock_cheque(cheque_id)
        validate_action(cheque=cheque, action=ACTION_CASH_OUT)

        fund = _resolve_destination(cheque=cheque, destination=destination, bank_id=bank_id)
        fund = lock_accounts([fund.pk])[fund.pk]

        amount = Decimal(cheque.amount)
        payout = is_payout_type(cheque.cheque_type)
        delta = -amount if payout else amount

        post_delta(
            account=fund,
            delta=delta,
            posting_ref=new_posting_ref(),
            source=Transaction.SOURCE_CHEQUE,
            payment_method=Transaction.METHOD_CHEQUE,
            operation_kind=ACTION_CASH_OUT,
            description=(
                f"Cheque {cheque.cheque_number or cheque.pk} "
                f"{'paid to' if payout else 'received from'} {cheque.beneficiary.name}"
            ),
            bank=fund if fund.account_type == Account.BANK else None,
            cheque_date=cheque.cheque_date,
            user=user,
        )

        cheque.state = Cheque.STATE_CLEARED
        cheque.cleared_to = fund
        cheque.cleared_at = timezone.now()
        cheque.save()

    logger.info(
        "Cheque cashed out",
        extra={
            "cheque_id": cheque.pk,
            "cheque_type": cheque.cheque_type,
            "payout": payout,
            "fund_account_id": fund.pk,
            "amount": str(amount),
        },
    )
    return cheque


def cash_out_cheques(*, items, user=None) -> BatchResult:
    """
    Best-effort batch cash-out.

    items: iterable of {"cheque_id", "destination"?, "bank_id"?}
    Each item commits on its own; failures are collected, never raised.
    """
    require_capability_if_user(user, CAP_CHEQUES_CASH_OUT, action="cash out cheques")

    result = BatchResult()
    for item in items:
        cheque_id = item.get("cheque_id")
        try:
            cheque = cash_out_cheque(
                cheque_id=cheque_id,
                destination=item.get("destination"),
                bank_id=item.get("bank_id"),
                user=user,
            )
        except LedgerServiceError as exc:
            logger.warning(
                "Batch cheque cash-out item failed: cheque_id=%s code=%s reason=%s",
                cheque_id,
                exc.code,
                exc,
                extra={"cheque_id": cheque_id, "code": exc.code, "reason": str(exc)},
            )
            result.failed.append(
                {"cheque_id": cheque_id, "code": exc.code, "message": str(exc)}
            )
        else:
            result.succeeded.append(cheque)

    return result


def cancel_cheque(*, cheque_id, user, confirm: bool = False) -> Cheque:
    """
    pending | transferred_pending -> cancelled (privileged, irreversible).
    """
    require_capability(user, CAP_CHEQUES_CANCEL, action="cancel cheques")

    if confirm is not True:
        raise LedgerValidationError(
            fields={"confirm": "Cancelling a cheque is irreversible; pass confirm=true."}
        )

    with transaction.atomic():
        cheque = _lock_cheque(cheque_id)
        from_state = cheque.state
        validate_action(cheque=cheque, action=ACTION_CANCEL)

        party = lock_accounts([cheque.beneficiary_id])[cheque.beneficiary_id]
        _reverse_party_effect(
            cheque=cheque,
            party=party,
            posting_ref=new_posting_ref(),
            user=user,
            reason=ACTION_CANCEL,
        )

        cheque.state = Cheque.STATE_CANCELLED
        cheque.party_effect = ZERO
        cheque.cancelled_at = timezone.now()
        cheque.save()

    logger.info(
        "Cheque cancelled",
        extra={"cheque_id": cheque.pk, "from_state": from_state, "beneficiary_id": party.pk},
    )
    return cheque


def transfer_cheque(*, cheque_id, target_type: str, target_id, user=None) -> Cheque:
    """
    pending -> transferred_pending. Hands the cheque over to another party.
    """
    require_capability_if_user(user, CAP_CHEQUES_TRANSFER, action="transfer cheques")

    target_type = (target_type or "").strip().lower()
    if target_type not in TRANSFER_TARGET_TYPES:
        raise LedgerValidationError(fields={"target_type": "Must be 'customer' or 'supplier'."})
    if target_id in (None, ""):
        raise LedgerValidationError(fields={"target_id": "This field is required."})

    with transaction.atomic():
        cheque = _lock_cheque(cheque_id)
        validate_action(cheque=cheque, action=ACTION_TRANSFER)

        target = get_account(account_id=target_id, account_type=target_type)
        if target.pk == cheque.beneficiary_id:
            raise LedgerValidationError(
                fields={"target_id": "Cheque is already held by this account."}
            )

        locked = lock_accounts([cheque.beneficiary_id, target.pk])
        current = locked[cheque.beneficiary_id]
        target = locked[target.pk]

        posting_ref = new_posting_ref()
        _reverse_party_effect(
            cheque=cheque,
            party=current,
            posting_ref=posting_ref,
            user=user,
            reason=ACTION_TRANSFER,
        )

        new_effect = party_delta_for(
            account_type=target.account_type,
            operation_kind=OP_ADD_BALANCE,
            amount=Decimal(cheque.amount),
        )
        post_delta(
            account=target,
            delta=new_effect,
            posting_ref=posting_ref,
            source=Transaction.SOURCE_CHEQUE,
            payment_method=Transaction.METHOD_CHEQUE,
            operation_kind=ACTION_TRANSFER,
            description=(
                f"Cheque {cheque.cheque_number or cheque.pk} transferred from {current.name}"
            ),
            bank=cheque.bank,
            cheque_date=cheque.cheque_date,
            user=user,
        )

        cheque.beneficiary = target
        cheque.party_effect = new_effect
        cheque.state = Cheque.STATE_TRANSFERRED_PENDING
        cheque.transferred_at = timezone.now()
        cheque.save()

    logger.info(
        "Cheque transferred",
        extra={"cheque_id": cheque.pk, "from_account_id": current.pk, "to_account_id": target.pk},
    )
    return cheque


def cash_out_transferred_cheque(*, cheque_id, user=None) -> Cheque:
    """
    transferred_pending -> transferred_cashed. The holder settled it; our funds stay put.
    """
    require_capability_if_user(user, CAP_CHEQUES_CASH_OUT, action="cash out cheques")

    with transaction.atomic():
        cheque = _lock_cheque(cheque_id)
        validate_action(cheque=cheque, action=ACTION_CASH_OUT_TRANSFERRED)

        cheque.state = Cheque.STATE_TRANSFERRED_CASHED
        cheque.cleared_at = timezone.now()
        cheque.save()

    logger.info("Transferred cheque settled", extra={"cheque_id": cheque.pk})
    return cheque


def transition_cheque(*, cheque_id, action: str, user=None, **params) -> Cheque:
    """
    Single dispatch point used by the API.
    """
    action = normalize_action(action)

    if action == ACTION_CASH_OUT:
        return cash_out_cheque(
            cheque_id=cheque_id,
            destination=params.get("destination"),
            bank_id=params.get("bank_id"),
            user=user,
        )
    if action == ACTION_CANCEL:
        return cancel_cheque(cheque_id=cheque_id, user=user, confirm=params.get("confirm", False))
    if action == ACTION_TRANSFER:
        return transfer_cheque(
            cheque_id=cheque_id,
            target_type=params.get("target_type"),
            target_id=params.get("target_id"),
            user=user,
        )
    if action == ACTION_CASH_OUT_TRANSFERRED:
        return cash_out_transferred_cheque(cheque_id=cheque_id, user=user)

    raise LedgerValidationError(fields={"action": f"Unknown cheque action '{action}'."})


# ======================================================
# DASHBOARD
# ======================================================

def list_due_cheques(*, today=None, window_days: int | None = None) -> dict:
    """
    Pending cheques due today and within the upcoming window.
    Overdue pending cheques are reported separately.
    """
    today = today or timezone.localdate()
    if window_days is None:
        window_days = int(getattr(settings, "CHEQUE_DUE_SOON_DAYS", 7))

    horizon = today + timedelta(days=window_days)

    pending = (
        Cheque.objects.select_related("beneficiary", "bank")
        .filter(state=Cheque.STATE_PENDING)
        .order_by("cheque_date", "id")
    )

    return {
        "today": today,
        "window_days": window_days,
        "overdue": list(pending.filter(cheque_date__lt=today)),
        "due_today": list(pending.filter(cheque_date=today)),
        "upcoming": list(pending.filter(cheque_date__gt=today, cheque_date__lte=horizon)),
    }
