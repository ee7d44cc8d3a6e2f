"""
CHEQUE LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Cheque entities.

DESIGN PRINCIPLES:
- No database writes
- No balance mutation
- No side effects
- Single source of truth

STATE MACHINE:

    pending ──cash_out──────────────▶ cleared
       │  └──cancel─────────────────▶ cancelled
       └──transfer──▶ transferred_pending ──cash_out_transferred──▶ transferred_cashed
                              └──cancel──▶ cancelled
"""

from __future__ import annotations

from ledger.models import Cheque
from ledger.services.exceptions import InvalidChequeStateError, LedgerValidationError

# ============================================================
# ACTIONS
# ============================================================

ACTION_CASH_OUT = "cash_out"
ACTION_CANCEL = "cancel"
ACTION_TRANSFER = "transfer"
ACTION_CASH_OUT_TRANSFERRED = "cash_out_transferred"

ACTIONS = (
    ACTION_CASH_OUT,
    ACTION_CANCEL,
    ACTION_TRANSFER,
    ACTION_CASH_OUT_TRANSFERRED,
)

# Older clients send camelCase action names.
ACTION_ALIASES = {
    "cashOut": ACTION_CASH_OUT,
    "cashout": ACTION_CASH_OUT,
    "cashOutTransferred": ACTION_CASH_OUT_TRANSFERRED,
}


# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Cheque.STATE_CLEARED,
    Cheque.STATE_CANCELLED,
    Cheque.STATE_TRANSFERRED_CASHED,
}

# (from_state, action) -> to_state
ACTION_TRANSITIONS = {
    (Cheque.STATE_PENDING, ACTION_CASH_OUT): Cheque.STATE_CLEARED,
    (Cheque.STATE_PENDING, ACTION_CANCEL): Cheque.STATE_CANCELLED,
    (Cheque.STATE_PENDING, ACTION_TRANSFER): Cheque.STATE_TRANSFERRED_PENDING,
    (Cheque.STATE_TRANSFERRED_PENDING, ACTION_CASH_OUT_TRANSFERRED): Cheque.STATE_TRANSFERRED_CASHED,
    (Cheque.STATE_TRANSFERRED_PENDING, ACTION_CANCEL): Cheque.STATE_CANCELLED,
}

PAYOUT_TYPES = {
    Cheque.TYPE_SUPPLIER,
    Cheque.TYPE_SHIPPER,
    Cheque.TYPE_PRODUCT,
}


# ============================================================
# DOMAIN RULES
# ============================================================


def normalize_action(action: str) -> str:
    raw = (action or "").strip()
    return ACTION_ALIASES.get(raw, raw.lower())


def is_payout_type(cheque_type: str) -> bool:
    """
    Payout cheques take money out of the business on cash-out.
    Everything else is a receipt.
    """
    return (cheque_type or "").strip().lower() in PAYOUT_TYPES


def target_state(*, from_state: str, action: str) -> str | None:
    if from_state in TERMINAL_STATES:
        return None
    return ACTION_TRANSITIONS.get((from_state, normalize_action(action)))


def can_transition(*, from_state: str, action: str) -> bool:
    return target_state(from_state=from_state, action=action) is not None


def validate_action(*, cheque: Cheque, action: str) -> str:
    """
    Returns the target state or raises InvalidChequeStateError.
    """
    action = normalize_action(action)
    if action not in ACTIONS:
        raise LedgerValidationError(fields={"action": f"Unknown cheque action '{action}'."})

    to_state = target_state(from_state=cheque.state, action=action)
    if to_state is None:
        raise InvalidChequeStateError(
            f"Cheque {cheque.id} cannot '{action}' while '{cheque.state}'"
        )
    return to_state
