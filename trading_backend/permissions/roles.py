# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# They describe what the staff member does in the back office.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_ACCOUNTANT = "accountant"
ROLE_CASHIER = "cashier"

ROLE_CHOICES = [
    (ROLE_ADMIN, "Admin"),
    (ROLE_MANAGER, "Manager"),
    (ROLE_ACCOUNTANT, "Accountant"),
    (ROLE_CASHIER, "Cashier"),
]


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views and services protect capabilities, not raw roles.
CAP_LEDGER_VIEW = "ledger.view"
CAP_LEDGER_POST = "ledger.post"           # balance mutations, sales, expenses, returns
CAP_LEDGER_DELETE = "ledger.delete"       # hard delete of a posting group
CAP_LEDGER_REVERSE = "ledger.reverse"     # expense reversal

CAP_CHEQUES_CASH_OUT = "cheques.cash_out"
CAP_CHEQUES_TRANSFER = "cheques.transfer"
CAP_CHEQUES_CANCEL = "cheques.cancel"

CAP_ACCOUNTS_MANAGE = "accounts.manage"   # create accounts, fund transfers

CAP_REPORTS_VIEW = "reports.view"

ALL_CAPABILITIES = {
    CAP_LEDGER_VIEW,
    CAP_LEDGER_POST,
    CAP_LEDGER_DELETE,
    CAP_LEDGER_REVERSE,
    CAP_CHEQUES_CASH_OUT,
    CAP_CHEQUES_TRANSFER,
    CAP_CHEQUES_CANCEL,
    CAP_ACCOUNTS_MANAGE,
    CAP_REPORTS_VIEW,
}

PRIVILEGED_CAPABILITIES = {
    CAP_CHEQUES_CANCEL,
    CAP_LEDGER_DELETE,
    CAP_LEDGER_REVERSE,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        *ALL_CAPABILITIES,
    },
    ROLE_ACCOUNTANT: {
        CAP_LEDGER_VIEW,
        CAP_LEDGER_POST,
        CAP_CHEQUES_CASH_OUT,
        CAP_CHEQUES_TRANSFER,
        CAP_ACCOUNTS_MANAGE,
        CAP_REPORTS_VIEW,
    },
    ROLE_CASHIER: {
        CAP_LEDGER_VIEW,
        CAP_LEDGER_POST,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def capabilities_for_role(role: Optional[str]) -> set[str]:
    return set(ROLE_CAPABILITIES.get(role, set()))


def effective_capabilities_for(user) -> set[str]:
    """
    Capabilities granted to a user.

    Superusers get everything regardless of role.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return set()

    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)

    return capabilities_for_role(get_user_role(user))


def user_has_capability(user, capability: str) -> bool:
    return capability in effective_capabilities_for(user)


# =========================================================
# Capability Permission
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_CHEQUES_CANCEL

    Views whose capability depends on the request (GET vs POST, cheque
    action) set required_capability in get_permissions().
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        return required in effective_capabilities_for(user)
