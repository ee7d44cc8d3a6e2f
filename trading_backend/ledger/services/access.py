# ledger/services/access.py

"""
SERVICE-LEVEL CAPABILITY CHECKS

Views already gate endpoints with HasCapability; services re-check so that
management commands, shells and other callers cannot bypass role rules.
"""

from __future__ import annotations

from permissions.roles import user_has_capability
from ledger.services.exceptions import PermissionDeniedError


def require_capability(user, capability: str, *, action: str = "") -> None:
    if user is None or not user_has_capability(user, capability):
        what = action or capability
        raise PermissionDeniedError(f"You do not have permission to {what}.")


def require_capability_if_user(user, capability: str, *, action: str = "") -> None:
    """
    Non-privileged operations may run without a caller (imports, seeds).
    When a caller is supplied, their role must still allow it.
    """
    if user is None:
        return
    require_capability(user, capability, action=action)
