# ledger/services/exceptions.py

"""
LEDGER SERVICE ERRORS

Centralized domain errors for ledger, cheque and reporting services.

Every error carries a stable machine `code` used by the API layer
(see ledger/api/errors.py) to build the canonical error body.
"""

from __future__ import annotations


class LedgerServiceError(Exception):
    """Base exception for all ledger service failures."""

    code = "LEDGER_ERROR"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        if code:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class LedgerValidationError(LedgerServiceError):
    """Raised when input is missing or malformed. Field-identified."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "", *, fields: dict | None = None, code: str | None = None):
        self.fields = dict(fields or {})
        if not message and self.fields:
            message = "; ".join(f"{k}: {v}" for k, v in self.fields.items())
        super().__init__(message or "Invalid input", code=code)


class InsufficientFundsError(LedgerServiceError):
    """Raised when a bank/cash debit would drive the balance negative."""

    code = "INSUFFICIENT_FUNDS"


class InvalidChequeStateError(LedgerServiceError):
    """Raised on a disallowed cheque transition."""

    code = "INVALID_CHEQUE_STATE"


class DiscountExceedsOutstandingError(LedgerServiceError):
    """Raised when a discount is larger than the outstanding balance."""

    code = "DISCOUNT_EXCEEDS_OUTSTANDING"


class NotFoundError(LedgerServiceError):
    """Raised when an account, transaction or cheque id does not resolve."""

    code = "NOT_FOUND"


class PermissionDeniedError(LedgerServiceError):
    """Raised when the caller's role lacks a privileged capability."""

    code = "PERMISSION_DENIED"


class ReconciliationError(LedgerServiceError):
    """Raised when a stored balance differs from its transaction history."""

    code = "RECONCILIATION_MISMATCH"
