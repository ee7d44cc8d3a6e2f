# ledger/api/errors.py

from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response

from ledger.services.exceptions import (
    DiscountExceedsOutstandingError,
    InsufficientFundsError,
    InvalidChequeStateError,
    LedgerServiceError,
    LedgerValidationError,
    NotFoundError,
    PermissionDeniedError,
    ReconciliationError,
)


# ======================================================
# API ERROR NORMALIZATION
# ======================================================

STATUS_BY_ERROR = (
    (LedgerValidationError, status.HTTP_400_BAD_REQUEST),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientFundsError, status.HTTP_409_CONFLICT),
    (InvalidChequeStateError, status.HTTP_409_CONFLICT),
    (DiscountExceedsOutstandingError, status.HTTP_409_CONFLICT),
    (ReconciliationError, status.HTTP_409_CONFLICT),
)


def error_response(*, code: str, message: str, http_status: int, fields: dict | None = None):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    if fields:
        body["fields"] = fields
    return Response({"error": body}, status=http_status)


def service_error_response(exc: LedgerServiceError):
    http_status = status.HTTP_400_BAD_REQUEST
    for error_class, mapped in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            http_status = mapped
            break

    return error_response(
        code=exc.code,
        message=str(exc),
        http_status=http_status,
        fields=getattr(exc, "fields", None),
    )
