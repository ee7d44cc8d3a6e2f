# trading/services/return_service.py

"""
PRODUCT RETURN SERVICE

record_return() prices the returned goods and posts them through
process_return_refund on the customer or supplier:
- credit         the refund stays on the party balance
- cash / online  settled at once (fund OUT for customers, IN for suppliers)
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from ledger.models import Transaction
from ledger.services.exceptions import LedgerValidationError
from ledger.services.mutation_rules import (
    OP_PROCESS_RETURN_REFUND,
    RETURN_METHODS,
    RETURN_PARTY_TYPES,
    perform_account_mutation,
)
from trading.models import ProductReturn
from trading.services.common import (
    clean_date,
    clean_price,
    clean_quantity,
    clean_text,
    line_total,
)

logger = logging.getLogger("trading")


def record_return(
    *,
    party_type: str,
    party_id,
    product_name: str,
    quantity,
    unit_price,
    refund_method: str | None = None,
    bank_id=None,
    return_date=None,
    reason: str = "",
    description: str = "",
    proof_image: str | None = None,
    user=None,
) -> ProductReturn:
    errors: dict[str, str] = {}

    party_type = (party_type or "").strip().lower()
    if party_type not in RETURN_PARTY_TYPES:
        errors["party_type"] = f"Must be one of: {', '.join(RETURN_PARTY_TYPES)}."

    product_name = clean_text(product_name, field="product_name", errors=errors, max_length=150)
    qty = clean_quantity(quantity, errors=errors)
    price = clean_price(unit_price, field="unit_price", errors=errors)
    day = clean_date(return_date, field="return_date", errors=errors) or timezone.localdate()
    reason = clean_text(reason, field="reason", errors=errors, required=False, max_length=100)
    description = clean_text(description, field="description", errors=errors, required=False)

    method = (refund_method or Transaction.METHOD_CREDIT).strip().lower()
    if method not in RETURN_METHODS:
        errors["refund_method"] = f"Must be one of: {', '.join(RETURN_METHODS)}."

    if errors:
        raise LedgerValidationError(fields=errors)

    amount = line_total(qty, price)
    text = description or f"Return: {qty} x {product_name} @ {price}"
    if reason:
        text = f"{text} ({reason})"

    with transaction.atomic():
        result = perform_account_mutation(
            account_type=party_type,
            account_id=party_id,
            operation_kind=OP_PROCESS_RETURN_REFUND,
            amount=amount,
            payment_method=method,
            bank_id=bank_id if method == Transaction.METHOD_ONLINE else None,
            proof_image=proof_image,
            description=text,
            user=user,
            effective_date=day,
        )

        product_return = ProductReturn.objects.create(
            party=result.account,
            product_name=product_name,
            quantity=qty,
            unit_price=price,
            amount=amount,
            refund_method=method,
            bank=result.party_transaction.bank,
            reason=reason,
            description=description,
            return_date=day,
            posting_ref=result.posting_ref,
            transaction=result.party_transaction,
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )

    logger.info(
        "Product return recorded",
        extra={
            "return_id": product_return.pk,
            "party_id": product_return.party_id,
            "party_type": party_type,
            "amount": str(amount),
            "refund_method": method,
            "posting_ref": str(result.posting_ref),
        },
    )
    return product_return
