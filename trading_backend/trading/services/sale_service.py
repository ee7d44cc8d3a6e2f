# trading/services/sale_service.py

"""
======================================================
PATH: trading/services/sale_service.py
======================================================
SALE SERVICE

record_sale():
- recognizes the receivable on the customer
    add_balance, payment_method=credit, source=sale
- when the customer pays at the counter (payment_method != credit),
  immediately settles it with a subtract_balance in the same
  database transaction (funds IN, or a pending cheque)
- stores the Sale with total_amount / cogs_amount for reporting

Both ledger postings go through ledger.services.mutation_rules, so every
balance rule (locking, proof image, cheque dates, bank checks) applies.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from ledger.models import Account, Transaction
from ledger.services.exceptions import LedgerValidationError
from ledger.services.mutation_rules import (
    OP_ADD_BALANCE,
    OP_SUBTRACT_BALANCE,
    PAYMENT_METHODS,
    perform_account_mutation,
)
from trading.models import Sale
from trading.services.common import (
    clean_cost,
    clean_date,
    clean_price,
    clean_quantity,
    clean_text,
    line_total,
)

logger = logging.getLogger("trading")


def default_sale_description(*, quantity: int, product_name: str, unit_price) -> str:
    return f"{quantity} x {product_name} @ {unit_price}"


def record_sale(
    *,
    customer_id,
    product_name: str,
    quantity,
    unit_price,
    unit_cost=None,
    sale_date=None,
    description: str = "",
    payment_method: str | None = None,
    bank_id=None,
    cheque_date=None,
    cheque_number: str = "",
    proof_image: str | None = None,
    user=None,
) -> Sale:
    errors: dict[str, str] = {}

    product_name = clean_text(product_name, field="product_name", errors=errors, max_length=150)
    qty = clean_quantity(quantity, errors=errors)
    price = clean_price(unit_price, field="unit_price", errors=errors)
    cost = clean_cost(unit_cost, field="unit_cost", errors=errors)
    day = clean_date(sale_date, field="sale_date", errors=errors) or timezone.localdate()
    description = clean_text(description, field="description", errors=errors, required=False)

    method = (payment_method or Transaction.METHOD_CREDIT).strip().lower()
    if method not in PAYMENT_METHODS:
        errors["payment_method"] = f"Must be one of: {', '.join(PAYMENT_METHODS)}."

    if errors:
        raise LedgerValidationError(fields=errors)

    total = line_total(qty, price)
    cogs = line_total(qty, cost)
    description = description or default_sale_description(
        quantity=qty,
        product_name=product_name,
        unit_price=price,
    )

    with transaction.atomic():
        recognized = perform_account_mutation(
            account_type=Account.CUSTOMER,
            account_id=customer_id,
            operation_kind=OP_ADD_BALANCE,
            amount=total,
            payment_method=Transaction.METHOD_CREDIT,
            description=description,
            user=user,
            source=Transaction.SOURCE_SALE,
            effective_date=day,
        )

        payment = None
        if method != Transaction.METHOD_CREDIT:
            payment = perform_account_mutation(
                account_type=Account.CUSTOMER,
                account_id=customer_id,
                operation_kind=OP_SUBTRACT_BALANCE,
                amount=total,
                payment_method=method,
                bank_id=bank_id,
                cheque_date=cheque_date,
                cheque_number=cheque_number,
                proof_image=proof_image,
                description=f"Payment for sale: {description}",
                user=user,
                effective_date=day,
            )

        sale = Sale.objects.create(
            customer=recognized.account,
            product_name=product_name,
            quantity=qty,
            unit_price=price,
            unit_cost=cost,
            total_amount=total,
            cogs_amount=cogs,
            sale_date=day,
            description=description,
            payment_method=method,
            transaction=recognized.party_transaction,
            payment_transaction=payment.party_transaction if payment else None,
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )

    logger.info(
        "Sale recorded",
        extra={
            "sale_id": sale.pk,
            "customer_id": sale.customer_id,
            "total_amount": str(total),
            "cogs_amount": str(cogs),
            "payment_method": method,
            "posting_ref": str(recognized.posting_ref),
        },
    )
    return sale
