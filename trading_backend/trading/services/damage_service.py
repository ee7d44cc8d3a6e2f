# trading/services/damage_service.py

from __future__ import annotations

import logging

from django.utils import timezone

from ledger.services.access import require_capability_if_user
from ledger.services.exceptions import LedgerValidationError
from permissions.roles import CAP_LEDGER_POST
from trading.models import DamageWriteOff
from trading.services.common import (
    clean_cost,
    clean_date,
    clean_quantity,
    clean_text,
    line_total,
)

logger = logging.getLogger("trading")

DAMAGE_REASONS = tuple(code for code, _label in DamageWriteOff.REASONS)


def record_damage(
    *,
    product_name: str,
    quantity,
    unit_cost,
    damage_date=None,
    reason: str | None = None,
    description: str = "",
    user=None,
) -> DamageWriteOff:
    """
    Write off damaged stock at cost. No account balance changes.
    """
    require_capability_if_user(user, CAP_LEDGER_POST, action="record damaged stock")

    errors: dict[str, str] = {}
    product_name = clean_text(product_name, field="product_name", errors=errors, max_length=150)
    qty = clean_quantity(quantity, errors=errors)
    if unit_cost in (None, ""):
        errors["unit_cost"] = "This field is required."
    cost = clean_cost(unit_cost, field="unit_cost", errors=errors)
    day = clean_date(damage_date, field="damage_date", errors=errors) or timezone.localdate()
    description = clean_text(description, field="description", errors=errors, required=False)

    reason = (reason or DamageWriteOff.REASON_OTHER).strip().lower()
    if reason not in DAMAGE_REASONS:
        errors["reason"] = f"Must be one of: {', '.join(DAMAGE_REASONS)}."

    if errors:
        raise LedgerValidationError(fields=errors)

    damage = DamageWriteOff.objects.create(
        product_name=product_name,
        quantity=qty,
        unit_cost=cost,
        loss_amount=line_total(qty, cost),
        damage_date=day,
        reason=reason,
        description=description,
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )

    logger.info(
        "Damage written off",
        extra={
            "damage_id": damage.pk,
            "loss_amount": str(damage.loss_amount),
            "reason": reason,
        },
    )
    return damage
