# trading/models/damage.py

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class DamageWriteOff(models.Model):
    """
    Stock written off as damaged. No balance effect; the loss feeds
    damage_loss in reports.
    """

    REASON_PHYSICAL = "physical_damage"
    REASON_EXPIRED = "expired"
    REASON_DEFECT = "manufacturing_defect"
    REASON_WATER = "water_damage"
    REASON_FIRE = "fire_damage"
    REASON_THEFT = "theft_loss"
    REASON_OTHER = "other"

    REASONS = [
        (REASON_PHYSICAL, "Physical damage"),
        (REASON_EXPIRED, "Expired"),
        (REASON_DEFECT, "Manufacturing defect"),
        (REASON_WATER, "Water damage"),
        (REASON_FIRE, "Fire damage"),
        (REASON_THEFT, "Theft / loss"),
        (REASON_OTHER, "Other"),
    ]

    product_name = models.CharField(max_length=150)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_cost = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    loss_amount = models.DecimalField(max_digits=14, decimal_places=2)

    damage_date = models.DateField(default=timezone.localdate)
    reason = models.CharField(max_length=30, choices=REASONS, default=REASON_OTHER)
    description = models.CharField(max_length=255, blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="trading_damages",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-damage_date", "-created_at"]
        verbose_name = "Damage write-off"
        verbose_name_plural = "Damage write-offs"
        indexes = [
            models.Index(fields=["damage_date"], name="trading_damage_date_idx"),
        ]

    def __str__(self):
        return f"Damage #{self.pk} {self.quantity} x {self.product_name} ({self.loss_amount})"
