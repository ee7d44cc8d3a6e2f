# trading/api/serializers/inputs.py

"""
Input serializers (Swagger-visible).

They only check shape; business rules live in trading.services and
answer with the canonical error body.
"""

from rest_framework import serializers

from ledger.services.mutation_rules import PAYMENT_METHODS, RETURN_METHODS, RETURN_PARTY_TYPES
from trading.models import DamageWriteOff, Expense


class _ProofMixin(serializers.Serializer):
    proof_image = serializers.FileField(required=False, allow_null=True)
    proof_image_url = serializers.CharField(required=False, allow_blank=True, max_length=500)


class SaleCreateSerializer(_ProofMixin):
    customer_id = serializers.IntegerField()
    product_name = serializers.CharField(max_length=150)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2)
    unit_cost = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    sale_date = serializers.DateField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, max_length=255)

    payment_method = serializers.ChoiceField(choices=PAYMENT_METHODS, required=False)
    bank_id = serializers.IntegerField(required=False, allow_null=True)
    cheque_date = serializers.DateField(required=False, allow_null=True)
    cheque_number = serializers.CharField(required=False, allow_blank=True, max_length=60)

    def validate_unit_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("unit_price must be > 0")
        return value


class ExpenseCreateSerializer(serializers.Serializer):
    category = serializers.CharField(max_length=100)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_method = serializers.ChoiceField(
        choices=[code for code, _label in Expense.PAYMENT_METHODS],
        required=False,
    )
    bank_id = serializers.IntegerField(required=False, allow_null=True)
    expense_date = serializers.DateField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value


class ExpenseReverseSerializer(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, max_length=255)


class ProductReturnCreateSerializer(_ProofMixin):
    party_type = serializers.ChoiceField(choices=RETURN_PARTY_TYPES)
    party_id = serializers.IntegerField()
    product_name = serializers.CharField(max_length=150)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2)
    refund_method = serializers.ChoiceField(choices=RETURN_METHODS, required=False)
    bank_id = serializers.IntegerField(required=False, allow_null=True)
    return_date = serializers.DateField(required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, max_length=255)


class DamageCreateSerializer(serializers.Serializer):
    product_name = serializers.CharField(max_length=150)
    quantity = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    damage_date = serializers.DateField(required=False, allow_null=True)
    reason = serializers.ChoiceField(choices=DamageWriteOff.REASONS, required=False)
    description = serializers.CharField(required=False, allow_blank=True, max_length=255)
