# trading/api/serializers/records.py

from rest_framework import serializers

from trading.models import DamageWriteOff, Expense, ProductReturn, Sale


class SaleSerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth).
    """

    customer_name = serializers.CharField(source="customer.name", read_only=True)
    gross_profit = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    posting_ref = serializers.UUIDField(source="transaction.posting_ref", read_only=True, default=None)

    class Meta:
        model = Sale
        fields = [
            "id",
            "customer",
            "customer_name",
            "product_name",
            "quantity",
            "unit_price",
            "unit_cost",
            "total_amount",
            "cogs_amount",
            "gross_profit",
            "sale_date",
            "description",
            "payment_method",
            "transaction",
            "payment_transaction",
            "posting_ref",
            "created_at",
        ]
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):
    bank_name = serializers.CharField(source="bank.name", read_only=True, default=None)
    is_reversed = serializers.BooleanField(read_only=True)

    class Meta:
        model = Expense
        fields = [
            "id",
            "category",
            "amount",
            "payment_method",
            "bank",
            "bank_name",
            "expense_date",
            "description",
            "is_reversal",
            "reverses",
            "is_reversed",
            "transaction",
            "created_at",
        ]
        read_only_fields = fields


class ProductReturnSerializer(serializers.ModelSerializer):
    party_name = serializers.CharField(source="party.name", read_only=True)
    party_type = serializers.CharField(source="party.account_type", read_only=True)

    class Meta:
        model = ProductReturn
        fields = [
            "id",
            "party",
            "party_name",
            "party_type",
            "product_name",
            "quantity",
            "unit_price",
            "amount",
            "refund_method",
            "bank",
            "reason",
            "description",
            "return_date",
            "posting_ref",
            "transaction",
            "created_at",
        ]
        read_only_fields = fields


class DamageWriteOffSerializer(serializers.ModelSerializer):
    class Meta:
        model = DamageWriteOff
        fields = [
            "id",
            "product_name",
            "quantity",
            "unit_cost",
            "loss_amount",
            "damage_date",
            "reason",
            "description",
            "created_at",
        ]
        read_only_fields = fields
