# ledger/api/serializers/transactions.py

from rest_framework import serializers

from ledger.models import Transaction
from ledger.services.mutation_rules import OPERATION_ALIASES, OPERATION_KINDS


class TransactionSerializer(serializers.ModelSerializer):
    bank_name = serializers.CharField(source="bank.name", read_only=True, default=None)
    created_by_email = serializers.EmailField(source="created_by.email", read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "account",
            "amount",
            "direction",
            "payment_method",
            "source",
            "operation_kind",
            "description",
            "bank",
            "bank_name",
            "cheque_date",
            "proof_image",
            "posting_ref",
            "is_reversal",
            "reverses",
            "effective_date",
            "created_by_email",
            "created_at",
        ]
        read_only_fields = fields


class AccountMutationSerializer(serializers.Serializer):
    """
    Input serializer for applyAccountMutation.

    Shape only; business rules (bank / cheque date / proof / discount bounds)
    are enforced by the mutation service so every caller gets them.
    """

    operation_kind = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_method = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    bank_id = serializers.IntegerField(required=False, allow_null=True)
    cheque_date = serializers.DateField(required=False, allow_null=True)
    cheque_type = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    cheque_number = serializers.CharField(required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    effective_date = serializers.DateField(required=False, allow_null=True)

    proof_image = serializers.FileField(required=False, allow_null=True)
    proof_image_url = serializers.CharField(required=False, allow_blank=True, max_length=500)

    def validate_operation_kind(self, value):
        kind = OPERATION_ALIASES.get(value.strip(), value.strip().lower())
        if kind not in OPERATION_KINDS:
            raise serializers.ValidationError(f"Must be one of: {', '.join(OPERATION_KINDS)}")
        return kind
