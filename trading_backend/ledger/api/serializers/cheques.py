# ledger/api/serializers/cheques.py

from rest_framework import serializers

from ledger.models import Cheque
from ledger.services.cheque_lifecycle import ACTION_ALIASES, ACTIONS


class ChequeSerializer(serializers.ModelSerializer):
    """
    Output serializer. Exposes the single `state` plus the legacy boolean view.
    """

    account_name = serializers.CharField(source="account.name", read_only=True)
    beneficiary_name = serializers.CharField(source="beneficiary.name", read_only=True)
    beneficiary_type = serializers.CharField(source="beneficiary.account_type", read_only=True)
    bank_name = serializers.CharField(source="bank.name", read_only=True, default=None)

    status = serializers.BooleanField(read_only=True)
    cancelled = serializers.BooleanField(read_only=True)
    transferred = serializers.BooleanField(read_only=True)
    transferred_cashed_out = serializers.BooleanField(read_only=True)

    class Meta:
        model = Cheque
        fields = [
            "id",
            "account",
            "account_name",
            "beneficiary",
            "beneficiary_name",
            "beneficiary_type",
            "cheque_type",
            "amount",
            "bank",
            "bank_name",
            "cheque_date",
            "cheque_number",
            "cheque_image",
            "state",
            "status",
            "cancelled",
            "transferred",
            "transferred_cashed_out",
            "is_own",
            "cleared_to",
            "cleared_at",
            "cancelled_at",
            "transferred_at",
            "description",
            "created_at",
        ]
        read_only_fields = fields


class ChequeTransitionSerializer(serializers.Serializer):
    action = serializers.CharField()
    destination = serializers.ChoiceField(choices=["bank", "cash"], required=False, allow_null=True)
    bank_id = serializers.IntegerField(required=False, allow_null=True)
    target_type = serializers.ChoiceField(choices=["customer", "supplier"], required=False)
    target_id = serializers.IntegerField(required=False)
    confirm = serializers.BooleanField(required=False, default=False)

    def validate_action(self, value):
        action = ACTION_ALIASES.get(value.strip(), value.strip().lower())
        if action not in ACTIONS:
            raise serializers.ValidationError(f"Must be one of: {', '.join(ACTIONS)}")
        return action

    def validate(self, attrs):
        if attrs["action"] == "transfer":
            missing = {
                k: "This field is required for transfer."
                for k in ("target_type", "target_id")
                if attrs.get(k) in (None, "")
            }
            if missing:
                raise serializers.ValidationError(missing)
        return attrs


class ChequeCashOutItemSerializer(serializers.Serializer):
    cheque_id = serializers.IntegerField()
    destination = serializers.ChoiceField(choices=["bank", "cash"], required=False, allow_null=True)
    bank_id = serializers.IntegerField(required=False, allow_null=True)


class ChequeBatchCashOutSerializer(serializers.Serializer):
    items = ChequeCashOutItemSerializer(many=True, allow_empty=False)
