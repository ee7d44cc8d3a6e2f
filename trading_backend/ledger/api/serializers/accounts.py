# ledger/api/serializers/accounts.py

from rest_framework import serializers

from ledger.models import Account


class AccountSerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth). balance is read-only everywhere.
    """

    class Meta:
        model = Account
        fields = [
            "id",
            "name",
            "account_type",
            "phone",
            "bank_name",
            "account_number",
            "balance",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AccountCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    account_type = serializers.ChoiceField(choices=Account.ACCOUNT_TYPES)
    opening_balance = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, default="0.00"
    )
    phone = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")
    bank_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")
    account_number = serializers.CharField(
        max_length=60, required=False, allow_blank=True, default=""
    )

    def validate(self, attrs):
        if attrs["account_type"] == Account.BANK and not (attrs.get("bank_name") or "").strip():
            raise serializers.ValidationError({"bank_name": "bank_name is required for bank accounts"})
        return attrs


class AccountUpdateSerializer(serializers.Serializer):
    """
    PATCH body. Only details are editable; balance moves through postings.
    """

    name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=40, required=False, allow_blank=True)
    bank_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    account_number = serializers.CharField(max_length=60, required=False, allow_blank=True)

    READ_ONLY_KEYS = ("balance", "account_type", "is_active", "opening_balance")

    def validate(self, attrs):
        blocked = {
            key: "This field cannot be changed."
            for key in self.READ_ONLY_KEYS
            if key in self.initial_data
        }
        if blocked:
            raise serializers.ValidationError(blocked)
        if not attrs:
            raise serializers.ValidationError("Nothing to update.")
        return attrs
