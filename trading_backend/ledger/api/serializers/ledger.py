# ledger/api/serializers/ledger.py

from rest_framework import serializers


class LedgerEntrySerializer(serializers.Serializer):
    date = serializers.DateField(allow_null=True)
    created_at = serializers.DateTimeField(allow_null=True)
    tag = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    reference = serializers.CharField(allow_blank=True)
    debit = serializers.DecimalField(max_digits=16, decimal_places=2)
    credit = serializers.DecimalField(max_digits=16, decimal_places=2)
    running_balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    is_reversal = serializers.BooleanField()
    amount_missing = serializers.BooleanField()


class LedgerStatementSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    account_type = serializers.CharField()
    account_name = serializers.CharField()
    entries = serializers.SerializerMethodField()
    total_debit = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_credit = serializers.DecimalField(max_digits=16, decimal_places=2)
    closing_balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    stored_balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    discrepancy = serializers.DecimalField(max_digits=16, decimal_places=2)
    is_reconciled = serializers.BooleanField()

    def get_entries(self, obj):
        return LedgerEntrySerializer([e.as_dict() for e in obj.entries], many=True).data


class FundTransferSerializer(serializers.Serializer):
    from_type = serializers.ChoiceField(choices=["bank", "cash"])
    to_type = serializers.ChoiceField(choices=["bank", "cash"])
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    from_bank_id = serializers.IntegerField(required=False, allow_null=True)
    to_bank_id = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value
