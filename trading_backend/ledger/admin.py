# ledger/admin.py

from django.contrib import admin

from ledger.models import Account, Cheque, Transaction

# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "account_type",
        "balance",
        "bank_name",
        "is_active",
    )
    list_filter = ("account_type", "is_active")
    search_fields = ("name", "phone", "bank_name", "account_number")
    ordering = ("account_type", "name")
    # balance is owned by the ledger services
    readonly_fields = ("balance", "created_at", "updated_at")


# ============================================================
# TRANSACTION (READ-ONLY)
# ============================================================


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "account",
        "direction",
        "amount",
        "payment_method",
        "source",
        "effective_date",
        "is_reversal",
    )
    list_filter = ("direction", "payment_method", "source", "is_reversal")
    search_fields = ("description", "posting_ref", "account__name")
    date_hierarchy = "effective_date"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# CHEQUE (READ-ONLY; transitions go through the API)
# ============================================================


@admin.register(Cheque)
class ChequeAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "cheque_number",
        "cheque_type",
        "amount",
        "beneficiary",
        "cheque_date",
        "state",
        "is_own",
    )
    list_filter = ("state", "cheque_type", "is_own")
    search_fields = ("cheque_number", "beneficiary__name", "account__name")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
