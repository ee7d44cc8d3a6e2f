# trading/admin.py

from django.contrib import admin

from trading.models import DamageWriteOff, Expense, ProductReturn, Sale


class _PostedRecordAdmin(admin.ModelAdmin):
    """
    Records are created through the API so the ledger postings happen;
    admin is a read-only audit view.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Sale)
class SaleAdmin(_PostedRecordAdmin):
    list_display = ("id", "sale_date", "customer", "product_name", "quantity", "total_amount", "cogs_amount")
    list_filter = ("sale_date", "payment_method")
    search_fields = ("product_name", "customer__name", "description")


@admin.register(Expense)
class ExpenseAdmin(_PostedRecordAdmin):
    list_display = ("id", "expense_date", "category", "amount", "payment_method", "is_reversal")
    list_filter = ("payment_method", "is_reversal", "expense_date")
    search_fields = ("category", "description")


@admin.register(ProductReturn)
class ProductReturnAdmin(_PostedRecordAdmin):
    list_display = ("id", "return_date", "party", "product_name", "quantity", "amount", "refund_method")
    list_filter = ("refund_method", "return_date")
    search_fields = ("product_name", "party__name", "reason")


@admin.register(DamageWriteOff)
class DamageWriteOffAdmin(admin.ModelAdmin):
    list_display = ("id", "damage_date", "product_name", "quantity", "loss_amount", "reason")
    list_filter = ("reason", "damage_date")
    search_fields = ("product_name", "description")
    readonly_fields = ("loss_amount", "created_at")
