# trading/api/urls.py

from django.urls import path

from trading.api.views.records import (
    DamageListCreateView,
    ExpenseListCreateView,
    ExpenseReverseView,
    ProductReturnListCreateView,
    SaleListCreateView,
)

urlpatterns = [
    path("sales/", SaleListCreateView.as_view(), name="sales"),
    path("expenses/", ExpenseListCreateView.as_view(), name="expenses"),
    path("expenses/<int:pk>/reverse/", ExpenseReverseView.as_view(), name="expense-reverse"),
    path("returns/", ProductReturnListCreateView.as_view(), name="returns"),
    path("damages/", DamageListCreateView.as_view(), name="damages"),
]
