# ledger/api/urls.py

from django.urls import path

from ledger.api.views.accounts import (
    AccountDeactivateView,
    AccountDetailView,
    AccountLedgerView,
    AccountListCreateView,
    AccountMutationView,
    TransactionDeleteView,
)
from ledger.api.views.cheques import (
    ChequeBatchCashOutView,
    ChequeDueView,
    ChequeListView,
    ChequeTransitionView,
)
from ledger.api.views.transfers import FundTransferView

urlpatterns = [
    # Accounts
    path("accounts/", AccountListCreateView.as_view(), name="ledger-accounts"),
    path("accounts/<int:pk>/", AccountDetailView.as_view(), name="ledger-account-detail"),
    path(
        "accounts/<int:pk>/deactivate/",
        AccountDeactivateView.as_view(),
        name="ledger-account-deactivate",
    ),
    path(
        "accounts/<str:account_type>/<int:pk>/mutations/",
        AccountMutationView.as_view(),
        name="ledger-account-mutations",
    ),
    path(
        "accounts/<str:account_type>/<int:pk>/ledger/",
        AccountLedgerView.as_view(),
        name="ledger-account-ledger",
    ),
    path(
        "accounts/<int:pk>/transactions/<int:tx_id>/",
        TransactionDeleteView.as_view(),
        name="ledger-transaction-delete",
    ),
    # Cheques
    path("cheques/", ChequeListView.as_view(), name="ledger-cheques"),
    path("cheques/due/", ChequeDueView.as_view(), name="ledger-cheques-due"),
    path("cheques/cash-out/", ChequeBatchCashOutView.as_view(), name="ledger-cheques-cash-out"),
    path(
        "cheques/<int:pk>/transition/",
        ChequeTransitionView.as_view(),
        name="ledger-cheque-transition",
    ),
    # Fund transfers
    path("transfers/", FundTransferView.as_view(), name="ledger-transfers"),
]
