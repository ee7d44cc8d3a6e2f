# ledger/api/views/accounts.py

"""
PATH: ledger/api/views/accounts.py

ACCOUNTS + MUTATIONS + LEDGER API

GET  /api/ledger/accounts/                                 ledger.view
POST /api/ledger/accounts/                                 accounts.manage
GET  /api/ledger/accounts/<id>/                            ledger.view
PATCH /api/ledger/accounts/<id>/                           accounts.manage
POST /api/ledger/accounts/<id>/deactivate/                 accounts.manage
POST /api/ledger/accounts/<type>/<id>/mutations/           ledger.post
GET  /api/ledger/accounts/<type>/<id>/ledger/              ledger.view
DELETE /api/ledger/accounts/<id>/transactions/<tx_id>/     ledger.delete (admin/manager)
"""

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.errors import service_error_response
from ledger.api.serializers.accounts import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
)
from ledger.api.serializers.ledger import LedgerStatementSerializer
from ledger.api.serializers.transactions import AccountMutationSerializer
from ledger.models import Account
from ledger.services.account_service import (
    create_account,
    deactivate_account,
    update_account,
)
from ledger.services.exceptions import LedgerServiceError
from ledger.services.ledger_service import list_ledger
from ledger.services.mutation_rules import apply_account_mutation
from ledger.services.proof_storage import stored_proof
from ledger.services.transaction_service import delete_transaction
from permissions.roles import (
    CAP_ACCOUNTS_MANAGE,
    CAP_LEDGER_DELETE,
    CAP_LEDGER_POST,
    CAP_LEDGER_VIEW,
    HasCapability,
)


class AccountListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = AccountSerializer
    filterset_fields = ["account_type", "is_active"]

    def get_permissions(self):
        self.required_capability = (
            CAP_ACCOUNTS_MANAGE if self.request.method == "POST" else CAP_LEDGER_VIEW
        )
        return super().get_permissions()

    def get_queryset(self):
        return Account.objects.all().order_by("account_type", "name")

    @extend_schema(tags=["ledger"], responses=AccountSerializer(many=True))
    def get(self, request, *args, **kwargs):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(AccountSerializer(page, many=True).data)
        return Response(AccountSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["ledger"],
        request=AccountCreateSerializer,
        responses={201: AccountSerializer, 400: dict, 403: dict},
    )
    def post(self, request, *args, **kwargs):
        s = AccountCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            account = create_account(
                name=data["name"],
                account_type=data["account_type"],
                opening_balance=data.get("opening_balance"),
                phone=data.get("phone", ""),
                bank_name=data.get("bank_name", ""),
                account_number=data.get("account_number", ""),
                user=request.user,
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(AccountSerializer(account).data, status=status.HTTP_201_CREATED)


class AccountDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = AccountSerializer

    def get_permissions(self):
        self.required_capability = (
            CAP_ACCOUNTS_MANAGE if self.request.method == "PATCH" else CAP_LEDGER_VIEW
        )
        return super().get_permissions()

    @extend_schema(tags=["ledger"], responses=AccountSerializer)
    def get(self, request, pk, *args, **kwargs):
        account = get_object_or_404(Account, pk=pk)
        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["ledger"],
        request=AccountUpdateSerializer,
        responses={200: AccountSerializer, 400: dict, 403: dict, 404: dict},
    )
    def patch(self, request, pk, *args, **kwargs):
        s = AccountUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            account = update_account(
                account_id=pk,
                changes=dict(s.validated_data),
                user=request.user,
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)


class AccountDeactivateView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_ACCOUNTS_MANAGE

    @extend_schema(
        tags=["ledger"],
        request=None,
        responses={200: AccountSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, pk, *args, **kwargs):
        try:
            account = deactivate_account(account_id=pk, user=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)


class AccountMutationView(GenericAPIView):
    """
    applyAccountMutation. Accepts JSON, or multipart with a proof_image file.
    """

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LEDGER_POST
    serializer_class = AccountMutationSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        tags=["ledger"],
        request=AccountMutationSerializer,
        responses={200: AccountSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, account_type, pk, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            with stored_proof(data) as proof_url:
                account = apply_account_mutation(
                    account_type=account_type,
                    account_id=pk,
                    operation_kind=data["operation_kind"],
                    amount=data["amount"],
                    payment_method=data.get("payment_method"),
                    bank_id=data.get("bank_id"),
                    cheque_date=data.get("cheque_date"),
                    description=data.get("description", ""),
                    proof_image=proof_url,
                    cheque_type=data.get("cheque_type") or None,
                    cheque_number=data.get("cheque_number", ""),
                    effective_date=data.get("effective_date"),
                    user=request.user,
                )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)


class AccountLedgerView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LEDGER_VIEW
    serializer_class = LedgerStatementSerializer

    @extend_schema(tags=["ledger"], responses={200: LedgerStatementSerializer, 404: dict})
    def get(self, request, account_type, pk, *args, **kwargs):
        try:
            statement = list_ledger(account_type=account_type, account_id=pk)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(LedgerStatementSerializer(statement).data, status=status.HTTP_200_OK)


class TransactionDeleteView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LEDGER_DELETE

    @extend_schema(tags=["ledger"], responses={200: dict, 403: dict, 404: dict, 409: dict})
    def delete(self, request, pk, tx_id, *args, **kwargs):
        try:
            result = delete_transaction(account_id=pk, transaction_id=tx_id, user=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(result, status=status.HTTP_200_OK)
