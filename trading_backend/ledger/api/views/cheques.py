# ledger/api/views/cheques.py

"""
PATH: ledger/api/views/cheques.py

CHEQUES API

GET  /api/ledger/cheques/?state=&cheque_type=&beneficiary=   ledger.view
GET  /api/ledger/cheques/due/                                ledger.view
POST /api/ledger/cheques/<id>/transition/                    per action:
        cash_out / cash_out_transferred -> cheques.cash_out
        transfer                         -> cheques.transfer
        cancel                           -> cheques.cancel (admin/manager)
POST /api/ledger/cheques/cash-out/                           cheques.cash_out (batch)
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.errors import service_error_response
from ledger.api.serializers.cheques import (
    ChequeBatchCashOutSerializer,
    ChequeSerializer,
    ChequeTransitionSerializer,
)
from ledger.models import Cheque
from ledger.services.cheque_lifecycle import (
    ACTION_CANCEL,
    ACTION_TRANSFER,
    normalize_action,
)
from ledger.services.cheque_service import (
    cash_out_cheques,
    list_due_cheques,
    transition_cheque,
)
from ledger.services.exceptions import LedgerServiceError
from permissions.roles import (
    CAP_CHEQUES_CANCEL,
    CAP_CHEQUES_CASH_OUT,
    CAP_CHEQUES_TRANSFER,
    CAP_LEDGER_VIEW,
    HasCapability,
)

ACTION_CAPABILITIES = {
    ACTION_CANCEL: CAP_CHEQUES_CANCEL,
    ACTION_TRANSFER: CAP_CHEQUES_TRANSFER,
}


class ChequeListView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LEDGER_VIEW
    serializer_class = ChequeSerializer
    filterset_fields = ["state", "cheque_type", "beneficiary", "account", "bank"]

    def get_queryset(self):
        return Cheque.objects.select_related("account", "beneficiary", "bank").order_by(
            "cheque_date", "id"
        )

    @extend_schema(tags=["cheques"], responses=ChequeSerializer(many=True))
    def get(self, request, *args, **kwargs):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(ChequeSerializer(page, many=True).data)
        return Response(ChequeSerializer(qs, many=True).data, status=status.HTTP_200_OK)


class ChequeDueView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LEDGER_VIEW
    serializer_class = ChequeSerializer

    @extend_schema(tags=["cheques"], responses={200: dict})
    def get(self, request, *args, **kwargs):
        due = list_due_cheques()
        return Response(
            {
                "today": due["today"],
                "window_days": due["window_days"],
                "overdue": ChequeSerializer(due["overdue"], many=True).data,
                "due_today": ChequeSerializer(due["due_today"], many=True).data,
                "upcoming": ChequeSerializer(due["upcoming"], many=True).data,
            },
            status=status.HTTP_200_OK,
        )


class ChequeTransitionView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    serializer_class = ChequeTransitionSerializer

    def get_permissions(self):
        action = normalize_action(str(self.request.data.get("action", "")))
        self.required_capability = ACTION_CAPABILITIES.get(action, CAP_CHEQUES_CASH_OUT)
        return super().get_permissions()

    @extend_schema(
        tags=["cheques"],
        request=ChequeTransitionSerializer,
        responses={200: ChequeSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, pk, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        action = data.pop("action")

        try:
            cheque = transition_cheque(cheque_id=pk, action=action, user=request.user, **data)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(ChequeSerializer(cheque).data, status=status.HTTP_200_OK)


class ChequeBatchCashOutView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_CHEQUES_CASH_OUT
    serializer_class = ChequeBatchCashOutSerializer

    @extend_schema(
        tags=["cheques"],
        request=ChequeBatchCashOutSerializer,
        responses={200: dict, 207: dict},
    )
    def post(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = cash_out_cheques(items=s.validated_data["items"], user=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(
            {
                "succeeded": ChequeSerializer(result.succeeded, many=True).data,
                "failed": result.failed,
            },
            status=status.HTTP_200_OK if result.ok else status.HTTP_207_MULTI_STATUS,
        )
