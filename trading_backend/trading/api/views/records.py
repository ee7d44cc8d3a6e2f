# trading/api/views/records.py

"""
PATH: trading/api/views/records.py

TRADING API

GET  /api/trading/sales/                    ledger.view
POST /api/trading/sales/                    ledger.post
GET  /api/trading/expenses/                 ledger.view
POST /api/trading/expenses/                 ledger.post
POST /api/trading/expenses/<id>/reverse/    ledger.reverse (admin/manager)
GET  /api/trading/returns/                  ledger.view
POST /api/trading/returns/                  ledger.post
GET  /api/trading/damages/                  ledger.view
POST /api/trading/damages/                  ledger.post
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.errors import service_error_response
from ledger.services.exceptions import LedgerServiceError
from ledger.services.proof_storage import stored_proof
from permissions.roles import (
    CAP_LEDGER_POST,
    CAP_LEDGER_REVERSE,
    CAP_LEDGER_VIEW,
    HasCapability,
)
from trading.api.serializers.inputs import (
    DamageCreateSerializer,
    ExpenseCreateSerializer,
    ExpenseReverseSerializer,
    ProductReturnCreateSerializer,
    SaleCreateSerializer,
)
from trading.api.serializers.records import (
    DamageWriteOffSerializer,
    ExpenseSerializer,
    ProductReturnSerializer,
    SaleSerializer,
)
from trading.models import DamageWriteOff, Expense, ProductReturn, Sale
from trading.services.damage_service import record_damage
from trading.services.expense_service import record_expense, reverse_expense
from trading.services.return_service import record_return
from trading.services.sale_service import record_sale


class _RecordListCreateView(GenericAPIView):
    """
    Paginated list (ledger.view) + create (ledger.post).

    Subclasses provide the queryset, the output serializer, the input
    serializer and perform_create(request, data).
    """

    permission_classes = [IsAuthenticated, HasCapability]
    input_serializer_class = None

    def get_permissions(self):
        self.required_capability = (
            CAP_LEDGER_POST if self.request.method == "POST" else CAP_LEDGER_VIEW
        )
        return super().get_permissions()

    def list_response(self):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        serializer_class = self.get_serializer_class()
        if page is not None:
            return self.get_paginated_response(serializer_class(page, many=True).data)
        return Response(serializer_class(qs, many=True).data, status=status.HTTP_200_OK)

    def create_response(self, request):
        s = self.input_serializer_class(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            record = self.perform_create(request, s.validated_data)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(self.get_serializer_class()(record).data, status=status.HTTP_201_CREATED)

    def perform_create(self, request, data):
        raise NotImplementedError


class SaleListCreateView(_RecordListCreateView):
    serializer_class = SaleSerializer
    input_serializer_class = SaleCreateSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filterset_fields = ["customer", "sale_date", "payment_method"]

    def get_queryset(self):
        return Sale.objects.select_related("customer", "transaction").order_by("-sale_date", "-created_at")

    @extend_schema(tags=["trading"], responses=SaleSerializer(many=True))
    def get(self, request, *args, **kwargs):
        return self.list_response()

    @extend_schema(
        tags=["trading"],
        request=SaleCreateSerializer,
        responses={201: SaleSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, *args, **kwargs):
        return self.create_response(request)

    def perform_create(self, request, data):
        with stored_proof(data) as proof_url:
            return record_sale(
                customer_id=data["customer_id"],
                product_name=data["product_name"],
                quantity=data["quantity"],
                unit_price=data["unit_price"],
                unit_cost=data.get("unit_cost"),
                sale_date=data.get("sale_date"),
                description=data.get("description", ""),
                payment_method=data.get("payment_method"),
                bank_id=data.get("bank_id"),
                cheque_date=data.get("cheque_date"),
                cheque_number=data.get("cheque_number", ""),
                proof_image=proof_url,
                user=request.user,
            )


class ExpenseListCreateView(_RecordListCreateView):
    serializer_class = ExpenseSerializer
    input_serializer_class = ExpenseCreateSerializer
    filterset_fields = ["category", "payment_method", "is_reversal", "expense_date"]

    def get_queryset(self):
        return Expense.objects.select_related("bank").order_by("-expense_date", "-created_at")

    @extend_schema(tags=["trading"], responses=ExpenseSerializer(many=True))
    def get(self, request, *args, **kwargs):
        return self.list_response()

    @extend_schema(
        tags=["trading"],
        request=ExpenseCreateSerializer,
        responses={201: ExpenseSerializer, 400: dict, 403: dict, 409: dict},
    )
    def post(self, request, *args, **kwargs):
        return self.create_response(request)

    def perform_create(self, request, data):
        return record_expense(
            category=data["category"],
            amount=data["amount"],
            payment_method=data.get("payment_method"),
            bank_id=data.get("bank_id"),
            expense_date=data.get("expense_date"),
            description=data.get("description", ""),
            user=request.user,
        )


class ExpenseReverseView(GenericAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LEDGER_REVERSE
    serializer_class = ExpenseReverseSerializer

    @extend_schema(
        tags=["trading"],
        request=ExpenseReverseSerializer,
        responses={201: ExpenseSerializer, 400: dict, 403: dict, 404: dict},
    )
    def post(self, request, pk, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            reversal = reverse_expense(
                expense_id=pk,
                user=request.user,
                description=s.validated_data.get("description", ""),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(ExpenseSerializer(reversal).data, status=status.HTTP_201_CREATED)


class ProductReturnListCreateView(_RecordListCreateView):
    serializer_class = ProductReturnSerializer
    input_serializer_class = ProductReturnCreateSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filterset_fields = ["party", "refund_method", "return_date"]

    def get_queryset(self):
        return ProductReturn.objects.select_related("party").order_by("-return_date", "-created_at")

    @extend_schema(tags=["trading"], responses=ProductReturnSerializer(many=True))
    def get(self, request, *args, **kwargs):
        return self.list_response()

    @extend_schema(
        tags=["trading"],
        request=ProductReturnCreateSerializer,
        responses={201: ProductReturnSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, *args, **kwargs):
        return self.create_response(request)

    def perform_create(self, request, data):
        with stored_proof(data) as proof_url:
            return record_return(
                party_type=data["party_type"],
                party_id=data["party_id"],
                product_name=data["product_name"],
                quantity=data["quantity"],
                unit_price=data["unit_price"],
                refund_method=data.get("refund_method"),
                bank_id=data.get("bank_id"),
                return_date=data.get("return_date"),
                reason=data.get("reason", ""),
                description=data.get("description", ""),
                proof_image=proof_url,
                user=request.user,
            )


class DamageListCreateView(_RecordListCreateView):
    serializer_class = DamageWriteOffSerializer
    input_serializer_class = DamageCreateSerializer
    filterset_fields = ["reason", "damage_date"]

    def get_queryset(self):
        return DamageWriteOff.objects.all().order_by("-damage_date", "-created_at")

    @extend_schema(tags=["trading"], responses=DamageWriteOffSerializer(many=True))
    def get(self, request, *args, **kwargs):
        return self.list_response()

    @extend_schema(
        tags=["trading"],
        request=DamageCreateSerializer,
        responses={201: DamageWriteOffSerializer, 400: dict, 403: dict},
    )
    def post(self, request, *args, **kwargs):
        return self.create_response(request)

    def perform_create(self, request, data):
        return record_damage(
            product_name=data["product_name"],
            quantity=data["quantity"],
            unit_cost=data["unit_cost"],
            damage_date=data.get("damage_date"),
            reason=data.get("reason"),
            description=data.get("description", ""),
            user=request.user,
        )
