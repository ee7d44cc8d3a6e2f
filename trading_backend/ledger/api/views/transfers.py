# ledger/api/views/transfers.py

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ledger.api.errors import service_error_response
from ledger.api.serializers.accounts import AccountSerializer
from ledger.api.serializers.ledger import FundTransferSerializer
from ledger.services.exceptions import LedgerServiceError
from ledger.services.transfer_service import transfer_funds
from permissions.roles import CAP_ACCOUNTS_MANAGE, HasCapability


class FundTransferView(GenericAPIView):
    """
    POST /api/ledger/transfers/  (bank <-> cash, bank <-> bank)
    """

    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_ACCOUNTS_MANAGE
    serializer_class = FundTransferSerializer

    @extend_schema(
        tags=["ledger"],
        request=FundTransferSerializer,
        responses={200: dict, 400: dict, 409: dict},
    )
    def post(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            source, destination = transfer_funds(
                from_type=data["from_type"],
                to_type=data["to_type"],
                amount=data["amount"],
                from_bank_id=data.get("from_bank_id"),
                to_bank_id=data.get("to_bank_id"),
                description=data.get("description", ""),
                user=request.user,
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(
            {
                "from_account": AccountSerializer(source).data,
                "to_account": AccountSerializer(destination).data,
            },
            status=status.HTTP_200_OK,
        )
