# reporting/api/views.py

"""
PATH: reporting/api/views.py

FINANCIAL REPORT API

GET /api/reports/?period=monthly&year=2025&month=6
GET /api/reports/?period=daily&year=2025&month=6&day=14
GET /api/reports/?period=yearly&year=2025

- Permission-gated: requires reports.view
- Money values are returned as 2dp strings
"""

from __future__ import annotations

from decimal import Decimal

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger.api.errors import service_error_response
from ledger.services.exceptions import LedgerServiceError
from permissions.roles import CAP_REPORTS_VIEW, HasCapability
from reporting.services.report_service import PERIODS, get_report


def _jsonable(value):
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


class ReportView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_REPORTS_VIEW

    @extend_schema(
        tags=["reports"],
        parameters=[
            OpenApiParameter(
                name="period",
                type=str,
                enum=list(PERIODS),
                location=OpenApiParameter.QUERY,
                required=True,
            ),
            OpenApiParameter(name="year", type=int, location=OpenApiParameter.QUERY, required=True),
            OpenApiParameter(
                name="month",
                type=int,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Required for daily and monthly reports.",
            ),
            OpenApiParameter(
                name="day",
                type=int,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Daily reports only. Narrows the report to one date.",
            ),
        ],
        responses={200: dict, 400: dict, 403: dict},
    )
    def get(self, request):
        params = request.query_params

        try:
            data = get_report(
                period=params.get("period"),
                year=params.get("year"),
                month=params.get("month"),
                day=params.get("day"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(_jsonable(data), status=status.HTTP_200_OK)
