from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from ledger.models import Account
from ledger.tests.helpers import make_account, make_user


class ReportApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.today = timezone.localdate()
        make_account(Account.CASH, "Cash", "125.50")

    def test_cashier_cannot_view_reports(self):
        self.client.force_authenticate(make_user("cashier"))

        res = self.client.get("/api/reports/", {"period": "yearly", "year": self.today.year})

        self.assertEqual(res.status_code, 403)

    def test_accountant_gets_report_with_string_amounts(self):
        self.client.force_authenticate(make_user("accountant"))

        res = self.client.get(
            "/api/reports/",
            {"period": "monthly", "year": self.today.year, "month": self.today.month},
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["cash_balance"], "125.50")
        self.assertEqual(res.data["period"], "monthly")
        self.assertEqual(res.data["pending_cheques"]["count"], 0)

    def test_invalid_query_uses_canonical_error(self):
        self.client.force_authenticate(make_user("manager"))

        res = self.client.get("/api/reports/", {"period": "monthly", "year": self.today.year})

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")
        self.assertIn("month", res.data["error"]["fields"])
