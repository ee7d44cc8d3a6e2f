from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from ledger.models import Account
from ledger.tests.helpers import make_account, make_user, reload
from trading.models import Expense


class TradingApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.cashier = make_user("cashier")
        self.manager = make_user("manager")
        self.customer = make_account(Account.CUSTOMER, "Ali Traders")
        self.cash = make_account(Account.CASH, "Cash", "1000.00")

    def test_requires_authentication(self):
        res = self.client.get("/api/trading/sales/")
        self.assertEqual(res.status_code, 401)

    def test_cashier_records_and_lists_sales(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post(
            "/api/trading/sales/",
            {
                "customer_id": self.customer.pk,
                "product_name": "Rice",
                "quantity": 2,
                "unit_price": "150.00",
                "unit_cost": "100.00",
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["total_amount"], "300.00")
        self.assertEqual(res.data["customer_name"], "Ali Traders")
        self.assertEqual(reload(self.customer).balance, Decimal("300.00"))

        res = self.client.get("/api/trading/sales/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["product_name"], "Rice")

    def test_service_errors_use_canonical_body(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post(
            "/api/trading/expenses/",
            {"category": "Rent", "amount": "5000.00", "payment_method": "cash"},
            format="json",
        )

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "INSUFFICIENT_FUNDS")

    def test_only_privileged_roles_reverse_expenses(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.post(
            "/api/trading/expenses/",
            {"category": "Rent", "amount": "250.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        expense_id = res.data["id"]

        res = self.client.post(f"/api/trading/expenses/{expense_id}/reverse/", {}, format="json")
        self.assertEqual(res.status_code, 403)

        self.client.force_authenticate(self.manager)
        res = self.client.post(f"/api/trading/expenses/{expense_id}/reverse/", {}, format="json")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertTrue(res.data["is_reversal"])
        self.assertEqual(reload(self.cash).balance, Decimal("1000.00"))
        self.assertEqual(Expense.objects.count(), 2)

    def test_return_validation_error_is_field_identified(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post(
            "/api/trading/returns/",
            {
                "party_type": "customer",
                "party_id": self.customer.pk,
                "product_name": "Rice",
                "quantity": 1,
                "unit_price": "10.00",
                "refund_method": "online",
            },
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertIn("bank_id", res.data["error"]["fields"])

    def test_damage_write_off(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post(
            "/api/trading/damages/",
            {"product_name": "Eggs", "quantity": 6, "unit_cost": "3.00", "reason": "physical_damage"},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["loss_amount"], "18.00")
