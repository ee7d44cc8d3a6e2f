# ledger/tests/test_api.py

from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from ledger.models import Account, Cheque
from ledger.services.cheque_service import cash_out_cheque
from ledger.services.mutation_rules import perform_account_mutation
from ledger.tests.helpers import make_account, make_user, reload


class AccountApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.cashier = make_user("cashier")
        self.accountant = make_user("accountant")
        self.customer = make_account(Account.CUSTOMER, "Ali Traders")
        self.cash = make_account(Account.CASH, "Cash", "1000.00")
        self.bank = make_account(Account.BANK, "Main Bank", "800.00")

    def test_requires_authentication(self):
        res = self.client.get("/api/ledger/accounts/")
        self.assertEqual(res.status_code, 401)

    def test_list_accounts_with_filter(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.get("/api/ledger/accounts/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 3)

        res = self.client.get("/api/ledger/accounts/", {"account_type": "bank"})
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["name"], "Main Bank")

    def test_account_creation_needs_accounts_capability(self):
        payload = {"name": "Rice Mills", "account_type": "supplier", "opening_balance": "100.00"}

        self.client.force_authenticate(self.cashier)
        res = self.client.post("/api/ledger/accounts/", payload, format="json")
        self.assertEqual(res.status_code, 403)

        self.client.force_authenticate(self.accountant)
        res = self.client.post("/api/ledger/accounts/", payload, format="json")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["balance"], "100.00")

    def test_bank_account_needs_bank_name(self):
        self.client.force_authenticate(self.accountant)
        res = self.client.post(
            "/api/ledger/accounts/",
            {"name": "Second Bank", "account_type": "bank"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_patch_account_details(self):
        url = f"/api/ledger/accounts/{self.bank.pk}/"

        self.client.force_authenticate(self.cashier)
        self.assertEqual(self.client.patch(url, {"name": "HBL"}, format="json").status_code, 403)

        self.client.force_authenticate(self.accountant)
        res = self.client.patch(url, {"name": "HBL", "account_number": "77-1"}, format="json")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["name"], "HBL")
        self.assertEqual(res.data["balance"], "800.00")

        res = self.client.patch(url, {"balance": "99999.00"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(reload(self.bank).balance, Decimal("800.00"))

    def test_deactivate_account(self):
        self.client.force_authenticate(self.accountant)

        res = self.client.post(f"/api/ledger/accounts/{self.bank.pk}/deactivate/")
        self.assertEqual(res.status_code, 400)
        self.assertIn("balance", res.data["error"]["fields"])

        res = self.client.post(f"/api/ledger/accounts/{self.customer.pk}/deactivate/")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertFalse(res.data["is_active"])

        res = self.client.get("/api/ledger/accounts/", {"is_active": "false"})
        self.assertEqual(res.data["count"], 1)

    def test_mutation_endpoint(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post(
            f"/api/ledger/accounts/customer/{self.customer.pk}/mutations/",
            {"operation_kind": "addBalance", "amount": "250.00", "payment_method": "credit"},
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["balance"], "250.00")

    @override_settings(LEDGER_REQUIRE_PROOF_IMAGE=True)
    def test_mutation_field_errors(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post(
            f"/api/ledger/accounts/customer/{self.customer.pk}/mutations/",
            {"operation_kind": "subtract_balance", "amount": "50.00", "payment_method": "online"},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        error = res.data["error"]
        self.assertEqual(error["code"], "VALIDATION_ERROR")
        self.assertIn("bank_id", error["fields"])
        self.assertIn("proof_image", error["fields"])

    def test_foreign_proof_url_is_rejected(self):
        self.client.force_authenticate(self.cashier)

        for proof_url in ("x", "https://files.example.com/proof.jpg", "/media/proofs/missing.png"):
            res = self.client.post(
                f"/api/ledger/accounts/customer/{self.customer.pk}/mutations/",
                {
                    "operation_kind": "subtract_balance",
                    "amount": "50.00",
                    "payment_method": "online",
                    "bank_id": self.bank.pk,
                    "proof_image_url": proof_url,
                },
                format="json",
            )

            self.assertEqual(res.status_code, 400, proof_url)
            self.assertIn("proof_image", res.data["error"]["fields"])

        self.assertEqual(reload(self.bank).balance, Decimal("800.00"))
        self.assertEqual(reload(self.customer).balance, Decimal("0.00"))

    def test_mutation_of_missing_account_is_404(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.post(
            "/api/ledger/accounts/customer/999999/mutations/",
            {"operation_kind": "add_balance", "amount": "1.00", "payment_method": "credit"},
            format="json",
        )

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    def test_ledger_endpoint(self):
        perform_account_mutation(
            account_type="customer",
            account_id=self.customer.pk,
            operation_kind="add_balance",
            amount="300",
            payment_method="credit",
        )
        self.client.force_authenticate(self.cashier)

        res = self.client.get(f"/api/ledger/accounts/customer/{self.customer.pk}/ledger/")

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["is_reconciled"])
        self.assertEqual(len(res.data["entries"]), 1)
        self.assertEqual(res.data["entries"][0]["running_balance"], "300.00")

    def test_delete_posting_is_admin_only(self):
        result = perform_account_mutation(
            account_type="customer",
            account_id=self.customer.pk,
            operation_kind="subtract_balance",
            amount="100",
            payment_method="cash",
        )
        url = f"/api/ledger/accounts/{self.customer.pk}/transactions/{result.party_transaction.pk}/"

        self.client.force_authenticate(self.accountant)
        self.assertEqual(self.client.delete(url).status_code, 403)

        self.client.force_authenticate(make_user("admin"))
        res = self.client.delete(url)
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(reload(self.cash).balance, Decimal("1000.00"))

    def test_fund_transfer_endpoint(self):
        self.client.force_authenticate(self.accountant)

        res = self.client.post(
            "/api/ledger/transfers/",
            {"from_type": "cash", "to_type": "bank", "to_bank_id": self.bank.pk, "amount": "400.00"},
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["from_account"]["balance"], "600.00")
        self.assertEqual(res.data["to_account"]["balance"], "1200.00")

        res = self.client.post(
            "/api/ledger/transfers/",
            {"from_type": "cash", "to_type": "bank", "to_bank_id": self.bank.pk, "amount": "5000.00"},
            format="json",
        )
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "INSUFFICIENT_FUNDS")


@override_settings(LEDGER_REQUIRE_PROOF_IMAGE=False)
class ChequeApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.accountant = make_user("accountant")
        self.customer = make_account(Account.CUSTOMER, "Ali Traders")
        self.bank = make_account(Account.BANK, "Main Bank", "0.00")

    def _cheque(self, amount="100") -> Cheque:
        return perform_account_mutation(
            account_type="customer",
            account_id=self.customer.pk,
            operation_kind="subtract_balance",
            amount=amount,
            payment_method="cheque",
            bank_id=self.bank.pk,
            cheque_date=timezone.localdate(),
        ).cheque

    def test_list_and_filter_cheques(self):
        cleared = self._cheque()
        self._cheque()
        cash_out_cheque(cheque_id=cleared.pk)
        self.client.force_authenticate(self.accountant)

        res = self.client.get("/api/ledger/cheques/", {"state": "pending"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertFalse(res.data["results"][0]["status"])

    def test_cash_out_transition(self):
        cheque = self._cheque()
        self.client.force_authenticate(self.accountant)

        res = self.client.post(
            f"/api/ledger/cheques/{cheque.pk}/transition/",
            {"action": "cashOut"},
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["state"], "cleared")
        self.assertTrue(res.data["status"])
        self.assertEqual(reload(self.bank).balance, Decimal("100.00"))

    def test_second_cash_out_is_conflict(self):
        cheque = self._cheque()
        cash_out_cheque(cheque_id=cheque.pk)
        self.client.force_authenticate(self.accountant)

        res = self.client.post(
            f"/api/ledger/cheques/{cheque.pk}/transition/",
            {"action": "cash_out"},
            format="json",
        )

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "INVALID_CHEQUE_STATE")

    def test_cancel_needs_privileged_role(self):
        cheque = self._cheque()
        url = f"/api/ledger/cheques/{cheque.pk}/transition/"

        self.client.force_authenticate(self.accountant)
        res = self.client.post(url, {"action": "cancel", "confirm": True}, format="json")
        self.assertEqual(res.status_code, 403)

        self.client.force_authenticate(make_user("manager"))
        res = self.client.post(url, {"action": "cancel", "confirm": True}, format="json")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["state"], "cancelled")
        self.assertEqual(reload(self.customer).balance, Decimal("0.00"))

    def test_batch_cash_out_reports_partial_failure(self):
        first = self._cheque()
        second = self._cheque(amount="50")
        cash_out_cheque(cheque_id=first.pk)
        self.client.force_authenticate(self.accountant)

        res = self.client.post(
            "/api/ledger/cheques/cash-out/",
            {"items": [{"cheque_id": first.pk}, {"cheque_id": second.pk}]},
            format="json",
        )

        self.assertEqual(res.status_code, 207)
        self.assertEqual(len(res.data["succeeded"]), 1)
        self.assertEqual(res.data["failed"][0]["cheque_id"], first.pk)
        self.assertEqual(reload(self.bank).balance, Decimal("150.00"))

    def test_due_endpoint(self):
        self._cheque()
        self.client.force_authenticate(self.accountant)

        res = self.client.get("/api/ledger/cheques/due/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["due_today"]), 1)
        self.assertEqual(res.data["overdue"], [])
