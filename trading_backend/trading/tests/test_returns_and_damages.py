from decimal import Decimal

from django.test import TestCase, override_settings

from ledger.models import Account, Transaction
from ledger.services.exceptions import InsufficientFundsError, LedgerValidationError
from ledger.tests.helpers import make_account, reload
from trading.models import DamageWriteOff, ProductReturn
from trading.services.damage_service import record_damage
from trading.services.return_service import record_return


class ProductReturnTests(TestCase):
    def setUp(self):
        self.customer = make_account(Account.CUSTOMER, "Ali Traders", "500.00")
        self.supplier = make_account(Account.SUPPLIER, "Flour Mill", "-800.00")
        self.cash = make_account(Account.CASH, "Cash", "1000.00")
        self.bank = make_account(Account.BANK, "HBL", "0.00")

    def test_credit_return_reduces_receivable(self):
        product_return = record_return(
            party_type="customer",
            party_id=self.customer.pk,
            product_name="Rice",
            quantity=2,
            unit_price="100",
            reason="Defective Product",
        )

        self.assertEqual(product_return.amount, Decimal("200.00"))
        self.assertEqual(reload(self.customer).balance, Decimal("300.00"))
        self.assertEqual(product_return.transaction.source, Transaction.SOURCE_RETURN)
        self.assertEqual(product_return.transaction.posting_ref, product_return.posting_ref)
        self.assertEqual(reload(self.cash).balance, Decimal("1000.00"))

    def test_cash_refund_to_customer_settles_from_cash(self):
        record_return(
            party_type="customer",
            party_id=self.customer.pk,
            product_name="Rice",
            quantity=1,
            unit_price="200",
            refund_method="cash",
        )

        self.assertEqual(reload(self.customer).balance, Decimal("500.00"))
        self.assertEqual(reload(self.cash).balance, Decimal("800.00"))

    @override_settings(LEDGER_REQUIRE_PROOF_IMAGE=False)
    def test_online_refund_from_supplier_credits_bank(self):
        product_return = record_return(
            party_type="supplier",
            party_id=self.supplier.pk,
            product_name="Flour",
            quantity=5,
            unit_price="40",
            refund_method="online",
            bank_id=self.bank.pk,
        )

        self.assertEqual(reload(self.bank).balance, Decimal("200.00"))
        self.assertEqual(product_return.bank, self.bank)

    def test_cash_refund_cannot_overdraw(self):
        with self.assertRaises(InsufficientFundsError):
            record_return(
                party_type="customer",
                party_id=self.customer.pk,
                product_name="Rice",
                quantity=11,
                unit_price="100",
                refund_method="cash",
            )

        self.assertFalse(ProductReturn.objects.exists())
        self.assertEqual(reload(self.customer).balance, Decimal("500.00"))

    def test_shipper_returns_are_rejected(self):
        shipper = make_account(Account.SHIPPER, "Cargo Co")

        with self.assertRaises(LedgerValidationError) as ctx:
            record_return(
                party_type="shipper",
                party_id=shipper.pk,
                product_name="Box",
                quantity=1,
                unit_price="10",
            )

        self.assertIn("party_type", ctx.exception.fields)

    def test_cheque_refund_is_rejected(self):
        with self.assertRaises(LedgerValidationError) as ctx:
            record_return(
                party_type="customer",
                party_id=self.customer.pk,
                product_name="Rice",
                quantity=1,
                unit_price="10",
                refund_method="cheque",
            )

        self.assertIn("refund_method", ctx.exception.fields)


class DamageWriteOffTests(TestCase):
    def test_loss_is_quantity_times_cost(self):
        damage = record_damage(product_name="Eggs", quantity=12, unit_cost="2.25", reason="expired")

        self.assertEqual(damage.loss_amount, Decimal("27.00"))
        self.assertEqual(damage.reason, DamageWriteOff.REASON_EXPIRED)
        self.assertFalse(Transaction.objects.exists())

    def test_defaults_reason_to_other(self):
        damage = record_damage(product_name="Glass", quantity=1, unit_cost="10")

        self.assertEqual(damage.reason, DamageWriteOff.REASON_OTHER)

    def test_invalid_input_is_field_identified(self):
        with self.assertRaises(LedgerValidationError) as ctx:
            record_damage(product_name="", quantity=-1, unit_cost=None, reason="meteor")

        for name in ("product_name", "quantity", "unit_cost", "reason"):
            self.assertIn(name, ctx.exception.fields)
