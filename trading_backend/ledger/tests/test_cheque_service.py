# ledger/tests/test_cheque_service.py

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from ledger.models import Account, Cheque, Transaction
from ledger.services.cheque_service import (
    cancel_cheque,
    cash_out_cheque,
    cash_out_cheques,
    cash_out_transferred_cheque,
    list_due_cheques,
    transfer_cheque,
    transition_cheque,
)
from ledger.services.exceptions import (
    InsufficientFundsError,
    InvalidChequeStateError,
    LedgerValidationError,
    PermissionDeniedError,
)
from ledger.services.ledger_service import find_balance_mismatches
from ledger.services.mutation_rules import perform_account_mutation
from ledger.tests.helpers import make_account, make_user, reload


@override_settings(LEDGER_REQUIRE_PROOF_IMAGE=False)
class ChequeServiceTests(TestCase):
    """
    GUARANTEES:
    - funds move only on cash-out, in the direction of the cheque type
    - cancel and transfer move the party effect, never funds
    - terminal cheques accept no further action
    """

    def setUp(self):
        self.accountant = make_user("accountant")
        self.manager = make_user("manager")

        self.customer = make_account(Account.CUSTOMER, "Ali Traders")
        self.other_customer = make_account(Account.CUSTOMER, "Bilal Stores")
        self.supplier = make_account(Account.SUPPLIER, "Rice Mills")
        self.cash = make_account(Account.CASH, "Cash", "1000.00")
        self.bank = make_account(Account.BANK, "Main Bank", "5000.00")
        self.today = timezone.localdate()

    def _received_cheque(self, amount="400", cheque_date=None, bank=True) -> Cheque:
        return perform_account_mutation(
            account_type="customer",
            account_id=self.customer.pk,
            operation_kind="subtract_balance",
            amount=amount,
            payment_method="cheque",
            bank_id=self.bank.pk if bank else None,
            cheque_date=cheque_date or self.today,
            user=self.accountant,
        ).cheque

    def _issued_cheque(self, amount="300", cheque_type=None) -> Cheque:
        return perform_account_mutation(
            account_type="supplier",
            account_id=self.supplier.pk,
            operation_kind="add_balance",
            amount=amount,
            payment_method="cheque",
            bank_id=self.bank.pk,
            cheque_date=self.today,
            cheque_type=cheque_type,
            user=self.accountant,
        ).cheque

    # ----------------------------------
    # Cash-out
    # ----------------------------------
    def test_received_cheque_clears_into_its_bank(self):
        cheque = self._received_cheque()

        cheque = cash_out_cheque(cheque_id=cheque.pk, user=self.accountant)

        self.assertEqual(cheque.state, Cheque.STATE_CLEARED)
        self.assertTrue(cheque.status)
        self.assertEqual(cheque.cleared_to, self.bank)
        self.assertEqual(reload(self.bank).balance, Decimal("5400.00"))
        self.assertEqual(reload(self.customer).balance, Decimal("-400.00"))

    def test_customer_cheque_recognized_then_cleared_into_cash(self):
        cheque = perform_account_mutation(
            account_type="customer",
            account_id=self.customer.pk,
            operation_kind="addBalance",
            amount="5000",
            payment_method="cheque",
            cheque_date=self.today,
            user=self.accountant,
        ).cheque

        self.assertEqual(reload(self.customer).balance, Decimal("5000.00"))
        self.assertEqual(cheque.state, Cheque.STATE_PENDING)
        self.assertFalse(cheque.status)
        self.assertEqual(reload(self.bank).balance, Decimal("5000.00"))
        self.assertEqual(reload(self.cash).balance, Decimal("1000.00"))

        cheque = cash_out_cheque(cheque_id=cheque.pk, destination="cash", user=self.accountant)

        self.assertTrue(cheque.status)
        self.assertEqual(cheque.state, Cheque.STATE_CLEARED)
        self.assertEqual(reload(self.cash).balance, Decimal("6000.00"))
        self.assertEqual(reload(self.bank).balance, Decimal("5000.00"))
        self.assertEqual(find_balance_mismatches(), [])

    def test_received_cheque_can_clear_into_cash(self):
        cheque = self._received_cheque()

        cash_out_cheque(cheque_id=cheque.pk, destination="cash", user=self.accountant)

        self.assertEqual(reload(self.cash).balance, Decimal("1400.00"))
        self.assertEqual(reload(self.bank).balance, Decimal("5000.00"))

    def test_issued_cheque_pays_out_on_cash_out(self):
        cheque = self._issued_cheque()
        self.assertEqual(reload(self.bank).balance, Decimal("5000.00"))

        cash_out_cheque(cheque_id=cheque.pk, user=self.accountant)

        self.assertEqual(reload(self.bank).balance, Decimal("4700.00"))
        self.assertEqual(reload(self.supplier).balance, Decimal("-300.00"))

    def test_product_cheque_is_a_payout(self):
        cheque = self._issued_cheque(amount="100", cheque_type="product")

        cash_out_cheque(cheque_id=cheque.pk, user=self.accountant)

        self.assertEqual(reload(self.bank).balance, Decimal("4900.00"))

    def test_payout_beyond_funds_leaves_cheque_pending(self):
        cheque = self._issued_cheque(amount="6000")

        with self.assertRaises(InsufficientFundsError):
            cash_out_cheque(cheque_id=cheque.pk, user=self.accountant)

        cheque.refresh_from_db()
        self.assertEqual(cheque.state, Cheque.STATE_PENDING)
        self.assertEqual(reload(self.bank).balance, Decimal("5000.00"))

    def test_cleared_cheque_cannot_be_cashed_twice(self):
        cheque = self._received_cheque()
        cash_out_cheque(cheque_id=cheque.pk, user=self.accountant)

        with self.assertRaises(InvalidChequeStateError):
            cash_out_cheque(cheque_id=cheque.pk, user=self.accountant)

        self.assertEqual(reload(self.bank).balance, Decimal("5400.00"))

    def test_cheque_without_bank_needs_destination(self):
        cheque = self._received_cheque(bank=False)

        with self.assertRaises(LedgerValidationError) as ctx:
            cash_out_cheque(cheque_id=cheque.pk, user=self.accountant)
        self.assertIn("destination", ctx.exception.fields)

        cash_out_cheque(cheque_id=cheque.pk, destination="cash", user=self.accountant)
        self.assertEqual(reload(self.cash).balance, Decimal("1400.00"))

    def test_batch_cash_out_is_best_effort(self):
        first = self._received_cheque(amount="100")
        second = self._received_cheque(amount="200")
        cash_out_cheque(cheque_id=first.pk, user=self.accountant)

        with self.assertLogs("ledger.cheques", level="WARNING") as logs:
            result = cash_out_cheques(
                items=[
                    {"cheque_id": first.pk},
                    {"cheque_id": second.pk},
                    {"cheque_id": 999999},
                ],
                user=self.accountant,
            )

        self.assertIn(f"cheque_id={first.pk} code=INVALID_CHEQUE_STATE", logs.output[0])
        self.assertFalse(result.ok)
        self.assertEqual([c.pk for c in result.succeeded], [second.pk])
        self.assertEqual(
            [f["code"] for f in result.failed],
            ["INVALID_CHEQUE_STATE", "NOT_FOUND"],
        )
        self.assertEqual(reload(self.bank).balance, Decimal("5300.00"))

    # ----------------------------------
    # Cancel
    # ----------------------------------
    def test_cancel_is_privileged(self):
        cheque = self._received_cheque()

        with self.assertRaises(PermissionDeniedError):
            cancel_cheque(cheque_id=cheque.pk, user=self.accountant, confirm=True)

    def test_cancel_requires_confirmation(self):
        cheque = self._received_cheque()

        with self.assertRaises(LedgerValidationError) as ctx:
            cancel_cheque(cheque_id=cheque.pk, user=self.manager)
        self.assertIn("confirm", ctx.exception.fields)

    def test_cancel_reverses_party_effect(self):
        cheque = self._received_cheque()

        cheque = cancel_cheque(cheque_id=cheque.pk, user=self.manager, confirm=True)

        self.assertEqual(cheque.state, Cheque.STATE_CANCELLED)
        self.assertTrue(cheque.cancelled)
        self.assertEqual(cheque.party_effect, Decimal("0.00"))
        self.assertEqual(reload(self.customer).balance, Decimal("0.00"))
        self.assertEqual(reload(self.bank).balance, Decimal("5000.00"))

        reversal = Transaction.objects.get(account=self.customer, is_reversal=True)
        self.assertEqual(reversal.reverses, cheque.origin_transaction)
        self.assertEqual(reversal.source, Transaction.SOURCE_REVERSAL)

        with self.assertRaises(InvalidChequeStateError):
            cash_out_cheque(cheque_id=cheque.pk, user=self.accountant)

    # ----------------------------------
    # Transfer
    # ----------------------------------
    def test_transfer_moves_effect_to_new_holder(self):
        cheque = self._received_cheque()

        cheque = transfer_cheque(
            cheque_id=cheque.pk,
            target_type="supplier",
            target_id=self.supplier.pk,
            user=self.accountant,
        )

        self.assertEqual(cheque.state, Cheque.STATE_TRANSFERRED_PENDING)
        self.assertTrue(cheque.transferred)
        self.assertEqual(cheque.beneficiary, self.supplier)
        self.assertEqual(cheque.account, self.customer)
        self.assertEqual(reload(self.customer).balance, Decimal("0.00"))
        self.assertEqual(reload(self.supplier).balance, Decimal("-400.00"))

        cheque = cash_out_transferred_cheque(cheque_id=cheque.pk, user=self.accountant)
        self.assertEqual(cheque.state, Cheque.STATE_TRANSFERRED_CASHED)
        self.assertTrue(cheque.transferred_cashed_out)
        self.assertEqual(reload(self.bank).balance, Decimal("5000.00"))

        with self.assertRaises(InvalidChequeStateError):
            cancel_cheque(cheque_id=cheque.pk, user=self.manager, confirm=True)

    def test_transfer_to_another_customer(self):
        cheque = self._received_cheque()

        transfer_cheque(
            cheque_id=cheque.pk,
            target_type="customer",
            target_id=self.other_customer.pk,
            user=self.accountant,
        )

        self.assertEqual(reload(self.customer).balance, Decimal("0.00"))
        self.assertEqual(reload(self.other_customer).balance, Decimal("400.00"))

    def test_transfer_to_current_holder_is_rejected(self):
        cheque = self._received_cheque()

        with self.assertRaises(LedgerValidationError):
            transfer_cheque(
                cheque_id=cheque.pk,
                target_type="customer",
                target_id=self.customer.pk,
                user=self.accountant,
            )

    def test_cancel_transferred_cheque_reverses_holder(self):
        cheque = self._received_cheque()
        transfer_cheque(
            cheque_id=cheque.pk,
            target_type="supplier",
            target_id=self.supplier.pk,
            user=self.accountant,
        )

        cancel_cheque(cheque_id=cheque.pk, user=self.manager, confirm=True)

        self.assertEqual(reload(self.supplier).balance, Decimal("0.00"))
        self.assertEqual(reload(self.customer).balance, Decimal("0.00"))
        self.assertEqual(find_balance_mismatches(), [])

    # ----------------------------------
    # Dispatch + dashboard
    # ----------------------------------
    def test_transition_dispatch_accepts_legacy_names(self):
        cheque = self._received_cheque()

        cheque = transition_cheque(cheque_id=cheque.pk, action="cashOut", user=self.accountant)

        self.assertEqual(cheque.state, Cheque.STATE_CLEARED)

    def test_due_cheques_are_grouped(self):
        overdue = self._received_cheque(amount="10")
        Cheque.objects.filter(pk=overdue.pk).update(cheque_date=self.today - timedelta(days=2))
        due_today = self._received_cheque(amount="20")
        upcoming = self._received_cheque(amount="30", cheque_date=self.today + timedelta(days=3))
        self._received_cheque(amount="40", cheque_date=self.today + timedelta(days=30))

        due = list_due_cheques(today=self.today, window_days=7)

        self.assertEqual([c.pk for c in due["overdue"]], [overdue.pk])
        self.assertEqual([c.pk for c in due["due_today"]], [due_today.pk])
        self.assertEqual([c.pk for c in due["upcoming"]], [upcoming.pk])
        self.assertEqual(due["window_days"], 7)

    @override_settings(CHEQUE_DUE_SOON_DAYS=60)
    def test_due_window_comes_from_settings(self):
        far = self._received_cheque(amount="40", cheque_date=self.today + timedelta(days=30))

        due = list_due_cheques(today=self.today)

        self.assertEqual(due["window_days"], 60)
        self.assertEqual([c.pk for c in due["upcoming"]], [far.pk])
