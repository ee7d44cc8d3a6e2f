# ledger/tests/test_cheque_lifecycle.py

from django.test import SimpleTestCase

from ledger.models import Cheque
from ledger.services.cheque_lifecycle import (
    TERMINAL_STATES,
    can_transition,
    is_payout_type,
    normalize_action,
    target_state,
    validate_action,
)
from ledger.services.exceptions import InvalidChequeStateError, LedgerValidationError


class ChequeLifecycleRulesTests(SimpleTestCase):
    def test_pending_cheque_transitions(self):
        self.assertEqual(target_state(from_state="pending", action="cash_out"), "cleared")
        self.assertEqual(target_state(from_state="pending", action="cancel"), "cancelled")
        self.assertEqual(target_state(from_state="pending", action="transfer"), "transferred_pending")
        self.assertFalse(can_transition(from_state="pending", action="cash_out_transferred"))

    def test_transferred_cheque_transitions(self):
        self.assertEqual(
            target_state(from_state="transferred_pending", action="cash_out_transferred"),
            "transferred_cashed",
        )
        self.assertEqual(
            target_state(from_state="transferred_pending", action="cancel"),
            "cancelled",
        )
        self.assertFalse(can_transition(from_state="transferred_pending", action="cash_out"))
        self.assertFalse(can_transition(from_state="transferred_pending", action="transfer"))

    def test_terminal_states_accept_nothing(self):
        for state in TERMINAL_STATES:
            for action in ("cash_out", "cancel", "transfer", "cash_out_transferred"):
                self.assertFalse(can_transition(from_state=state, action=action), (state, action))

    def test_legacy_action_names(self):
        self.assertEqual(normalize_action("cashOut"), "cash_out")
        self.assertEqual(normalize_action("cashOutTransferred"), "cash_out_transferred")
        self.assertEqual(normalize_action(" CANCEL "), "cancel")

    def test_payout_types(self):
        self.assertTrue(is_payout_type("supplier"))
        self.assertTrue(is_payout_type("shipper"))
        self.assertTrue(is_payout_type("product"))
        self.assertFalse(is_payout_type("customer"))

    def test_validate_action_raises_for_illegal_transition(self):
        cheque = Cheque(id=7, state=Cheque.STATE_CLEARED)

        with self.assertRaises(InvalidChequeStateError):
            validate_action(cheque=cheque, action="cash_out")

        with self.assertRaises(LedgerValidationError):
            validate_action(cheque=cheque, action="bounce")

    def test_validate_action_returns_target_state(self):
        cheque = Cheque(id=8, state=Cheque.STATE_PENDING)
        self.assertEqual(validate_action(cheque=cheque, action="cashOut"), Cheque.STATE_CLEARED)
