# ledger/tests/test_ledger_entries.py

from decimal import Decimal

from django.test import SimpleTestCase

from ledger.services.exceptions import LedgerValidationError
from ledger.services.ledger_entries import (
    CREDIT,
    DEBIT,
    LedgerRecord,
    build_running_ledger,
    normalize_direction,
    parse_quantity_unit_price,
)


class NormalizeDirectionTests(SimpleTestCase):
    def test_fixed_words(self):
        self.assertEqual(normalize_direction("deposit", "bank"), CREDIT)
        self.assertEqual(normalize_direction("Credit", "cash"), CREDIT)
        self.assertEqual(normalize_direction("withdraw", "cash"), DEBIT)
        self.assertEqual(normalize_direction("subtract_funds", "bank"), DEBIT)

    def test_add_and_subtract_depend_on_account(self):
        self.assertEqual(normalize_direction("add", "customer"), CREDIT)
        self.assertEqual(normalize_direction("add", "supplier"), DEBIT)
        self.assertEqual(normalize_direction("subtract", "customer"), DEBIT)
        self.assertEqual(normalize_direction("subtract", "shipper"), CREDIT)

    def test_unknown_words_and_accounts_are_errors(self):
        with self.assertRaises(LedgerValidationError):
            normalize_direction("bogus", "customer")
        with self.assertRaises(LedgerValidationError):
            normalize_direction("add", "warehouse")


class RunningLedgerTests(SimpleTestCase):
    """
    GUARANTEES:
    - output order does not depend on input order
    - running balance accumulates credit - debit
    - records without an amount are kept
    """

    def setUp(self):
        self.records = [
            {"tag": "sale", "amount": "500", "date": "2024-01-02", "id": "s1"},
            {"tag": "payment", "type": "subtract", "amount": "200", "date": "2024-01-03", "id": "p1"},
            {"tag": "sale", "amount": "100", "date": "2024-01-01", "id": "s0"},
        ]

    def test_running_balance(self):
        entries = build_running_ledger(self.records, "customer")

        self.assertEqual([e.record.reference for e in entries], ["s0", "s1", "p1"])
        self.assertEqual(
            [e.running_balance for e in entries],
            [Decimal("100.00"), Decimal("600.00"), Decimal("400.00")],
        )
        self.assertEqual(entries[2].debit, Decimal("200.00"))
        self.assertEqual(entries[2].credit, Decimal("0.00"))

    def test_input_order_is_irrelevant(self):
        forward = build_running_ledger(self.records, "customer")
        backward = build_running_ledger(list(reversed(self.records)), "customer")

        self.assertEqual(
            [e.as_dict() for e in forward],
            [e.as_dict() for e in backward],
        )

    def test_opening_balance_is_carried(self):
        entries = build_running_ledger(self.records, "customer", opening_balance="50")
        self.assertEqual(entries[-1].running_balance, Decimal("450.00"))

    def test_same_day_records_order_by_created_at(self):
        entries = build_running_ledger(
            [
                {"tag": "bankTx", "type": "withdraw", "amount": "30", "date": "2024-02-01",
                 "createdAt": "2024-02-01T15:00:00", "id": "late"},
                {"tag": "bankTx", "type": "deposit", "amount": "100", "date": "2024-02-01",
                 "createdAt": "2024-02-01T09:00:00", "id": "early"},
            ],
            "bank",
        )
        self.assertEqual([e.record.reference for e in entries], ["early", "late"])
        self.assertEqual(entries[-1].running_balance, Decimal("70.00"))

    def test_missing_amount_uses_quantity_and_price(self):
        entries = build_running_ledger(
            [{"tag": "sale", "description": "3 x Bolt @ 12.50", "date": "2024-03-01"}],
            "customer",
        )
        self.assertEqual(entries[0].credit, Decimal("37.50"))
        self.assertFalse(entries[0].amount_missing)

    def test_unparseable_record_contributes_zero_but_is_listed(self):
        entries = build_running_ledger(
            [
                {"tag": "expense", "description": "misc", "date": "2024-03-01", "id": "x"},
                {"tag": "sale", "amount": "10", "date": "2024-03-02", "id": "y"},
            ],
            "customer",
        )
        self.assertEqual(len(entries), 2)
        self.assertTrue(entries[0].amount_missing)
        self.assertEqual(entries[0].debit, Decimal("0.00"))
        self.assertEqual(entries[-1].running_balance, Decimal("10.00"))

    def test_reversals_flip_fixed_side(self):
        entries = build_running_ledger(
            [
                {"tag": "sale", "amount": "80", "date": "2024-04-01", "id": "a"},
                {"tag": "sale", "amount": "80", "date": "2024-04-02", "id": "b",
                 "description": "Reversal of entry a"},
            ],
            "customer",
        )
        self.assertEqual(entries[1].debit, Decimal("80.00"))
        self.assertEqual(entries[-1].running_balance, Decimal("0.00"))

    def test_camel_case_keys(self):
        entries = build_running_ledger(
            [{"kind": "sale", "totalAmount": "42.5", "saleDate": "2024-05-01", "_id": "z"}],
            "customer",
        )
        self.assertEqual(entries[0].credit, Decimal("42.50"))
        self.assertEqual(entries[0].record.reference, "z")

    def test_movement_records_need_a_direction(self):
        with self.assertRaises(LedgerValidationError):
            LedgerRecord(tag="payment", amount=Decimal("1"))


class QuantityPriceParserTests(SimpleTestCase):
    def test_parses_description(self):
        self.assertEqual(parse_quantity_unit_price("10 x Widget @ 200"), (10, Decimal("200")))
        self.assertEqual(parse_quantity_unit_price("2 × Rice bag @ 1500.50"), (2, Decimal("1500.50")))

    def test_no_match(self):
        self.assertIsNone(parse_quantity_unit_price("Opening balance"))
        self.assertIsNone(parse_quantity_unit_price(""))
