from datetime import date, timedelta
from decimal import Decimal
from unittest import mock

from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from ledger.models import Account
from ledger.services.exceptions import LedgerValidationError
from ledger.services.mutation_rules import apply_account_mutation
from ledger.tests.helpers import make_account, make_user
from reporting.services.report_service import get_report, report_snapshot, resolve_period
from trading.services.damage_service import record_damage
from trading.services.expense_service import record_expense, reverse_expense
from trading.services.return_service import record_return
from trading.services.sale_service import record_sale


class ResolvePeriodTests(TestCase):
    def test_monthly_uses_calendar_month(self):
        window = resolve_period(period="monthly", year=2024, month=2)

        self.assertEqual(window.start, date(2024, 2, 1))
        self.assertEqual(window.end, date(2024, 2, 29))

    def test_daily_with_day_narrows_to_one_date(self):
        window = resolve_period(period="daily", year="2025", month="6", day="14")

        self.assertEqual(window.start, date(2025, 6, 14))
        self.assertEqual(window.end, date(2025, 6, 14))

    def test_yearly_ignores_month(self):
        window = resolve_period(period="yearly", year=2025, month=7)

        self.assertEqual((window.start, window.end), (date(2025, 1, 1), date(2025, 12, 31)))

    def test_month_required_for_monthly(self):
        with self.assertRaises(LedgerValidationError) as ctx:
            resolve_period(period="monthly", year=2025)

        self.assertIn("month", ctx.exception.fields)

    def test_rejects_unknown_period_and_bad_day(self):
        with self.assertRaises(LedgerValidationError) as ctx:
            resolve_period(period="weekly", year="abc")

        self.assertIn("period", ctx.exception.fields)
        self.assertIn("year", ctx.exception.fields)

        with self.assertRaises(LedgerValidationError) as ctx:
            resolve_period(period="daily", year=2025, month=2, day=30)

        self.assertIn("day", ctx.exception.fields)


class GetReportTests(TestCase):
    """
    GUARANTEES:
    - Period totals respect calendar boundaries
    - Reversed expenses and their reversals are excluded
    - Position totals follow each account type's sign convention
    """

    def setUp(self):
        self.today = timezone.localdate()
        self.manager = make_user("manager")

        self.cash = make_account(Account.CASH, "Cash", "5000.00")
        self.bank = make_account(Account.BANK, "HBL", "2000.00")
        self.customer = make_account(Account.CUSTOMER, "Ali Traders", "0.00")
        self.advance_customer = make_account(Account.CUSTOMER, "Prepaid Co", "-150.00")
        self.supplier = make_account(Account.SUPPLIER, "Flour Mill", "700.00")
        self.shipper = make_account(Account.SHIPPER, "Cargo Co", "-50.00")

    def _monthly(self):
        return get_report(period="monthly", year=self.today.year, month=self.today.month)

    def test_profit_and_loss_for_month(self):
        record_sale(
            customer_id=self.customer.pk,
            product_name="Rice",
            quantity=10,
            unit_price="100",
            unit_cost="60",
        )
        record_return(
            party_type="customer",
            party_id=self.customer.pk,
            product_name="Rice",
            quantity=1,
            unit_price="100",
        )
        apply_account_mutation(
            account_type="customer",
            account_id=self.customer.pk,
            operation_kind="apply_discount",
            amount="50",
        )
        apply_account_mutation(
            account_type="supplier",
            account_id=self.supplier.pk,
            operation_kind="apply_discount",
            amount="30",
        )
        record_expense(category="Rent", amount="200")
        reversed_expense = record_expense(category="Fuel", amount="80")
        reverse_expense(expense_id=reversed_expense.pk, user=self.manager)
        record_damage(product_name="Eggs", quantity=4, unit_cost="5")

        report = self._monthly()

        self.assertEqual(report["revenue"], Decimal("1000.00"))
        self.assertEqual(report["sales_returns"], Decimal("100.00"))
        self.assertEqual(report["net_revenue"], Decimal("900.00"))
        self.assertEqual(report["cogs"], Decimal("600.00"))
        self.assertEqual(report["gross_profit"], Decimal("300.00"))
        self.assertEqual(report["expenses"], Decimal("200.00"))
        self.assertEqual(report["discounts_given"], Decimal("50.00"))
        self.assertEqual(report["discounts_received"], Decimal("30.00"))
        self.assertEqual(report["damage_loss"], Decimal("20.00"))
        # 300 - 200 - 50 + 30 - 20
        self.assertEqual(report["net_profit"], Decimal("60.00"))

    def test_position_totals(self):
        record_sale(customer_id=self.customer.pk, product_name="Rice", quantity=1, unit_price="400")

        report = self._monthly()

        self.assertEqual(report["cash_balance"], Decimal("5000.00"))
        self.assertEqual(report["bank_balance"], Decimal("2000.00"))
        self.assertEqual(report["banks"], [{"id": self.bank.pk, "name": "HBL", "balance": Decimal("2000.00")}])

        self.assertEqual(report["customers"]["receivable"], Decimal("400.00"))
        self.assertEqual(report["customers"]["receivable_count"], 1)
        self.assertEqual(report["customers"]["advance"], Decimal("150.00"))
        self.assertEqual(report["customers"]["advance_count"], 1)

        self.assertEqual(report["suppliers"]["payable"], Decimal("700.00"))
        self.assertEqual(report["shippers"]["prepaid"], Decimal("50.00"))
        self.assertEqual(report["shippers"]["payable_count"], 0)

    def test_pending_cheques_and_cash_flows(self):
        apply_account_mutation(
            account_type="customer",
            account_id=self.customer.pk,
            operation_kind="subtract_balance",
            amount="300",
            payment_method="cheque",
            bank_id=self.bank.pk,
            cheque_date=self.today + timedelta(days=5),
            proof_image="/media/proofs/c.png",
        )
        record_sale(
            customer_id=self.customer.pk,
            product_name="Oil",
            quantity=1,
            unit_price="250",
            payment_method="cash",
        )
        record_expense(category="Tea", amount="40")

        report = self._monthly()

        self.assertEqual(report["pending_cheques"], {"count": 1, "amount": Decimal("300.00")})
        self.assertEqual(report["cash_in"], Decimal("250.00"))
        self.assertEqual(report["cash_out"], Decimal("40.00"))

    def test_other_periods_are_excluded(self):
        last_year = self.today.year - 1
        record_sale(
            customer_id=self.customer.pk,
            product_name="Rice",
            quantity=1,
            unit_price="100",
            sale_date=date(last_year, 12, 31),
        )

        self.assertEqual(self._monthly()["revenue"], Decimal("0.00"))
        yearly = get_report(period="yearly", year=last_year)
        self.assertEqual(yearly["revenue"], Decimal("100.00"))
        self.assertEqual(yearly["start_date"], f"{last_year}-01-01")

    @override_settings(LEDGER_REQUIRE_PROOF_IMAGE=False)
    def test_daily_report_for_single_day(self):
        record_expense(category="Rent", amount="10", payment_method="online", bank_id=self.bank.pk)

        report = get_report(
            period="daily",
            year=self.today.year,
            month=self.today.month,
            day=self.today.day,
        )

        self.assertEqual(report["expenses"], Decimal("10.00"))
        self.assertEqual(report["bank_balance"], Decimal("1990.00"))


class ReportSnapshotTests(SimpleTestCase):
    def _run(self, *, vendor, nested):
        connection = mock.MagicMock(vendor=vendor, in_atomic_block=nested)
        with mock.patch("reporting.services.report_service.transaction") as tx:
            tx.get_connection.return_value = connection
            with report_snapshot():
                pass
        tx.atomic.assert_called_once_with()
        return connection.cursor.return_value.__enter__.return_value.execute

    def test_postgres_report_runs_at_repeatable_read(self):
        execute = self._run(vendor="postgresql", nested=False)

        execute.assert_called_once_with(
            "SET TRANSACTION ISOLATION LEVEL REPEATABLE READ READ ONLY"
        )

    def test_nested_or_sqlite_report_keeps_isolation(self):
        self._run(vendor="postgresql", nested=True).assert_not_called()
        self._run(vendor="sqlite", nested=False).assert_not_called()
