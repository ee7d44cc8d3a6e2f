# ledger/management/commands/reconcile_balances.py

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from ledger.models import Account
from ledger.services.ledger_service import find_balance_mismatches


class Command(BaseCommand):
    help = "Compare every stored account balance with its transaction history."

    def add_arguments(self, parser):
        parser.add_argument(
            "--type",
            dest="account_type",
            choices=[code for code, _ in Account.ACCOUNT_TYPES],
            help="Only check one account type.",
        )

    def handle(self, *args, **options):
        account_type = options.get("account_type")
        mismatches = find_balance_mismatches(account_type=account_type)

        if not mismatches:
            self.stdout.write(self.style.SUCCESS("All account balances reconcile."))
            return

        for row in mismatches:
            self.stdout.write(
                self.style.ERROR(
                    f"[{row['account_type']}] #{row['account_id']} {row['name']}: "
                    f"stored={row['stored_balance']} ledger={row['ledger_balance']} "
                    f"diff={row['discrepancy']}"
                )
            )

        raise CommandError(f"{len(mismatches)} account(s) do not reconcile.")
