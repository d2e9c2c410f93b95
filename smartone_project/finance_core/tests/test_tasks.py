import datetime
from decimal import Decimal
from django.core.management import call_command
from django.test import TestCase, override_settings
from ..models import ChartOfAccount, FinancialPeriod, Vendor
from ..services import apply_bill_payment, cancel_bill, create_bill
from ..services.balances import compute_account_balances
from ..tasks import recompute_account_balances
from .helpers import BooksMixin


@override_settings(FINANCE_AUTO_SETTLE_ON_CREATE=False)
class RecomputeBalancesTests(BooksMixin, TestCase):

    def setUp(self):
        super().setUp()
        for day in (5, 12):
            create_bill(
                vendor_id=self.vendor.pk,
                bill_date=datetime.date(2024, 1, day),
                due_date=datetime.date(2024, 2, day),
                items=self.items(),
            )
        bill = create_bill(
            vendor_id=self.vendor.pk,
            bill_date=datetime.date(2024, 1, 20),
            due_date=datetime.date(2024, 2, 20),
            items=self.items(),
        )
        cancel_bill(bill.pk, datetime.date(2024, 1, 21))

    def test_incremental_balances_match_ledger(self):
        expected = compute_account_balances()
        for account in ChartOfAccount.objects.all():
            self.assertEqual(account.balance, expected[account.pk], account.code)
        self.assertEqual(expected[self.ap.pk], Decimal("500.00"))

        self.assertEqual(recompute_account_balances.apply().get(), 0)

    def test_drift_is_corrected(self):
        ChartOfAccount.objects.filter(pk=self.ap.pk).update(balance=Decimal("1.00"))

        self.assertEqual(recompute_account_balances(), 1)
        self.ap.refresh_from_db()
        self.assertEqual(self.ap.balance, Decimal("500.00"))

    def test_payments_do_not_touch_the_ledger(self):
        bill = create_bill(
            vendor_id=self.vendor.pk,
            bill_date=datetime.date(2024, 1, 22),
            due_date=datetime.date(2024, 2, 22),
            items=self.items(),
        )
        apply_bill_payment(
            bill.pk, Decimal("10"), payment_date=datetime.date(2024, 1, 23), payment_method="CASH"
        )
        self.assertEqual(recompute_account_balances(), 0)


class SeedCommandTests(TestCase):

    def test_seed_is_repeatable(self):
        call_command("seed_finance", year=2024, verbosity=0)
        call_command("seed_finance", year=2024, verbosity=0)

        self.assertEqual(FinancialPeriod.objects.filter(year=2024).count(), 12)
        self.assertTrue(ChartOfAccount.objects.accounts_payable().exists())
        self.assertTrue(Vendor.objects.exists())

    def test_recompute_command(self):
        call_command("recompute_balances", verbosity=0)
