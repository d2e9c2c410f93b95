import datetime
from decimal import Decimal
from django.test import TestCase, override_settings
from ..models import ChartOfAccount, FinancialPeriod, JournalEntry, JournalEntryItem
from ..services import create_bill, income_statement
from .helpers import BooksMixin


@override_settings(FINANCE_AUTO_SETTLE_ON_CREATE=False)
class IncomeStatementTests(BooksMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.sales = ChartOfAccount.objects.create(code="4000", name="Sales", type="REVENUE")
        self.december = FinancialPeriod.objects.create(
            name="2023-12",
            start_date=datetime.date(2023, 12, 1),
            end_date=datetime.date(2023, 12, 31),
            year=2023,
            quarter=4,
            month=12,
        )
        self.seq = 0

    def entry(self, date, period, debit_account, credit_account, amount, post=True):
        self.seq += 1
        je = JournalEntry.objects.create(
            entry_number=f"JE-TEST-{self.seq:04d}", date=date, period=period
        )
        JournalEntryItem.objects.create(journal_entry=je, account=debit_account, debit=amount)
        JournalEntryItem.objects.create(journal_entry=je, account=credit_account, credit=amount)
        if post:
            je.post()
        return je

    def book_january(self):
        self.entry(datetime.date(2024, 1, 10), self.period, self.cash, self.sales, Decimal("1000"))
        create_bill(
            vendor_id=self.vendor.pk,
            bill_date=datetime.date(2024, 1, 15),
            due_date=datetime.date(2024, 2, 14),
            items=self.items(),
        )
        # drafts never reach the statement
        self.entry(datetime.date(2024, 1, 20), self.period, self.cash, self.sales,
                   Decimal("999"), post=False)

    def test_revenue_less_expenses(self):
        self.book_january()

        result = income_statement(datetime.date(2024, 1, 1), datetime.date(2024, 1, 31))

        self.assertEqual(result["totalRevenue"], Decimal("1000.00"))
        self.assertEqual(result["totalExpenses"], Decimal("250.00"))
        self.assertEqual(result["netIncome"], Decimal("750.00"))
        self.assertEqual([line["account"].code for line in result["revenues"]], ["4000"])
        self.assertEqual(
            [(line["account"].code, line["balance"]) for line in result["expenses"]],
            [("5100", Decimal("200.00")), ("5200", Decimal("50.00"))],
        )
        self.assertIsNone(result["previousPeriod"])

    def test_window_bounds_are_inclusive(self):
        self.book_january()

        result = income_statement(datetime.date(2024, 1, 10), datetime.date(2024, 1, 10))
        self.assertEqual(result["totalRevenue"], Decimal("1000.00"))
        self.assertEqual(result["totalExpenses"], Decimal("0.00"))

    def test_compare_to_previous_window(self):
        self.book_january()
        self.entry(datetime.date(2023, 12, 5), self.december, self.cash, self.sales, Decimal("400"))
        self.entry(datetime.date(2023, 12, 6), self.december, self.supplies, self.cash, Decimal("100"))

        result = income_statement(
            datetime.date(2024, 1, 1), datetime.date(2024, 1, 31), compare_to_previous=True
        )

        previous = result["previousPeriod"]
        self.assertEqual(previous["startDate"], datetime.date(2023, 12, 1))
        self.assertEqual(previous["endDate"], datetime.date(2023, 12, 31))
        self.assertEqual(previous["totalRevenue"], Decimal("400.00"))
        self.assertEqual(previous["totalExpenses"], Decimal("100.00"))
        self.assertEqual(previous["netIncome"], Decimal("300.00"))

    def test_refunds_reduce_revenue(self):
        self.book_january()
        self.entry(datetime.date(2024, 1, 25), self.period, self.sales, self.cash, Decimal("150"))

        result = income_statement(datetime.date(2024, 1, 1), datetime.date(2024, 1, 31))
        self.assertEqual(result["totalRevenue"], Decimal("850.00"))

    def test_inactive_accounts_are_left_out(self):
        ChartOfAccount.objects.create(code="4900", name="Old Sales", type="REVENUE", is_active=False)

        result = income_statement(datetime.date(2024, 1, 1), datetime.date(2024, 1, 31))
        self.assertEqual([line["account"].code for line in result["revenues"]], ["4000"])
        self.assertEqual(result["netIncome"], Decimal("0.00"))
