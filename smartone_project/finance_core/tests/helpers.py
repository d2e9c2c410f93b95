import datetime
from decimal import Decimal
from ..models import ChartOfAccount, FinancialPeriod, Vendor


class BooksMixin:
    """Chart of accounts, an open January 2024 period and one vendor"""

    def setUp(self):
        super().setUp()
        self.cash = ChartOfAccount.objects.create(code="1000", name="Cash on Hand", type="ASSET")
        self.ap = ChartOfAccount.objects.create(
            code="2000", name="Accounts Payable", type="LIABILITY", subtype="ACCOUNTS_PAYABLE"
        )
        self.supplies = ChartOfAccount.objects.create(code="5100", name="Office Supplies", type="EXPENSE")
        self.utilities = ChartOfAccount.objects.create(code="5200", name="Utilities", type="EXPENSE")
        self.period = FinancialPeriod.objects.create(
            name="2024-01",
            start_date=datetime.date(2024, 1, 1),
            end_date=datetime.date(2024, 1, 31),
            type="MONTHLY",
            year=2024,
            quarter=1,
            month=1,
        )
        self.vendor = Vendor.objects.create(name="Paper Co", email="sales@paper.example.com")

    def items(self):
        # qty=2 @ 100 + qty=1 @ 50 = 250
        return [
            {"description": "A4 paper", "quantity": Decimal("2"), "unit_price": Decimal("100"),
             "account_id": self.supplies.pk, "tax_rate": Decimal("0")},
            {"description": "Electricity", "quantity": Decimal("1"), "unit_price": Decimal("50"),
             "account_id": self.utilities.pk, "tax_rate": Decimal("0")},
        ]
