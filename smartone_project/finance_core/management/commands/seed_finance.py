import calendar
import datetime
from decimal import Decimal
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from finance_core.models import ChartOfAccount, FinancialPeriod, Vendor

User = get_user_model()

# code, name, type, subtype
DEFAULT_CHART = [
    ("1000", "Cash on Hand", "ASSET", "CASH"),
    ("1100", "Bank", "ASSET", "BANK"),
    ("2000", "Accounts Payable", "LIABILITY", "ACCOUNTS_PAYABLE"),
    ("3000", "Owner's Equity", "EQUITY", None),
    ("4000", "Sales Revenue", "REVENUE", None),
    ("5000", "Cost of Goods Sold", "EXPENSE", None),
    ("5100", "Office Supplies", "EXPENSE", None),
    ("5200", "Utilities", "EXPENSE", None),
]


class Command(BaseCommand):
    help = (
        "Create the default chart of accounts, monthly financial periods "
        "for a year and a demo vendor/user for testing."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--year",
            type=int,
            default=datetime.date.today().year,
            help="Fiscal year to open monthly periods for (default: current year)",
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo user."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo user."
        )

    @transaction.atomic
    def handle(self, *args, **options):
        year = options["year"]

        # 1. Chart of accounts
        for code, name, ac_type, subtype in DEFAULT_CHART:
            # get_or_create returns (object, created)
            account, created = ChartOfAccount.objects.get_or_create(
                code=code,
                defaults={"name": name, "type": ac_type, "subtype": subtype},
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f"Created account: {account}"))

        # 2. One OPEN period per month
        for month in range(1, 13):
            last_day = calendar.monthrange(year, month)[1]
            start = datetime.date(year, month, 1)
            end = datetime.date(year, month, last_day)
            name = f"{year}-{month:02d}"
            if FinancialPeriod.objects.filter(name=name).exists():
                continue
            if FinancialPeriod.objects.overlapping(start, end).exists():
                self.stdout.write(
                    self.style.WARNING(f"Skipped {name}: overlaps an existing period")
                )
                continue
            FinancialPeriod.objects.create(
                name=name,
                start_date=start,
                end_date=end,
                type="MONTHLY",
                year=year,
                quarter=(month - 1) // 3 + 1,
                month=month,
                status="OPEN",
            )
        self.stdout.write(self.style.SUCCESS(f"Monthly periods ready for {year}"))

        # 3. Demo vendor
        vendor, _ = Vendor.objects.get_or_create(
            name="Demo Paper Supplier",
            defaults={
                "contact_name": "Budi Santoso",
                "email": "orders@demo-paper.example.com",
                "phone": "+62 21 555 0100",
                "address": "Jl. Industri No. 1, Jakarta",
            },
        )
        self.stdout.write(self.style.SUCCESS(f"Vendor ready: {vendor}"))

        # 4. Demo user
        username = options["username"]
        password = options["password"]
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com", "is_staff": True},
        )
        if created:  # if user newly created
            user.set_password(password)
            user.save()
            self.stdout.write(
                self.style.SUCCESS(f"Created user: {user.username} (pw={password})")
            )

        ap = ChartOfAccount.objects.accounts_payable().first()
        self.stdout.write(
            self.style.NOTICE(f"Bills will post against {ap} (balance {ap.balance or Decimal('0.00')})")
        )
