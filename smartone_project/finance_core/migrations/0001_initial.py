from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ChartOfAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("type", models.CharField(choices=[("ASSET", "Asset"), ("LIABILITY", "Liability"), ("EQUITY", "Equity"), ("REVENUE", "Revenue"), ("EXPENSE", "Expense")], max_length=10)),
                ("subtype", models.CharField(blank=True, max_length=50, null=True)),
                ("description", models.TextField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("code",),
                "indexes": [
                    models.Index(fields=["type", "code"], name="coa_type_code_idx"),
                    models.Index(fields=["type", "subtype"], name="coa_type_subtype_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FinancialPeriod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=50, unique=True)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("type", models.CharField(choices=[("MONTHLY", "Monthly"), ("QUARTERLY", "Quarterly"), ("ANNUAL", "Annual")], default="MONTHLY", max_length=10)),
                ("year", models.PositiveIntegerField()),
                ("quarter", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("month", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("CLOSED", "Closed"), ("PENDING", "Pending")], default="OPEN", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("-start_date",),
                "indexes": [
                    models.Index(fields=["start_date"], name="period_start_idx"),
                    models.Index(fields=["status"], name="period_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Vendor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, unique=True)),
                ("contact_name", models.CharField(blank=True, default="", max_length=200)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("address", models.TextField(blank=True, default="")),
                ("tax_id", models.CharField(blank=True, default="", max_length=64)),
                ("notes", models.TextField(blank=True, default="")),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("INACTIVE", "Inactive")], default="ACTIVE", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("name",),
                "indexes": [
                    models.Index(fields=["status", "name"], name="vendor_status_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("-created_at", "-id"),
                "indexes": [
                    models.Index(fields=["object_type", "object_id"], name="audit_object_idx"),
                    models.Index(fields=["created_at"], name="audit_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Bill",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("bill_number", models.CharField(max_length=64, unique=True)),
                ("issue_date", models.DateField()),
                ("due_date", models.DateField()),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("paid_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("PARTIAL", "Partially paid"), ("PAID", "Paid"), ("CANCELLED", "Cancelled")], default="PENDING", max_length=10)),
                ("reference", models.CharField(blank=True, max_length=200, null=True)),
                ("description", models.TextField(blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="bills", to="finance_core.vendor")),
            ],
            options={
                "ordering": ("-issue_date", "-id"),
                "indexes": [
                    models.Index(fields=["vendor", "status"], name="bill_vendor_status_idx"),
                    models.Index(fields=["status", "due_date"], name="bill_status_due_idx"),
                    models.Index(fields=["issue_date"], name="bill_issue_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("total_amount__gte", 0), ("paid_amount__gte", 0)), name="bill_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Attachment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("file_name", models.CharField(max_length=255)),
                ("file_url", models.CharField(max_length=1000)),
                ("file_type", models.CharField(blank=True, default="", max_length=100)),
                ("file_size", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("bill", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attachments", to="finance_core.bill")),
            ],
            options={
                "ordering": ("id",),
            },
        ),
        migrations.CreateModel(
            name="BillItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("quantity", models.DecimalField(decimal_places=4, default=Decimal("1"), max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=4, default=Decimal("0.00"), max_digits=18)),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="bill_items", to="finance_core.chartofaccount")),
                ("bill", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="finance_core.bill")),
            ],
            options={
                "ordering": ("id",),
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 0), ("unit_price__gte", 0)), name="bill_item_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FinancialTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(choices=[("AP", "Accounts payable"), ("PAYMENT", "Payment")], max_length=10)),
                ("category", models.CharField(max_length=50)),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("bill", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="transactions", to="finance_core.bill")),
            ],
            options={
                "ordering": ("-date", "-id"),
                "indexes": [
                    models.Index(fields=["type", "date"], name="fintx_type_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("payment_date", models.DateField()),
                ("payment_method", models.CharField(choices=[("CASH", "Cash"), ("BANK_TRANSFER", "Bank transfer"), ("CHECK", "Check"), ("CREDIT_CARD", "Credit card"), ("OTHER", "Other")], max_length=20)),
                ("payment_reference", models.CharField(blank=True, max_length=200, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("bill", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="finance_core.bill")),
            ],
            options={
                "ordering": ("-payment_date", "-id"),
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="payment_amount_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_number", models.CharField(max_length=64, unique=True)),
                ("date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("reference", models.CharField(blank=True, max_length=200, null=True)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("POSTED", "Posted")], default="DRAFT", max_length=10)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("source_type", models.CharField(blank=True, max_length=50, null=True)),
                ("source_id", models.BigIntegerField(blank=True, null=True)),
                ("posting_fingerprint", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("period", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journal_entries", to="finance_core.financialperiod")),
            ],
            options={
                "ordering": ("-date", "-id"),
                "indexes": [
                    models.Index(fields=["date"], name="je_date_idx"),
                    models.Index(fields=["status", "date"], name="je_status_date_idx"),
                    models.Index(fields=["source_type", "source_id"], name="je_source_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntryItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=400)),
                ("debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journal_items", to="finance_core.chartofaccount")),
                ("journal_entry", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="finance_core.journalentry")),
            ],
            options={
                "ordering": ("id",),
                "indexes": [
                    models.Index(fields=["account"], name="jei_account_idx"),
                    models.Index(fields=["journal_entry"], name="jei_journal_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit__gte", 0), ("credit__gte", 0)), name="jei_non_negative_amounts"),
                    models.CheckConstraint(condition=models.Q(("debit__gt", 0), ("credit__gt", 0), _connector="OR"), name="jei_debit_or_credit_nonzero"),
                ],
            },
        ),
    ]
