from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import ChartOfAccountManager

# Choice Lists
ACCOUNT_TYPES = [
    # Used to classify general ledger accounts
    ("ASSET", "Asset"),
    ("LIABILITY", "Liability"),
    ("EQUITY", "Equity"),
    ("REVENUE", "Revenue"),
    ("EXPENSE", "Expense"),
]

# Accounts that normally increase on the debit side
DEBIT_NORMAL_TYPES = ("ASSET", "EXPENSE")

# Subtype of the control account every posted bill credits
ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"


class ChartOfAccount(models.Model):
    """
    Ledger account in the Chart of Accounts.
    - code is unique and drives sort order in reports
    - type decides the normal balance (ASSET/EXPENSE → debit, others → credit)
    - subtype tags control accounts, e.g. LIABILITY/ACCOUNTS_PAYABLE
    """

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)  # "Cash on Hand", "Accounts Payable"
    type = models.CharField(max_length=10, choices=ACCOUNT_TYPES)
    subtype = models.CharField(max_length=50, null=True, blank=True)
    description = models.TextField(null=True, blank=True)

    # “soft deactivate” accounts (hide in UI, stop new postings)
    # without deleting history
    is_active = models.BooleanField(default=True)

    # Running balance on the account's normal side.
    # Updated on every posting, rebuilt nightly by a Celery task
    balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ChartOfAccountManager()

    class Meta:
        ordering = ("code",)
        indexes = [
            # For reports grouped by type (Trial Balance)
            models.Index(fields=["type", "code"], name="coa_type_code_idx"),
            # For control account lookups
            models.Index(fields=["type", "subtype"], name="coa_type_subtype_idx"),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def is_debit_normal(self):
        return self.type in DEBIT_NORMAL_TYPES

    def signed_amount(self, debit, credit):
        """Movement of debit/credit on this account's normal side"""
        if self.is_debit_normal:
            return debit - credit
        return credit - debit

    def save(self, *args, **kwargs):
        """Enforce business immutability
        (can’t disable accounts used in journal items)"""
        if not self.pk:
            return super().save(*args, **kwargs)
        old = ChartOfAccount.objects.filter(pk=self.pk).first()

        # If account was active before, but now being set to inactive
        if old and old.is_active and not self.is_active:
            from .journal import JournalEntryItem

            used = JournalEntryItem.objects.filter(account=self).exists()
            if used:
                raise ValidationError(
                    "Cannot disable an account that is used in journal entries."
                )
        return super().save(*args, **kwargs)
