from decimal import ROUND_HALF_UP, Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import BillManager
from .account import ChartOfAccount
from .vendor import Vendor

BILL_STATUS_CHOICES = [
    ("PENDING", "Pending"),  # nothing paid yet
    ("PARTIAL", "Partially paid"),
    ("PAID", "Paid"),
    ("CANCELLED", "Cancelled"),  # reversed out of the ledger
]

CENT = Decimal("0.01")


def derive_payment_status(paid_amount, total_amount, tolerance=None):
    """Status a bill must carry for the given paid and total amounts.

    Amounts within ``tolerance`` (FINANCE_PAYMENT_TOLERANCE, 0.01 by
    default) of each other count as equal, so rounding noise never leaves a
    bill stuck in PARTIAL.
    """
    if tolerance is None:
        tolerance = settings.FINANCE_PAYMENT_TOLERANCE
    paid = Decimal(paid_amount)
    total = Decimal(total_amount)
    if abs(paid - total) < tolerance:
        return "PAID"
    if paid > 0:
        return "PARTIAL"
    return "PENDING"


def line_amount(quantity, unit_price):
    """quantity × unit_price rounded to cents"""
    return (Decimal(quantity) * Decimal(unit_price)).quantize(CENT, rounding=ROUND_HALF_UP)


# ---------- Bills / BillItems ----------

# Header represents vendor bill (Accounts Payable document)


class Bill(models.Model):
    # Human-readable number, AP-YYYYMM-NNN when generated
    bill_number = models.CharField(max_length=64, unique=True)
    vendor = models.ForeignKey(
        Vendor,
        # prevent deleting a vendor who has bills
        on_delete=models.PROTECT,
        related_name="bills",
    )
    issue_date = models.DateField()  # bill date
    # when payment is expected
    due_date = models.DateField()

    # Sum of all bill items
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Cumulative cash applied to the bill
    paid_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    # Always derive_payment_status(paid_amount, total_amount) unless cancelled
    status = models.CharField(
        max_length=10, choices=BILL_STATUS_CHOICES, default="PENDING"
    )

    reference = models.CharField(max_length=200, null=True, blank=True)
    description = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BillManager()

    class Meta:
        ordering = ("-issue_date", "-id")
        indexes = [
            models.Index(fields=["vendor", "status"], name="bill_vendor_status_idx"),
            models.Index(fields=["status", "due_date"], name="bill_status_due_idx"),
            models.Index(fields=["issue_date"], name="bill_issue_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0) & models.Q(paid_amount__gte=0),
                name="bill_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"Bill: {self.bill_number}"

    @property
    def outstanding_amount(self):
        # if payments overshoot within tolerance, it caps at 0, not negative
        return max(self.total_amount - self.paid_amount, Decimal("0.00"))

    def days_overdue(self, today):
        return (today - self.due_date).days

    def apply_paid_amount(self, paid_amount):
        """Set paid_amount and re-derive status in one write"""
        self.paid_amount = Decimal(paid_amount).quantize(CENT, rounding=ROUND_HALF_UP)
        self.status = derive_payment_status(self.paid_amount, self.total_amount)
        self.save(update_fields=["paid_amount", "status", "updated_at"])

    def clean(self):
        tolerance = settings.FINANCE_PAYMENT_TOLERANCE
        # Never record more cash than the bill is worth
        if self.paid_amount - self.total_amount >= tolerance:
            raise ValidationError("Paid amount cannot exceed the bill total.")

        """Make paid bills immutable in all code paths
        (admin, API, custom services)"""
        if self.pk:
            orig = Bill.objects.filter(pk=self.pk).first()
            if orig and orig.status in ("PAID", "CANCELLED"):
                changed_fields = [
                    field
                    for field in ("bill_number", "total_amount", "vendor_id")
                    if getattr(orig, field) != getattr(self, field)
                ]
                if changed_fields:
                    raise ValidationError(
                        f"Cannot modify {changed_fields} on a {orig.status.lower()} bill."
                    )

    def save(self, *args, **kwargs):
        self.full_clean()  # will trigger clean()
        return super().save(*args, **kwargs)

    """ Prevent deleting bills that already have payments applied """

    def delete(self, *args, **kwargs):
        if self.payments.exists():
            raise ValidationError("Cannot delete a bill with applied payments.")
        return super().delete(*args, **kwargs)

    def transition_to(self, new_status):
        # Current state vs. allowed manual transitions;
        # payment-driven states are derived, not requested
        allowed = {
            "PENDING": ["CANCELLED"],
            "PARTIAL": [],
            "PAID": [],
            "CANCELLED": [],
        }
        if new_status not in allowed.get(self.status, []):
            raise ValidationError(f"Cannot go from {self.status} to {new_status}")

        self.status = new_status
        self.save(update_fields=["status", "updated_at"])


class BillItem(models.Model):  # Individual items/services on the bill

    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="items")
    description = models.CharField(max_length=500, blank=True, default="")

    # Pricing fields: quantity × unit_price = amount
    quantity = models.DecimalField(max_digits=14, decimal_places=4, default=Decimal("1"))
    unit_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.00")
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Expense account debited when the bill is posted
    account = models.ForeignKey(
        ChartOfAccount,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="bill_items",
    )
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ("id",)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0) & models.Q(unit_price__gte=0),
                name="bill_item_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.description or 'Item'} x{self.quantity}"

    def clean(self):
        if self.quantity < 0:
            raise ValidationError("Quantity must be >= 0")
        if self.unit_price < 0:
            raise ValidationError("Unit price must be >= 0")
        if self.account_id and not self.account.is_active:
            raise ValidationError("Bill items cannot post to an inactive account")

    def save(self, *args, **kwargs):
        # Force amount to be recomputed before save, regardless of input
        self.amount = line_amount(self.quantity or 0, self.unit_price or 0)
        self.full_clean()
        return super().save(*args, **kwargs)


class Attachment(models.Model):
    """Already-uploaded document (scan, PDF) linked to a bill"""

    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="attachments")
    file_name = models.CharField(max_length=255)
    file_url = models.CharField(max_length=1000)
    file_type = models.CharField(max_length=100, blank=True, default="")
    file_size = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("id",)

    def __str__(self):
        return self.file_name
