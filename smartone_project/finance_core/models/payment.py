from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from .bill import Bill

PAYMENT_METHODS = [
    ("CASH", "Cash"),
    ("BANK_TRANSFER", "Bank transfer"),
    ("CHECK", "Check"),
    ("CREDIT_CARD", "Credit card"),
    ("OTHER", "Other"),
]

TRANSACTION_TYPES = [
    ("AP", "Accounts payable"),  # a bill was booked
    ("PAYMENT", "Payment"),  # cash went out against a bill
]


class Payment(models.Model):
    """Cash applied to a bill. Append-only: never edited or deleted."""

    bill = models.ForeignKey(Bill, on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    payment_date = models.DateField()
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHODS)
    payment_reference = models.CharField(max_length=200, null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-payment_date", "-id")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0), name="payment_amount_positive"
            ),
        ]

    def __str__(self):
        return f"Payment {self.amount} on {self.bill.bill_number}"

    def clean(self):
        if self.amount is not None and self.amount <= 0:
            raise ValidationError("Payment amount must be > 0")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("Payments are append-only")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Payments are append-only")


class FinancialTransaction(models.Model):  # Cash-book style summary row
    type = models.CharField(max_length=10, choices=TRANSACTION_TYPES)
    category = models.CharField(max_length=50)  # e.g. ACCOUNTS_PAYABLE
    amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    description = models.CharField(max_length=500, blank=True, default="")
    date = models.DateField()
    bill = models.ForeignKey(
        Bill,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="transactions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-date", "-id")
        indexes = [
            models.Index(fields=["type", "date"], name="fintx_type_date_idx"),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} ({self.date})"
