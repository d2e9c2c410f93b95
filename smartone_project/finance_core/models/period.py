from django.db import models
from django.core.exceptions import ValidationError
from ..managers import FinancialPeriodManager

PERIOD_TYPES = [
    ("MONTHLY", "Monthly"),
    ("QUARTERLY", "Quarterly"),
    ("ANNUAL", "Annual"),
]

PERIOD_STATUS = [
    ("OPEN", "Open"),  # accepts postings
    ("CLOSED", "Closed"),  # books are final
    ("PENDING", "Pending"),  # not opened yet
]


# ---------- FinancialPeriod (accounting period) ----------
class FinancialPeriod(models.Model):  # Time bucket that journal entries are grouped into

    name = models.CharField(max_length=50, unique=True)  # "2025-07" or "FY2025-Q3"

    # Exact date range, both ends inclusive
    start_date = models.DateField()
    end_date = models.DateField()

    type = models.CharField(max_length=10, choices=PERIOD_TYPES, default="MONTHLY")
    year = models.PositiveIntegerField()
    quarter = models.PositiveSmallIntegerField(null=True, blank=True)
    month = models.PositiveSmallIntegerField(null=True, blank=True)

    status = models.CharField(max_length=10, choices=PERIOD_STATUS, default="OPEN")
    """
        Only OPEN periods accept postings.
        Prevents backdating transactions that could corrupt finalized reports.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = FinancialPeriodManager()

    class Meta:
        indexes = [
            models.Index(fields=["start_date"], name="period_start_idx"),
            models.Index(fields=["status"], name="period_status_idx"),
        ]
        # Newest period first
        ordering = ("-start_date",)

    def __str__(self):
        return self.name

    @property
    def is_open(self):
        return self.status == "OPEN"

    def contains(self, date):
        return self.start_date <= date <= self.end_date

    def clean(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError("start_date must not be after end_date")
        if self.quarter is not None and not 1 <= self.quarter <= 4:
            raise ValidationError("quarter must be between 1 and 4")
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValidationError("month must be between 1 and 12")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
