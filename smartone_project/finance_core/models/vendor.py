from django.db import models

VENDOR_STATUS_CHOICES = [
    ("ACTIVE", "Active"),
    ("INACTIVE", "Inactive"),
]


class Vendor(models.Model):  # Supplier who sends us bills (Accounts Payable)

    name = models.CharField(max_length=200, unique=True)
    contact_name = models.CharField(max_length=200, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    tax_id = models.CharField(max_length=64, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    # Inactive vendors keep their history but drop out of pick lists
    status = models.CharField(
        max_length=10, choices=VENDOR_STATUS_CHOICES, default="ACTIVE"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)
        indexes = [
            models.Index(fields=["status", "name"], name="vendor_status_name_idx"),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
