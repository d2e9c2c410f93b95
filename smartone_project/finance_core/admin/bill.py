from django.contrib import admin
from ..models import Bill, FinancialTransaction, Payment, Vendor
from .actions import cancel_bills
from .inlines import AttachmentInline, BillItemInline, PaymentInline
from .ReadOnly import ReadOnlyAdmin


# Register `Bill` model
@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "bill_number",
        "vendor",
        "issue_date",
        "due_date",
        "status",
        "total_amount",
        "paid_amount",
        "outstanding_amount",
    )
    list_filter = ("status", "issue_date", "due_date")
    actions = [cancel_bills]
    search_fields = ("bill_number", "vendor__name", "reference")
    inlines = [BillItemInline, AttachmentInline, PaymentInline]
    # fields mirrored in the posted journal change only through the bill update API
    readonly_fields = (
        "bill_number", "vendor", "issue_date", "total_amount", "paid_amount", "status",
    )

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # Fetch vendor in the same SQL join
        return qs.select_related("vendor")

    """ Enforce immutability at admin level """

    def get_readonly_fields(self, request, obj=None):
        # Settled or cancelled bills are shown read-only
        if obj and obj.status in ("PAID", "CANCELLED"):
            return [f.name for f in self.model._meta.fields]
        return super().get_readonly_fields(request, obj)

    # Bills are booked through the API so their journal is posted with them
    def has_add_permission(self, request):
        return False

    # Bills leave the books through cancellation, not deletion
    def has_delete_permission(self, request, obj=None):
        return False


# Register `Payment` model
@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdmin):
    list_display = ("id", "bill", "payment_date", "amount", "payment_method", "payment_reference")
    search_fields = ("bill__bill_number", "payment_reference")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("bill")


# Register `FinancialTransaction` model
@admin.register(FinancialTransaction)
class FinancialTransactionAdmin(ReadOnlyAdmin):
    list_display = ("id", "type", "category", "amount", "date", "bill")
    search_fields = ("description", "bill__bill_number")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("bill")


# Register `Vendor` model
@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "contact_name", "email", "phone", "status")
    search_fields = ("name", "contact_name", "email")
    list_filter = ("status",)
