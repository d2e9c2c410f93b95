from django.contrib import admin

from ..models import Attachment, BillItem, JournalEntryItem, Payment

# ---------- Helpful inline admin classes ----------


class JournalEntryItemInline(
    admin.TabularInline
    # shows related objects in table format (rows under parent form)
):
    """Show JournalEntryItem rows on JournalEntry page"""

    model = JournalEntryItem
    extra = 0  # don’t show “empty” rows by default (prevents clutter)
    fields = ("account", "description", "debit", "credit")
    show_change_link = True  # each row has a link to full detail page
    ordering = ("id",)  # items appear in creation order

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("account")

    def get_readonly_fields(self, request, obj=None):
        # Once journal is posted, all its items become completely locked
        if obj and obj.status == "POSTED":
            return list(self.fields)
        return self.readonly_fields

    # Hide add new item option
    def has_add_permission(self, request, obj=None):
        if obj and getattr(obj, "status", None) == "POSTED":
            return False
        return super().has_add_permission(request, obj)

    # Hide delete options
    def has_delete_permission(self, request, obj=None):
        if obj and getattr(obj, "status", None) == "POSTED":
            return False
        return super().has_delete_permission(request, obj)


class BillItemInline(admin.TabularInline):
    """Shows bill items under a Bill page"""

    model = BillItem
    extra = 0
    fields = ("description", "quantity", "unit_price", "amount", "account", "tax_rate")
    readonly_fields = ("amount",)  # computed on save
    show_change_link = False

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("account")

    # Items are mirrored in the bill total and its posted journal;
    # they change only through the bill update API
    def get_readonly_fields(self, request, obj=None):
        return list(self.fields)

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class AttachmentInline(admin.TabularInline):
    model = Attachment
    extra = 0
    fields = ("file_name", "file_url", "file_type", "file_size")


class PaymentInline(admin.TabularInline):
    """Payments are recorded through the API; shown here read-only"""

    model = Payment
    extra = 0
    fields = ("payment_date", "amount", "payment_method", "payment_reference", "notes")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False
