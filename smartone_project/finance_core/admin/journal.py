from decimal import Decimal
from django.contrib import admin
from django.core.exceptions import PermissionDenied
from django.utils.html import format_html
from ..models import JournalEntry, JournalEntryItem
from .actions import post_journal_entries
from .inlines import JournalEntryItemInline


# Register `JournalEntry` model
@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    """Basic admin display setup"""

    list_display = (
        "entry_number",
        "date",
        "period",
        "reference",
        "status",
        "source_type",
        "posted_at",
        "balanced",
    )
    list_filter = ("status", "source_type", "period")
    search_fields = ("entry_number", "reference", "description")
    # status changes only through the "post" action
    readonly_fields = (
        "status",
        "posted_at",
        "created_by",
        "posting_fingerprint",
    )  # users can see but not edit these
    inlines = [JournalEntryItemInline]  # edit items directly on the JE page
    actions = [post_journal_entries]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("period", "created_by")

    """ Computed column for balance check """
    # Show total debits / total credits for each journal
    @admin.display(description="Debits / Credits")
    def balanced(self, obj):
        d, c = obj.compute_totals()
        # format: bold debits / small credits
        return format_html(
            "<b>{}</b> / <small>{}</small>",
            d or Decimal("0.00"),
            c or Decimal("0.00"),
        )

    """ Make entries immutable once posted """
    def get_readonly_fields(self, request, obj=None):
        r = list(self.readonly_fields)
        if obj and obj.status == "POSTED":
            r += [
                "entry_number", "date", "reference",
                "description", "period",
                "source_type", "source_id",
            ]
        return r

    """ Prevent deletion after posting """
    def has_delete_permission(self, request, obj=None):
        if obj and obj.status == "POSTED":
            return False  # If posted → deletion is blocked
        return super().has_delete_permission(request, obj)


# Register `JournalEntryItem` model
@admin.register(JournalEntryItem)
class JournalEntryItemAdmin(admin.ModelAdmin):
    list_display = ("id", "journal_entry", "account", "debit", "credit")
    list_filter = ("account",)
    search_fields = ("description", "journal_entry__entry_number")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("journal_entry", "account")

    # items are created only via JournalEntry inline
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        if obj and obj.journal_entry.status == "POSTED":
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj and obj.journal_entry.status == "POSTED":
            return False
        return super().has_delete_permission(request, obj)

    # prevent saving/POST requests for posted items (but allow GET so view is visible)
    def change_view(self, request, object_id, form_url="", extra_context=None):
        obj = self.get_object(request, object_id)
        if obj and obj.journal_entry.status == "POSTED" and request.method == "POST":
            raise PermissionDenied("Cannot edit an item belonging to a posted journal entry.")
        return super().change_view(request, object_id, form_url, extra_context=extra_context)
