from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from ..exceptions import FinanceError
from ..services import cancel_bill, post_journal_entry

# ---------- Admin actions ----------


@admin.action(description=_("Post selected journal entries (make immutable)"))
# Bulk-post multiple journal entries from Django admin list view
def post_journal_entries(modeladmin, request, queryset):
    """
    Admin action: attempt to post each selected JournalEntry safely.
    - Posts entries one-by-one, each in its own transaction.
    - Reports success / per-entry failures via admin messages.
    """
    # Only attempt to post entries which are not already posted.
    candidates = queryset.filter(status="DRAFT")
    total = candidates.count()
    success = 0
    failures = 0

    for je in candidates:
        try:
            post_journal_entry(je.pk, user=request.user)
            success += 1
        except (ValidationError, FinanceError) as exc:
            failures += 1
            modeladmin.message_user(
                request,
                _("Could not post %(number)s: %(err)s") % {"number": je.entry_number, "err": exc},
                level=messages.ERROR,
            )

    # Final summary message
    modeladmin.message_user(
        request,
        _("Posted %(success)d of %(total)d journal entries. %(failures)d failed.") % {
            "success": success,
            "total": total,
            "failures": failures,
        },
        level=messages.SUCCESS if failures == 0 else messages.WARNING,
    )


""" Add button/action that reverses unpaid bills out of the ledger """


@admin.action(description=_("Cancel selected unpaid bills"))
def cancel_bills(modeladmin, request, queryset):
    today = timezone.localdate()
    for bill in queryset:
        try:
            cancel_bill(bill.pk, today, user=request.user)
            # enforces the rules coded in the service
            # instead of letting admins flip the status directly
        except (ValidationError, FinanceError) as e:
            modeladmin.message_user(request, f"{bill}: {e}", level=messages.ERROR)
