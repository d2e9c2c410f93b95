from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import BillItem, JournalEntry, JournalEntryItem

# pre_delete fires for queryset deletes and cascades that skip Model.delete().
# Parents with PROTECT children (periods, accounts, paid bills) never get
# this far: the deletion collector raises ProtectedError first.

"""Block deleting lines of a posted journal."""


@receiver(pre_delete, sender=JournalEntryItem)
def prevent_delete_posted_journal_items(sender, instance, **kwargs):
    if JournalEntry.objects.filter(pk=instance.journal_entry_id, status="POSTED").exists():
        raise ValidationError("Cannot delete journal item: parent JournalEntry is posted.")


"""Block deleting items of a settled or cancelled bill."""


@receiver(pre_delete, sender=BillItem)
def prevent_delete_items_of_closed_bill(sender, instance, **kwargs):
    status = instance.bill.status
    if status in ("PARTIAL", "PAID", "CANCELLED"):
        raise ValidationError(f"Cannot delete items of a {status.lower()} bill.")
