import datetime
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db.models import Sum
from django.test import TestCase, override_settings
from ..exceptions import BillStateError, NoOpenPeriod
from ..models import Bill, BillItem, JournalEntry, JournalEntryItem
from ..services import apply_bill_payment, cancel_bill, create_bill
from .helpers import BooksMixin


@override_settings(FINANCE_AUTO_SETTLE_ON_CREATE=False)
class CancelBillTests(BooksMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.bill = create_bill(
            vendor_id=self.vendor.pk,
            bill_date=datetime.date(2024, 1, 15),
            due_date=datetime.date(2024, 2, 14),
            items=self.items(),
        )

    def test_reversal_nets_every_account_to_zero(self):
        bill = cancel_bill(self.bill.pk, datetime.date(2024, 1, 20))

        self.assertEqual(bill.status, "CANCELLED")
        reversal = JournalEntry.objects.get(source_type="bill_cancellation", source_id=bill.pk)
        self.assertEqual(reversal.status, "POSTED")
        self.assertTrue(reversal.is_balanced())

        sums = JournalEntryItem.objects.filter(account=self.ap).aggregate(
            debit=Sum("debit"), credit=Sum("credit")
        )
        self.assertEqual(sums["debit"], sums["credit"])
        for account in (self.ap, self.supplies, self.utilities):
            account.refresh_from_db()
            self.assertEqual(account.balance, Decimal("0.00"))

    def test_cancelled_bill_is_immutable(self):
        cancel_bill(self.bill.pk, datetime.date(2024, 1, 20))
        bill = Bill.objects.get(pk=self.bill.pk)

        bill.total_amount = Decimal("1.00")
        with self.assertRaises(ValidationError):
            bill.save()

    def test_cancelled_bill_items_survive_bulk_delete(self):
        cancel_bill(self.bill.pk, datetime.date(2024, 1, 20))

        with self.assertRaises(ValidationError):
            BillItem.objects.filter(bill=self.bill).delete()
        self.assertEqual(BillItem.objects.filter(bill=self.bill).count(), 2)

    """ Failure tests """

    def test_part_paid_bill_cannot_be_cancelled(self):
        apply_bill_payment(
            self.bill.pk,
            Decimal("50"),
            payment_date=datetime.date(2024, 1, 18),
            payment_method="CASH",
        )

        with self.assertRaises(BillStateError):
            cancel_bill(self.bill.pk, datetime.date(2024, 1, 20))
        self.assertFalse(JournalEntry.objects.filter(source_type="bill_cancellation").exists())

    def test_cannot_cancel_twice(self):
        cancel_bill(self.bill.pk, datetime.date(2024, 1, 20))

        with self.assertRaises(BillStateError):
            cancel_bill(self.bill.pk, datetime.date(2024, 1, 21))

    def test_reversal_needs_an_open_period(self):
        with self.assertRaises(NoOpenPeriod):
            cancel_bill(self.bill.pk, datetime.date(2024, 3, 1))

        self.bill.refresh_from_db()
        self.assertEqual(self.bill.status, "PENDING")
