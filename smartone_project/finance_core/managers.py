from django.db import models

# -----------------------------------------
# Query helpers shared by views, services
# and reports
# -----------------------------------------


class BillQuerySet(models.QuerySet):
    def with_details(self):
        # vendor in the same join, children in one query each
        return self.select_related("vendor").prefetch_related(
            "items__account", "payments", "attachments"
        )

    def outstanding(self):
        # Bills that still owe money
        return self.filter(status__in=["PENDING", "PARTIAL"])

    def overdue(self, today):
        return self.outstanding().filter(due_date__lt=today)

    def due_between(self, start, end):
        return self.outstanding().filter(due_date__gte=start, due_date__lte=end)

    def search(self, term):
        term = (term or "").strip()
        if not term:
            return self
        return self.filter(
            models.Q(bill_number__icontains=term)
            | models.Q(vendor__name__icontains=term)
            | models.Q(reference__icontains=term)
            | models.Q(description__icontains=term)
        )


class FinancialPeriodQuerySet(models.QuerySet):
    def open(self):
        return self.filter(status="OPEN")

    def containing(self, date):
        # start_date <= date <= end_date
        return self.filter(start_date__lte=date, end_date__gte=date)

    def overlapping(self, start_date, end_date, exclude_pk=None):
        qs = self.filter(start_date__lte=end_date, end_date__gte=start_date)
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        return qs


class ChartOfAccountQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def accounts_payable(self):
        # Control account credited by every posted bill
        return self.active().filter(type="LIABILITY", subtype="ACCOUNTS_PAYABLE")


class JournalEntryItemQuerySet(models.QuerySet):
    def posted(self):
        return self.filter(journal_entry__status="POSTED")

    def up_to(self, date):
        return self.filter(journal_entry__date__lte=date)

    def between(self, start, end):
        # both ends inclusive
        return self.filter(journal_entry__date__gte=start, journal_entry__date__lte=end)

    def totals_by_account(self):
        return self.values("account_id").annotate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )


BillManager = models.Manager.from_queryset(BillQuerySet)
FinancialPeriodManager = models.Manager.from_queryset(FinancialPeriodQuerySet)
ChartOfAccountManager = models.Manager.from_queryset(ChartOfAccountQuerySet)
JournalEntryItemManager = models.Manager.from_queryset(JournalEntryItemQuerySet)
