import hashlib
import json
from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import AlreadyPostedDifferentPayload, UnbalancedJournalError
from ..managers import JournalEntryItemManager
from .account import ChartOfAccount
from .period import FinancialPeriod

JOURNAL_STATUS = [
    ("DRAFT", "Draft"),  # still editable
    ("POSTED", "Posted"),  # finalized
]


# ---------- JournalEntry (Header) & JournalEntryItem ----------
class JournalEntry(models.Model):  # Represents one accounting transaction
    # Human-readable number, JE-YYYYMM-NNNN
    entry_number = models.CharField(max_length=64, unique=True)

    # Business metadata
    date = models.DateField()
    description = models.TextField(blank=True, default="")
    reference = models.CharField(max_length=200, null=True, blank=True)
    status = models.CharField(max_length=10, choices=JOURNAL_STATUS, default="DRAFT")

    # Every entry is filed under the accounting period containing its date
    period = models.ForeignKey(
        FinancialPeriod,
        on_delete=models.PROTECT,  # Prevent breaking historical ledger
        related_name="journal_entries",
    )
    posted_at = models.DateTimeField(null=True, blank=True)
    # Track user who created it
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL
    )
    # optional polymorphic source info (bill, bill adjustment or cancellation, manual)
    source_type = models.CharField(
        max_length=50, null=True, blank=True
    )  # Helps trace back where the JE originated
    source_id = models.BigIntegerField(null=True, blank=True)
    # Fingerprint-based idempotency (safe to call twice if nothing has changed)
    posting_fingerprint = models.CharField(max_length=64, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        # Speed up listing & filtering
        # (e.g. show all posted entries this month)
        indexes = [
            models.Index(fields=["date"], name="je_date_idx"),
            models.Index(fields=["status", "date"], name="je_status_date_idx"),
            models.Index(fields=["source_type", "source_id"], name="je_source_idx"),
        ]
        ordering = ("-date", "-id")

    def __str__(self):
        return f"{self.entry_number} {self.date} [{self.status}]"

    # Aggregate all debit and credit amounts across entry’s items
    def compute_totals(self):
        """Return debits, credits sums for items"""
        aggs = self.items.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or Decimal("0.00"),
            aggs["total_credit"] or Decimal("0.00"),
        )

    # True if double-entry rule holds: total debits = total credits
    def is_balanced(self):
        debit, credit = self.compute_totals()
        return debit == credit

    def _posting_payload(self):
        """Deterministic representation of what matters for posting

        Creates a consistent JSON "snapshot" of
        the important accounting data in a journal entry,
        so you can later check whether that exact version
        has already been posted.
        """
        items = [
            {
                "acct": item.account_id,
                "debit": str(item.debit),
                "credit": str(item.credit),
                "desc": item.description or "",
            }
            # always in the same order (id ascending)
            for item in self.items.order_by("id")
        ]

        payload = {
            "date": self.date.isoformat(),
            "period": self.period_id,
            "items": items,
        }

        # Converts payload dict into a compact JSON string
        return json.dumps(payload, separators=(",", ":"), sort_keys=True)

    def _fingerprint(self):
        # hash (sha256) JSON string
        # from _posting_payload() to produce a fingerprint
        return hashlib.sha256(self._posting_payload().encode()).hexdigest()

    # Post the entry safely inside a database transaction
    @transaction.atomic
    def post(self, user=None):
        """
        Safely post a journal entry
        with validations, idempotency, and balance updates.
        """

        # Lock row + items to prevent concurrent modifications
        je = JournalEntry.objects.select_for_update().get(pk=self.pk)
        items = je.items.select_for_update().all()

        # lazy import to avoid circular import at module load time
        from ..services.balances import apply_journal_to_balances

        """ Business validations """
        if not items.exists():  # Prevent posting an empty entry
            raise ValidationError("JournalEntry must have at least one item.")

        # Recompute totals fresh from DB & ignore any stale cached values
        total_debit, total_credit = je.compute_totals()

        # Enforce double-entry rule: debits = credits
        if total_debit != total_credit:
            raise UnbalancedJournalError(
                f"Journal not balanced: debits={total_debit}, credits={total_credit}",
                details={"totalDebit": float(total_debit), "totalCredit": float(total_credit)},
            )

        # Ensure period is open and covers the entry date
        if not je.period.contains(je.date):
            raise ValidationError(
                f"Entry date {je.date} is outside period {je.period.name}"
            )

        # Compute fingerprint
        fp = je._fingerprint()

        """ Idempotency & immutability """
        if je.status == "POSTED":
            if je.posting_fingerprint == fp:
                # Idempotent: safe to return without raising
                return je
            raise AlreadyPostedDifferentPayload(
                "Journal already posted with different payload."
            )

        if not je.period.is_open:
            raise ValidationError(f"Period {je.period.name} is {je.period.status.lower()}")

        """ Update state """
        je.status = "POSTED"
        je.posted_at = timezone.now()
        if user and not je.created_by_id:
            je.created_by = user
        je.posting_fingerprint = fp
        # only post() may flip DRAFT → POSTED (see save())
        je._posting = True
        je.save(
            update_fields=["status", "posted_at", "created_by", "posting_fingerprint"]
        )

        # Move the running balance of every account touched by this journal
        apply_journal_to_balances(je)

        self.status = je.status
        self.posted_at = je.posted_at
        self.posting_fingerprint = fp
        return je

    def clean(self):
        """Don't modify posted journals"""
        if self.pk:
            orig = JournalEntry.objects.filter(pk=self.pk).first()
            if orig and orig.status == "POSTED":
                # compare core fields; description may still be corrected
                for f in ("date", "period_id", "entry_number"):
                    if getattr(orig, f) != getattr(self, f):
                        raise ValidationError(
                            "Cannot modify a posted JournalEntry. It is immutable."
                        )

        """ Don't allow journals in closed periods """
        if self.period_id and self.status == "DRAFT" and self.period.status == "CLOSED":
            raise ValidationError("Cannot create or edit journal inside a closed period.")

    def save(self, *args, **kwargs):
        orig = JournalEntry.objects.filter(pk=self.pk).first() if self.pk else None
        # Check if journal was already posted
        if orig and orig.status == "POSTED" and self.status != "POSTED":
            # disallow toggling posted flag
            raise ValidationError("Cannot unpost a posted journal")

        # Setting status by hand would skip balance checks and balance updates
        was_posted = orig is not None and orig.status == "POSTED"
        if self.status == "POSTED" and not was_posted and not getattr(self, "_posting", False):
            raise ValidationError("Journal entries are posted with post(), not by setting status")

        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status == "POSTED":
            raise ValidationError("Cannot delete a posted journal; post a reversal instead.")
        return super().delete(*args, **kwargs)

    # Control status changes
    def transition_to(self, new_status, user=None):
        allowed = {
            "DRAFT": ["POSTED"],
            "POSTED": [],
        }

        # prevent skipping validations
        if new_status not in allowed.get(self.status, []):
            raise ValidationError(f"Cannot go from {self.status} to {new_status}")

        if new_status == "POSTED":
            self.post(user=user)


class JournalEntryItem(models.Model):  # Stores one debit or credit
    """
    Each item belongs to a journal entry and to a ledger account.
    Exactly one of debit/credit is non-zero.
    """

    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="items",
    )

    # Must point to one account (can’t delete account if items exist → PROTECT)
    account = models.ForeignKey(
        ChartOfAccount, on_delete=models.PROTECT, related_name="journal_items"
    )

    description = models.CharField(max_length=400, blank=True, default="")

    debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    objects = JournalEntryItemManager()

    class Meta:
        # For fast queries like “all items for this account” /
        # “all items in this JE.”
        indexes = [
            models.Index(fields=["account"], name="jei_account_idx"),
            models.Index(fields=["journal_entry"], name="jei_journal_idx"),
        ]
        ordering = ("id",)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="jei_non_negative_amounts",
            ),
            models.CheckConstraint(
                condition=models.Q(debit__gt=0) | models.Q(credit__gt=0),
                name="jei_debit_or_credit_nonzero",
            ),
        ]

    # Show journal, account, and amounts in admin dropdowns and debug logs
    def __str__(self):
        return (
            f"{self.journal_entry_id} | {self.account.code} {self.account.name} "
            f"| D:{self.debit or 0} C:{self.credit or 0}"
        )

    def clean(self):
        # Ensure no negative values sneak in
        # (redundant with CheckConstraint but useful at app-level)
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if self.debit > 0 and self.credit > 0:
            raise ValidationError("Journal item should not have both debit and credit > 0")
        if self.debit == 0 and self.credit == 0:
            raise ValidationError(
                "Journal item requires a non-0 amount on either debit or credit"
            )

        if self.account_id and not self.account.is_active:
            raise ValidationError(f"Account {self.account.code} is inactive")

        # If there's a parent journal set, check DB for its posted flag.
        if self.journal_entry_id:
            posted = JournalEntry.objects.filter(
                pk=self.journal_entry_id, status="POSTED"
            ).exists()
            if posted:
                if not self.pk:
                    # Trying to create an item on a posted journal, block it.
                    raise ValidationError(
                        "Cannot add journal item: parent journal is posted."
                    )
                orig = JournalEntryItem.objects.get(pk=self.pk)
                changed = (
                    orig.debit != self.debit
                    or orig.credit != self.credit
                    or orig.account_id != self.account_id
                )
                if changed:
                    raise ValidationError(
                        "Cannot modify journal item: parent JournalEntry is posted."
                    )

    def delete(self, *args, **kwargs):
        # Prevent deletion if parent journal is posted
        if JournalEntry.objects.filter(pk=self.journal_entry_id, status="POSTED").exists():
            raise ValidationError(
                "Cannot delete journal item: parent JournalEntry is posted."
            )
        return super().delete(*args, **kwargs)

    def save(self, *args, **kwargs):
        # clean()+field validation always run whenever
        # you save an item programmatically
        self.full_clean()
        return super().save(*args, **kwargs)
