import logging
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import transaction
from ..exceptions import (AccountNotFound, JournalEntryNotFound,
                          MissingAPAccount, RequestValidationError,
                          UnbalancedJournalError)
from ..models import ChartOfAccount, JournalEntry, JournalEntryItem
from .audit_helper import log_action
from .numbering import generate_entry_number
from .periods import get_period, resolve_period

logger = logging.getLogger(__name__)


# ----------------------------
# Journal-related workflows
# ----------------------------
def post_journal_entry(journal_entry_id, user=None):
    """
    Wraps pure business logic with transaction management + orchestration
    """
    with transaction.atomic():
        # Lock the row to avoid race conditions
        je = JournalEntry.objects.select_for_update().filter(pk=journal_entry_id).first()
        if je is None:
            raise JournalEntryNotFound()
        if je.status != "DRAFT":
            raise RequestValidationError("Only draft journal entries can be posted")
        # call posting logic and update state
        je.transition_to("POSTED", user=user)
        log_action(action="post", instance=je, user=user)
    logger.info("Posted journal entry %s", je.entry_number)
    return JournalEntry.objects.prefetch_related("items__account").get(pk=je.pk)


def resolve_ap_account():
    """Active LIABILITY/ACCOUNTS_PAYABLE control account, lowest code first"""
    ap = ChartOfAccount.objects.accounts_payable().order_by("code").first()
    if not ap:
        raise MissingAPAccount(
            "Accounts Payable account not found in chart of accounts"
        )
    return ap


def create_journal_entry(
    *,
    date,
    period_id,
    items,
    description="",
    reference=None,
    entry_number=None,
    user=None,
):
    """
    Manual DRAFT journal entry. ``items`` is a list of dicts with
    account_id, description, debit, credit.
    """
    if len(items) < 2:
        raise RequestValidationError("At least two items are required")

    period = get_period(period_id)
    if period.status == "CLOSED":
        raise RequestValidationError("Cannot create entries in a closed period")
    if not period.contains(date):
        raise RequestValidationError(
            f"Entry date {date} is outside period {period.name}"
        )

    total_debit = sum((item["debit"] or Decimal("0.00") for item in items), Decimal("0.00"))
    total_credit = sum((item["credit"] or Decimal("0.00") for item in items), Decimal("0.00"))
    if total_debit != total_credit:
        raise UnbalancedJournalError(
            "Debits must equal credits",
            details={
                "totalDebits": float(total_debit),
                "totalCredits": float(total_credit),
                "difference": float(total_debit - total_credit),
            },
        )

    accounts = ChartOfAccount.objects.in_bulk({item["account_id"] for item in items})

    with transaction.atomic():
        je = JournalEntry.objects.create(
            entry_number=entry_number or generate_entry_number(date),
            date=date,
            period=period,
            description=description or "",
            reference=reference,
            status="DRAFT",
            source_type="manual",
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )
        for item in items:
            account = accounts.get(item["account_id"])
            if account is None:
                raise AccountNotFound(details={"accountId": item["account_id"]})
            JournalEntryItem.objects.create(
                journal_entry=je,
                account=account,
                description=item.get("description") or "",
                debit=item["debit"] or Decimal("0.00"),
                credit=item["credit"] or Decimal("0.00"),
            )
        log_action(
            action="create",
            instance=je,
            user=user,
            changes={"entry_number": je.entry_number, "total": str(total_debit)},
        )
    return je


def post_bill_to_journal(bill, user=None) -> JournalEntry:
    """
    Create & post the JE mirroring a new bill.
    Produces:
      Credit: Accounts Payable (control) = bill.total_amount
      Debit: expense account per bill item = item.amount
    Must run inside the caller's transaction.
    """
    period = resolve_period(bill.issue_date)
    ap_account = resolve_ap_account()

    items = list(bill.items.select_related("account"))
    unallocated = [item for item in items if not item.account_id and item.amount]
    if unallocated:
        raise UnbalancedJournalError(
            "Every bill item needs an expense account before the bill can be posted",
            details={"itemsWithoutAccount": [item.description for item in unallocated]},
        )

    je = JournalEntry.objects.create(
        entry_number=generate_entry_number(bill.issue_date),
        date=bill.issue_date,
        period=period,
        description=f"Bill {bill.bill_number} from {bill.vendor.name}",
        reference=bill.bill_number,
        status="DRAFT",
        source_type="bill",
        source_id=bill.pk,
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    # Credit AP (single item)
    JournalEntryItem.objects.create(
        journal_entry=je,
        account=ap_account,
        description=f"Accounts payable - {bill.bill_number}",
        debit=Decimal("0.00"),
        credit=bill.total_amount,
    )
    # Debit expense per bill item
    for item in items:
        if not item.amount:
            continue
        JournalEntryItem.objects.create(
            journal_entry=je,
            account=item.account,
            description=item.description or f"Bill {bill.bill_number}",
            debit=item.amount,
            credit=Decimal("0.00"),
        )

    # Post (this runs validations & moves account balances)
    je.post(user=user)
    return je


def reverse_bill_journal(
    bill, date, user=None, *, source_type="bill_cancellation", reason="cancelled"
) -> JournalEntry:
    """
    Post the mirror image of a bill's latest journal:
      Debit: Accounts Payable, Credit: each expense account.
    Without a ``date`` the reversal lands on the original entry's date.
    """
    original = (
        JournalEntry.objects.filter(source_type="bill", source_id=bill.pk, status="POSTED")
        .prefetch_related("items")
        .order_by("-id")
        .first()
    )
    if original is None:
        raise ValidationError(f"Bill {bill.bill_number} has no posted journal to reverse")

    date = date or original.date
    period = resolve_period(date)
    je = JournalEntry.objects.create(
        entry_number=generate_entry_number(date),
        date=date,
        period=period,
        description=f"Reversal of {original.entry_number} (bill {bill.bill_number} {reason})",
        reference=bill.bill_number,
        status="DRAFT",
        source_type=source_type,
        source_id=bill.pk,
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    for item in original.items.all():
        JournalEntryItem.objects.create(
            journal_entry=je,
            account_id=item.account_id,
            description=f"Reversal: {item.description}",
            debit=item.credit,
            credit=item.debit,
        )
    je.post(user=user)
    return je
