import logging
from decimal import Decimal
from django.db import transaction
from django.db.models import F

logger = logging.getLogger(__name__)


def apply_journal_to_balances(journal_entry):
    """
    Move ChartOfAccount.balance for every account touched by a
    freshly posted journal. Runs inside the posting transaction.
    """
    from ..models import ChartOfAccount

    movements = {}
    for item in journal_entry.items.select_related("account"):
        delta = item.account.signed_amount(item.debit, item.credit)
        movements[item.account_id] = movements.get(item.account_id, Decimal("0.00")) + delta

    for account_id, delta in movements.items():
        if delta:
            # F() keeps concurrent postings from overwriting each other
            ChartOfAccount.objects.filter(pk=account_id).update(balance=F("balance") + delta)

    logger.debug("Applied %s to balances of %d accounts", journal_entry.entry_number, len(movements))


def compute_account_balances(as_of=None):
    """{account_id: normal-side balance} from posted journal items"""
    from ..models import ChartOfAccount, JournalEntryItem

    items = JournalEntryItem.objects.posted()
    if as_of is not None:
        items = items.up_to(as_of)
    totals = {row["account_id"]: row for row in items.totals_by_account()}

    balances = {}
    for account in ChartOfAccount.objects.all():
        row = totals.get(account.pk)
        debit = (row and row["total_debit"]) or Decimal("0.00")
        credit = (row and row["total_credit"]) or Decimal("0.00")
        balances[account.pk] = account.signed_amount(debit, credit)
    return balances


def recompute_account_balances():
    """
    Rebuild every ChartOfAccount.balance from posted journal items.
    Returns the number of accounts whose stored balance drifted.
    """
    from ..models import ChartOfAccount

    drifted = 0
    with transaction.atomic():
        balances = compute_account_balances()
        for account in ChartOfAccount.objects.select_for_update():
            expected = balances.get(account.pk, Decimal("0.00"))
            if account.balance != expected:
                logger.warning(
                    "Balance drift on %s: stored=%s computed=%s",
                    account.code,
                    account.balance,
                    expected,
                )
                # queryset update skips save() rules on deactivated accounts
                ChartOfAccount.objects.filter(pk=account.pk).update(balance=expected)
                drifted += 1
    return drifted
