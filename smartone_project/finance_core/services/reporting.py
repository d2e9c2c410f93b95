import math
from datetime import timedelta
from decimal import Decimal
from django.conf import settings
from django.db.models import Count, Sum
from django.utils import timezone
from ..models import Bill, ChartOfAccount, JournalEntryItem

ZERO = Decimal("0.00")

# Aging buckets keyed by days past due (upper bound inclusive)
AGE_BUCKETS = (
    ("current", 0),
    ("days1To30", 30),
    ("days31To60", 60),
    ("days61To90", 90),
)
OVER_90 = "over90"


def age_bucket(days_overdue: int) -> str:
    for name, upper in AGE_BUCKETS:
        if days_overdue <= upper:
            return name
    return OVER_90


def filter_bills(
    *,
    vendor_id=None,
    status=None,
    due_date_start=None,
    due_date_end=None,
    search=None,
):
    qs = Bill.objects.select_related("vendor")
    if vendor_id:
        qs = qs.filter(vendor_id=vendor_id)
    if status:
        qs = qs.filter(status=status)
    if due_date_start:
        qs = qs.filter(due_date__gte=due_date_start)
    if due_date_end:
        qs = qs.filter(due_date__lte=due_date_end)
    return qs.search(search)


def _owed(qs):
    """(bill count, amount still owed) for a set of bills"""
    agg = qs.aggregate(
        count=Count("id"), total=Sum("total_amount"), paid=Sum("paid_amount")
    )
    return agg["count"], (agg["total"] or ZERO) - (agg["paid"] or ZERO)


def payable_summary(
    *,
    vendor_id=None,
    status=None,
    due_date_start=None,
    due_date_end=None,
    search=None,
    page=1,
    page_size=None,
    today=None,
) -> dict:
    """
    Accounts-payable dashboard: one page of bills plus totals, top vendors
    and an aging analysis computed over the whole filtered set.
    """
    today = today or timezone.localdate()
    page_size = page_size or settings.FINANCE_DEFAULT_PAGE_SIZE
    page = max(int(page or 1), 1)
    due_soon_until = today + timedelta(days=settings.FINANCE_DUE_SOON_DAYS)

    qs = filter_bills(
        vendor_id=vendor_id,
        status=status,
        due_date_start=due_date_start,
        due_date_end=due_date_end,
        search=search,
    ).order_by("-issue_date", "-id")

    total_count = qs.count()
    offset = (page - 1) * page_size
    bills = list(qs.with_details()[offset:offset + page_size])

    # aggregates below group by vendor, so drop the listing order
    qs = qs.order_by()
    # cancelled bills carry no money
    live = qs.exclude(status="CANCELLED")
    owing = qs.outstanding()

    billed = live.aggregate(total=Sum("total_amount"), paid=Sum("paid_amount"))
    _, total_outstanding = _owed(owing)
    overdue_count, overdue = _owed(qs.overdue(today))
    due_soon_count, due_soon = _owed(qs.due_between(today, due_soon_until))

    vendors = {
        row["vendor_id"]: {
            "vendorId": row["vendor_id"],
            "vendorName": row["vendor__name"],
            "outstanding": ZERO,
            "billCount": row["bill_count"],
        }
        for row in live.values("vendor_id", "vendor__name").annotate(bill_count=Count("id"))
    }

    age_analysis = {name: ZERO for name, _ in AGE_BUCKETS}
    age_analysis[OVER_90] = ZERO
    for bill_vendor, due_date, total, paid in owing.values_list(
        "vendor_id", "due_date", "total_amount", "paid_amount"
    ):
        outstanding = max(total - paid, ZERO)
        vendors[bill_vendor]["outstanding"] += outstanding
        age_analysis[age_bucket((today - due_date).days)] += outstanding

    summary = {
        "totalBilled": billed["total"] or ZERO,
        "totalPaid": billed["paid"] or ZERO,
        "totalOutstanding": total_outstanding,
        "dueSoon": due_soon,
        "dueSoonCount": due_soon_count,
        "overdue": overdue,
        "overdueCount": overdue_count,
        "vendorCount": len(vendors),
    }
    top_vendors = sorted(
        (v for v in vendors.values() if v["outstanding"] > 0),
        key=lambda v: (-v["outstanding"], v["vendorName"]),
    )[:5]

    return {
        "bills": bills,
        "pagination": {
            "totalCount": total_count,
            "totalPages": math.ceil(total_count / page_size),
            "currentPage": page,
            "pageSize": page_size,
        },
        "summary": summary,
        "topVendors": top_vendors,
        "ageAnalysis": age_analysis,
    }


def trial_balance(as_of) -> dict:
    """
    Debit/credit totals of posted journal items up to ``as_of`` for every
    active account, with the net balance on the account's normal side.
    """
    totals = {
        row["account_id"]: row
        for row in JournalEntryItem.objects.posted().up_to(as_of).totals_by_account()
    }

    accounts = []
    total_debit = ZERO
    total_credit = ZERO
    for account in ChartOfAccount.objects.active().order_by("type", "code"):
        row = totals.get(account.pk) or {}
        debit = row.get("total_debit") or ZERO
        credit = row.get("total_credit") or ZERO
        balance = account.signed_amount(debit, credit)
        total_debit += debit
        total_credit += credit
        accounts.append(
            {
                "account": account,
                "debit": debit,
                "credit": credit,
                "balance": balance,
                # which column of a printed trial balance the net lands in
                "isDebit": balance >= 0 if account.is_debit_normal else balance < 0,
            }
        )

    return {
        "asOfDate": as_of,
        "accounts": accounts,
        "totalDebit": total_debit,
        "totalCredit": total_credit,
        "isBalanced": total_debit == total_credit,
    }


INCOME_STATEMENT_TYPES = ("REVENUE", "EXPENSE")


def _income_lines(start_date, end_date, accounts):
    totals = {
        row["account_id"]: row
        for row in JournalEntryItem.objects.posted()
        .between(start_date, end_date)
        .filter(account__type__in=INCOME_STATEMENT_TYPES)
        .totals_by_account()
    }
    lines = {"REVENUE": [], "EXPENSE": []}
    for account in accounts:
        row = totals.get(account.pk) or {}
        balance = account.signed_amount(
            row.get("total_debit") or ZERO, row.get("total_credit") or ZERO
        )
        lines[account.type].append({"account": account, "balance": balance})
    return lines


def income_statement(start_date, end_date, compare_to_previous=False) -> dict:
    """
    Revenue and expense movement of posted journals between two dates.

    Revenue accounts count credits less debits, expense accounts debits
    less credits. With ``compare_to_previous`` the totals of the window of
    the same length that ends the day before ``start_date`` come along.
    """
    accounts = list(
        ChartOfAccount.objects.active()
        .filter(type__in=INCOME_STATEMENT_TYPES)
        .order_by("type", "code")
    )
    lines = _income_lines(start_date, end_date, accounts)
    total_revenue = sum((line["balance"] for line in lines["REVENUE"]), ZERO)
    total_expenses = sum((line["balance"] for line in lines["EXPENSE"]), ZERO)

    previous = None
    if compare_to_previous:
        length = end_date - start_date
        previous_end = start_date - timedelta(days=1)
        previous_start = previous_end - length
        earlier = _income_lines(previous_start, previous_end, accounts)
        previous_revenue = sum((line["balance"] for line in earlier["REVENUE"]), ZERO)
        previous_expenses = sum((line["balance"] for line in earlier["EXPENSE"]), ZERO)
        previous = {
            "startDate": previous_start,
            "endDate": previous_end,
            "totalRevenue": previous_revenue,
            "totalExpenses": previous_expenses,
            "netIncome": previous_revenue - previous_expenses,
        }

    return {
        "startDate": start_date,
        "endDate": end_date,
        "revenues": lines["REVENUE"],
        "expenses": lines["EXPENSE"],
        "totalRevenue": total_revenue,
        "totalExpenses": total_expenses,
        "netIncome": total_revenue - total_expenses,
        "previousPeriod": previous,
    }
