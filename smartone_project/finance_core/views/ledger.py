import math
import logging
from django.db.models import Q
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from .. import services
from ..exceptions import RequestValidationError
from ..forms import (IncomeStatementForm, JournalEntryForm, JournalFilterForm,
                     JournalItemForm, PostJournalEntryForm, TrialBalanceForm,
                     validate_rows)
from ..models import FinancialPeriod, JournalEntry
from ..serializers import (income_statement_dict, journal_entry_dict,
                           trial_balance_dict)
from ..services.periods import get_period
from .common import acting_user, json_errors, query_params, read_json, validated

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors("Failed to process journal entries")
def journal_entries(request):
    if request.method == "POST":
        data = read_json(request)
        cleaned = validated(JournalEntryForm, data).cleaned_data
        items, errors = validate_rows(JournalItemForm, data.get("items"), "items")
        if errors:
            raise RequestValidationError("Missing or invalid fields", details=errors)
        entry = services.create_journal_entry(
            date=cleaned["date"],
            period_id=cleaned["period_id"],
            items=items,
            description=cleaned.get("description"),
            reference=cleaned.get("reference") or None,
            entry_number=cleaned.get("entry_number") or None,
            user=acting_user(request),
        )
        entry = JournalEntry.objects.select_related("period").prefetch_related(
            "items__account"
        ).get(pk=entry.pk)
        return JsonResponse(journal_entry_dict(entry), status=201)

    params = validated(JournalFilterForm, query_params(request), "Invalid filters").cleaned_data
    page = params.get("page") or 1
    page_size = params.get("page_size") or 25

    qs = JournalEntry.objects.select_related("period").prefetch_related("items__account")
    search = params.get("search")
    if search:
        qs = qs.filter(
            Q(entry_number__icontains=search)
            | Q(description__icontains=search)
            | Q(reference__icontains=search)
        )
    if params.get("period"):
        qs = qs.filter(period_id=params["period"])
    if params.get("status"):
        qs = qs.filter(status=params["status"])

    total_count = qs.count()
    entries = qs.order_by("-date", "-id")[(page - 1) * page_size:page * page_size]
    return JsonResponse(
        {
            "entries": [journal_entry_dict(e) for e in entries],
            "pagination": {
                "totalCount": total_count,
                "totalPages": math.ceil(total_count / page_size),
                "currentPage": page,
                "pageSize": page_size,
            },
            "filters": {
                "periods": list(FinancialPeriod.objects.values_list("name", flat=True)),
                "statuses": sorted(
                    set(JournalEntry.objects.values_list("status", flat=True))
                ),
            },
        }
    )


@csrf_exempt
@require_http_methods(["POST"])
@json_errors("Failed to post journal entry")
def post_journal_entry(request):
    cleaned = validated(
        PostJournalEntryForm, read_json(request), "Journal entry ID is required"
    ).cleaned_data
    entry = services.post_journal_entry(
        cleaned["journal_entry_id"], user=acting_user(request)
    )
    return JsonResponse(
        {"message": "Journal entry posted successfully", "entry": journal_entry_dict(entry)}
    )


@require_http_methods(["GET"])
@json_errors("Failed to generate trial balance")
def trial_balance(request):
    cleaned = validated(
        TrialBalanceForm, query_params(request), "Either asOfDate or periodId must be provided"
    ).cleaned_data

    period = None
    as_of = cleaned.get("as_of_date")
    if not as_of:
        period = get_period(cleaned["period_id"])
        as_of = period.end_date

    result = services.trial_balance(as_of)
    if not result["isBalanced"]:
        logger.error(
            "Trial balance as of %s is off: debit=%s credit=%s",
            as_of,
            result["totalDebit"],
            result["totalCredit"],
        )
    return JsonResponse(trial_balance_dict(result, period))


@require_http_methods(["GET"])
@json_errors("Failed to generate income statement")
def income_statement(request):
    cleaned = validated(
        IncomeStatementForm,
        query_params(request),
        "Either a date range or periodId must be provided",
    ).cleaned_data

    period = None
    if cleaned.get("period_id"):
        period = get_period(cleaned["period_id"])
        start_date, end_date = period.start_date, period.end_date
    else:
        start_date, end_date = cleaned["start_date"], cleaned["end_date"]

    result = services.income_statement(
        start_date, end_date, compare_to_previous=cleaned.get("compare_to_previous", False)
    )
    return JsonResponse(income_statement_dict(result, period))
