import math
from django.db.models import Q
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from ..exceptions import RequestValidationError
from ..forms import (AccountFilterForm, AccountForm, AccountUpdateForm,
                     PeriodFilterForm, PeriodForm, PeriodUpdateForm,
                     VendorForm)
from ..models import ChartOfAccount, FinancialPeriod, Vendor
from ..models.account import ACCOUNT_TYPES
from ..serializers import account_dict, period_dict, vendor_dict
from ..services import accounts, periods
from .common import acting_user, json_errors, query_params, read_json, validated


# ---------- Vendors ----------
@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors("Failed to process vendors")
def vendors(request):
    if request.method == "POST":
        form = validated(VendorForm, read_json(request), "Invalid vendor data")
        vendor = accounts.create_vendor(form.cleaned_data, user=acting_user(request))
        return JsonResponse(vendor_dict(vendor), status=201)

    active = Vendor.objects.filter(status="ACTIVE").order_by("name")
    return JsonResponse([vendor_dict(v) for v in active], safe=False)


# ---------- Chart of accounts ----------
@csrf_exempt
@require_http_methods(["GET", "POST", "PUT", "DELETE"])
@json_errors("Failed to process chart of accounts")
def chart_of_accounts(request):
    params = validated(AccountFilterForm, query_params(request), "Invalid filters").cleaned_data
    account_id = params.get("id")

    if request.method == "POST":
        form = validated(AccountForm, read_json(request), "Missing required fields")
        account = accounts.create_account(form.cleaned_data, user=acting_user(request))
        return JsonResponse(account_dict(account), status=201)

    if request.method in ("PUT", "DELETE") and not account_id:
        raise RequestValidationError("Account ID is required")

    if request.method == "PUT":
        form = validated(AccountUpdateForm, read_json(request))
        account = accounts.update_account(
            account_id, form.changed_values(), user=acting_user(request)
        )
        return JsonResponse(account_dict(account))

    if request.method == "DELETE":
        accounts.delete_account(account_id, user=acting_user(request))
        return JsonResponse({"success": True})

    if account_id:
        return JsonResponse(account_dict(accounts.get_account(account_id)))

    page = params.get("page") or 1
    page_size = params.get("page_size") or 25
    qs = ChartOfAccount.objects.all()
    if params.get("type"):
        qs = qs.filter(type=params["type"])
    search = params.get("search")
    if search:
        qs = qs.filter(
            Q(code__icontains=search)
            | Q(name__icontains=search)
            | Q(type__icontains=search)
            | Q(subtype__icontains=search)
            | Q(description__icontains=search)
        )

    total_count = qs.count()
    rows = qs.order_by("code")[(page - 1) * page_size:page * page_size]
    return JsonResponse(
        {
            "accounts": [account_dict(a) for a in rows],
            "pagination": {
                "totalCount": total_count,
                "totalPages": math.ceil(total_count / page_size),
                "currentPage": page,
                "pageSize": page_size,
            },
            "filters": {"types": [code for code, _ in ACCOUNT_TYPES]},
        }
    )


# ---------- Financial periods ----------
@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors("Failed to process financial periods")
def period_list(request):
    if request.method == "POST":
        form = validated(PeriodForm, read_json(request), "Missing required fields")
        period = periods.create_period(form.cleaned_data, user=acting_user(request))
        return JsonResponse(period_dict(period), status=201)

    params = validated(PeriodFilterForm, query_params(request), "Invalid filters").cleaned_data
    qs = FinancialPeriod.objects.order_by("-start_date")
    for field in ("type", "year", "status"):
        if params.get(field):
            qs = qs.filter(**{field: params[field]})
    return JsonResponse([period_dict(p) for p in qs], safe=False)


@csrf_exempt
@require_http_methods(["GET", "PATCH", "DELETE"])
@json_errors("Failed to process financial period")
def period_detail(request, period_id):
    if request.method == "PATCH":
        form = validated(PeriodUpdateForm, read_json(request))
        period = periods.update_period(
            period_id, form.changed_values(), user=acting_user(request)
        )
        return JsonResponse(period_dict(period))

    if request.method == "DELETE":
        periods.delete_period(period_id, user=acting_user(request))
        return JsonResponse({"success": True})

    return JsonResponse(period_dict(periods.get_period(period_id)))
