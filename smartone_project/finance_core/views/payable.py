import logging
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from .. import services
from ..exceptions import RequestValidationError
from ..forms import (AttachmentForm, BillForm, BillIdForm, BillItemForm,
                     CancelBillForm, PayableFilterForm, PaymentForm, validate_rows)
from ..serializers import bill_dict, payable_summary_dict, payment_dict
from .common import acting_user, json_errors, query_params, read_json, validated

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["GET", "POST", "PUT"])
@json_errors("Failed to process payable request")
def payable(request):
    """
    GET  ?id=...           → one bill
    GET  ?vendorId&status… → paginated list with summary and aging
    POST                   → create bill (posted to the ledger)
    PUT                    → apply a payment {id, paymentAmount, …};
                             bills are edited with PUT payable/<id>
    """
    if request.method == "POST":
        return _create_bill(request)
    if request.method == "PUT":
        return _update_payment(request)

    params = validated(PayableFilterForm, query_params(request), "Invalid filters").cleaned_data
    if params.get("id"):
        bill = services.get_bill(params["id"])
        return JsonResponse(bill_dict(bill))

    result = services.payable_summary(
        vendor_id=params.get("vendor_id"),
        status=params.get("status") or None,
        due_date_start=params.get("due_date_start"),
        due_date_end=params.get("due_date_end"),
        search=params.get("search"),
        page=params.get("page") or 1,
        page_size=params.get("page_size"),
    )
    return JsonResponse(payable_summary_dict(result))


def _create_bill(request):
    data = read_json(request)
    form = validated(BillForm, data)

    items, item_errors = _bill_items(data)
    attachments, attachment_errors = validate_rows(
        AttachmentForm, data.get("attachments"), "attachments"
    )
    errors = {**item_errors, **attachment_errors}
    if errors:
        raise RequestValidationError("Missing or invalid fields", details=errors)

    cleaned = form.cleaned_data
    bill = services.create_bill(
        vendor_id=cleaned["vendor_id"],
        bill_number=cleaned.get("bill_number") or None,
        bill_date=cleaned["bill_date"],
        due_date=cleaned["due_date"],
        reference=cleaned.get("reference"),
        description=cleaned.get("description"),
        notes=cleaned.get("notes"),
        items=items,
        attachments=attachments,
        user=acting_user(request),
    )
    return JsonResponse({"success": True, "bill": bill_dict(bill)})


def _bill_items(data):
    items, errors = validate_rows(BillItemForm, data.get("items"), "items")
    if not data.get("items"):
        errors["items"] = ["At least one item is required."]
    return items, errors


def _update_bill(request, bill_id):
    data = read_json(request)
    form = validated(BillForm, data)
    items, errors = _bill_items(data)
    if errors:
        raise RequestValidationError("Missing or invalid fields", details=errors)

    cleaned = form.cleaned_data
    bill = services.update_bill(
        bill_id,
        vendor_id=cleaned["vendor_id"],
        bill_date=cleaned["bill_date"],
        due_date=cleaned["due_date"],
        reference=cleaned.get("reference"),
        description=cleaned.get("description"),
        notes=cleaned.get("notes"),
        items=items,
        user=acting_user(request),
    )
    return JsonResponse(
        {"success": True, "message": "Bill updated successfully", "bill": bill_dict(bill)}
    )


def _update_payment(request):
    data = read_json(request)
    bill_id = validated(BillIdForm, data, "Bill ID is required").cleaned_data["id"]
    # this endpoint names the amount paymentAmount
    if "payment_amount" in data:
        data["amount"] = data.pop("payment_amount")
    bill = _apply_payment(request, bill_id, data)
    return JsonResponse(bill_dict(bill, items=False, attachments=False))


def _apply_payment(request, bill_id, data):
    cleaned = validated(PaymentForm, data).cleaned_data
    return services.apply_bill_payment(
        bill_id,
        cleaned["amount"],
        payment_date=cleaned["payment_date"],
        payment_method=cleaned["payment_method"],
        payment_reference=cleaned.get("payment_reference"),
        notes=cleaned.get("notes"),
        user=acting_user(request),
    )


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
@json_errors("Failed to process bill request")
def bill_detail(request, bill_id):
    if request.method == "PUT":
        return _update_bill(request, bill_id)
    if request.method == "DELETE":
        cleaned = validated(CancelBillForm, read_json(request)).cleaned_data
        bill = services.cancel_bill(
            bill_id,
            cleaned.get("cancel_date") or timezone.localdate(),
            user=acting_user(request),
        )
        return JsonResponse({"success": True, "bill": bill_dict(bill)})

    return JsonResponse(bill_dict(services.get_bill(bill_id)))


@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors("Failed to record payment")
def bill_payment(request, bill_id):
    if request.method == "POST":
        bill = _apply_payment(request, bill_id, read_json(request))
        payment = bill.payments.order_by("-id").first()
        return JsonResponse(
            {
                "payment": payment_dict(payment),
                "bill": bill_dict(bill, items=False, attachments=False),
                "message": "Payment recorded successfully",
            }
        )

    bill = services.get_bill(bill_id)
    return JsonResponse({"bill": bill_dict(bill, items=False, attachments=False)})
