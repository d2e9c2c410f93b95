import logging
from decimal import Decimal, InvalidOperation
from django.conf import settings
from django.db import transaction
from ..exceptions import BillNotFound, BillStateError, InvalidAmount
from ..models import Bill, FinancialTransaction, Payment, derive_payment_status
from .audit_helper import log_action

logger = logging.getLogger(__name__)

__all__ = ["apply_bill_payment", "derive_payment_status"]


# ----------------------------
# Payment-related workflows
# ----------------------------
def _positive_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount("Payment amount must be a positive number")
    if not value.is_finite() or value <= 0:
        raise InvalidAmount("Payment amount must be a positive number")
    return value.quantize(Decimal("0.01"))


def apply_bill_payment(
    bill_id,
    amount,
    *,
    payment_date,
    payment_method,
    payment_reference=None,
    notes="",
    user=None,
) -> Bill:
    """
    Record cash paid against a bill.
    Locks the bill row for the duration of the operation.
    """
    # Everything inside either succeeds
    # as one unit or rolls back if something fails
    with transaction.atomic():
        bill = Bill.objects.select_for_update().filter(pk=bill_id).first()
        if bill is None:
            raise BillNotFound()
        if bill.status == "CANCELLED":
            raise BillStateError("Cannot record a payment on a cancelled bill")
        amount = _positive_amount(amount)

        # Validate bill outstanding
        outstanding = bill.outstanding_amount
        if amount - outstanding >= settings.FINANCE_PAYMENT_TOLERANCE:
            raise InvalidAmount(
                f"Payment amount must be between 0 and {outstanding}",
                details={"remainingAmount": float(outstanding)},
            )

        payment = Payment.objects.create(
            bill=bill,
            amount=amount,
            payment_date=payment_date,
            payment_method=payment_method,
            payment_reference=payment_reference or None,
            notes=notes or "",
        )

        FinancialTransaction.objects.create(
            type="PAYMENT",
            category="ACCOUNTS_PAYABLE",
            amount=amount,
            description=f"Payment for bill #{bill.bill_number}",
            date=payment_date,
            bill=bill,
        )

        previous_status = bill.status
        bill.apply_paid_amount(bill.paid_amount + amount)

        # AUDIT LOGS
        log_action(
            action="payment",
            instance=payment,
            user=user,
            changes={"bill_id": bill.pk, "amount": str(amount), "method": payment_method},
        )
        log_action(
            action="update",
            instance=bill,
            user=user,
            changes={
                "paid_amount": str(bill.paid_amount),
                "status": [previous_status, bill.status],
            },
        )

    logger.info(
        "Applied payment %s to bill %s: paid=%s status=%s",
        amount,
        bill.bill_number,
        bill.paid_amount,
        bill.status,
    )
    return Bill.objects.select_related("vendor").prefetch_related("payments").get(pk=bill.pk)
