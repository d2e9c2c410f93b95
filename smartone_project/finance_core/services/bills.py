import logging
from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from ..exceptions import (BillNotFound, BillStateError, DuplicateBillNumber,
                          RequestValidationError, VendorNotFound)
from ..models import (Attachment, Bill, BillItem, ChartOfAccount,
                      FinancialTransaction, Vendor)
from ..models.bill import line_amount
from .audit_helper import log_action
from .numbering import generate_bill_number
from .posting import post_bill_to_journal, reverse_bill_journal

logger = logging.getLogger(__name__)


# ----------------------------
# Bill workflows (Accounts Payable)
# ----------------------------
def get_bill(bill_id) -> Bill:
    bill = Bill.objects.with_details().filter(pk=bill_id).first()
    if bill is None:
        raise BillNotFound()
    return bill


def _get_vendor(vendor_id) -> Vendor:
    vendor = Vendor.objects.filter(pk=vendor_id).first()
    if vendor is None:
        raise VendorNotFound()
    return vendor


def _checked_lines(items):
    """Total of the bill lines and the expense accounts they name"""
    if not items:
        raise RequestValidationError("At least one bill item is required")

    total = sum(
        (line_amount(item["quantity"], item["unit_price"]) for item in items),
        Decimal("0.00"),
    )
    if total <= 0:
        raise RequestValidationError("Bill total must be greater than zero")

    account_ids = {item["account_id"] for item in items if item.get("account_id")}
    accounts = ChartOfAccount.objects.in_bulk(account_ids)
    missing = sorted(account_ids - set(accounts))
    if missing:
        raise RequestValidationError(
            "Unknown expense account", details={"accountIds": missing}
        )
    return total, accounts


def _add_items(bill, items, accounts):
    for item in items:
        BillItem.objects.create(
            bill=bill,
            description=item.get("description") or "",
            quantity=item["quantity"],
            unit_price=item["unit_price"],
            account=accounts.get(item.get("account_id")),
            tax_rate=item.get("tax_rate") or Decimal("0.00"),
        )


def create_bill(
    *,
    vendor_id,
    bill_date,
    due_date,
    items,
    bill_number=None,
    reference=None,
    description="",
    notes="",
    attachments=(),
    user=None,
) -> Bill:
    """
    Book a vendor bill and mirror it into the general ledger.

    ``items`` are dicts with description, quantity, unit_price, account_id
    and tax_rate; ``attachments`` dicts with file_name, file_url, file_type
    and file_size. Everything runs in one transaction: a missing period or
    AP account rolls back the bill, its items and the journal.
    """
    vendor = _get_vendor(vendor_id)
    total, accounts = _checked_lines(items)

    with transaction.atomic():
        number = bill_number or generate_bill_number(bill_date)

        try:
            # nested atomic so a duplicate number surfaces as 400, whether
            # validate_unique sees it or the unique index loses a race
            with transaction.atomic():
                bill = Bill(
                    bill_number=number,
                    vendor=vendor,
                    issue_date=bill_date,
                    due_date=due_date,
                    total_amount=total,
                    paid_amount=Decimal("0.00"),
                    status="PENDING",
                    reference=reference or None,
                    description=description or "",
                    notes=notes or "",
                )
                bill.save()
        except ValidationError as exc:
            if "bill_number" not in getattr(exc, "error_dict", {}):
                raise
            raise DuplicateBillNumber(details={"billNumber": number})
        except IntegrityError:
            raise DuplicateBillNumber(details={"billNumber": number})

        _add_items(bill, items, accounts)

        for attachment in attachments or ():
            Attachment.objects.create(
                bill=bill,
                file_name=attachment["file_name"],
                file_url=attachment["file_url"],
                file_type=attachment.get("file_type") or "",
                file_size=attachment.get("file_size"),
            )

        FinancialTransaction.objects.create(
            type="AP",
            category="ACCOUNTS_PAYABLE",
            amount=total,
            description=f"Bill {bill.bill_number} from {vendor.name}",
            date=bill_date,
            bill=bill,
        )

        je = post_bill_to_journal(bill, user=user)

        if settings.FINANCE_AUTO_SETTLE_ON_CREATE:
            # Bills are booked as settled on entry
            bill.apply_paid_amount(bill.paid_amount + total)

        log_action(
            action="create",
            instance=bill,
            user=user,
            changes={
                "bill_number": bill.bill_number,
                "vendor_id": vendor.pk,
                "total_amount": str(total),
                "status": bill.status,
                "journal_entry": je.entry_number,
            },
        )

    logger.info(
        "Created bill %s for vendor %s total=%s (%s)",
        bill.bill_number,
        vendor.pk,
        total,
        je.entry_number,
    )
    return get_bill(bill.pk)


def update_bill(
    bill_id,
    *,
    vendor_id,
    bill_date,
    due_date,
    items,
    reference=None,
    description="",
    notes="",
    user=None,
) -> Bill:
    """
    Edit an unpaid bill's header and replace its items.

    The ledger follows the edit: the bill's current journal is reversed on
    its own date and a fresh one is posted for the new figures, so the AP
    control account always carries the latest total.
    """
    with transaction.atomic():
        bill = Bill.objects.select_for_update().filter(pk=bill_id).first()
        if bill is None:
            raise BillNotFound()
        if bill.status != "PENDING" or bill.payments.exists():
            raise BillStateError(
                "Paid or partially paid bills cannot be edited",
                details={"status": bill.status},
            )

        vendor = _get_vendor(vendor_id)
        total, accounts = _checked_lines(items)
        previous_total = bill.total_amount

        reversal = reverse_bill_journal(
            bill, None, user=user, source_type="bill_adjustment", reason="edited"
        )

        bill.items.all().delete()
        bill.vendor = vendor
        bill.issue_date = bill_date
        bill.due_date = due_date
        bill.total_amount = total
        bill.reference = reference or None
        bill.description = description or ""
        bill.notes = notes or ""
        bill.save()
        _add_items(bill, items, accounts)

        FinancialTransaction.objects.filter(bill=bill, type="AP").update(
            amount=total,
            date=bill_date,
            description=f"Bill {bill.bill_number} from {vendor.name}",
        )

        je = post_bill_to_journal(bill, user=user)

        log_action(
            action="update",
            instance=bill,
            user=user,
            changes={
                "vendor_id": vendor.pk,
                "total_amount": [str(previous_total), str(total)],
                "reversal": reversal.entry_number,
                "journal_entry": je.entry_number,
            },
        )

    logger.info(
        "Updated bill %s total %s -> %s (%s, %s)",
        bill.bill_number,
        previous_total,
        total,
        reversal.entry_number,
        je.entry_number,
    )
    return get_bill(bill.pk)


def cancel_bill(bill_id, cancel_date, user=None) -> Bill:
    """
    Cancel an unpaid bill: post a reversing journal and mark it CANCELLED.
    """
    with transaction.atomic():
        bill = Bill.objects.select_for_update().filter(pk=bill_id).first()
        if bill is None:
            raise BillNotFound()
        if bill.status != "PENDING" or bill.payments.exists():
            raise BillStateError(
                f"Only unpaid bills can be cancelled (status is {bill.status})"
            )

        je = reverse_bill_journal(bill, cancel_date, user=user)
        bill.transition_to("CANCELLED")

        FinancialTransaction.objects.filter(bill=bill, type="AP").update(
            description=f"Bill {bill.bill_number} (cancelled)"
        )
        log_action(
            action="cancel",
            instance=bill,
            user=user,
            changes={"status": "CANCELLED", "reversal": je.entry_number},
        )

    logger.info("Cancelled bill %s with reversal %s", bill.bill_number, je.entry_number)
    return get_bill(bill.pk)
