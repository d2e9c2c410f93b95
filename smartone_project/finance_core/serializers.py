"""
Plain-dict renderings of finance models for JsonResponse.

Keys are camelCase, money is a float rounded to cents and dates are ISO
strings, the shape the ERP front end consumes.
"""


def money(value):
    return float(value) if value is not None else 0.0


def iso(value):
    return value.isoformat() if value else None


def vendor_dict(vendor, brief=False):
    data = {
        "id": vendor.pk,
        "name": vendor.name,
        "email": vendor.email,
        "phone": vendor.phone,
    }
    if brief:
        return data
    data.update(
        {
            "contactName": vendor.contact_name,
            "address": vendor.address,
            "taxId": vendor.tax_id,
            "notes": vendor.notes,
            "status": vendor.status,
            "createdAt": iso(vendor.created_at),
            "updatedAt": iso(vendor.updated_at),
        }
    )
    return data


def bill_item_dict(item):
    return {
        "id": item.pk,
        "description": item.description,
        "quantity": float(item.quantity),
        "unitPrice": money(item.unit_price),
        "amount": money(item.amount),
        "accountId": item.account_id,
        "taxRate": money(item.tax_rate),
    }


def attachment_dict(attachment):
    return {
        "id": attachment.pk,
        "fileName": attachment.file_name,
        "fileUrl": attachment.file_url,
        "fileType": attachment.file_type,
        "fileSize": attachment.file_size,
        "uploadDate": iso(attachment.created_at),
    }


def payment_dict(payment):
    return {
        "id": payment.pk,
        "billId": payment.bill_id,
        "amount": money(payment.amount),
        "paymentDate": iso(payment.payment_date),
        "paymentMethod": payment.payment_method,
        "paymentReference": payment.payment_reference,
        "notes": payment.notes,
        "createdAt": iso(payment.created_at),
    }


def bill_dict(bill, items=True, payments=True, attachments=True):
    data = {
        "id": bill.pk,
        "billNumber": bill.bill_number,
        "vendorId": bill.vendor_id,
        "vendorName": bill.vendor.name,
        "vendor": vendor_dict(bill.vendor, brief=True),
        "issueDate": iso(bill.issue_date),
        "dueDate": iso(bill.due_date),
        "totalAmount": money(bill.total_amount),
        "paidAmount": money(bill.paid_amount),
        "remainingAmount": money(bill.outstanding_amount),
        "status": bill.status,
        "reference": bill.reference,
        "description": bill.description,
        "notes": bill.notes,
        "createdAt": iso(bill.created_at),
        "updatedAt": iso(bill.updated_at),
    }
    if items:
        data["items"] = [bill_item_dict(i) for i in bill.items.all()]
    if payments:
        data["payments"] = [payment_dict(p) for p in bill.payments.all()]
    if attachments:
        data["attachments"] = [attachment_dict(a) for a in bill.attachments.all()]
    return data


def account_dict(account):
    return {
        "id": account.pk,
        "code": account.code,
        "name": account.name,
        "type": account.type,
        "subtype": account.subtype,
        "description": account.description,
        "isActive": account.is_active,
        "balance": money(account.balance),
        "createdAt": iso(account.created_at),
        "updatedAt": iso(account.updated_at),
    }


def period_dict(period):
    return {
        "id": period.pk,
        "name": period.name,
        "startDate": iso(period.start_date),
        "endDate": iso(period.end_date),
        "type": period.type,
        "year": period.year,
        "quarter": period.quarter,
        "month": period.month,
        "status": period.status,
        "createdAt": iso(period.created_at),
    }


def journal_item_dict(item):
    return {
        "id": item.pk,
        "journalEntryId": item.journal_entry_id,
        "accountId": item.account_id,
        "accountCode": item.account.code,
        "accountName": item.account.name,
        "description": item.description,
        "debit": money(item.debit),
        "credit": money(item.credit),
    }


def journal_entry_dict(entry):
    return {
        "id": entry.pk,
        "entryNumber": entry.entry_number,
        "date": iso(entry.date),
        "periodId": entry.period_id,
        "periodName": entry.period.name,
        "description": entry.description,
        "reference": entry.reference,
        "status": entry.status,
        "postedAt": iso(entry.posted_at),
        "sourceType": entry.source_type,
        "sourceId": entry.source_id,
        "createdAt": iso(entry.created_at),
        "items": [journal_item_dict(i) for i in entry.items.all()],
    }


def payable_summary_dict(result):
    summary = {
        key: money(value) if not key.endswith("Count") else value
        for key, value in result["summary"].items()
    }
    return {
        "bills": [bill_dict(b, attachments=False) for b in result["bills"]],
        "pagination": result["pagination"],
        "summary": summary,
        "topVendors": [
            {**vendor, "outstanding": money(vendor["outstanding"])}
            for vendor in result["topVendors"]
        ],
        "ageAnalysis": {k: money(v) for k, v in result["ageAnalysis"].items()},
    }


def trial_balance_dict(result, period=None):
    return {
        "asOfDate": iso(result["asOfDate"]),
        "periodName": period.name if period else None,
        "accounts": [
            {
                "id": row["account"].pk,
                "code": row["account"].code,
                "name": row["account"].name,
                "type": row["account"].type,
                "debit": money(row["debit"]),
                "credit": money(row["credit"]),
                "balance": money(row["balance"]),
                "isDebit": row["isDebit"],
            }
            for row in result["accounts"]
        ],
        "totals": {
            "debit": money(result["totalDebit"]),
            "credit": money(result["totalCredit"]),
            "isBalanced": result["isBalanced"],
        },
    }


def _statement_line(line):
    account = line["account"]
    return {
        "id": account.pk,
        "code": account.code,
        "name": account.name,
        "type": account.type,
        "subtype": account.subtype,
        "balance": money(line["balance"]),
    }


def income_statement_dict(result, period=None):
    previous = result["previousPeriod"]
    body = {
        "startDate": iso(result["startDate"]),
        "endDate": iso(result["endDate"]),
        "revenues": [_statement_line(line) for line in result["revenues"]],
        "expenses": [_statement_line(line) for line in result["expenses"]],
        "totalRevenue": money(result["totalRevenue"]),
        "totalExpenses": money(result["totalExpenses"]),
        "netIncome": money(result["netIncome"]),
        "previousPeriod": None,
    }
    if previous:
        body["previousPeriod"] = {
            "startDate": iso(previous["startDate"]),
            "endDate": iso(previous["endDate"]),
            "totalRevenue": money(previous["totalRevenue"]),
            "totalExpenses": money(previous["totalExpenses"]),
            "netIncome": money(previous["netIncome"]),
        }
    if period is not None:
        body["periodId"] = period.pk
        body["periodName"] = period.name
    return body
