import re
from django import forms
from django.utils.dateparse import parse_date, parse_datetime
from .models import Vendor
from .models.account import ACCOUNT_TYPES
from .models.payment import PAYMENT_METHODS
from .models.period import PERIOD_STATUS, PERIOD_TYPES

# -----------------------------
# Validation of decoded JSON request bodies.
# Clients send camelCase keys; forms use the model's snake_case names.
# -----------------------------

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def snake_keys(payload: dict) -> dict:
    return {snake_case(key): value for key, value in (payload or {}).items()}


class ISODateField(forms.DateField):
    """Accepts ``2024-01-15`` as well as full ISO timestamps from JS clients"""

    def to_python(self, value):
        if isinstance(value, str) and "T" in value:
            parsed = parse_datetime(value.replace("Z", "+00:00"))
            if parsed is None:
                parsed = parse_date(value.split("T", 1)[0])
                if parsed is None:
                    raise forms.ValidationError(self.error_messages["invalid"], code="invalid")
                return parsed
            return parsed.date()
        return super().to_python(value)


def validate_rows(form_class, rows, label):
    """
    Validate a list of nested objects with one form each.
    Returns (cleaned rows, errors keyed like ``items[1].quantity``).
    """
    cleaned, errors = [], {}
    if rows is None:
        return cleaned, errors
    if not isinstance(rows, list):
        return cleaned, {label: ["Must be a list."]}
    for index, row in enumerate(rows):
        form = form_class(snake_keys(row) if isinstance(row, dict) else {})
        if form.is_valid():
            cleaned.append(form.cleaned_data)
        else:
            for field, messages in form.errors.items():
                errors[f"{label}[{index}].{field}"] = list(messages)
    return cleaned, errors


# ---------- Bills ----------
class BillItemForm(forms.Form):
    description = forms.CharField(max_length=500, required=False)
    quantity = forms.DecimalField(max_digits=14, decimal_places=4, min_value=0)
    unit_price = forms.DecimalField(max_digits=18, decimal_places=4, min_value=0)
    account_id = forms.IntegerField(required=False)
    tax_rate = forms.DecimalField(max_digits=5, decimal_places=2, required=False)


class AttachmentForm(forms.Form):
    file_name = forms.CharField(max_length=255)
    file_url = forms.CharField(max_length=1000)
    file_type = forms.CharField(max_length=100, required=False)
    file_size = forms.IntegerField(min_value=0, required=False)


class BillForm(forms.Form):
    vendor_id = forms.IntegerField()
    bill_number = forms.CharField(max_length=64, required=False)
    # the bill date arrives as billDate or issueDate
    bill_date = ISODateField(required=False)
    issue_date = ISODateField(required=False)
    due_date = ISODateField()
    reference = forms.CharField(max_length=200, required=False)
    description = forms.CharField(required=False)
    notes = forms.CharField(required=False)

    def clean(self):
        cleaned = super().clean()
        bill_date = cleaned.get("bill_date") or cleaned.get("issue_date")
        if bill_date is None:
            if "bill_date" not in self.errors and "issue_date" not in self.errors:
                self.add_error("bill_date", "This field is required.")
            return cleaned
        cleaned["bill_date"] = bill_date

        due_date = cleaned.get("due_date")
        if due_date and due_date < bill_date:
            self.add_error("due_date", "Due date cannot be before the bill date.")
        return cleaned


class BillIdForm(forms.Form):
    id = forms.IntegerField(min_value=1)


class PaymentForm(forms.Form):
    # sign and size are checked by the payment service
    amount = forms.DecimalField(max_digits=18, decimal_places=2)
    payment_date = ISODateField()
    payment_method = forms.ChoiceField(choices=PAYMENT_METHODS)
    payment_reference = forms.CharField(max_length=200, required=False)
    notes = forms.CharField(required=False)


class CancelBillForm(forms.Form):
    cancel_date = ISODateField(required=False)


# ---------- Master data ----------
class VendorForm(forms.ModelForm):
    class Meta:
        model = Vendor
        fields = ("name", "contact_name", "email", "phone", "address", "tax_id", "notes")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name in ("contact_name", "email", "phone", "address"):
            self.fields[name].required = True


class AccountForm(forms.Form):
    code = forms.CharField(max_length=32)
    name = forms.CharField(max_length=200)
    type = forms.ChoiceField(choices=ACCOUNT_TYPES)
    subtype = forms.CharField(max_length=50, required=False)
    description = forms.CharField(required=False)
    is_active = forms.NullBooleanField(required=False)

    def clean(self):
        cleaned = super().clean()
        cleaned["subtype"] = cleaned.get("subtype") or None
        cleaned["description"] = cleaned.get("description") or None
        if cleaned.get("is_active") is None:
            cleaned["is_active"] = True
        return cleaned


class AccountUpdateForm(forms.Form):
    """Partial update: only keys present in the body are changed"""

    code = forms.CharField(max_length=32, required=False)
    name = forms.CharField(max_length=200, required=False)
    type = forms.ChoiceField(choices=ACCOUNT_TYPES, required=False)
    subtype = forms.CharField(max_length=50, required=False)
    description = forms.CharField(required=False)
    is_active = forms.NullBooleanField(required=False)

    def changed_values(self):
        values = {}
        for name in self.fields:
            if name not in self.data:
                continue
            value = self.cleaned_data.get(name)
            if name in ("subtype", "description"):
                value = value or None
            elif value in ("", None):
                continue
            values[name] = value
        return values


class PeriodForm(forms.Form):
    name = forms.CharField(max_length=50)
    start_date = ISODateField()
    end_date = ISODateField()
    type = forms.ChoiceField(choices=PERIOD_TYPES)
    year = forms.IntegerField(min_value=1900)
    quarter = forms.IntegerField(min_value=1, max_value=4, required=False)
    month = forms.IntegerField(min_value=1, max_value=12, required=False)
    status = forms.ChoiceField(choices=PERIOD_STATUS, required=False)

    def clean(self):
        cleaned = super().clean()
        cleaned["status"] = cleaned.get("status") or "OPEN"
        start, end = cleaned.get("start_date"), cleaned.get("end_date")
        if start and end and start > end:
            self.add_error("end_date", "End date cannot be before the start date.")
        return cleaned


class PeriodUpdateForm(forms.Form):
    name = forms.CharField(max_length=50, required=False)
    start_date = ISODateField(required=False)
    end_date = ISODateField(required=False)
    type = forms.ChoiceField(choices=PERIOD_TYPES, required=False)
    year = forms.IntegerField(min_value=1900, required=False)
    quarter = forms.IntegerField(min_value=1, max_value=4, required=False)
    month = forms.IntegerField(min_value=1, max_value=12, required=False)
    status = forms.ChoiceField(choices=PERIOD_STATUS, required=False)

    def changed_values(self):
        values = {}
        for name in self.fields:
            if name not in self.data:
                continue
            value = self.cleaned_data.get(name)
            # quarter/month may be cleared explicitly
            if value in ("", None) and name not in ("quarter", "month"):
                continue
            values[name] = value
        return values


# ---------- Ledger ----------
class JournalItemForm(forms.Form):
    account_id = forms.IntegerField()
    description = forms.CharField(max_length=400, required=False)
    debit = forms.DecimalField(max_digits=18, decimal_places=2, min_value=0, required=False)
    credit = forms.DecimalField(max_digits=18, decimal_places=2, min_value=0, required=False)


class JournalEntryForm(forms.Form):
    date = ISODateField()
    period_id = forms.IntegerField()
    entry_number = forms.CharField(max_length=64, required=False)
    description = forms.CharField(required=False)
    reference = forms.CharField(max_length=200, required=False)


class PostJournalEntryForm(forms.Form):
    journal_entry_id = forms.IntegerField()


class TrialBalanceForm(forms.Form):
    as_of_date = ISODateField(required=False)
    period_id = forms.IntegerField(required=False)

    def clean(self):
        cleaned = super().clean()
        if not self.errors and not cleaned.get("as_of_date") and not cleaned.get("period_id"):
            raise forms.ValidationError("Either asOfDate or periodId must be provided")
        return cleaned


class IncomeStatementForm(forms.Form):
    start_date = ISODateField(required=False)
    end_date = ISODateField(required=False)
    period_id = forms.IntegerField(required=False)
    compare_to_previous = forms.BooleanField(required=False)

    def clean(self):
        cleaned = super().clean()
        if self.errors or cleaned.get("period_id"):
            return cleaned
        start, end = cleaned.get("start_date"), cleaned.get("end_date")
        if not start or not end:
            raise forms.ValidationError("Either a date range or periodId must be provided")
        if end < start:
            self.add_error("end_date", "End date cannot be before the start date.")
        return cleaned


class PayableFilterForm(forms.Form):
    id = forms.IntegerField(required=False)
    vendor_id = forms.IntegerField(required=False)
    status = forms.ChoiceField(
        choices=[("", "")] + [(s, s) for s in ("PENDING", "PARTIAL", "PAID", "CANCELLED")],
        required=False,
    )
    due_date_start = ISODateField(required=False)
    due_date_end = ISODateField(required=False)
    search = forms.CharField(required=False)
    page = forms.IntegerField(min_value=1, required=False)
    page_size = forms.IntegerField(min_value=1, max_value=200, required=False)


class AccountFilterForm(forms.Form):
    id = forms.IntegerField(required=False)
    search = forms.CharField(required=False)
    type = forms.ChoiceField(choices=[("", "")] + ACCOUNT_TYPES, required=False)
    page = forms.IntegerField(min_value=1, required=False)
    page_size = forms.IntegerField(min_value=1, max_value=500, required=False)


class PeriodFilterForm(forms.Form):
    type = forms.ChoiceField(choices=[("", "")] + PERIOD_TYPES, required=False)
    year = forms.IntegerField(required=False)
    status = forms.ChoiceField(choices=[("", "")] + PERIOD_STATUS, required=False)


class JournalFilterForm(forms.Form):
    search = forms.CharField(required=False)
    period = forms.IntegerField(required=False)
    status = forms.ChoiceField(choices=[("", ""), ("DRAFT", "DRAFT"), ("POSTED", "POSTED")], required=False)
    page = forms.IntegerField(min_value=1, required=False)
    page_size = forms.IntegerField(min_value=1, max_value=200, required=False)
