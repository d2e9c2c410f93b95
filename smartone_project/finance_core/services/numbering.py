import re
from django.conf import settings

# ----------------------------
# Human-readable document numbers
# ----------------------------


def next_document_number(queryset, field: str, prefix: str, date, width: int) -> str:
    """
    Next ``PREFIX-YYYYMM-N..N`` number for the month of ``date``.

    Takes the highest numeric suffix already used under that month's stem
    and adds one. Suffixes that are not plain digits are skipped, so a
    hand-typed number like ``AP-202401-X`` never resets the sequence.
    """
    stem = f"{prefix}-{date:%Y%m}-"
    pattern = re.compile(rf"^{re.escape(stem)}(\d+)$")

    highest = 0
    used = queryset.filter(**{f"{field}__startswith": stem}).values_list(field, flat=True)
    for number in used:
        match = pattern.match(number)
        if match:
            highest = max(highest, int(match.group(1)))

    return f"{stem}{highest + 1:0{width}d}"


def generate_bill_number(date) -> str:
    from ..models import Bill

    return next_document_number(
        Bill.objects.all(), "bill_number", settings.FINANCE_BILL_NUMBER_PREFIX, date, 3
    )


def generate_entry_number(date) -> str:
    from ..models import JournalEntry

    return next_document_number(
        JournalEntry.objects.all(),
        "entry_number",
        settings.FINANCE_JOURNAL_NUMBER_PREFIX,
        date,
        4,
    )
