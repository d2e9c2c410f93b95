import logging
from django.core.exceptions import ValidationError
from django.db import transaction
from ..exceptions import NoOpenPeriod, OverlappingPeriod, PeriodNotFound
from ..models import FinancialPeriod
from .audit_helper import log_action

logger = logging.getLogger(__name__)

""" 
    Posting date determines the period.
    Changing the date before posting should affect the period.
"""


def resolve_period(date):
    period = (
        FinancialPeriod.objects.open()
        .containing(date)
        .order_by("-start_date")
        .first()
    )
    if period is None:
        raise NoOpenPeriod(f"No open financial period found for the date {date}")
    return period


def get_period(period_id):
    try:
        return FinancialPeriod.objects.get(pk=period_id)
    except FinancialPeriod.DoesNotExist:
        raise PeriodNotFound()


def _check_overlap(start_date, end_date, exclude_pk=None):
    clash = FinancialPeriod.objects.overlapping(start_date, end_date, exclude_pk).first()
    if clash:
        raise OverlappingPeriod(details={"conflictsWith": clash.name})


@transaction.atomic
def create_period(data: dict, user=None) -> FinancialPeriod:
    _check_overlap(data["start_date"], data["end_date"])
    period = FinancialPeriod.objects.create(**data)
    log_action(action="create", instance=period, user=user, changes={"name": period.name})
    logger.info("Created financial period %s", period.name)
    return period


@transaction.atomic
def update_period(period_id, data: dict, user=None) -> FinancialPeriod:
    period = FinancialPeriod.objects.select_for_update().filter(pk=period_id).first()
    if period is None:
        raise PeriodNotFound()

    start = data.get("start_date", period.start_date)
    end = data.get("end_date", period.end_date)
    if "start_date" in data or "end_date" in data:
        _check_overlap(start, end, exclude_pk=period.pk)

    changes = {}
    for field, value in data.items():
        if getattr(period, field) != value:
            changes[field] = str(value)
            setattr(period, field, value)
    period.save()

    if changes:
        log_action(action="update", instance=period, user=user, changes=changes)
    return period


@transaction.atomic
def delete_period(period_id, user=None):
    period = get_period(period_id)
    if period.journal_entries.exists():
        raise ValidationError(
            "Cannot delete this financial period as it has related records"
        )
    log_action(action="delete", instance=period, user=user, changes={"name": period.name})
    period.delete()
