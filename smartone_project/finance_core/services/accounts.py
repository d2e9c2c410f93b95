import logging
from django.core.exceptions import ValidationError
from django.db import transaction
from ..exceptions import AccountNotFound, DuplicateAccountCode
from ..models import ChartOfAccount, Vendor
from .audit_helper import log_action

logger = logging.getLogger(__name__)


# ----------------------------
# Master data: chart of accounts & vendors
# ----------------------------
def get_account(account_id) -> ChartOfAccount:
    account = ChartOfAccount.objects.filter(pk=account_id).first()
    if account is None:
        raise AccountNotFound()
    return account


@transaction.atomic
def create_account(data: dict, user=None) -> ChartOfAccount:
    if ChartOfAccount.objects.filter(code=data["code"]).exists():
        raise DuplicateAccountCode(details={"code": data["code"]})
    account = ChartOfAccount.objects.create(**data)
    log_action(action="create", instance=account, user=user, changes={"code": account.code})
    return account


@transaction.atomic
def update_account(account_id, data: dict, user=None) -> ChartOfAccount:
    account = ChartOfAccount.objects.select_for_update().filter(pk=account_id).first()
    if account is None:
        raise AccountNotFound()

    code = data.get("code")
    if code and code != account.code:
        if ChartOfAccount.objects.filter(code=code).exclude(pk=account.pk).exists():
            raise DuplicateAccountCode(details={"code": code})

    changes = {}
    for field, value in data.items():
        if getattr(account, field) != value:
            changes[field] = str(value)
            setattr(account, field, value)
    account.save()

    if changes:
        log_action(action="update", instance=account, user=user, changes=changes)
    return account


@transaction.atomic
def delete_account(account_id, user=None):
    account = get_account(account_id)
    if account.journal_items.exists():
        raise ValidationError(
            "Cannot delete account because it is in use in journal entries"
        )
    log_action(action="delete", instance=account, user=user, changes={"code": account.code})
    account.delete()


@transaction.atomic
def create_vendor(data: dict, user=None) -> Vendor:
    vendor = Vendor.objects.create(**data)
    log_action(action="create", instance=vendor, user=user, changes={"name": vendor.name})
    logger.info("Created vendor %s", vendor.name)
    return vendor
