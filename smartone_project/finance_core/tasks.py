import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def recompute_account_balances():
    """Nightly rebuild of ChartOfAccount.balance from posted journal items"""
    # import lazily to avoid circular imports at module import time
    from .services.balances import recompute_account_balances as recompute

    drifted = recompute()
    logger.info("Recomputed account balances, %d account(s) corrected", drifted)
    return drifted
