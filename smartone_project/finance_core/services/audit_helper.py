def log_action(
    *,
    action: str,
    instance,
    user=None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Safe to call multiple times (caller ensures idempotency).
    """
    # lazy import: models import services.balances at post() time
    from ..models import AuditLog

    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    AuditLog.objects.create(
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
