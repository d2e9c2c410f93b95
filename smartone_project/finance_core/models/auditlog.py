from django.conf import settings  # To access global project settings
from django.db import models


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # Traceability for every finance mutation
    # Which user performed the action
    # (Nullable in case the action was automated
    # (e.g., background job, management command))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL
    )
    # Common choices: create, update, delete, post, payment, cancel
    action = models.CharField(max_length=50)
    # What kind of object was affected ("Bill", "JournalEntry", "Vendor")
    object_type = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    # Store actual before/after details of what changed, in JSON format
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["object_type", "object_id"], name="audit_object_idx"),
            models.Index(fields=["created_at"], name="audit_created_idx"),
        ]
        ordering = ("-created_at", "-id")

    def __str__(self):
        return (
            f"[{self.created_at:%Y-%m-%d %H:%M}] {self.user} "
            f"{self.action} {self.object_type}({self.object_id})"
        )
