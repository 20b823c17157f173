from django.conf import settings  # To access global project settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import AuditLogManager
from .entitymembership import Company


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # Append-only trail of every state change
    company = models.ForeignKey(
        Company,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # Null when the change was made by a background job
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # What kind of object was affected ("invoice", "journal", "period")
    entity = models.CharField(max_length=40)
    entity_id = models.CharField(max_length=64)
    # "created_draft", "submitted", "posted", "deleted", "closed", ...
    action = models.CharField(max_length=40)
    # Snapshots; before is null on create, after is null on delete
    before = models.JSONField(null=True, blank=True)
    after = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = AuditLogManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "created_at"], name="audit_company_created_idx"),
            models.Index(fields=["entity", "entity_id"], name="audit_entity_idx"),
        ]
        ordering = ("created_at", "id")

    def __str__(self):
        return f"[{self.created_at:%Y-%m-%d %H:%M}] {self.actor} {self.action} {self.entity}({self.entity_id})"

    def save(self, *args, **kwargs):
        if self.pk and AuditLog.objects.filter(pk=self.pk).exists():
            raise ValidationError("Audit log entries are immutable.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Audit log entries cannot be deleted.")
