"""
ValidationLog Django ORM model.

This is the infrastructure layer model for the validation log.
Domain entities are in validation_logs.domain.entry.
"""
import uuid

from django.db import models
from django.utils import timezone


class ValidationLog(models.Model):
    """
    Append-only record of one client request against the license API.

    ``license_id`` is a plain UUID rather than a foreign key so entries
    survive license deletion.
    """

    EVENT_CHOICES = [
        ("validate", "Validate"),
        ("activate", "Activate"),
        ("deactivate", "Deactivate"),
        ("heartbeat", "Heartbeat"),
        ("status", "Status"),
    ]

    OUTCOME_CHOICES = [
        ("success", "Success"),
        ("failure", "Failure"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license_id = models.UUIDField(null=True, blank=True)
    key_fingerprint = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    key_hint = models.CharField(max_length=19, blank=True, default="")
    event = models.CharField(max_length=20, choices=EVENT_CHOICES)
    outcome = models.CharField(max_length=10, choices=OUTCOME_CHOICES)
    reason = models.CharField(max_length=50, null=True, blank=True)
    message = models.CharField(max_length=255, blank=True, default="")
    site_identity = models.CharField(max_length=500, blank=True, default="")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "validation_log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["license_id", "created_at"]),
            models.Index(fields=["ip_address", "created_at"]),
            models.Index(fields=["outcome", "created_at"]),
        ]

    def __str__(self):
        return f"{self.event} {self.outcome} ({self.reason or 'ok'})"
