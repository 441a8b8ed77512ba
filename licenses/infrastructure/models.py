"""
License and AuditLog models.

This is the infrastructure layer model for licenses.
Domain entities are in licenses.domain.license.
"""
import uuid

from django.db import models
from django.utils import timezone


class License(models.Model):
    """
    A license issued to a customer.

    Keys are stored only as their fingerprint plus a masked hint.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("suspended", "Suspended"),
        ("revoked", "Revoked"),
        ("expired", "Expired"),
    ]

    TIER_CHOICES = [
        ("free", "Free"),
        ("pro", "Pro"),
        ("agency", "Agency"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key_fingerprint = models.CharField(
        max_length=64,
        unique=True,
        help_text="SHA-256 of the license key, used for every lookup",
    )
    key_hint = models.CharField(max_length=19, help_text="Masked key for display")
    customer_email = models.EmailField(db_index=True)
    customer_name = models.CharField(max_length=255, blank=True, default="")
    tier = models.CharField(max_length=20, choices=TIER_CHOICES, default="free")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    max_activations = models.PositiveIntegerField(
        default=1, help_text="Maximum number of concurrently active sites"
    )
    product_scope = models.JSONField(
        default=list,
        blank=True,
        help_text="Product slugs this license authorizes (empty = all)",
    )
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["tier", "status"]),
            models.Index(fields=["expires_at"]),
        ]

    def __str__(self):
        return f"{self.key_hint} ({self.customer_email})"


class AuditLog(models.Model):
    """
    Immutable audit trail of all license-related changes.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license_id = models.UUIDField(null=True, blank=True, db_index=True)
    action = models.CharField(max_length=64)
    changes = models.JSONField(default=dict, help_text="Details of the change")
    actor = models.CharField(max_length=255, help_text="Who performed the action")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["license_id", "created_at"]),
            models.Index(fields=["action"]),
        ]

    def __str__(self):
        return f"{self.action} - {self.license_id}"
