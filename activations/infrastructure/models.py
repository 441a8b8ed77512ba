"""
Activation Django ORM model.

This is the infrastructure layer model for activations.
Domain entities are in activations.domain.activation.
"""
import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone


class Activation(models.Model):
    """
    Represents a license activated on one customer site.
    Consumes a slot of the license while active.
    """

    id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False
    )
    license = models.ForeignKey(
        "licenses.License",
        on_delete=models.CASCADE,
        related_name="activations",
    )
    site_identity = models.CharField(
        max_length=500, help_text="Normalized site URL"
    )
    raw_site_url = models.CharField(max_length=500)
    site_name = models.CharField(max_length=255, blank=True, default="")
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Plugin version, platform version and client IP",
    )
    activated_at = models.DateTimeField(default=timezone.now)
    last_checked_at = models.DateTimeField(default=timezone.now)
    deactivated_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "activations"
        ordering = ["-activated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["license", "site_identity"],
                condition=Q(is_active=True),
                name="unique_active_site_per_license",
            ),
        ]
        indexes = [
            models.Index(fields=["license", "is_active"]),
            models.Index(fields=["license", "site_identity"]),
        ]

    def clean(self):
        """Validate activation fields."""
        from django.core.exceptions import ValidationError

        if not self.site_identity or len(self.site_identity.strip()) == 0:
            raise ValidationError("Site identity cannot be empty")
        if self.is_active != (self.deactivated_at is None):
            raise ValidationError("is_active must match deactivated_at")

    def __str__(self):
        return f"{self.license_id} @ {self.site_identity}"
