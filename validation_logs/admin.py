"""
Django admin configuration for validation_logs app.
"""
from django.contrib import admin
from django.utils.html import format_html

from validation_logs.infrastructure.models import ValidationLog


@admin.register(ValidationLog)
class ValidationLogAdmin(admin.ModelAdmin):
    """Read-only admin interface for ValidationLog model."""

    list_display = [
        "created_at",
        "event",
        "outcome_display",
        "reason",
        "key_hint",
        "site_identity",
        "ip_address",
    ]
    list_filter = ["event", "outcome", "reason", "created_at"]
    search_fields = ["key_hint", "site_identity", "ip_address", "license_id"]
    readonly_fields = [field.name for field in ValidationLog._meta.fields]

    def outcome_display(self, obj):
        """Display outcome with color coding."""
        color = "green" if obj.outcome == "success" else "red"
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            obj.outcome.upper(),
        )

    outcome_display.short_description = "Outcome"

    def has_add_permission(self, request):
        """Validation logs are append-only."""
        return False

    def has_change_permission(self, request, obj=None):
        """Validation logs are append-only."""
        return False
