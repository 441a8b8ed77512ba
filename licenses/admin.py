"""
Django admin configuration for licenses app.

Licenses are edited through the operator API so that every change is
audited and published; the admin is read-mostly.
"""
from django.contrib import admin
from django.db.models import Count, Q
from django.utils.html import format_html

from licenses.infrastructure.models import AuditLog, License


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "key_hint",
        "customer_email",
        "tier",
        "status_display",
        "max_activations",
        "activations_used",
        "expires_at",
        "created_at",
    ]
    list_filter = ["status", "tier", "expires_at", "created_at"]
    search_fields = ["key_hint", "customer_email", "customer_name"]
    readonly_fields = ["id", "key_fingerprint", "key_hint", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "key_hint", "key_fingerprint", "customer_email", "customer_name"),
            },
        ),
        (
            "Entitlement",
            {
                "fields": ("tier", "status", "max_activations", "product_scope", "expires_at"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            "active": "green",
            "suspended": "orange",
            "revoked": "red",
            "expired": "gray",
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, "black"),
            obj.status.upper(),
        )

    status_display.short_description = "Status"

    def activations_used(self, obj):
        """Display number of active activations."""
        return obj.active_count

    activations_used.short_description = "Active Sites"

    def get_queryset(self, request):
        """Annotate the active site count."""
        return (
            super()
            .get_queryset(request)
            .annotate(active_count=Count("activations", filter=Q(activations__is_active=True)))
        )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only admin interface for AuditLog model."""

    list_display = ["created_at", "action", "license_id", "actor"]
    list_filter = ["action", "created_at"]
    search_fields = ["license_id", "actor", "action"]
    readonly_fields = ["id", "license_id", "action", "changes", "actor", "created_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
