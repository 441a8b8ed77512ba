"""
Django admin configuration for activations app.
"""

from django.contrib import admin
from django.utils.html import format_html

from activations.infrastructure.models import Activation


@admin.register(Activation)
class ActivationAdmin(admin.ModelAdmin):
    """Admin interface for Activation model."""

    list_display = [
        "site_identity",
        "license",
        "site_name",
        "is_active_display",
        "activated_at",
        "last_checked_at",
    ]
    list_filter = ["is_active", "activated_at", "last_checked_at"]
    search_fields = [
        "site_identity",
        "raw_site_url",
        "license__key_hint",
        "license__customer_email",
    ]
    readonly_fields = [
        "id",
        "license",
        "site_identity",
        "raw_site_url",
        "activated_at",
        "last_checked_at",
        "deactivated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "license", "is_active"),
            },
        ),
        (
            "Site",
            {
                "fields": ("site_identity", "raw_site_url", "site_name", "metadata"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("activated_at", "last_checked_at", "deactivated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def is_active_display(self, obj):
        """Display active state with color coding."""
        return format_html(
            '<span style="color: {};">{}</span>',
            "green" if obj.is_active else "gray",
            "ACTIVE" if obj.is_active else "INACTIVE",
        )

    is_active_display.short_description = "Status"

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("license")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
