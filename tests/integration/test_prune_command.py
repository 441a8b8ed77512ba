"""
Integration tests for the prune_validation_logs management command.
"""
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from core.domain.clock import utcnow
from validation_logs.infrastructure.models import ValidationLog


def add_entry(age_days):
    return ValidationLog.objects.create(
        event="validate",
        outcome="failure",
        reason="license_not_found",
        created_at=utcnow() - timedelta(days=age_days),
    )


@pytest.mark.django_db
@pytest.mark.integration
class TestPruneValidationLogsCommand:
    """Integration tests for prune_validation_logs."""

    def test_prune_with_days(self):
        add_entry(10)
        recent = add_entry(1)
        out = StringIO()

        call_command("prune_validation_logs", "--days", "5", stdout=out)

        assert list(ValidationLog.objects.values_list("id", flat=True)) == [recent.id]
        assert "Deleted 1 validation log entries older than 5 days" in out.getvalue()

    def test_default_retention(self, settings):
        settings.LICENSE_SERVER = {
            **settings.LICENSE_SERVER,
            "VALIDATION_LOG_RETENTION_DAYS": 30,
        }
        add_entry(45)
        add_entry(20)

        call_command("prune_validation_logs", stdout=StringIO())

        assert ValidationLog.objects.count() == 1

    def test_invalid_retention(self):
        with pytest.raises(CommandError):
            call_command("prune_validation_logs", "--days", "0", stdout=StringIO())
