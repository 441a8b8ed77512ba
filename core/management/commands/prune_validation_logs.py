"""
Django management command to delete old validation log entries.

This command should be run periodically (e.g., via cron or celery beat).
"""

import logging

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from core.config import get_license_server_config
from validation_logs.application.services.validation_logger import ValidationLogger
from validation_logs.infrastructure.repositories.django_validation_log_repository import (
    DjangoValidationLogRepository,
)

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to prune the validation log."""

    help = "Delete validation log entries older than the retention period"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Retention in days (defaults to VALIDATION_LOG_RETENTION_DAYS)",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        days = options["days"]
        if days is None:
            days = get_license_server_config().validation_log_retention_days
        validation_logger = ValidationLogger(DjangoValidationLogRepository())

        try:
            deleted = async_to_sync(validation_logger.prune)(days)
        except ValueError as e:
            raise CommandError(str(e)) from e

        # pylint: disable=no-member
        self.stdout.write(
            self.style.SUCCESS(f"Deleted {deleted} validation log entries older than {days} days")
        )
