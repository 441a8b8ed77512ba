"""
Validation logger service.

Records every client request against the license API and answers the
queries used by the security log and abuse detection.
"""
import logging
from datetime import timedelta
from typing import Optional

from core.domain.clock import Clock, utcnow
from validation_logs.domain.entry import (
    LogOutcome,
    ValidationLogEntry,
    ValidationLogFilters,
    ValidationLogPage,
    ValidationLogStatistics,
)
from validation_logs.ports.validation_log_repository import ValidationLogRepository

logger = logging.getLogger(__name__)

MAX_PER_PAGE = 100


class ValidationLogger:
    """
    Service over the validation log repository.

    ``record`` never raises: a failed write is reported to the process
    log and the caller's response is unaffected.
    """

    def __init__(
        self,
        repository: ValidationLogRepository,
        suspicious_threshold: int = 10,
        suspicious_window_minutes: int = 60,
        clock: Clock = utcnow,
    ):
        """
        Initialize the logger.

        Args:
            repository: Validation log repository
            suspicious_threshold: Failures from one IP that flag it as suspicious
            suspicious_window_minutes: Window the threshold applies to
            clock: Returns the current aware UTC time
        """
        self.repository = repository
        self.suspicious_threshold = suspicious_threshold
        self.suspicious_window_minutes = suspicious_window_minutes
        self.clock = clock

    async def record(self, entry: ValidationLogEntry) -> bool:
        """
        Append an entry.

        Args:
            entry: Entry to record

        Returns:
            True if the entry was stored
        """
        try:
            await self.repository.append(entry)
            return True
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception(
                "Failed to record validation log entry",
                extra={
                    "event": str(entry.event),
                    "outcome": str(entry.outcome),
                    "reason": str(entry.reason) if entry.reason else None,
                },
            )
            return False

    async def query(
        self,
        filters: Optional[ValidationLogFilters] = None,
        page: int = 1,
        per_page: int = 50,
    ) -> ValidationLogPage:
        """
        Query entries newest first.

        Args:
            filters: Query filters
            page: 1-based page number
            per_page: Page size, clamped to 1..100

        Returns:
            ValidationLogPage
        """
        page = max(page, 1)
        per_page = min(max(per_page, 1), MAX_PER_PAGE)
        items, total = await self.repository.query(
            filters or ValidationLogFilters(), page, per_page
        )
        return ValidationLogPage(items=items, total=total, page=page, per_page=per_page)

    async def failed_attempts_by_ip(self, ip_address: str, minutes: int = 60) -> int:
        """
        Count failures from an IP in the last ``minutes``.

        Args:
            ip_address: Client IP
            minutes: Look-back window

        Returns:
            Number of failed requests
        """
        return await self.repository.count(
            ValidationLogFilters(
                outcome=LogOutcome.FAILURE,
                ip_address=ip_address,
                date_from=self.clock() - timedelta(minutes=minutes),
            )
        )

    async def is_suspicious_ip(self, ip_address: str) -> bool:
        """Whether an IP reached the failure threshold in the configured window."""
        failures = await self.failed_attempts_by_ip(ip_address, self.suspicious_window_minutes)
        return failures >= self.suspicious_threshold

    async def statistics(self, days: int = 30) -> ValidationLogStatistics:
        """
        Aggregate the last ``days`` days.

        Args:
            days: Look-back window in days

        Returns:
            ValidationLogStatistics
        """
        return await self.repository.statistics(self.clock() - timedelta(days=max(days, 1)))

    async def prune(self, older_than_days: int) -> int:
        """
        Delete entries older than ``older_than_days``.

        Args:
            older_than_days: Retention in days

        Returns:
            Number of deleted entries
        """
        if older_than_days < 1:
            raise ValueError("Retention must be at least one day")
        cutoff = self.clock() - timedelta(days=older_than_days)
        deleted = await self.repository.prune(cutoff)
        logger.info(
            "Pruned validation log",
            extra={"deleted": deleted, "cutoff": cutoff.isoformat()},
        )
        return deleted
