"""
In-memory implementation of ValidationLogRepository port.

Used to run the lifecycle engine without a database.
"""
from collections import Counter
from datetime import datetime
from typing import List, Tuple

from validation_logs.domain.entry import (
    LogOutcome,
    ValidationLogEntry,
    ValidationLogFilters,
    ValidationLogStatistics,
)
from validation_logs.ports.validation_log_repository import ValidationLogRepository


def _matches(entry: ValidationLogEntry, filters: ValidationLogFilters) -> bool:
    checks = (
        (filters.outcome, entry.outcome),
        (filters.event, entry.event),
        (filters.reason, entry.reason),
        (filters.ip_address, entry.ip_address),
        (filters.license_id, entry.license_id),
        (filters.key_fingerprint, entry.key_fingerprint),
    )
    if any(wanted is not None and wanted != actual for wanted, actual in checks):
        return False
    if filters.date_from and entry.created_at < filters.date_from:
        return False
    if filters.date_to and entry.created_at > filters.date_to:
        return False
    return True


class InMemoryValidationLogRepository(ValidationLogRepository):
    """List-backed ValidationLogRepository."""

    def __init__(self):
        """Initialize the store."""
        self.entries: List[ValidationLogEntry] = []

    async def append(self, entry: ValidationLogEntry) -> None:
        self.entries.append(entry)

    async def query(
        self,
        filters: ValidationLogFilters,
        page: int,
        per_page: int,
    ) -> Tuple[List[ValidationLogEntry], int]:
        matches = sorted(
            (entry for entry in self.entries if _matches(entry, filters)),
            key=lambda entry: entry.created_at,
            reverse=True,
        )
        offset = (max(page, 1) - 1) * per_page
        return matches[offset : offset + per_page], len(matches)

    async def count(self, filters: ValidationLogFilters) -> int:
        return sum(1 for entry in self.entries if _matches(entry, filters))

    async def statistics(self, since: datetime) -> ValidationLogStatistics:
        window = [entry for entry in self.entries if entry.created_at >= since]
        successes = sum(1 for entry in window if entry.outcome == LogOutcome.SUCCESS)
        return ValidationLogStatistics(
            total=len(window),
            successes=successes,
            failures=len(window) - successes,
            by_reason=dict(Counter(entry.reason.value for entry in window if entry.reason)),
            by_event=dict(Counter(entry.event.value for entry in window)),
        )

    async def prune(self, before: datetime) -> int:
        kept = [entry for entry in self.entries if entry.created_at >= before]
        deleted = len(self.entries) - len(kept)
        self.entries = kept
        return deleted
