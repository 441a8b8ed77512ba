"""
Validation log repository port (interface).

This defines the contract for validation log persistence.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Tuple

from validation_logs.domain.entry import (
    ValidationLogEntry,
    ValidationLogFilters,
    ValidationLogStatistics,
)


class ValidationLogRepository(ABC):
    """
    Abstract append-only repository for ValidationLogEntry records.
    """

    @abstractmethod
    async def append(self, entry: ValidationLogEntry) -> None:
        """
        Append an entry.

        Args:
            entry: Entry to store
        """
        pass

    @abstractmethod
    async def query(
        self,
        filters: ValidationLogFilters,
        page: int,
        per_page: int,
    ) -> Tuple[List[ValidationLogEntry], int]:
        """
        Query entries newest first.

        Args:
            filters: Query filters
            page: 1-based page number
            per_page: Page size

        Returns:
            Tuple of (entries on the page, total matching)
        """
        pass

    @abstractmethod
    async def count(self, filters: ValidationLogFilters) -> int:
        """
        Count matching entries.

        Args:
            filters: Query filters

        Returns:
            Number of matching entries
        """
        pass

    @abstractmethod
    async def statistics(self, since: datetime) -> ValidationLogStatistics:
        """
        Aggregate entries created at or after ``since``.

        Args:
            since: Start of the period

        Returns:
            ValidationLogStatistics
        """
        pass

    @abstractmethod
    async def prune(self, before: datetime) -> int:
        """
        Delete entries older than ``before``.

        Args:
            before: Cutoff timestamp

        Returns:
            Number of deleted entries
        """
        pass
