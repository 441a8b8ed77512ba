"""
Validation log domain types.

A ValidationLogEntry records one client request against the license
API. Entries are append-only and never mutated.
"""
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from core.domain.clock import utcnow
from core.domain.outcome import Outcome
from core.domain.value_objects import ReasonCode, ValidationEvent


class LogOutcome(Enum):
    """Success or failure of a logged request."""

    SUCCESS = "success"
    FAILURE = "failure"

    def __str__(self) -> str:
        """Return outcome as string."""
        return self.value


@dataclass(frozen=True)
class ValidationLogEntry:
    """
    ValidationLogEntry domain entity.

    The plaintext key never appears here; ``key_hint`` is the masked form.
    """

    id: uuid.UUID
    event: ValidationEvent
    outcome: LogOutcome
    created_at: datetime
    license_id: Optional[uuid.UUID] = None
    key_fingerprint: Optional[str] = None
    key_hint: str = ""
    reason: Optional[ReasonCode] = None
    message: str = ""
    site_identity: str = ""
    ip_address: Optional[str] = None
    user_agent: str = ""

    @classmethod
    def from_outcome(
        cls,
        event: ValidationEvent,
        outcome: Outcome,
        license_id: Optional[uuid.UUID] = None,
        key_fingerprint: Optional[str] = None,
        key_hint: str = "",
        site_identity: str = "",
        ip_address: Optional[str] = None,
        user_agent: str = "",
        created_at: Optional[datetime] = None,
    ) -> "ValidationLogEntry":
        """
        Build an entry for an engine outcome.

        Args:
            event: Client operation
            outcome: Result returned to the client
            license_id: Resolved license, if any
            key_fingerprint: Fingerprint of the submitted key, if well-formed
            key_hint: Masked key
            site_identity: Normalized site URL, if known
            ip_address: Client IP
            user_agent: Client user agent
            created_at: Timestamp (defaults to utcnow)

        Returns:
            ValidationLogEntry instance
        """
        return cls(
            id=uuid.uuid4(),
            event=event,
            outcome=LogOutcome.SUCCESS if outcome.ok else LogOutcome.FAILURE,
            created_at=created_at or utcnow(),
            license_id=license_id,
            key_fingerprint=key_fingerprint,
            key_hint=key_hint,
            reason=outcome.reason,
            message=outcome.message[:255],
            site_identity=site_identity[:500],
            ip_address=ip_address,
            user_agent=(user_agent or "")[:255],
        )


@dataclass(frozen=True)
class ValidationLogFilters:
    """Filters for querying the validation log."""

    outcome: Optional[LogOutcome] = None
    event: Optional[ValidationEvent] = None
    reason: Optional[ReasonCode] = None
    ip_address: Optional[str] = None
    license_id: Optional[uuid.UUID] = None
    key_fingerprint: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


@dataclass(frozen=True)
class ValidationLogPage:
    """One page of entries, newest first."""

    items: List[ValidationLogEntry]
    total: int
    page: int
    per_page: int

    @property
    def total_pages(self) -> int:
        """Number of pages for the query."""
        return math.ceil(self.total / self.per_page) if self.per_page else 0


@dataclass(frozen=True)
class ValidationLogStatistics:
    """Aggregate counts over a period."""

    total: int = 0
    successes: int = 0
    failures: int = 0
    by_reason: Dict[str, int] = field(default_factory=dict)
    by_event: Dict[str, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Share of successful requests, 0.0 when empty."""
        return round(self.successes / self.total, 4) if self.total else 0.0
