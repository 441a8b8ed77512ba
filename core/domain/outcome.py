"""
Outcome result type.

Every client-facing engine operation returns an ``Outcome``: either a
success variant carrying a payload or a failure variant carrying a
reason code.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from core.domain.value_objects import ReasonCode


class OutcomeKind(Enum):
    """Discriminator for Outcome variants."""

    VALIDATED = "validated"
    ACTIVATED = "activated"
    REACTIVATED = "reactivated"
    DEACTIVATED = "deactivated"
    STATUS = "status"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"

    def __str__(self) -> str:
        """Return kind as string."""
        return self.value


_FAILURE_KINDS = frozenset({OutcomeKind.REJECTED, OutcomeKind.NOT_FOUND})


@dataclass(frozen=True)
class Outcome:
    """
    Tagged result of a license operation.

    Attributes:
        kind: Which variant this is
        payload: Success payload (snapshot or activation DTO)
        reason: Failure reason, set only for failure variants
        message: Human-readable message
        retry_after_seconds: Backoff hint, set only for rate limiting
    """

    kind: OutcomeKind
    payload: Optional[Any] = None
    reason: Optional[ReasonCode] = None
    message: str = ""
    retry_after_seconds: Optional[int] = None

    @classmethod
    def success(cls, kind: OutcomeKind, payload: Any = None, message: str = "") -> "Outcome":
        """
        Build a success outcome.

        Args:
            kind: Success variant
            payload: Result payload
            message: Optional message

        Returns:
            Outcome instance
        """
        if kind in _FAILURE_KINDS:
            raise ValueError(f"{kind} is not a success variant")
        return cls(kind=kind, payload=payload, message=message)

    @classmethod
    def rejected(
        cls,
        reason: ReasonCode,
        message: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
    ) -> "Outcome":
        """
        Build a rejection.

        Args:
            reason: Rejection reason code
            message: Override for the default reason message
            retry_after_seconds: Backoff hint for rate limiting

        Returns:
            Outcome instance
        """
        return cls(
            kind=OutcomeKind.REJECTED,
            reason=reason,
            message=message or reason.message,
            retry_after_seconds=retry_after_seconds,
        )

    @classmethod
    def not_found(cls, message: Optional[str] = None) -> "Outcome":
        """Build a NotFound outcome for a missing activation."""
        return cls(
            kind=OutcomeKind.NOT_FOUND,
            reason=ReasonCode.ACTIVATION_NOT_FOUND,
            message=message or ReasonCode.ACTIVATION_NOT_FOUND.message,
        )

    @property
    def ok(self) -> bool:
        """Whether this is a success variant."""
        return self.kind not in _FAILURE_KINDS
