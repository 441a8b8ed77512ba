"""
Django implementation of ValidationLogRepository port.

This adapter converts between domain entities and Django ORM models.
"""
from datetime import datetime
from typing import List, Tuple

from asgiref.sync import sync_to_async
from django.db.models import Count, QuerySet

from core.domain.value_objects import ReasonCode, ValidationEvent
from core.infrastructure.database import store_operation
from validation_logs.domain.entry import (
    LogOutcome,
    ValidationLogEntry,
    ValidationLogFilters,
    ValidationLogStatistics,
)
from validation_logs.infrastructure.models import ValidationLog as ValidationLogModel
from validation_logs.ports.validation_log_repository import ValidationLogRepository


class DjangoValidationLogRepository(ValidationLogRepository):
    """
    Django ORM implementation of ValidationLogRepository.
    """

    def _to_domain(self, model: ValidationLogModel) -> ValidationLogEntry:
        """
        Convert Django model to domain entity.

        Args:
            model: Django ValidationLog model

        Returns:
            ValidationLogEntry domain entity
        """
        return ValidationLogEntry(
            id=model.id,
            event=ValidationEvent(model.event),
            outcome=LogOutcome(model.outcome),
            created_at=model.created_at,
            license_id=model.license_id,
            key_fingerprint=model.key_fingerprint,
            key_hint=model.key_hint,
            reason=ReasonCode(model.reason) if model.reason else None,
            message=model.message,
            site_identity=model.site_identity,
            ip_address=model.ip_address,
            user_agent=model.user_agent,
        )

    def _filtered(self, filters: ValidationLogFilters) -> QuerySet:
        queryset = ValidationLogModel.objects.all()
        if filters.outcome:
            queryset = queryset.filter(outcome=filters.outcome.value)
        if filters.event:
            queryset = queryset.filter(event=filters.event.value)
        if filters.reason:
            queryset = queryset.filter(reason=filters.reason.value)
        if filters.ip_address:
            queryset = queryset.filter(ip_address=filters.ip_address)
        if filters.license_id:
            queryset = queryset.filter(license_id=filters.license_id)
        if filters.key_fingerprint:
            queryset = queryset.filter(key_fingerprint=filters.key_fingerprint)
        if filters.date_from:
            queryset = queryset.filter(created_at__gte=filters.date_from)
        if filters.date_to:
            queryset = queryset.filter(created_at__lte=filters.date_to)
        return queryset

    @sync_to_async
    @store_operation
    def append(self, entry: ValidationLogEntry) -> None:
        """
        Insert an entry.

        Args:
            entry: Entry to store
        """
        ValidationLogModel.objects.create(
            id=entry.id,
            license_id=entry.license_id,
            key_fingerprint=entry.key_fingerprint,
            key_hint=entry.key_hint,
            event=entry.event.value,
            outcome=entry.outcome.value,
            reason=entry.reason.value if entry.reason else None,
            message=entry.message,
            site_identity=entry.site_identity,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            created_at=entry.created_at,
        )

    @sync_to_async
    @store_operation
    def query(
        self,
        filters: ValidationLogFilters,
        page: int,
        per_page: int,
    ) -> Tuple[List[ValidationLogEntry], int]:
        queryset = self._filtered(filters)
        total = queryset.count()
        offset = (max(page, 1) - 1) * per_page
        models = queryset.order_by("-created_at")[offset : offset + per_page]
        return [self._to_domain(model) for model in models], total

    @sync_to_async
    @store_operation
    def count(self, filters: ValidationLogFilters) -> int:
        return self._filtered(filters).count()

    @sync_to_async
    @store_operation
    def statistics(self, since: datetime) -> ValidationLogStatistics:
        """
        Aggregate entries created at or after ``since``.

        Args:
            since: Start of the period

        Returns:
            ValidationLogStatistics
        """
        queryset = ValidationLogModel.objects.filter(created_at__gte=since)
        by_outcome = {
            row["outcome"]: row["total"]
            for row in queryset.values("outcome").annotate(total=Count("id"))
        }
        by_reason = {
            row["reason"]: row["total"]
            for row in queryset.exclude(reason__isnull=True)
            .values("reason")
            .annotate(total=Count("id"))
        }
        by_event = {
            row["event"]: row["total"]
            for row in queryset.values("event").annotate(total=Count("id"))
        }
        successes = by_outcome.get(LogOutcome.SUCCESS.value, 0)
        failures = by_outcome.get(LogOutcome.FAILURE.value, 0)
        return ValidationLogStatistics(
            total=successes + failures,
            successes=successes,
            failures=failures,
            by_reason=by_reason,
            by_event=by_event,
        )

    @sync_to_async
    @store_operation
    def prune(self, before: datetime) -> int:
        deleted, _ = ValidationLogModel.objects.filter(created_at__lt=before).delete()
        return deleted
