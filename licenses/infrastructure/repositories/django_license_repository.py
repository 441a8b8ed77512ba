"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from core.domain.exceptions import DuplicateKeyFingerprintError
from core.domain.value_objects import Email, LicenseStatus, LicenseTier
from core.infrastructure.database import store_operation
from licenses.domain.license import License
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseFilters, LicenseRepository


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django model fields
    3. Maps database failures to domain errors
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            id=model.id,
            key_fingerprint=model.key_fingerprint,
            key_hint=model.key_hint,
            customer_email=Email(model.customer_email),
            customer_name=model.customer_name,
            tier=LicenseTier(model.tier),
            status=LicenseStatus(model.status),
            max_activations=model.max_activations,
            product_scope=frozenset(model.product_scope or []),
            expires_at=model.expires_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_fields(self, license: License) -> Dict:
        """
        Convert domain entity to Django model fields.

        Args:
            license: License domain entity

        Returns:
            Field values for the License model
        """
        return {
            "key_fingerprint": license.key_fingerprint,
            "key_hint": license.key_hint,
            "customer_email": str(license.customer_email),
            "customer_name": license.customer_name,
            "tier": license.tier.value,
            "status": license.status.value,
            "max_activations": license.max_activations,
            "product_scope": sorted(license.product_scope),
            "expires_at": license.expires_at,
            "created_at": license.created_at,
            "updated_at": license.updated_at,
        }

    @sync_to_async
    @store_operation
    def save(self, license: License) -> License:
        """
        Insert or update a license entity.

        Args:
            license: License entity to save

        Returns:
            Saved license entity

        Raises:
            DuplicateKeyFingerprintError: If another license holds the fingerprint
        """
        try:
            with transaction.atomic():
                model, _ = LicenseModel.objects.update_or_create(
                    id=license.id,
                    defaults=self._to_fields(license),
                )
        except IntegrityError as e:
            fingerprint_taken = (
                LicenseModel.objects.filter(key_fingerprint=license.key_fingerprint)
                .exclude(id=license.id)
                .exists()
            )
            if fingerprint_taken:
                raise DuplicateKeyFingerprintError() from e
            raise
        return self._to_domain(model)

    @sync_to_async
    @store_operation
    def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        try:
            model = LicenseModel.objects.get(id=license_id)
            return self._to_domain(model)
        except LicenseModel.DoesNotExist:
            return None

    @sync_to_async
    @store_operation
    def find_by_fingerprint(self, key_fingerprint: str) -> Optional[License]:
        """
        Find a license by key fingerprint.

        Args:
            key_fingerprint: SHA-256 hex digest of the key

        Returns:
            License entity or None if not found
        """
        model = LicenseModel.objects.filter(key_fingerprint=key_fingerprint).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    @store_operation
    def find_by_customer_email(self, email: str) -> List[License]:
        models = LicenseModel.objects.filter(customer_email__iexact=email)
        return [self._to_domain(model) for model in models]

    @sync_to_async
    @store_operation
    def list(
        self,
        filters: LicenseFilters,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[License], int]:
        """
        List licenses, newest first.

        Args:
            filters: Listing filters
            page: 1-based page number
            per_page: Page size

        Returns:
            Tuple of (licenses on the page, total matching)
        """
        queryset = LicenseModel.objects.all()
        if filters.status:
            queryset = queryset.filter(status=filters.status.value)
        if filters.tier:
            queryset = queryset.filter(tier=filters.tier.value)
        if filters.search:
            queryset = queryset.filter(
                Q(customer_email__icontains=filters.search)
                | Q(customer_name__icontains=filters.search)
                | Q(key_hint__icontains=filters.search)
            )
        total = queryset.count()
        offset = (max(page, 1) - 1) * per_page
        models = queryset.order_by("-created_at")[offset : offset + per_page]
        return [self._to_domain(model) for model in models], total

    @sync_to_async
    @store_operation
    def transition_status(
        self,
        license_id: uuid.UUID,
        from_statuses: Iterable[LicenseStatus],
        to_status: LicenseStatus,
    ) -> Optional[License]:
        """
        Conditionally update the status in a single UPDATE statement.

        Args:
            license_id: License UUID
            from_statuses: Statuses the transition is allowed from
            to_status: Target status

        Returns:
            Updated license, or None if no row matched
        """
        updated = LicenseModel.objects.filter(
            id=license_id,
            status__in=[status.value for status in from_statuses],
        ).update(status=to_status.value, updated_at=timezone.now())
        if not updated:
            return None
        return self._to_domain(LicenseModel.objects.get(id=license_id))

    @sync_to_async
    @store_operation
    def delete(self, license_id: uuid.UUID) -> bool:
        deleted, _ = LicenseModel.objects.filter(id=license_id).delete()
        return deleted > 0

    @sync_to_async
    @store_operation
    def count_by_status(self) -> Dict[LicenseStatus, int]:
        counts = {status: 0 for status in LicenseStatus}
        rows = LicenseModel.objects.values("status").annotate(total=Count("id"))
        for row in rows:
            counts[LicenseStatus(row["status"])] = row["total"]
        return counts
