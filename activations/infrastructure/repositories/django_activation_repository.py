"""
Django implementation of ActivationRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction

from activations.domain.activation import Activation
from activations.infrastructure.models import Activation as ActivationModel
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import (
    ActivationConflictError,
    ActivationNotFoundError,
    LicenseNotFoundError,
)
from core.domain.value_objects import SiteIdentity
from core.infrastructure.database import store_operation
from licenses.infrastructure.models import License as LicenseModel


class DjangoActivationRepository(ActivationRepository):
    """
    Django ORM implementation of ActivationRepository.

    Capacity checks lock the owning license row (SELECT ... FOR UPDATE)
    so concurrent activations for one license serialize in the database
    while other licenses proceed. The partial unique constraint on
    active (license, site_identity) rows backs up the idempotency check.
    """

    def _to_domain(self, model: ActivationModel) -> Activation:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Activation model

        Returns:
            Activation domain entity
        """
        return Activation(
            id=model.id,
            license_id=model.license_id,
            site_identity=SiteIdentity(model.site_identity),
            raw_site_url=model.raw_site_url,
            site_name=model.site_name,
            activated_at=model.activated_at,
            last_checked_at=model.last_checked_at,
            deactivated_at=model.deactivated_at,
            metadata=model.metadata or {},
        )

    def _to_model(self, activation: Activation) -> ActivationModel:
        """
        Convert domain entity to an unsaved Django model.

        Args:
            activation: Activation domain entity

        Returns:
            Django Activation model
        """
        return ActivationModel(
            id=activation.id,
            license_id=activation.license_id,
            site_identity=str(activation.site_identity),
            raw_site_url=activation.raw_site_url,
            site_name=activation.site_name,
            metadata=activation.metadata,
            activated_at=activation.activated_at,
            last_checked_at=activation.last_checked_at,
            deactivated_at=activation.deactivated_at,
            is_active=activation.is_active,
        )

    @sync_to_async
    @store_operation
    def save(self, activation: Activation) -> Activation:
        """
        Update an existing activation entity.

        Args:
            activation: Activation entity to save

        Returns:
            Saved activation entity

        Raises:
            ActivationNotFoundError: If no row exists for the activation
        """
        updated = ActivationModel.objects.filter(id=activation.id).update(
            site_name=activation.site_name,
            metadata=activation.metadata,
            last_checked_at=activation.last_checked_at,
            deactivated_at=activation.deactivated_at,
            is_active=activation.is_active,
        )
        if not updated:
            raise ActivationNotFoundError(f"Activation {activation.id} not found")
        return self._to_domain(ActivationModel.objects.get(id=activation.id))

    @sync_to_async
    @store_operation
    def create_if_capacity(
        self, activation: Activation, max_activations: int
    ) -> Optional[Activation]:
        """
        Insert an activation unless the license is at its quota.

        Args:
            activation: New active activation
            max_activations: License quota

        Returns:
            Inserted activation, or None if the quota is exhausted
        """
        try:
            with transaction.atomic():
                # Serializes capacity checks per license
                locked = (
                    LicenseModel.objects.select_for_update()
                    .filter(id=activation.license_id)
                    .values_list("id", flat=True)
                    .first()
                )
                if locked is None:
                    raise LicenseNotFoundError()
                active = ActivationModel.objects.filter(
                    license_id=activation.license_id, is_active=True
                ).count()
                if active >= max_activations:
                    return None
                model = self._to_model(activation)
                model.save(force_insert=True)
        except IntegrityError as e:
            raise ActivationConflictError() from e
        return self._to_domain(model)

    @sync_to_async
    @store_operation
    def find_by_id(
        self, activation_id: uuid.UUID
    ) -> Optional[Activation]:
        """
        Find an activation by ID.

        Args:
            activation_id: Activation UUID

        Returns:
            Activation entity or None if not found
        """
        try:
            # pylint: disable=no-member
            model = ActivationModel.objects.get(id=activation_id)
            return self._to_domain(model)
        except ActivationModel.DoesNotExist:  # pylint: disable=no-member
            return None

    @sync_to_async
    @store_operation
    def find_active_by_site(
        self, license_id: uuid.UUID, site_identity: SiteIdentity
    ) -> Optional[Activation]:
        model = ActivationModel.objects.filter(
            license_id=license_id,
            site_identity=str(site_identity),
            is_active=True,
        ).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    @store_operation
    def find_active_by_license(
        self, license_id: uuid.UUID
    ) -> List[Activation]:
        models = ActivationModel.objects.filter(
            license_id=license_id, is_active=True
        ).order_by("activated_at")
        return [self._to_domain(model) for model in models]

    @sync_to_async
    @store_operation
    def find_all_by_license(
        self, license_id: uuid.UUID
    ) -> List[Activation]:
        models = ActivationModel.objects.filter(license_id=license_id).order_by(
            "-activated_at"
        )
        return [self._to_domain(model) for model in models]

    @sync_to_async
    @store_operation
    def count_active_by_license(self, license_id: uuid.UUID) -> int:
        """
        Count active activations for a license.

        Args:
            license_id: License UUID

        Returns:
            Number of active activations
        """
        return ActivationModel.objects.filter(
            license_id=license_id, is_active=True
        ).count()
