"""
Unit tests for ActivationAllocator.
"""
import asyncio

import pytest

from activations.domain.activation import Activation
from activations.domain.services import ActivationAllocator
from activations.infrastructure.repositories.in_memory_activation_repository import (
    InMemoryActivationRepository,
)
from core.domain.exceptions import ActivationConflictError
from core.domain.outcome import OutcomeKind
from core.domain.value_objects import ReasonCode, SiteIdentity


class YieldingActivationRepository(InMemoryActivationRepository):
    """Repository that yields to the event loop inside every call."""

    async def find_active_by_site(self, license_id, site_identity):
        await asyncio.sleep(0)
        return await super().find_active_by_site(license_id, site_identity)

    async def create_if_capacity(self, activation, max_activations):
        await asyncio.sleep(0)
        return await super().create_if_capacity(activation, max_activations)


class ConflictOnceRepository(InMemoryActivationRepository):
    """Repository simulating a site inserted by another process."""

    def __init__(self, activation_to_insert):
        super().__init__()
        self.activation_to_insert = activation_to_insert
        self.conflicts = 0

    async def create_if_capacity(self, activation, max_activations):
        if not self.conflicts:
            self.conflicts += 1
            await self.save(self.activation_to_insert)
            raise ActivationConflictError()
        return await super().create_if_capacity(activation, max_activations)


@pytest.mark.asyncio
class TestActivationAllocator:
    """Tests for slot allocation."""

    async def test_activate_new_site(self, allocator, active_license):
        outcome = await allocator.activate(active_license, "https://example.com", site_name="Shop")
        assert outcome.kind == OutcomeKind.ACTIVATED
        assert outcome.payload.site_identity == SiteIdentity("example.com")
        assert outcome.payload.site_name == "Shop"

    async def test_url_variants_are_idempotent(
        self, allocator, activation_repository, active_license
    ):
        first = await allocator.activate(active_license, "https://example.com")
        for variant in ("http://www.example.com/", "EXAMPLE.COM", "https://example.com//"):
            outcome = await allocator.activate(active_license, variant)
            assert outcome.kind == OutcomeKind.REACTIVATED
            assert outcome.payload.id == first.payload.id
        assert await activation_repository.count_active_by_license(active_license.id) == 1

    async def test_quota_enforced(self, allocator, license_factory):
        license = license_factory(max_activations=2)
        await allocator.activate(license, "one.example.com")
        await allocator.activate(license, "two.example.com")
        outcome = await allocator.activate(license, "three.example.com")
        assert not outcome.ok
        assert outcome.reason == ReasonCode.MAX_ACTIVATIONS_REACHED

    async def test_zero_quota(self, allocator, license_factory):
        outcome = await allocator.activate(license_factory(max_activations=0), "example.com")
        assert outcome.reason == ReasonCode.MAX_ACTIVATIONS_REACHED

    async def test_existing_site_reactivates_when_full(self, allocator, license_factory):
        license = license_factory(max_activations=1)
        await allocator.activate(license, "example.com")
        outcome = await allocator.activate(license, "www.example.com")
        assert outcome.kind == OutcomeKind.REACTIVATED

    async def test_invalid_url(self, allocator, active_license):
        outcome = await allocator.activate(active_license, "https://")
        assert outcome.reason == ReasonCode.INVALID_SITE_URL

    async def test_deactivate_frees_slot(self, allocator, activation_repository, license_factory):
        license = license_factory(max_activations=1)
        first = await allocator.activate(license, "one.example.com")
        released = await allocator.deactivate(license, "https://one.example.com/")
        assert released.kind == OutcomeKind.DEACTIVATED
        assert not released.payload.is_active

        second = await allocator.activate(license, "two.example.com")
        assert second.kind == OutcomeKind.ACTIVATED
        assert await activation_repository.count_active_by_license(license.id) == 1

        history = await activation_repository.find_all_by_license(license.id)
        assert {activation.id for activation in history} == {first.payload.id, second.payload.id}

    async def test_reactivating_released_site_inserts_new_row(self, allocator, active_license):
        first = await allocator.activate(active_license, "example.com")
        await allocator.deactivate(active_license, "example.com")
        again = await allocator.activate(active_license, "example.com")
        assert again.kind == OutcomeKind.ACTIVATED
        assert again.payload.id != first.payload.id

    async def test_deactivate_unknown_site(self, allocator, active_license):
        outcome = await allocator.deactivate(active_license, "example.com")
        assert outcome.kind == OutcomeKind.NOT_FOUND
        assert outcome.reason == ReasonCode.ACTIVATION_NOT_FOUND

    async def test_heartbeat(self, allocator, active_license):
        await allocator.activate(active_license, "example.com", metadata={"plugin_version": "1.0"})
        outcome = await allocator.heartbeat(
            active_license, "www.example.com", metadata={"plugin_version": "1.1"}
        )
        assert outcome.kind == OutcomeKind.REACTIVATED
        assert outcome.payload.metadata["plugin_version"] == "1.1"

    async def test_heartbeat_unknown_site(self, allocator, active_license):
        outcome = await allocator.heartbeat(active_license, "example.com")
        assert outcome.kind == OutcomeKind.NOT_FOUND

    async def test_deactivate_all(self, allocator, activation_repository, active_license):
        for site in ("a.example.com", "b.example.com"):
            await allocator.activate(active_license, site)
        released = await allocator.deactivate_all(active_license)
        assert len(released) == 2
        assert await activation_repository.count_active_by_license(active_license.id) == 0

    async def test_concurrent_activations_respect_quota(self, license_factory):
        repository = YieldingActivationRepository()
        allocator = ActivationAllocator(repository)
        license = license_factory(max_activations=3)

        outcomes = await asyncio.gather(
            *(allocator.activate(license, f"site{n}.example.com") for n in range(8))
        )

        activated = [outcome for outcome in outcomes if outcome.kind == OutcomeKind.ACTIVATED]
        rejected = [
            outcome
            for outcome in outcomes
            if outcome.reason == ReasonCode.MAX_ACTIVATIONS_REACHED
        ]
        assert len(activated) == 3
        assert len(rejected) == 5
        assert await repository.count_active_by_license(license.id) == 3

    async def test_concurrent_same_site_takes_one_slot(self, license_factory):
        repository = YieldingActivationRepository()
        allocator = ActivationAllocator(repository)
        license = license_factory(max_activations=3)

        outcomes = await asyncio.gather(
            *(allocator.activate(license, "https://example.com") for _ in range(5))
        )

        kinds = [outcome.kind for outcome in outcomes]
        assert kinds.count(OutcomeKind.ACTIVATED) == 1
        assert kinds.count(OutcomeKind.REACTIVATED) == 4
        assert await repository.count_active_by_license(license.id) == 1

    async def test_conflict_is_retried_as_reactivation(self, license_factory):
        license = license_factory(max_activations=3)
        winner = Activation.create(
            license_id=license.id,
            site_identity=SiteIdentity("example.com"),
            raw_site_url="example.com",
        )
        repository = ConflictOnceRepository(winner)
        outcome = await ActivationAllocator(repository).activate(license, "example.com")

        assert outcome.kind == OutcomeKind.REACTIVATED
        assert outcome.payload.id == winner.id
