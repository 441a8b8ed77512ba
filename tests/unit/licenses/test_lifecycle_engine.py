"""
Unit tests for LicenseLifecycleEngine.
"""
from datetime import timedelta

import pytest

from activations.application.commands.activate_site import ActivateSiteCommand
from activations.application.commands.deactivate_site import DeactivateSiteCommand
from activations.application.commands.heartbeat_site import HeartbeatSiteCommand
from activations.domain.events import SiteActivated, SiteCheckedIn, SiteDeactivated, SiteReactivated
from activations.domain.services import ActivationAllocator
from activations.infrastructure.repositories.in_memory_activation_repository import (
    InMemoryActivationRepository,
)
from core.domain.clock import utcnow
from core.domain.exceptions import (
    ActivationConflictError,
    ActivationNotFoundError,
    LicenseNotFoundError,
    StoreUnavailableError,
)
from core.domain.outcome import OutcomeKind
from core.domain.value_objects import LicenseStatus, ReasonCode, ValidationEvent
from core.infrastructure.cache_adapters import InMemoryCacheAdapter
from core.infrastructure.ip_blocklist import IpBlocklist
from core.infrastructure.rate_limiter import RateLimiter, RateLimitRule
from licenses.application.queries.get_license_status import GetLicenseStatusQuery
from licenses.application.queries.validate_license import ValidateLicenseQuery
from licenses.application.services.lifecycle_engine import LicenseLifecycleEngine
from licenses.domain.events import LicenseExpired, LicenseRequestRejected, LicenseValidated
from licenses.infrastructure.repositories.in_memory_license_repository import (
    InMemoryLicenseRepository,
)
from validation_logs.domain.entry import LogOutcome


class UnavailableLicenseRepository(InMemoryLicenseRepository):
    """License store whose lookups fail."""

    async def find_by_fingerprint(self, key_fingerprint):
        raise StoreUnavailableError()


class ReadOnlyLicenseRepository(InMemoryLicenseRepository):
    """License store that serves reads but cannot write."""

    async def transition_status(self, license_id, from_statuses, to_status):
        raise StoreUnavailableError()


class VanishingLicenseActivationRepository(InMemoryActivationRepository):
    """Activation store whose license row disappears before the insert."""

    async def create_if_capacity(self, activation, max_activations):
        raise LicenseNotFoundError()


class VanishingActivationRepository(InMemoryActivationRepository):
    """Activation store whose rows disappear before an update."""

    async def save(self, activation):
        raise ActivationNotFoundError()


class ContendedActivationRepository(InMemoryActivationRepository):
    """Activation store where every insert loses a race."""

    async def create_if_capacity(self, activation, max_activations):
        raise ActivationConflictError()


async def issue(license_repository, license):
    """Save a license and return its plaintext key."""
    await license_repository.save(license)
    return license.key_plaintext


def build_engine(engine, **overrides):
    collaborators = {
        "license_repository": engine.license_repository,
        "activation_repository": engine.activation_repository,
        "allocator": engine.allocator,
        "validation_logger": engine.validation_logger,
        "rate_limiter": engine.rate_limiter,
        "event_bus": engine.event_bus,
        "ip_blocklist": engine.ip_blocklist,
    }
    collaborators.update(overrides)
    return LicenseLifecycleEngine(**collaborators)


def with_activation_repository(engine, repository):
    return build_engine(
        engine,
        activation_repository=repository,
        allocator=ActivationAllocator(repository),
    )


@pytest.mark.asyncio
class TestValidate:
    """Tests for the validate operation."""

    async def test_valid_key(self, engine, license_repository, active_license, recorder):
        key = await issue(license_repository, active_license)

        outcome = await engine.validate(ValidateLicenseQuery(license_key=key))

        assert outcome.kind == OutcomeKind.VALIDATED
        snapshot = outcome.payload
        assert snapshot.status == "active"
        assert snapshot.key_hint == active_license.key_hint
        assert snapshot.activations_limit == 3
        assert snapshot.activations_used == 0
        assert recorder.of_type(LicenseValidated)

    async def test_key_is_sanitized(self, engine, license_repository, active_license):
        key = await issue(license_repository, active_license)
        outcome = await engine.validate(ValidateLicenseQuery(license_key=f"  {key.lower()}\n"))
        assert outcome.ok

    @pytest.mark.parametrize("raw_key", ["", "not-a-key", "ABCD-EFGH-IJKL", "ABCD-EFGH-IJKL-MNOPQ"])
    async def test_malformed_key(self, engine, validation_log_repository, raw_key):
        outcome = await engine.validate(ValidateLicenseQuery(license_key=raw_key))

        assert outcome.reason == ReasonCode.INVALID_KEY_FORMAT
        entry = validation_log_repository.entries[-1]
        assert entry.key_fingerprint is None
        assert entry.outcome == LogOutcome.FAILURE

    async def test_unknown_key(self, engine):
        outcome = await engine.validate(ValidateLicenseQuery(license_key="AAAA-BBBB-CCCC-DDDD"))
        assert outcome.reason == ReasonCode.LICENSE_NOT_FOUND
        assert outcome.kind == OutcomeKind.REJECTED

    @pytest.mark.parametrize(
        "transition, reason",
        [
            ("suspend", ReasonCode.LICENSE_SUSPENDED),
            ("revoke", ReasonCode.LICENSE_REVOKED),
            ("mark_expired", ReasonCode.LICENSE_EXPIRED),
        ],
    )
    async def test_inactive_license(
        self, engine, license_repository, active_license, transition, reason
    ):
        await license_repository.save(getattr(active_license, transition)())
        outcome = await engine.validate(
            ValidateLicenseQuery(license_key=active_license.key_plaintext)
        )
        assert outcome.reason == reason

    async def test_product_scope(self, engine, license_repository, license_factory):
        key = await issue(license_repository, license_factory(product_scope=["formflow"]))

        allowed = await engine.validate(ValidateLicenseQuery(key, product_slug="formflow"))
        denied = await engine.validate(ValidateLicenseQuery(key, product_slug="peanut-booker"))

        assert allowed.ok
        assert allowed.payload.features
        assert denied.reason == ReasonCode.PRODUCT_NOT_LICENSED

    async def test_site_url_refreshes_check_in_without_taking_slot(
        self, engine, license_repository, activation_repository, active_license
    ):
        key = await issue(license_repository, active_license)
        activated = await engine.activate(ActivateSiteCommand(key, "https://example.com"))

        outcome = await engine.validate(ValidateLicenseQuery(key, site_url="www.example.com"))
        unknown = await engine.validate(ValidateLicenseQuery(key, site_url="other.example.com"))

        assert outcome.ok
        assert unknown.ok
        assert await activation_repository.count_active_by_license(active_license.id) == 1
        refreshed = await activation_repository.find_by_id(activated.payload.activation_id)
        assert refreshed.last_checked_at >= activated.payload.last_checked_at


@pytest.mark.asyncio
class TestLazyExpiry:
    """Tests for expiry applied on read."""

    async def test_past_expiry_is_rejected_and_persisted(
        self, engine, license_repository, expired_license, recorder
    ):
        key = await issue(license_repository, expired_license)

        outcome = await engine.validate(ValidateLicenseQuery(license_key=key))

        assert outcome.reason == ReasonCode.LICENSE_EXPIRED
        stored = await license_repository.find_by_id(expired_license.id)
        assert stored.status == LicenseStatus.EXPIRED
        assert len(recorder.of_type(LicenseExpired)) == 1

        await engine.validate(ValidateLicenseQuery(license_key=key))
        assert len(recorder.of_type(LicenseExpired)) == 1

    async def test_status_reports_expired(self, engine, license_repository, expired_license):
        key = await issue(license_repository, expired_license)
        outcome = await engine.status(GetLicenseStatusQuery(license_key=key))
        assert outcome.kind == OutcomeKind.STATUS
        assert outcome.payload.status == "expired"

    async def test_expiry_still_applies_when_write_fails(self, engine, expired_license):
        repository = ReadOnlyLicenseRepository()
        key = await issue(repository, expired_license)
        engine = build_engine(engine, license_repository=repository)

        outcome = await engine.validate(ValidateLicenseQuery(license_key=key))

        assert outcome.reason == ReasonCode.LICENSE_EXPIRED
        assert (await repository.find_by_id(expired_license.id)).status == LicenseStatus.ACTIVE

    async def test_future_expiry_is_valid(self, engine, license_repository, license_factory):
        key = await issue(license_repository, license_factory(expires_at=utcnow() + timedelta(days=1)))
        assert (await engine.validate(ValidateLicenseQuery(license_key=key))).ok


@pytest.mark.asyncio
class TestActivate:
    """Tests for the activate operation."""

    async def test_activate_and_reactivate(
        self, engine, license_repository, active_license, recorder
    ):
        key = await issue(license_repository, active_license)

        first = await engine.activate(
            ActivateSiteCommand(
                key,
                "https://example.com",
                site_name="Shop",
                site_metadata={"plugin_version": "1.0.0"},
                ip_address="203.0.113.9",
            )
        )
        second = await engine.activate(ActivateSiteCommand(key, "http://www.example.com/"))

        assert first.kind == OutcomeKind.ACTIVATED
        assert second.kind == OutcomeKind.REACTIVATED
        assert first.payload.activation_id == second.payload.activation_id
        assert second.payload.license.activations_used == 1
        site = second.payload.license.activated_sites[0]
        assert site.site_name == "Shop"
        assert site.metadata["ip_address"] == "203.0.113.9"
        assert len(recorder.of_type(SiteActivated)) == 1
        assert len(recorder.of_type(SiteReactivated)) == 1

    async def test_quota(self, engine, license_repository, license_factory):
        key = await issue(license_repository, license_factory(max_activations=1))
        await engine.activate(ActivateSiteCommand(key, "one.example.com"))
        outcome = await engine.activate(ActivateSiteCommand(key, "two.example.com"))
        assert outcome.reason == ReasonCode.MAX_ACTIVATIONS_REACHED

    async def test_inactive_license(self, engine, license_repository, active_license):
        await license_repository.save(active_license.suspend())
        outcome = await engine.activate(
            ActivateSiteCommand(active_license.key_plaintext, "example.com")
        )
        assert outcome.reason == ReasonCode.LICENSE_SUSPENDED

    async def test_product_not_licensed(self, engine, license_repository, license_factory):
        key = await issue(license_repository, license_factory(product_scope=["formflow"]))
        outcome = await engine.activate(
            ActivateSiteCommand(key, "example.com", product_slug="peanut-suite")
        )
        assert outcome.reason == ReasonCode.PRODUCT_NOT_LICENSED

    async def test_invalid_site_url(self, engine, license_repository, active_license):
        key = await issue(license_repository, active_license)
        outcome = await engine.activate(ActivateSiteCommand(key, "https://www."))
        assert outcome.reason == ReasonCode.INVALID_SITE_URL


@pytest.mark.asyncio
class TestDeactivateAndHeartbeat:
    """Tests for deactivate and heartbeat."""

    async def test_deactivate_frees_slot(self, engine, license_repository, license_factory, recorder):
        key = await issue(license_repository, license_factory(max_activations=1))
        await engine.activate(ActivateSiteCommand(key, "one.example.com"))

        released = await engine.deactivate(DeactivateSiteCommand(key, "https://one.example.com"))
        second = await engine.activate(ActivateSiteCommand(key, "two.example.com"))

        assert released.kind == OutcomeKind.DEACTIVATED
        assert released.payload.license.activations_used == 0
        assert second.kind == OutcomeKind.ACTIVATED
        assert len(recorder.of_type(SiteDeactivated)) == 1

    async def test_deactivate_ignores_license_status(
        self, engine, license_repository, active_license
    ):
        key = await issue(license_repository, active_license)
        await engine.activate(ActivateSiteCommand(key, "example.com"))
        stored = await license_repository.find_by_id(active_license.id)
        await license_repository.save(stored.revoke())

        outcome = await engine.deactivate(DeactivateSiteCommand(key, "example.com"))

        assert outcome.kind == OutcomeKind.DEACTIVATED

    async def test_deactivate_unknown_site(self, engine, license_repository, active_license):
        key = await issue(license_repository, active_license)
        outcome = await engine.deactivate(DeactivateSiteCommand(key, "example.com"))
        assert outcome.kind == OutcomeKind.NOT_FOUND
        assert outcome.reason == ReasonCode.ACTIVATION_NOT_FOUND

    async def test_heartbeat(self, engine, license_repository, active_license, recorder):
        key = await issue(license_repository, active_license)
        await engine.activate(
            ActivateSiteCommand(key, "example.com", site_metadata={"plugin_version": "1.0"})
        )

        outcome = await engine.heartbeat(
            HeartbeatSiteCommand(key, "example.com", site_metadata={"plugin_version": "2.0"})
        )

        assert outcome.ok
        assert outcome.payload.license.activated_sites[0].metadata["plugin_version"] == "2.0"
        assert outcome.payload.license.activations_used == 1
        assert len(recorder.of_type(SiteCheckedIn)) == 1
        assert not recorder.of_type(SiteReactivated)

    async def test_heartbeat_unknown_site(self, engine, license_repository, active_license):
        key = await issue(license_repository, active_license)
        outcome = await engine.heartbeat(HeartbeatSiteCommand(key, "example.com"))
        assert outcome.kind == OutcomeKind.NOT_FOUND

    async def test_heartbeat_on_suspended_license(self, engine, license_repository, active_license):
        key = await issue(license_repository, active_license)
        await engine.activate(ActivateSiteCommand(key, "example.com"))
        stored = await license_repository.find_by_id(active_license.id)
        await license_repository.save(stored.suspend())

        outcome = await engine.heartbeat(HeartbeatSiteCommand(key, "example.com"))

        assert outcome.reason == ReasonCode.LICENSE_SUSPENDED


@pytest.mark.asyncio
class TestStatus:
    """Tests for the status operation."""

    async def test_inactive_license_returns_snapshot(
        self, engine, license_repository, active_license
    ):
        await license_repository.save(active_license.revoke())
        outcome = await engine.status(
            GetLicenseStatusQuery(license_key=active_license.key_plaintext)
        )
        assert outcome.kind == OutcomeKind.STATUS
        assert outcome.payload.status == "revoked"

    async def test_unknown_key(self, engine):
        outcome = await engine.status(GetLicenseStatusQuery(license_key="AAAA-BBBB-CCCC-DDDD"))
        assert outcome.reason == ReasonCode.LICENSE_NOT_FOUND


@pytest.mark.asyncio
class TestPipeline:
    """Tests for rate limiting, logging and failure handling."""

    async def test_rate_limited_per_ip(self, engine, license_repository, active_license, fake_time):
        key = await issue(license_repository, active_license)
        limiter = RateLimiter(
            InMemoryCacheAdapter(),
            rules={"validate:ip": RateLimitRule(requests=2, window_seconds=60)},
            clock=fake_time,
        )
        engine = build_engine(engine, rate_limiter=limiter)
        query = ValidateLicenseQuery(license_key=key, ip_address="203.0.113.1")

        outcomes = [await engine.validate(query) for _ in range(3)]

        assert [outcome.ok for outcome in outcomes] == [True, True, False]
        assert outcomes[2].reason == ReasonCode.RATE_LIMITED
        assert outcomes[2].retry_after_seconds > 0

    async def test_rate_limited_per_key_before_lookup(self, engine, fake_time):
        limiter = RateLimiter(
            InMemoryCacheAdapter(),
            rules={"activate:license": RateLimitRule(requests=1, window_seconds=60)},
            clock=fake_time,
        )
        engine = build_engine(engine, rate_limiter=limiter)
        command = ActivateSiteCommand("AAAA-BBBB-CCCC-DDDD", "example.com")

        first = await engine.activate(command)
        second = await engine.activate(command)

        assert first.reason == ReasonCode.LICENSE_NOT_FOUND
        assert second.reason == ReasonCode.RATE_LIMITED

    async def test_every_outcome_is_logged(
        self, engine, license_repository, active_license, validation_log_repository
    ):
        key = await issue(license_repository, active_license)
        await engine.validate(ValidateLicenseQuery(key, ip_address="203.0.113.1", user_agent="WP/6"))
        await engine.activate(ActivateSiteCommand(key, "example.com"))
        await engine.heartbeat(HeartbeatSiteCommand(key, "example.com"))
        await engine.deactivate(DeactivateSiteCommand(key, "missing.example.com"))
        await engine.status(GetLicenseStatusQuery("bogus"))

        entries = validation_log_repository.entries
        assert [entry.event for entry in entries] == [
            ValidationEvent.VALIDATE,
            ValidationEvent.ACTIVATE,
            ValidationEvent.HEARTBEAT,
            ValidationEvent.DEACTIVATE,
            ValidationEvent.STATUS,
        ]
        assert [entry.outcome for entry in entries] == [
            LogOutcome.SUCCESS,
            LogOutcome.SUCCESS,
            LogOutcome.SUCCESS,
            LogOutcome.FAILURE,
            LogOutcome.FAILURE,
        ]
        assert entries[0].ip_address == "203.0.113.1"
        assert entries[0].user_agent == "WP/6"
        assert entries[0].license_id == active_license.id
        assert entries[1].site_identity == "example.com"
        assert entries[3].reason == ReasonCode.ACTIVATION_NOT_FOUND

    async def test_plaintext_key_never_logged_or_published(
        self, engine, license_repository, active_license, validation_log_repository, recorder
    ):
        key = await issue(license_repository, active_license)
        await engine.validate(ValidateLicenseQuery(key))
        await engine.activate(ActivateSiteCommand(key, "example.com"))
        await engine.validate(ValidateLicenseQuery(key, product_slug="x"))

        for entry in validation_log_repository.entries:
            assert key not in repr(entry)
            assert entry.key_hint == active_license.key_hint
        for event in recorder.events:
            assert key not in repr(event.to_dict())

    async def test_rejections_are_published(self, engine, recorder):
        await engine.validate(ValidateLicenseQuery("AAAA-BBBB-CCCC-DDDD"))
        rejected = recorder.of_type(LicenseRequestRejected)
        assert rejected[0].reason == ReasonCode.LICENSE_NOT_FOUND
        assert rejected[0].operation == ValidationEvent.VALIDATE

    async def test_store_failure(self, engine, validation_log_repository):
        engine = build_engine(engine, license_repository=UnavailableLicenseRepository())

        outcome = await engine.validate(ValidateLicenseQuery("AAAA-BBBB-CCCC-DDDD"))

        assert outcome.reason == ReasonCode.STORE_UNAVAILABLE
        assert validation_log_repository.entries[-1].reason == ReasonCode.STORE_UNAVAILABLE

    async def test_license_deleted_during_activation(
        self, engine, license_repository, active_license, validation_log_repository, recorder
    ):
        key = await issue(license_repository, active_license)
        engine = with_activation_repository(engine, VanishingLicenseActivationRepository())

        outcome = await engine.activate(ActivateSiteCommand(key, "example.com"))

        assert outcome.reason == ReasonCode.LICENSE_NOT_FOUND
        assert validation_log_repository.entries[-1].reason == ReasonCode.LICENSE_NOT_FOUND
        assert recorder.of_type(LicenseRequestRejected)[0].reason == ReasonCode.LICENSE_NOT_FOUND

    async def test_persistent_activation_conflict(
        self, engine, license_repository, active_license, validation_log_repository, recorder
    ):
        key = await issue(license_repository, active_license)
        engine = with_activation_repository(engine, ContendedActivationRepository())

        outcome = await engine.activate(ActivateSiteCommand(key, "example.com"))

        assert outcome.reason == ReasonCode.STORE_UNAVAILABLE
        assert validation_log_repository.entries[-1].reason == ReasonCode.STORE_UNAVAILABLE
        assert recorder.of_type(LicenseRequestRejected)[0].reason == ReasonCode.STORE_UNAVAILABLE

    async def test_activation_deleted_during_heartbeat(
        self, engine, license_repository, active_license
    ):
        key = await issue(license_repository, active_license)
        engine = with_activation_repository(engine, VanishingActivationRepository())
        await engine.activate(ActivateSiteCommand(key, "example.com"))

        outcome = await engine.heartbeat(HeartbeatSiteCommand(key, "example.com"))

        assert outcome.reason == ReasonCode.ACTIVATION_NOT_FOUND

    async def test_log_failure_does_not_change_outcome(
        self, engine, license_repository, active_license, validation_logger
    ):
        key = await issue(license_repository, active_license)

        async def broken_append(entry):
            raise RuntimeError("log store down")

        validation_logger.repository.append = broken_append
        outcome = await engine.validate(ValidateLicenseQuery(key))

        assert outcome.ok


@pytest.mark.asyncio
class TestIpBlocking:
    """Tests for blocking IPs with repeated failures."""

    @pytest.fixture
    def blocking_engine(self, engine, fake_time):
        blocklist = IpBlocklist(InMemoryCacheAdapter(), block_seconds=600, clock=fake_time)
        return build_engine(engine, ip_blocklist=blocklist)

    async def test_blocks_after_threshold(
        self, blocking_engine, license_repository, active_license, fake_time, recorder
    ):
        key = await issue(license_repository, active_license)
        for _ in range(3):
            await blocking_engine.validate(
                ValidateLicenseQuery("AAAA-BBBB-CCCC-DDDD", ip_address="203.0.113.9")
            )

        blocked = await blocking_engine.validate(ValidateLicenseQuery(key, ip_address="203.0.113.9"))
        other_ip = await blocking_engine.validate(ValidateLicenseQuery(key, ip_address="203.0.113.10"))

        assert blocked.reason == ReasonCode.IP_BLOCKED
        assert blocked.retry_after_seconds == 600
        assert blocked.reason.message == "Access temporarily blocked. Please try again later."
        assert other_ip.ok
        assert recorder.of_type(LicenseRequestRejected)[-1].reason == ReasonCode.IP_BLOCKED

    async def test_block_expires(
        self, blocking_engine, license_repository, active_license, fake_time
    ):
        key = await issue(license_repository, active_license)
        for _ in range(3):
            await blocking_engine.validate(ValidateLicenseQuery("bogus", ip_address="203.0.113.9"))

        fake_time.advance(601)
        outcome = await blocking_engine.validate(ValidateLicenseQuery(key, ip_address="203.0.113.9"))

        assert outcome.ok

    async def test_below_threshold_not_blocked(
        self, blocking_engine, license_repository, active_license
    ):
        key = await issue(license_repository, active_license)
        for _ in range(2):
            await blocking_engine.validate(ValidateLicenseQuery("bogus", ip_address="203.0.113.9"))

        outcome = await blocking_engine.validate(ValidateLicenseQuery(key, ip_address="203.0.113.9"))

        assert outcome.ok

    async def test_store_failures_do_not_block(self, blocking_engine, license_repository, active_license):
        key = await issue(license_repository, active_license)
        unavailable = build_engine(
            blocking_engine, license_repository=UnavailableLicenseRepository()
        )
        for _ in range(3):
            await unavailable.validate(ValidateLicenseQuery(key, ip_address="203.0.113.9"))

        outcome = await blocking_engine.validate(ValidateLicenseQuery(key, ip_address="203.0.113.9"))

        assert outcome.ok

    async def test_requests_without_ip_are_never_blocked(
        self, blocking_engine, license_repository, active_license
    ):
        key = await issue(license_repository, active_license)
        for _ in range(4):
            await blocking_engine.validate(ValidateLicenseQuery("bogus"))

        assert (await blocking_engine.validate(ValidateLicenseQuery(key))).ok
