"""
Pytest configuration and shared fixtures.
"""

from datetime import timedelta

import pytest
from django.core.cache import cache

from activations.domain.services import ActivationAllocator
from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationRepository,
)
from activations.infrastructure.repositories.in_memory_activation_repository import (
    InMemoryActivationRepository,
)
from api.container import get_container
from core.domain.clock import utcnow
from core.domain.events import DomainEvent, EventHandler
from core.infrastructure.cache_adapters import InMemoryCacheAdapter
from core.infrastructure.events import InMemoryEventBus
from core.infrastructure.rate_limiter import RateLimiter
from core.ports.collaborators import EmailSender
from licenses.application.services.lifecycle_engine import LicenseLifecycleEngine
from licenses.domain.license import License
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from licenses.infrastructure.repositories.in_memory_license_repository import (
    InMemoryLicenseRepository,
)
from validation_logs.application.services.validation_logger import ValidationLogger
from validation_logs.infrastructure.repositories.django_validation_log_repository import (
    DjangoValidationLogRepository,
)
from validation_logs.infrastructure.repositories.in_memory_validation_log_repository import (
    InMemoryValidationLogRepository,
)

ADMIN_API_KEY = "test-admin-key"


class RecordingHandler(EventHandler):
    """Event handler keeping every event it receives."""

    def __init__(self):
        self.events = []

    async def handle(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type):
        return [event for event in self.events if isinstance(event, event_type)]


class RecordingEmailSender(EmailSender):
    """EmailSender keeping (license, template) pairs."""

    def __init__(self):
        self.sent = []

    async def send(self, license, template: str) -> None:
        self.sent.append((license, template))


class FakeTime:
    """Settable clock returning seconds."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_license(**overrides) -> License:
    """Build an unsaved license carrying its plaintext key."""
    fields = {"customer_email": "customer@example.com", "customer_name": "Customer"}
    fields.update(overrides)
    return License.create(**fields)


@pytest.fixture(autouse=True)
def _reset_shared_state():
    """Clear the Django cache and the process-wide container between tests."""
    cache.clear()
    get_container.cache_clear()
    yield
    get_container.cache_clear()


# In-memory adapters


@pytest.fixture
def license_repository():
    """Fixture for an in-memory LicenseRepository."""
    return InMemoryLicenseRepository()


@pytest.fixture
def activation_repository():
    """Fixture for an in-memory ActivationRepository."""
    return InMemoryActivationRepository()


@pytest.fixture
def validation_log_repository():
    """Fixture for an in-memory ValidationLogRepository."""
    return InMemoryValidationLogRepository()


@pytest.fixture
def validation_logger(validation_log_repository):
    """Fixture for ValidationLogger over the in-memory repository."""
    return ValidationLogger(
        validation_log_repository, suspicious_threshold=3, suspicious_window_minutes=60
    )


@pytest.fixture
def recorder():
    """Fixture for a handler recording every published event."""
    return RecordingHandler()


@pytest.fixture
def event_bus(recorder):
    """Fixture for an InMemoryEventBus feeding the recorder."""
    bus = InMemoryEventBus()
    bus.subscribe(DomainEvent, recorder)
    return bus


@pytest.fixture
def email_sender():
    """Fixture for a recording EmailSender."""
    return RecordingEmailSender()


@pytest.fixture
def fake_time():
    """Fixture for a settable clock in seconds."""
    return FakeTime()


@pytest.fixture
def allocator(activation_repository):
    """Fixture for ActivationAllocator over the in-memory repository."""
    return ActivationAllocator(activation_repository)


@pytest.fixture
def rate_limiter(fake_time):
    """Fixture for a RateLimiter without rules."""
    return RateLimiter(InMemoryCacheAdapter(), rules={}, clock=fake_time)


@pytest.fixture
def engine(
    license_repository,
    activation_repository,
    allocator,
    validation_logger,
    rate_limiter,
    event_bus,
):
    """Fixture for a LicenseLifecycleEngine wired to in-memory adapters."""
    return LicenseLifecycleEngine(
        license_repository=license_repository,
        activation_repository=activation_repository,
        allocator=allocator,
        validation_logger=validation_logger,
        rate_limiter=rate_limiter,
        event_bus=event_bus,
    )


@pytest.fixture
def license_factory():
    """Fixture returning the unsaved license builder."""
    return make_license


@pytest.fixture
def active_license():
    """Fixture for an unsaved active license with three slots."""
    return make_license(max_activations=3)


@pytest.fixture
def expired_license():
    """Fixture for an unsaved active license whose expiry has passed."""
    return make_license(expires_at=utcnow() - timedelta(days=1))


# Django adapters


@pytest.fixture
def django_license_repository():
    """Fixture for DjangoLicenseRepository."""
    return DjangoLicenseRepository()


@pytest.fixture
def django_activation_repository():
    """Fixture for DjangoActivationRepository."""
    return DjangoActivationRepository()


@pytest.fixture
def django_validation_log_repository():
    """Fixture for DjangoValidationLogRepository."""
    return DjangoValidationLogRepository()


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def admin_client(api_client):
    """Fixture for an API client carrying the operator API key."""
    api_client.credentials(HTTP_X_API_KEY=ADMIN_API_KEY)
    return api_client
