"""
Composition root.

Builds the engine, the operator handlers and their collaborators from
the Django adapters and ``settings.LICENSE_SERVER``. Views fetch the
shared instance through ``get_container()``.
"""

from dataclasses import dataclass
from functools import lru_cache

from activations.domain.services import ActivationAllocator
from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationRepository,
)
from core.config import LicenseServerConfig, get_license_server_config
from core.infrastructure.audit_trail import DjangoAuditTrailSink
from core.infrastructure.cache_adapters import DjangoCacheAdapter
from core.infrastructure.email import CeleryEmailSender
from core.infrastructure.event_handlers import register_event_handlers
from core.infrastructure.events import InMemoryEventBus
from core.infrastructure.ip_blocklist import IpBlocklist
from core.infrastructure.rate_limiter import RateLimiter
from core.infrastructure.webhooks import CeleryWebhookDispatcher
from licenses.application.handlers.create_license_handler import CreateLicenseHandler
from licenses.application.handlers.get_license_handler import GetLicenseHandler
from licenses.application.handlers.license_lifecycle_handlers import (
    DeleteLicenseHandler,
    ReactivateLicenseHandler,
    RegenerateLicenseKeyHandler,
    RenewLicenseHandler,
    ResumeLicenseHandler,
    RevokeLicenseHandler,
    SuspendLicenseHandler,
    TransferLicenseHandler,
)
from licenses.application.handlers.list_licenses_handler import ListLicensesHandler
from licenses.application.services.lifecycle_engine import LicenseLifecycleEngine
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from licenses.ports.license_repository import LicenseRepository
from validation_logs.application.services.validation_logger import ValidationLogger
from validation_logs.infrastructure.repositories.django_validation_log_repository import (
    DjangoValidationLogRepository,
)


@dataclass
class Container:
    """Wired application services."""

    config: LicenseServerConfig
    license_repository: LicenseRepository
    engine: LicenseLifecycleEngine
    validation_logger: ValidationLogger
    create_license: CreateLicenseHandler
    get_license: GetLicenseHandler
    list_licenses: ListLicensesHandler
    suspend_license: SuspendLicenseHandler
    resume_license: ResumeLicenseHandler
    revoke_license: RevokeLicenseHandler
    reactivate_license: ReactivateLicenseHandler
    renew_license: RenewLicenseHandler
    regenerate_license_key: RegenerateLicenseKeyHandler
    transfer_license: TransferLicenseHandler
    delete_license: DeleteLicenseHandler


def build_container(config: LicenseServerConfig) -> Container:
    """
    Wire the application against the Django adapters.

    Args:
        config: Service configuration

    Returns:
        Container
    """
    license_repository = DjangoLicenseRepository()
    activation_repository = DjangoActivationRepository()
    allocator = ActivationAllocator(activation_repository)
    validation_logger = ValidationLogger(
        DjangoValidationLogRepository(),
        suspicious_threshold=config.suspicious_ip_threshold,
        suspicious_window_minutes=config.suspicious_ip_window_minutes,
    )
    event_bus = register_event_handlers(
        InMemoryEventBus(),
        audit_sink=DjangoAuditTrailSink(),
        webhook_dispatcher=CeleryWebhookDispatcher(config.webhook_endpoints),
    )
    email_sender = CeleryEmailSender(config.email_from)

    engine = LicenseLifecycleEngine(
        license_repository=license_repository,
        activation_repository=activation_repository,
        allocator=allocator,
        validation_logger=validation_logger,
        rate_limiter=RateLimiter(DjangoCacheAdapter(), config.rate_limits),
        event_bus=event_bus,
        ip_blocklist=IpBlocklist(DjangoCacheAdapter(), config.ip_block_seconds),
    )

    return Container(
        config=config,
        license_repository=license_repository,
        engine=engine,
        validation_logger=validation_logger,
        create_license=CreateLicenseHandler(license_repository, event_bus, email_sender),
        get_license=GetLicenseHandler(license_repository, activation_repository),
        list_licenses=ListLicensesHandler(license_repository, activation_repository),
        suspend_license=SuspendLicenseHandler(license_repository, event_bus),
        resume_license=ResumeLicenseHandler(license_repository, event_bus),
        revoke_license=RevokeLicenseHandler(license_repository, event_bus),
        reactivate_license=ReactivateLicenseHandler(license_repository, event_bus),
        renew_license=RenewLicenseHandler(license_repository, event_bus),
        regenerate_license_key=RegenerateLicenseKeyHandler(
            license_repository, event_bus, email_sender
        ),
        transfer_license=TransferLicenseHandler(
            license_repository, event_bus, allocator, email_sender
        ),
        delete_license=DeleteLicenseHandler(license_repository, event_bus),
    )


@lru_cache(maxsize=1)
def get_container() -> Container:
    """Return the process-wide container, built on first use."""
    return build_container(get_license_server_config())
