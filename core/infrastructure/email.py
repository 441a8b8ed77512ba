"""
Customer e-mail notifications.

Templates are rendered in-process and sent by a celery task through
django.core.mail.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from asgiref.sync import sync_to_async

from core.ports.collaborators import EmailSender
from licenses.domain.tiers import get_tier_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailTemplate:
    """Subject and body format strings."""

    subject: str
    body: str


EMAIL_TEMPLATES: Dict[str, EmailTemplate] = {
    "license_issued": EmailTemplate(
        subject="Your {tier_name} license key",
        body=(
            "Hello {customer_name},\n\n"
            "Thank you for your purchase!\n\n"
            "Your license key is:\n{license_key}\n\n"
            "You can activate this license on up to {max_activations} site(s).\n\n"
            "Best regards"
        ),
    ),
    "license_key_regenerated": EmailTemplate(
        subject="Your license key has been regenerated",
        body=(
            "Hello {customer_name},\n\n"
            "A new key was issued for your {tier_name} license. "
            "The previous key no longer works.\n\n"
            "Your new license key is:\n{license_key}\n\n"
            "Your existing site activations are unchanged.\n\n"
            "Best regards"
        ),
    ),
    "license_transferred": EmailTemplate(
        subject="A {tier_name} license has been transferred to you",
        body=(
            "Hello {customer_name},\n\n"
            "The license {key_hint} has been transferred to this address.\n\n"
            "Contact support if you need the full key re-issued.\n\n"
            "Best regards"
        ),
    ),
}


def render_email(license, template: str) -> Tuple[str, str]:
    """
    Render a template for a license.

    Args:
        license: License entity; ``key_plaintext`` is used when present
        template: Template name

    Returns:
        Tuple of (subject, body)

    Raises:
        KeyError: If the template does not exist
    """
    spec = EMAIL_TEMPLATES[template]
    context = {
        "customer_name": license.customer_name or "there",
        "tier_name": get_tier_config(license.tier).name,
        "license_key": license.key_plaintext or license.key_hint,
        "key_hint": license.key_hint,
        "max_activations": license.max_activations,
    }
    return spec.subject.format(**context), spec.body.format(**context)


class CeleryEmailSender(EmailSender):
    """Queues rendered e-mails on celery."""

    def __init__(self, from_email: str):
        """
        Initialize sender.

        Args:
            from_email: Sender address
        """
        self.from_email = from_email

    async def send(self, license, template: str) -> None:
        """
        Queue a templated e-mail for a license's customer.

        Args:
            license: License entity
            template: Template name
        """
        from core.tasks import send_license_email_task

        subject, body = render_email(license, template)
        await sync_to_async(send_license_email_task.delay)(
            str(license.customer_email), subject, body, self.from_email
        )
        logger.info(
            "License e-mail queued",
            extra={"template": template, "license_id": str(license.id)},
        )
