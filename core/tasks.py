"""
Celery tasks for background processing.

Tasks for webhook delivery and customer e-mail.
"""
import logging

import requests
from django.core.mail import send_mail

from PluginLicenseServer.celery import app

from core.config import WebhookEndpoint
from core.infrastructure.webhooks import WebhookDeliveryService
from core.metrics import collaborator_failures_total

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3)
def deliver_webhook_task(self, endpoint: dict, event_type: str, payload: dict):
    """
    Celery task for webhook delivery.

    Retries with exponential backoff up to the endpoint's ``max_retries``.

    Args:
        endpoint: Serialized WebhookEndpoint (url, secret, timeout, max_retries)
        event_type: Webhook event name
        payload: Webhook payload
    """
    subscriber = WebhookEndpoint(
        url=endpoint["url"],
        secret=endpoint["secret"],
        timeout_seconds=endpoint.get("timeout", 10),
        max_retries=endpoint.get("max_retries", 3),
    )
    try:
        return WebhookDeliveryService.deliver(subscriber, event_type, payload)
    except requests.RequestException as exc:
        if self.request.retries >= subscriber.max_retries:
            collaborator_failures_total.labels(collaborator="webhook").inc()
            logger.error(
                "Webhook delivery failed after %d retries: %s - %s",
                subscriber.max_retries,
                subscriber.url,
                event_type,
            )
            raise
        logger.warning("Webhook delivery failed, retrying: %s - %s", subscriber.url, exc)
        raise self.retry(
            exc=exc,
            countdown=2 ** self.request.retries,
            max_retries=subscriber.max_retries,
        )


@app.task(bind=True, max_retries=3)
def send_license_email_task(self, to_email: str, subject: str, body: str, from_email: str):
    """
    Celery task sending a customer e-mail.

    Args:
        to_email: Recipient
        subject: Rendered subject
        body: Rendered plain-text body
        from_email: Sender address
    """
    try:
        send_mail(subject, body, from_email, [to_email], fail_silently=False)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.warning("E-mail delivery failed, retrying: %s", exc)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)
