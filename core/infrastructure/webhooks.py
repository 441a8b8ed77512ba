"""
Webhook delivery service.

Handles webhook signing and delivery. Delivery runs in celery workers;
the dispatcher only queues one task per subscribed endpoint.
"""
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, Iterable

import requests
from asgiref.sync import sync_to_async
from django.utils import timezone

from core.config import WebhookEndpoint
from core.ports.collaborators import WebhookDispatcher

logger = logging.getLogger(__name__)


class WebhookDeliveryService:
    """Service for signing and delivering webhooks."""

    USER_AGENT = "Plugin-License-Server-Webhook/1.0"

    @staticmethod
    def generate_signature(payload: str, secret: str) -> str:
        """
        Generate HMAC signature for webhook payload.

        Args:
            payload: JSON string payload
            secret: Webhook secret

        Returns:
            HMAC SHA-256 signature (hex)
        """
        return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()

    @staticmethod
    def verify_signature(payload: str, signature: str, secret: str) -> bool:
        """
        Verify webhook signature.

        Args:
            payload: JSON string payload
            signature: Expected signature
            secret: Webhook secret

        Returns:
            True if signature is valid
        """
        expected_signature = WebhookDeliveryService.generate_signature(payload, secret)
        return hmac.compare_digest(expected_signature, signature)

    @staticmethod
    def build_body(event_type: str, payload: Dict[str, Any]) -> str:
        """Serialize the delivery body."""
        return json.dumps(
            {
                "event": event_type,
                "timestamp": timezone.now().isoformat(),
                "data": payload,
            },
            sort_keys=True,
            default=str,
        )

    @staticmethod
    def deliver(endpoint: WebhookEndpoint, event_type: str, payload: Dict[str, Any]) -> int:
        """
        POST one webhook.

        Args:
            endpoint: Subscriber
            event_type: Webhook event name (e.g. "license.activated")
            payload: Event payload

        Returns:
            HTTP status code of the response

        Raises:
            requests.RequestException: On connection errors or non-2xx responses
        """
        body = WebhookDeliveryService.build_body(event_type, payload)
        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Signature": WebhookDeliveryService.generate_signature(
                body, endpoint.secret
            ),
            "X-Webhook-Event": event_type,
            "User-Agent": WebhookDeliveryService.USER_AGENT,
        }
        response = requests.post(
            endpoint.url,
            data=body,
            headers=headers,
            timeout=endpoint.timeout_seconds,
        )
        response.raise_for_status()
        logger.info(
            "Webhook delivered",
            extra={"url": endpoint.url, "event": event_type, "status_code": response.status_code},
        )
        return response.status_code


class CeleryWebhookDispatcher(WebhookDispatcher):
    """Queues one celery delivery task per subscribed endpoint."""

    def __init__(self, endpoints: Iterable[WebhookEndpoint]):
        """
        Initialize dispatcher.

        Args:
            endpoints: Configured webhook subscribers
        """
        self.endpoints = tuple(endpoints)

    async def notify(self, event_type: str, payload: Dict[str, Any]) -> None:
        """
        Queue deliveries for an event.

        Args:
            event_type: Webhook event name
            payload: JSON-serializable payload
        """
        from core.tasks import deliver_webhook_task

        for endpoint in self.endpoints:
            if not endpoint.subscribes_to(event_type):
                continue
            await sync_to_async(deliver_webhook_task.delay)(
                {
                    "url": endpoint.url,
                    "secret": endpoint.secret,
                    "timeout": endpoint.timeout_seconds,
                    "max_retries": endpoint.max_retries,
                },
                event_type,
                payload,
            )
