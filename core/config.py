"""
Typed access to the ``LICENSE_SERVER`` settings block.

Only the composition root and infrastructure adapters read this; the
domain and application layers receive plain values through their
constructors.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from django.conf import settings

from core.infrastructure.rate_limiter import DEFAULT_RATE_LIMITS, RateLimitRule

DEFAULT_PROXY_HEADERS = ("HTTP_CF_CONNECTING_IP", "HTTP_X_FORWARDED_FOR", "HTTP_X_REAL_IP")


@dataclass(frozen=True)
class WebhookEndpoint:
    """A webhook subscriber."""

    url: str
    secret: str
    events: Tuple[str, ...] = ()
    timeout_seconds: int = 10
    max_retries: int = 3

    def subscribes_to(self, event_type: str) -> bool:
        """Empty ``events`` subscribes to everything."""
        return not self.events or event_type in self.events


@dataclass(frozen=True)
class LicenseServerConfig:
    """Service configuration."""

    rate_limits: Dict[str, RateLimitRule] = field(
        default_factory=lambda: dict(DEFAULT_RATE_LIMITS)
    )
    admin_api_key_hashes: Tuple[str, ...] = ()
    webhook_endpoints: Tuple[WebhookEndpoint, ...] = ()
    trusted_proxy_headers: Tuple[str, ...] = DEFAULT_PROXY_HEADERS
    suspicious_ip_threshold: int = 10
    suspicious_ip_window_minutes: int = 60
    ip_block_seconds: int = 3600
    validation_log_retention_days: int = 90
    email_from: str = "licenses@localhost"


def _parse_rate_limits(raw: Mapping[str, Any]) -> Dict[str, RateLimitRule]:
    rules = dict(DEFAULT_RATE_LIMITS)
    for bucket, rule in raw.items():
        if rule is None:
            rules.pop(bucket, None)
            continue
        rules[bucket] = RateLimitRule(
            requests=int(rule["requests"]),
            window_seconds=int(rule.get("window", 60)),
        )
    return rules


def _parse_webhooks(raw: List[Mapping[str, Any]]) -> Tuple[WebhookEndpoint, ...]:
    return tuple(
        WebhookEndpoint(
            url=item["url"],
            secret=item["secret"],
            events=tuple(item.get("events", ())),
            timeout_seconds=int(item.get("timeout", 10)),
            max_retries=int(item.get("max_retries", 3)),
        )
        for item in raw
    )


def build_config(raw: Optional[Mapping[str, Any]] = None) -> LicenseServerConfig:
    """
    Build a config from a ``LICENSE_SERVER``-shaped mapping.

    Args:
        raw: Settings mapping; missing keys fall back to defaults

    Returns:
        LicenseServerConfig
    """
    raw = raw or {}
    defaults = LicenseServerConfig()
    return LicenseServerConfig(
        rate_limits=_parse_rate_limits(raw.get("RATE_LIMITS", {})),
        admin_api_key_hashes=tuple(raw.get("ADMIN_API_KEY_HASHES", ())),
        webhook_endpoints=_parse_webhooks(raw.get("WEBHOOK_ENDPOINTS", [])),
        trusted_proxy_headers=tuple(
            raw.get("TRUSTED_PROXY_HEADERS", defaults.trusted_proxy_headers)
        ),
        suspicious_ip_threshold=int(
            raw.get("SUSPICIOUS_IP_THRESHOLD", defaults.suspicious_ip_threshold)
        ),
        suspicious_ip_window_minutes=int(
            raw.get("SUSPICIOUS_IP_WINDOW_MINUTES", defaults.suspicious_ip_window_minutes)
        ),
        ip_block_seconds=int(raw.get("IP_BLOCK_SECONDS", defaults.ip_block_seconds)),
        validation_log_retention_days=int(
            raw.get("VALIDATION_LOG_RETENTION_DAYS", defaults.validation_log_retention_days)
        ),
        email_from=raw.get("EMAIL_FROM", defaults.email_from),
    )


def get_license_server_config() -> LicenseServerConfig:
    """Read ``settings.LICENSE_SERVER``."""
    return build_config(getattr(settings, "LICENSE_SERVER", {}))
