"""
Unit tests for the LICENSE_SERVER settings parser.
"""
from core.config import build_config, get_license_server_config
from core.infrastructure.rate_limiter import DEFAULT_RATE_LIMITS


class TestBuildConfig:
    """Tests for build_config."""

    def test_defaults(self):
        config = build_config()
        assert config.rate_limits == DEFAULT_RATE_LIMITS
        assert config.admin_api_key_hashes == ()
        assert config.suspicious_ip_threshold == 10
        assert config.validation_log_retention_days == 90

    def test_rate_limit_overrides(self):
        config = build_config(
            {
                "RATE_LIMITS": {
                    "validate:ip": {"requests": 5, "window": 10},
                    "status:ip": None,
                    "custom": {"requests": 1},
                }
            }
        )
        assert config.rate_limits["validate:ip"].requests == 5
        assert config.rate_limits["validate:ip"].window_seconds == 10
        assert "status:ip" not in config.rate_limits
        assert config.rate_limits["custom"].window_seconds == 60
        assert config.rate_limits["activate:ip"] == DEFAULT_RATE_LIMITS["activate:ip"]

    def test_webhooks(self):
        config = build_config(
            {
                "WEBHOOK_ENDPOINTS": [
                    {"url": "https://a.example.com", "secret": "s", "events": ["license.revoked"]}
                ]
            }
        )
        endpoint = config.webhook_endpoints[0]
        assert endpoint.subscribes_to("license.revoked")
        assert not endpoint.subscribes_to("license.created")
        assert endpoint.timeout_seconds == 10

    def test_reads_django_settings(self, settings):
        settings.LICENSE_SERVER = {
            "SUSPICIOUS_IP_THRESHOLD": 4,
            "IP_BLOCK_SECONDS": 600,
            "EMAIL_FROM": "x@example.com",
        }
        config = get_license_server_config()
        assert config.suspicious_ip_threshold == 4
        assert config.ip_block_seconds == 600
        assert config.email_from == "x@example.com"
