"""
App configuration for PluginLicenseServer.
"""

import logging
import os
import sys

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)

SKIPPED_COMMANDS = {"migrate", "makemigrations", "collectstatic", "shell", "check"}


class PluginLicenseServerConfig(AppConfig):
    """App configuration for PluginLicenseServer."""

    name = "PluginLicenseServer"
    verbose_name = "Plugin License Server"

    def ready(self):
        """Set up tracing once Django has loaded its apps."""
        if not settings.OPENTELEMETRY_ENABLED:
            return
        if len(sys.argv) > 1 and sys.argv[1] in SKIPPED_COMMANDS:
            return
        # Django's autoreloader imports the project twice
        if os.environ.get("RUN_MAIN") == "false":
            return

        from core.instrumentation import setup_opentelemetry

        logger.info("Setting up observability...")
        setup_opentelemetry()
