"""
Admin API key authentication middleware.

Operator endpoints under ``/api/v1/admin/`` require an ``X-API-Key``
header whose SHA-256 digest is listed in
``LICENSE_SERVER["ADMIN_API_KEY_HASHES"]``. Client endpoints carry the
license key in the request body and are not touched here.
"""

import hashlib
import hmac
import logging
from typing import Callable, Optional

from django.http import HttpRequest, HttpResponse, JsonResponse

from core.config import get_license_server_config

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/api/v1/admin/"


def hash_api_key(api_key: str) -> str:
    """Return the hex SHA-256 digest stored in settings for an API key."""
    return hashlib.sha256(api_key.encode()).hexdigest()


class AdminAPIKeyMiddleware:
    """
    Middleware guarding the operator API.

    This middleware:
    1. Ignores every path outside the admin prefix
    2. Reads the key from ``X-API-Key`` or a Bearer ``Authorization`` header
    3. Returns 401 Unauthorized when the key is missing or unknown
    """

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if request.path.startswith(ADMIN_PREFIX):
            denied = self._authenticate(request)
            if denied is not None:
                return denied
        return self.get_response(request)

    def _authenticate(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Authenticate an operator request.

        Args:
            request: HTTP request

        Returns:
            HttpResponse with 401 if auth fails, None if successful
        """
        api_key = request.headers.get("X-API-Key") or request.headers.get(
            "Authorization", ""
        ).replace("Bearer ", "")

        if not api_key:
            return JsonResponse(
                {"error": {"code": "unauthorized", "message": "Missing API key."}},
                status=401,
            )

        digest = hash_api_key(api_key)
        allowed = get_license_server_config().admin_api_key_hashes
        if not any(hmac.compare_digest(digest, known) for known in allowed):
            logger.warning("Invalid admin API key attempted: %s...", api_key[:4])
            return JsonResponse(
                {"error": {"code": "unauthorized", "message": "Invalid API key."}},
                status=401,
            )

        request.admin_actor = f"api_key:{digest[:8]}"  # type: ignore
        return None
