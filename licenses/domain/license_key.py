"""
License key codec.

Generates license keys, normalizes client input and derives the
fingerprint that is used for every lookup. The plaintext key is never
stored or compared directly.
"""

import hashlib
import re
import secrets
import string
from typing import Tuple

KEY_ALPHABET = string.ascii_uppercase + string.digits
KEY_GROUPS = 4
KEY_GROUP_LENGTH = 4

_KEY_PATTERN = re.compile(r"^[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}$")
_DISALLOWED_CHARACTERS = re.compile(r"[^A-Z0-9-]")


def fingerprint_license_key(plaintext: str) -> str:
    """
    Derive the lookup fingerprint for a key.

    Args:
        plaintext: Sanitized license key

    Returns:
        SHA-256 hex digest
    """
    return hashlib.sha256(plaintext.encode()).hexdigest()


def generate_license_key() -> Tuple[str, str]:
    """
    Generate a license key in format: XXXX-XXXX-XXXX-XXXX.

    Returns:
        Tuple of (plaintext, fingerprint)
    """
    parts = [
        "".join(secrets.choice(KEY_ALPHABET) for _ in range(KEY_GROUP_LENGTH))
        for _ in range(KEY_GROUPS)
    ]
    plaintext = "-".join(parts)
    return plaintext, fingerprint_license_key(plaintext)


def sanitize_license_key(raw_key: str) -> str:
    """
    Normalize client-supplied key input.

    Uppercases and drops whitespace and every character outside the key
    alphabet and the hyphen.

    Args:
        raw_key: Key as sent by the client

    Returns:
        Sanitized key (may be empty)
    """
    return _DISALLOWED_CHARACTERS.sub("", (raw_key or "").strip().upper())


def is_valid_key_format(raw_key: str) -> bool:
    """
    Check the four-group key pattern after sanitization.

    Args:
        raw_key: Key to check

    Returns:
        True if the sanitized key matches the key format
    """
    return bool(_KEY_PATTERN.match(sanitize_license_key(raw_key)))


def mask_license_key(plaintext: str) -> str:
    """
    Render a key for display, e.g. ``ABCD-****-****-WXYZ``.

    Args:
        plaintext: License key

    Returns:
        Masked key; short or malformed keys are fully masked
    """
    parts = sanitize_license_key(plaintext).split("-")
    if len(parts) != KEY_GROUPS:
        return "****-****-****-****"
    return "-".join([parts[0]] + ["****"] * (KEY_GROUPS - 2) + [parts[-1]])
