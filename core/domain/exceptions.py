"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions. The ``code`` of each
exception is the machine-readable reason code surfaced to callers.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class LicenseException(DomainException):
    """Base exception for license-related errors."""

    pass


class LicenseNotFoundError(LicenseException):
    """Raised when a license is not found."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="license_not_found")


class InvalidLicenseKeyFormatError(LicenseException):
    """Raised when a license key does not match the key format."""

    def __init__(self, message: str = "Invalid license key format"):
        super().__init__(message, code="invalid_key_format")


class InvalidLicenseStatusError(LicenseException):
    """Raised when a license operation is invalid for the current status."""

    def __init__(self, message: str = "Invalid license status transition"):
        super().__init__(message, code="invalid_status_transition")


class DuplicateKeyFingerprintError(LicenseException):
    """Raised by the store when a key fingerprint is already taken."""

    def __init__(self, message: str = "License key fingerprint already exists"):
        super().__init__(message, code="duplicate_fingerprint")


class ActivationException(DomainException):
    """Base exception for activation-related errors."""

    pass


class ActivationNotFoundError(ActivationException):
    """Raised when an activation is not found."""

    def __init__(self, message: str = "Activation not found"):
        super().__init__(message, code="activation_not_found")


class MaxActivationsReachedError(ActivationException):
    """Raised when a license has no free activation slots."""

    def __init__(self, message: str = "Maximum activations reached"):
        super().__init__(message, code="max_activations_reached")


class ActivationConflictError(ActivationException):
    """Raised when another request already holds the slot for a site."""

    def __init__(self, message: str = "Site already has an active activation"):
        super().__init__(message, code="activation_conflict")


class InvalidSiteUrlError(ActivationException):
    """Raised when a site URL normalizes to an empty identity."""

    def __init__(self, message: str = "Invalid site URL"):
        super().__init__(message, code="invalid_site_url")


class StoreUnavailableError(DomainException):
    """Raised when the backing store cannot serve a request."""

    def __init__(self, message: str = "License store unavailable"):
        super().__init__(message, code="store_unavailable")
