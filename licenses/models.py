from licenses.infrastructure.models import AuditLog, License  # noqa: F401
