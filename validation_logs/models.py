from validation_logs.infrastructure.models import ValidationLog  # noqa: F401
