from activations.infrastructure.models import Activation  # noqa: F401
