"""
Database utilities shared by the Django repository adapters.
"""

import functools
import logging
from typing import Callable, TypeVar

from django.db import DatabaseError, IntegrityError

from core.domain.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


def store_operation(func: F) -> F:
    """
    Translate infrastructure failures into StoreUnavailableError.

    Adapters map the constraint violations they expect to domain errors
    inside the wrapped call. Any integrity error that still escapes is
    treated like other database failures.

    Usage:
        @sync_to_async
        @store_operation
        def find_by_id(self, license_id):
            ...
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError as e:
            logger.error(
                "Unexpected integrity error in %s: %s", func.__name__, e, exc_info=True
            )
            raise StoreUnavailableError() from e
        except DatabaseError as e:
            logger.error("Store operation %s failed: %s", func.__name__, e, exc_info=True)
            raise StoreUnavailableError() from e

    return wrapper  # type: ignore[return-value]
