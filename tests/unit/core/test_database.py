"""
Unit tests for store_operation.
"""
import pytest
from django.db import IntegrityError, OperationalError

from core.domain.exceptions import DuplicateKeyFingerprintError, StoreUnavailableError
from core.infrastructure.database import store_operation


class TestStoreOperation:
    """Tests for store_operation."""

    def test_returns_result(self):
        assert store_operation(lambda: 42)() == 42

    def test_database_error(self):
        @store_operation
        def lookup():
            raise OperationalError("connection refused")

        with pytest.raises(StoreUnavailableError):
            lookup()

    def test_unmapped_integrity_error(self):
        @store_operation
        def insert():
            raise IntegrityError("null value in column")

        with pytest.raises(StoreUnavailableError):
            insert()

    def test_domain_errors_pass_through(self):
        @store_operation
        def insert():
            raise DuplicateKeyFingerprintError()

        with pytest.raises(DuplicateKeyFingerprintError):
            insert()
