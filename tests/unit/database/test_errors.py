"""
Tests for classifying database errors caused by an un-migrated schema.
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from database.errors import is_missing_relation_error


class FakeDriverError(Exception):
    """Stands in for a driver exception exposing a SQLSTATE."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


class TestMissingRelation:

    def test_postgres_sqlstate(self):
        orig = FakeDriverError("boom", sqlstate="42P01")
        exc = ProgrammingError("SELECT * FROM application_logs", {}, orig)

        assert is_missing_relation_error(exc)

    @pytest.mark.parametrize("message", [
        'relation "application_logs" does not exist',
        "no such table: application_logs",
        "table application_logs does not exist",
    ])
    def test_message_markers(self, message):
        exc = OperationalError("SELECT 1", {}, Exception(message))
        assert is_missing_relation_error(exc)

    def test_plain_exception_with_code(self):
        exc = FakeDriverError("undefined")
        exc.code = "42P01"
        assert is_missing_relation_error(exc)

    def test_unrelated_error(self):
        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email"))
        assert not is_missing_relation_error(exc)

    def test_other_sqlstate(self):
        orig = FakeDriverError("duplicate key value", sqlstate="23505")
        exc = IntegrityError("INSERT", {}, orig)

        assert not is_missing_relation_error(exc)

    def test_statement_text_is_ignored(self):
        orig = FakeDriverError("division by zero", sqlstate="22012")
        exc = OperationalError("SELECT relation_type FROM things", {}, orig)

        assert not is_missing_relation_error(exc)
