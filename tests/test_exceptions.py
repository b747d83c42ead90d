"""Tests for the sync exception hierarchy."""

import asyncpg

from appsync.datastore.database import convert_db_exception
from appsync.datastore.exceptions import (
    AlreadyExistsError,
    ApplicationSyncError,
    AppSyncError,
    ConfigurationError,
    ConnectionPoolError,
    DatastoreError,
    EnvAlreadyExistsError,
    IntegrityError,
    ProjectAlreadyExistsError,
    RecordExistError,
    RecordNotExistError,
    TargetAlreadyExistsError,
    TransactionError,
)
from appsync.datastore.resilience import DEFAULT_RETRYABLE_EXCEPTIONS


class TestExceptionHierarchy:
    """Test type relationships the sync protocol relies on."""

    def test_not_found_and_exists_are_datastore_errors(self):
        assert issubclass(RecordNotExistError, DatastoreError)
        assert issubclass(RecordExistError, DatastoreError)
        assert not issubclass(RecordNotExistError, RecordExistError)

    def test_already_exists_variants(self):
        for cls, code in (
            (ProjectAlreadyExistsError, "PROJECT_EXIST"),
            (EnvAlreadyExistsError, "ENV_EXIST"),
            (TargetAlreadyExistsError, "TARGET_EXIST"),
        ):
            error = cls(name="x")
            assert isinstance(error, AlreadyExistsError)
            assert error.code == code
            assert error.details == {"name": "x"}

    def test_recoverability_defaults(self):
        assert DatastoreError("boom").recoverable is True
        assert RecordNotExistError().recoverable is False
        assert ConfigurationError("bad").recoverable is False


class TestAppSyncError:
    """Test the base error formatting."""

    def test_str_includes_code_and_details(self):
        error = RecordNotExistError(table="application", primary_key="demo")

        assert str(error) == (
            "[RECORD_NOT_EXIST] Record does not exist (table=application, primary_key=demo)"
        )

    def test_cause_is_chained(self):
        cause = ValueError("low level")
        error = AppSyncError("wrapped", cause=cause)

        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "low level"

    def test_application_sync_error_details(self):
        error = ApplicationSyncError("failed", app_name="demo", step="env")

        assert error.details == {"app": "demo", "step": "env"}
        assert error.to_dict()["error_type"] == "ApplicationSyncError"

    def test_configuration_error_lists_missing_keys(self):
        error = ConfigurationError("missing", missing_keys=["DATABASE_URL"])

        assert error.details["missing_keys"] == ["DATABASE_URL"]


class TestConvertDbException:
    """Test asyncpg error conversion."""

    def test_datastore_errors_pass_through(self):
        error = RecordExistError()
        assert convert_db_exception(error) is error

    def test_unique_violation_is_record_exist(self):
        cause = asyncpg.UniqueViolationError("duplicate key value")
        converted = convert_db_exception(cause)

        assert isinstance(converted, RecordExistError)
        assert converted.__cause__ is cause

    def test_not_null_violation_is_integrity_error(self):
        converted = convert_db_exception(asyncpg.NotNullViolationError("null payload"))
        assert isinstance(converted, IntegrityError)

    def test_deadlock_is_retryable_transaction_error(self):
        converted = convert_db_exception(asyncpg.DeadlockDetectedError("deadlock detected"))

        assert isinstance(converted, TransactionError)
        assert isinstance(converted, DEFAULT_RETRYABLE_EXCEPTIONS)

    def test_dropped_connection_is_pool_error(self):
        converted = convert_db_exception(ConnectionResetError("reset by peer"))
        assert isinstance(converted, ConnectionPoolError)

    def test_unknown_error(self):
        cause = RuntimeError("bad cast")
        converted = convert_db_exception(cause)

        assert type(converted) is DatastoreError
        assert converted.cause is cause
