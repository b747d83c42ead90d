#!/usr/bin/env python3
"""Exception Hierarchy for Application Datastore Sync.

This module provides a structured exception hierarchy for handling errors
raised by the datastore, the higher-level creation services and the sync
use cases.

Design Principles:
    - All exceptions inherit from AppSyncError base class
    - Exceptions preserve context (original error, timestamps, details)
    - Exceptions are categorized by recoverability
    - "Not found" and "already exists" are distinct types because the sync
      protocol treats them as steady-state signals, not failures

Exception Hierarchy:
    AppSyncError (base)
    ├── ConfigurationError (unrecoverable - fix config)
    ├── DatastoreError (may be recoverable)
    │   ├── RecordNotExistError
    │   ├── RecordExistError
    │   ├── ConnectionPoolError
    │   ├── TransactionError
    │   └── IntegrityError
    ├── ServiceError
    │   └── AlreadyExistsError
    │       ├── ProjectAlreadyExistsError
    │       ├── EnvAlreadyExistsError
    │       └── TargetAlreadyExistsError
    └── SyncError (operation failed)
        └── ApplicationSyncError
"""
from datetime import datetime, timezone
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================

class AppSyncError(Exception):
    """Base exception for all sync-related errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "RECORD_NOT_EXIST")
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
        recoverable: Whether this error might be recoverable with retry
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause
        self.recoverable = recoverable

        # Chain the original exception if provided
        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.insert(0, f"[{self.code}]")
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Configuration Errors (Unrecoverable)
# ============================================

class ConfigurationError(AppSyncError):
    """Raised when configuration is missing or invalid.

    These errors require fixing configuration before retry.
    """

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )


# ============================================
# Datastore Errors
# ============================================

class DatastoreError(AppSyncError):
    """Base class for datastore-related errors."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class RecordNotExistError(DatastoreError):
    """Raised when a record looked up, updated or deleted by key is absent.

    The sync protocol reads this as "create instead of update" or
    "already deleted".
    """

    def __init__(
        self,
        message: str = "Record does not exist",
        table: Optional[str] = None,
        primary_key: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if primary_key:
            details["primary_key"] = primary_key
        super().__init__(
            message,
            code="RECORD_NOT_EXIST",
            details=details,
            recoverable=False,
            **kwargs,
        )
        self.table = table
        self.primary_key = primary_key


class RecordExistError(DatastoreError):
    """Raised when adding a record whose key is already stored."""

    def __init__(
        self,
        message: str = "Record already exists",
        table: Optional[str] = None,
        primary_key: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if primary_key:
            details["primary_key"] = primary_key
        super().__init__(
            message,
            code="RECORD_EXIST",
            details=details,
            recoverable=False,
            **kwargs,
        )
        self.table = table
        self.primary_key = primary_key


class ConnectionPoolError(DatastoreError):
    """Raised when database connection pool is exhausted or unavailable."""

    def __init__(
        self,
        message: str = "Database connection pool error",
        **kwargs,
    ):
        super().__init__(message, code="CONNECTION_POOL_ERROR", **kwargs)


class TransactionError(DatastoreError):
    """Raised when database transaction fails."""

    def __init__(
        self,
        message: str = "Database transaction failed",
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        super().__init__(
            message,
            code="TRANSACTION_ERROR",
            details=details,
            **kwargs,
        )


class IntegrityError(DatastoreError):
    """Raised when database integrity constraint is violated."""

    def __init__(
        self,
        message: str = "Database integrity error",
        constraint: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if constraint:
            details["constraint"] = constraint
        super().__init__(
            message,
            code="INTEGRITY_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )


# ============================================
# Service Errors
# ============================================

class ServiceError(AppSyncError):
    """Base class for errors raised by the higher-level creation services."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)


class AlreadyExistsError(ServiceError):
    """Raised by a creation service when the entity name is taken."""

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if name:
            details["name"] = name
        kwargs.setdefault("code", "ALREADY_EXISTS")
        super().__init__(message, details=details, **kwargs)
        self.name = name


class ProjectAlreadyExistsError(AlreadyExistsError):
    """Raised when creating a project that already exists."""

    def __init__(self, name: Optional[str] = None, **kwargs):
        super().__init__(
            "Project name already exists",
            name=name,
            code="PROJECT_EXIST",
            **kwargs,
        )


class EnvAlreadyExistsError(AlreadyExistsError):
    """Raised when creating an environment that already exists."""

    def __init__(self, name: Optional[str] = None, **kwargs):
        super().__init__(
            "Env name already exists",
            name=name,
            code="ENV_EXIST",
            **kwargs,
        )


class TargetAlreadyExistsError(AlreadyExistsError):
    """Raised when creating a target that already exists."""

    def __init__(self, name: Optional[str] = None, **kwargs):
        super().__init__(
            "Target name already exists",
            name=name,
            code="TARGET_EXIST",
            **kwargs,
        )


# ============================================
# Sync Errors
# ============================================

class SyncError(AppSyncError):
    """Base class for synchronization errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)


class ApplicationSyncError(SyncError):
    """Raised by the reconciliation driver when a sync step fails fatally.

    Attributes:
        app_name: Application being synced
        step: Name of the step that failed (e.g., "components")
    """

    def __init__(
        self,
        message: str,
        app_name: str,
        step: str,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["app"] = app_name
        details["step"] = step
        kwargs.setdefault("recoverable", True)
        super().__init__(
            message,
            code="APPLICATION_SYNC_ERROR",
            details=details,
            **kwargs,
        )
        self.app_name = app_name
        self.step = step


# ============================================
# Exports
# ============================================

__all__ = [
    # Base
    "AppSyncError",
    # Configuration
    "ConfigurationError",
    # Datastore
    "DatastoreError",
    "RecordNotExistError",
    "RecordExistError",
    "ConnectionPoolError",
    "TransactionError",
    "IntegrityError",
    # Services
    "ServiceError",
    "AlreadyExistsError",
    "ProjectAlreadyExistsError",
    "EnvAlreadyExistsError",
    "TargetAlreadyExistsError",
    # Sync
    "SyncError",
    "ApplicationSyncError",
]
