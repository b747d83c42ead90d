#!/usr/bin/env python3
"""Database Utilities for the application datastore.

This module provides the asyncpg plumbing the Postgres datastore needs:
    - Connection and transaction context managers
    - Conversion of asyncpg errors into the datastore exception hierarchy
    - Pool creation and shutdown

Example:
    async with database_transaction(pool) as conn:
        await conn.execute(SCHEMA_SQL)
        # Commit on success, rollback on exception
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import asyncpg

from .exceptions import (
    ConnectionPoolError,
    DatastoreError,
    IntegrityError,
    RecordExistError,
    TransactionError,
)

logger = logging.getLogger(__name__)

ACQUIRE_TIMEOUT_SECONDS = 30.0
POOL_CLOSE_TIMEOUT_SECONDS = 10.0


async def _acquire(pool) -> Any:
    if pool is None:
        raise ConnectionPoolError("Database connection pool is not initialized")
    try:
        return await asyncio.wait_for(pool.acquire(), timeout=ACQUIRE_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        raise ConnectionPoolError(
            "Timeout acquiring database connection",
            details={"timeout_seconds": ACQUIRE_TIMEOUT_SECONDS},
        )
    except Exception as e:
        raise ConnectionPoolError(
            f"Failed to acquire database connection: {e}",
            cause=e,
        )


# ============================================
# Connection Context Managers
# ============================================

@asynccontextmanager
async def database_connection(pool) -> AsyncIterator[Any]:
    """Borrow a pooled connection for single statements.

    Every datastore operation is one statement, which asyncpg runs
    atomically, so no explicit transaction is needed.

    Raises:
        ConnectionPoolError: If no connection can be acquired
    """
    conn = await _acquire(pool)
    try:
        yield conn
    finally:
        await pool.release(conn)


@asynccontextmanager
async def database_transaction(pool) -> AsyncIterator[Any]:
    """Borrow a pooled connection inside a transaction.

    Commits when the block exits cleanly and rolls back otherwise. Errors
    raised in the block are converted with ``convert_db_exception``.

    Raises:
        ConnectionPoolError: If no connection can be acquired
        TransactionError: If the transaction cannot be started
    """
    conn = await _acquire(pool)
    try:
        transaction = conn.transaction()
        try:
            await transaction.start()
        except Exception as e:
            raise TransactionError(
                f"Failed to start transaction: {e}",
                operation="start",
                cause=e,
            )

        try:
            yield conn
        except Exception as e:
            try:
                await transaction.rollback()
            except Exception as rollback_error:
                logger.error(f"Rollback failed: {rollback_error}")
            raise convert_db_exception(e)
        await transaction.commit()
    finally:
        await pool.release(conn)


# ============================================
# Error Conversion
# ============================================

def convert_db_exception(e: Exception) -> DatastoreError:
    """Map an asyncpg error onto the datastore exception hierarchy.

    A unique violation on the records table means the key is already
    stored, which the sync protocol reads as RecordExistError.
    """
    if isinstance(e, DatastoreError):
        return e
    if isinstance(e, asyncpg.UniqueViolationError):
        return RecordExistError(
            f"Record already exists: {e}",
            details={"constraint": getattr(e, "constraint_name", None)},
            cause=e,
        )
    if isinstance(e, asyncpg.IntegrityConstraintViolationError):
        return IntegrityError(
            f"Integrity constraint violated: {e}",
            constraint=getattr(e, "constraint_name", None),
            cause=e,
        )
    if isinstance(e, (asyncpg.DeadlockDetectedError, asyncpg.SerializationError)):
        return TransactionError(
            f"Concurrent update conflict: {e}",
            operation="statement",
            cause=e,
        )
    if isinstance(e, (asyncio.TimeoutError, asyncpg.QueryCanceledError)):
        return TransactionError(
            f"Database operation timed out: {e}",
            operation="query",
            cause=e,
        )
    if isinstance(e, (asyncpg.PostgresConnectionError, asyncpg.InterfaceError, OSError)):
        return ConnectionPoolError(
            f"Database connection lost: {e}",
            cause=e,
        )
    return DatastoreError(
        f"Database operation failed: {e}",
        cause=e,
    )


# ============================================
# Connection Pool Helpers
# ============================================

async def create_pool(database_url: str, min_size: int = 2, max_size: int = 10):
    """Create the asyncpg connection pool.

    Raises:
        ConnectionPoolError: If the database cannot be reached
    """
    try:
        pool = await asyncpg.create_pool(
            database_url,
            min_size=min_size,
            max_size=max_size,
        )
    except Exception as e:
        raise ConnectionPoolError(
            f"Failed to create database pool: {e}",
            cause=e,
        )
    logger.info(f"Database pool created (min={min_size}, max={max_size})")
    return pool


async def close_pool(pool) -> None:
    """Close the pool, terminating it if connections do not drain in time."""
    if pool is None:
        return
    try:
        await asyncio.wait_for(pool.close(), timeout=POOL_CLOSE_TIMEOUT_SECONDS)
        logger.info("Database pool closed")
    except asyncio.TimeoutError:
        logger.warning(
            f"Pool close timed out after {POOL_CLOSE_TIMEOUT_SECONDS}s, terminating"
        )
        pool.terminate()


__all__ = [
    "ACQUIRE_TIMEOUT_SECONDS",
    "database_connection",
    "database_transaction",
    "convert_db_exception",
    "create_pool",
    "close_pool",
]
