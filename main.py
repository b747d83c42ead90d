#!/usr/bin/env python3
"""Application Datastore Sync CLI.

This module provides a command-line interface for reconciling one
application's desired state, serialized as JSON, against the PostgreSQL
datastore. A dry-run mode runs the same sync against an in-memory
datastore to show what would be written.

Environment Variables:
    - DATABASE_URL: PostgreSQL connection string (not needed for --dry-run)
    - SYNC_MAX_RETRIES, SYNC_RETRY_DELAY_SECONDS: whole-app retry policy
    - SYNC_CREATE_PROJECTS: create missing projects (default true)
    - LOG_LEVEL: logging level (default INFO)

Example Usage:
    $ python main.py app.json                    # Sync into PostgreSQL
    $ python main.py app.json --init-schema      # Create the table first
    $ python main.py app.json --dry-run          # Sync into memory only
"""
import argparse
import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Local imports
from appsync.config import SyncConfig
from appsync.datastore.database import close_pool, create_pool
from appsync.datastore.exceptions import AppSyncError, ConfigurationError
from appsync.sync.adapters import (
    DatastoreEnvService,
    DatastoreProjectService,
    DatastoreTargetService,
    EntityRecordMapper,
    InMemoryDataStore,
    PostgresDataStore,
)
from appsync.sync.domain.ports import IDataStore
from appsync.sync.use_cases import SyncApplicationUseCase

logger = logging.getLogger(__name__)


def load_envelope(path: str):
    """Load a serialized application envelope from a JSON file.

    Raises:
        ConfigurationError: If the file cannot be read or does not hold
            a valid envelope
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        return EntityRecordMapper().envelope_from_dict(raw)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
        raise ConfigurationError(
            f"Invalid application envelope {path}: {e}",
            details={"path": path},
            cause=e,
        )


def build_use_case(datastore: IDataStore, config: SyncConfig) -> SyncApplicationUseCase:
    """Wire the sync use case to a datastore and its creation services."""
    return SyncApplicationUseCase(
        datastore=datastore,
        env_service=DatastoreEnvService(datastore),
        target_service=DatastoreTargetService(datastore),
        project_service=DatastoreProjectService(datastore) if config.create_projects else None,
        max_attempts=config.max_retries,
        retry_delay=config.retry_delay_seconds,
    )


async def run_sync(args: argparse.Namespace, config: SyncConfig) -> int:
    """Main sync orchestration function.

    Args:
        args: Parsed command-line arguments
        config: Loaded configuration

    Returns:
        Process exit code
    """
    app = load_envelope(args.envelope)

    pool = None
    if args.dry_run:
        datastore: IDataStore = InMemoryDataStore()
    else:
        pool = await create_pool(
            config.database_url,
            min_size=config.pool_min_size,
            max_size=config.pool_max_size,
        )
        datastore = PostgresDataStore(pool)
        if args.init_schema:
            await datastore.ensure_schema()

    try:
        result = await build_use_case(datastore, config).execute(app)
    finally:
        await close_pool(pool)

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


def main():
    parser = argparse.ArgumentParser(
        description="Reconcile an application's desired state into the datastore",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py app.json                 # Sync into PostgreSQL
  python main.py app.json --init-schema   # Create the records table, then sync
  python main.py app.json --dry-run       # Sync into an in-memory datastore
        """
    )
    parser.add_argument(
        "envelope",
        metavar="FILE",
        help="JSON file holding the application's desired state"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Use an in-memory datastore (no database required)"
    )
    parser.add_argument(
        "--init-schema",
        action="store_true",
        help="Create the datastore table if it does not exist"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = SyncConfig()
        config.validate(require_database=not args.dry_run)
        exit_code = asyncio.run(run_sync(args, config))
    except AppSyncError as e:
        logger.error(f"Sync failed: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
