#!/usr/bin/env python3
"""
Backfill missing data on appointment documents in Firestore.

Usage:
    python scripts/migrate_appointments.py user-data
    python scripts/migrate_appointments.py pricing --dry-run
    python scripts/migrate_appointments.py user-data --json > run.json

Reads Firebase credentials and collection names from the same environment
variables / .env file as the API (FIREBASE_CREDENTIALS_PATH, FIREBASE_CONFIG_JSON,
APPOINTMENTS_COLLECTION, ...).
"""

import argparse
import asyncio
import sys

import structlog

from app.config import settings
from app.core.exceptions import AppException
from app.core.firebase import initialize_firebase
from app.database import DocumentStore, get_document_store
from app.middleware.logging import configure_logging
from app.schemas.migrations import MigrationPolicy, MigrationRun
from app.services.migration_service import MigrationService, format_report

logger = structlog.get_logger(__name__)


async def run_migration(
    store: DocumentStore,
    policy: MigrationPolicy,
    dry_run: bool = False,
) -> MigrationRun:
    """Run one reconciliation policy against the given store."""
    service = MigrationService.from_settings(store, settings)
    return await service.run(policy, dry_run=dry_run)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Backfill missing patient or pricing data on appointments",
    )
    parser.add_argument(
        "policy",
        choices=[policy.value for policy in MigrationPolicy],
        help="user-data: fill userName/userEmail/userPhone; pricing: fill amount/serviceCategory",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing to Firestore",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full run as JSON instead of a text report",
    )
    parser.add_argument(
        "--log-format",
        default="console",
        choices=["console", "json"],
        help="Log output format (default: console)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, store: DocumentStore | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(log_format=args.log_format, stream=sys.stderr)

    if store is None:
        initialize_firebase(
            settings.firebase_credentials_path,
            settings.firebase_config_json,
            settings.firebase_project_id,
        )
        store = get_document_store()

    try:
        run = asyncio.run(run_migration(store, MigrationPolicy(args.policy), args.dry_run))
    except AppException as e:
        logger.error("migration_aborted", policy=args.policy, error=e.message)
        print(f"❌ Migration failed: {e.message}", file=sys.stderr)
        return 1

    if args.json:
        print(run.model_dump_json(indent=2))
    else:
        print(format_report(run))

    return 0


if __name__ == "__main__":
    sys.exit(main())
