#!/usr/bin/env python3
"""
Bootstrap script for flowsync.

Runs once against a fresh platform database, before the platform starts:
1. Check configuration (database settings, encryption key, manifest)
2. Verify the database connection
3. Create the owner account and service API key
4. Materialize manifest credentials

Usage:
    python scripts/bootstrap.py

Exit codes:
    0 - Success (individual credentials may still have been skipped or failed)
    1 - Configuration error
    2 - Database connection failure
"""

from __future__ import annotations

import asyncio
import logging
import sys

# Configure logging first
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [bootstrap] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logger = logging.getLogger("bootstrap")

from flowsync.config import get_settings  # noqa: E402
from flowsync.core.database import check_connection, close_db, get_db_context  # noqa: E402
from flowsync.core.exceptions import ConfigurationError, ManifestError  # noqa: E402
from flowsync.services.bootstrap import BootstrapReconciler, BootstrapSummary  # noqa: E402


def log_summary(summary: BootstrapSummary) -> None:
    logger.info("")
    logger.info("=" * 60)
    logger.info("Bootstrap Completed")
    logger.info(f"  - Owner: {'created' if summary.owner_created else 'unchanged'}")
    logger.info(f"  - Service API key: {'created' if summary.api_key_created else 'reused'}")
    logger.info(f"  - Credentials created: {summary.created}")
    logger.info(f"  - Credentials updated: {summary.updated}")
    logger.info(f"  - Credentials skipped: {summary.skipped}")
    if summary.skipped_names:
        logger.info(f"      {', '.join(summary.skipped_names)}")
    logger.info(f"  - Credentials failed: {summary.failed}")
    if summary.failed_names:
        logger.info(f"      {', '.join(summary.failed_names)}")
    logger.info("=" * 60)


async def main() -> int:
    """
    Main entry point for the bootstrap.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logger.info("=" * 60)
    logger.info("flowsync Bootstrap Starting")
    logger.info("=" * 60)

    settings = get_settings()

    # Step 1: Connection
    logger.info("")
    logger.info("Step 1/3: Database Connection")
    logger.info("-" * 40)

    try:
        await check_connection(settings)
    except ConfigurationError as e:
        logger.error(f"FAILED: {e.message}")
        return 1
    except Exception as e:
        logger.error(f"FAILED: Could not connect to database - {e}")
        await close_db()
        return 2

    try:
        async with get_db_context(settings) as session:
            reconciler = BootstrapReconciler(session, settings)

            try:
                manifest = reconciler.check_configuration()
            except (ConfigurationError, ManifestError) as e:
                logger.error(f"FAILED: {e}")
                return 1

            summary = BootstrapSummary()

            # Step 2: Owner account
            logger.info("")
            logger.info("Step 2/3: Owner Account")
            logger.info("-" * 40)
            await reconciler.ensure_owner_account(summary)

            # Step 3: Credentials
            logger.info("")
            logger.info("Step 3/3: Credentials")
            logger.info("-" * 40)
            if manifest is None:
                logger.info("No manifest, nothing to materialize")
            else:
                await reconciler.materialize_credentials(manifest, summary)
    finally:
        await close_db()

    log_summary(summary)
    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
