#!/usr/bin/env python3
"""
Compare image rows with stored objects.
Reports rows whose object is gone and files no row references; --apply removes both.
"""

import asyncio
import sys
import argparse
import logging

from marketplace.config import settings
from marketplace.database import AsyncSessionLocal, close_db_connection
from marketplace.services.reconciliation import ReconciliationService
from marketplace.utils.exceptions import APIException

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def run(apply: bool) -> int:
    async with AsyncSessionLocal() as session:
        try:
            report = await ReconciliationService(session, settings).run(dry_run=not apply)
        finally:
            await close_db_connection()

    logger.info(f"Checked {report.checked} image rows")
    for entry in report.missing_objects:
        logger.info(f"Missing object: image {entry.get('image_id')} -> {entry.get('image_url')}")
    for path in report.orphaned_files:
        logger.info(f"Orphaned file: {path}")

    if report.dry_run:
        logger.info(
            f"Dry run: {len(report.missing_objects)} missing objects, "
            f"{len(report.orphaned_files)} orphaned files. Re-run with --apply to remove them."
        )
    else:
        logger.info(f"Removed {report.removed_rows} rows and {report.removed_files} files")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Reconcile image rows with stored objects")
    parser.add_argument("--apply", action="store_true", help="Delete what the report finds")
    args = parser.parse_args()

    try:
        sys.exit(asyncio.run(run(args.apply)))
    except APIException as e:
        logger.error(f"Reconciliation failed: {e.detail}")
        sys.exit(1)


if __name__ == "__main__":
    main()
