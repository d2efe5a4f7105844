"""
Create the TeacherConnect tables and seed rows if they are missing.

Safe to run on every deploy: tables are created only when absent and seed
rows are inserted with ON CONFLICT DO NOTHING.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import get_settings
from backend.db import PostgresDbClient
from backend.errors import StorageError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the TeacherConnect database")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    database_url = args.database_url or get_settings().database_url
    try:
        PostgresDbClient(database_url).init()
    except StorageError as exc:
        logger.error("Initialization failed: %s", exc)
        return 1
    logger.info("Initialization complete")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
