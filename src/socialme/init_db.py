"""Create (or recreate) the SocialMe tables without running migrations."""
from __future__ import annotations

import argparse
import logging

from socialme.core.settings import settings
from socialme.db.session import create_tables, drop_tables

logger = logging.getLogger(__name__)


def init_db(*, drop: bool = False) -> None:
    """Create every table of the entity graph, optionally dropping them first."""
    if drop:
        drop_tables()
        logger.warning("Dropped all tables on %s", settings.effective_database_url)
    create_tables()
    logger.info("Tables ready on %s", settings.effective_database_url)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="drop existing tables before creating them (destroys data)",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level.upper())
    init_db(drop=args.drop_tables)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
