#!/usr/bin/env python3
"""
Script to delete old finished games together with their questions.
Usage: python scripts/cleanup_games.py [--days N] [--dry-run]
"""
import sys
import os
import argparse
from datetime import datetime, timedelta
import pytz

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database.session import db_session
from database.queries import GameQueries
from utils.logging import get_logger, setup_logging
from utils.retry import database_retry
import config

setup_logging()
logger = get_logger(__name__)


@database_retry
def cleanup_games(days: int, dry_run: bool = False) -> int:
    """Delete games finished more than `days` days ago. Returns their number."""
    moment = datetime.now(pytz.UTC) - timedelta(days=days)
    logger.info(f"Looking for games finished before {moment:%Y-%m-%d %H:%M} UTC...")

    with db_session() as session:
        if dry_run:
            count = len(GameQueries.get_finished_games_before(session, moment))
            logger.info(f"[dry run] {count} games would be deleted")
            return count
        count = GameQueries.delete_finished_games_before(session, moment)

    logger.info(f"Deleted {count} games")
    return count


def main():
    parser = argparse.ArgumentParser(description="Delete old finished games")
    parser.add_argument("--days", type=int, default=config.config.GAMES_RETENTION_DAYS)
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()
    cleanup_games(args.days, args.dry_run)


if __name__ == "__main__":
    main()
