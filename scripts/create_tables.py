#!/usr/bin/env python
"""
Script to create the game tables and report question bank coverage.
Usage: python scripts/create_tables.py [--recreate]
"""
import sys
import argparse
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError
from database.session import get_db_session
from game.prizes import DEFAULT_PRIZE_TABLE
from questions.manager import QuestionManager
from utils.errors import MillionaireError
from utils.logging import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Create database tables")
    parser.add_argument(
        "--recreate",
        action="store_true",
        help="drop existing tables first (deletes all players, games and questions)"
    )
    args = parser.parse_args()

    try:
        db = get_db_session()
        if args.recreate:
            logger.warning("Dropping all tables...")
            db.drop_tables()
        db.create_tables()
        logger.info("Database tables are ready")

        with db.get_session() as session:
            missing = QuestionManager().missing_levels(session, DEFAULT_PRIZE_TABLE.levels)
    except (SQLAlchemyError, MillionaireError) as e:
        logger.error(f"Error creating tables: {e}")
        sys.exit(1)

    if missing:
        logger.warning(
            f"No questions for levels {missing}: games cannot be created until "
            f"questions are imported (scripts/import_questions_from_json.py)"
        )


if __name__ == "__main__":
    main()
