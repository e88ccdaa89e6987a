#!/usr/bin/env python3
"""
Script to import questions from a JSON file into the question bank.
Usage: python scripts/import_questions_from_json.py [path_to_json_file]
"""
import sys
import os
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database.session import db_session
from questions.importer import import_questions, load_questions_file
from utils.errors import MillionaireError
from utils.logging import setup_logging, get_logger
from sqlalchemy.exc import SQLAlchemyError

setup_logging()
logger = get_logger(__name__)


def main():
    """Import questions and print statistics."""
    if len(sys.argv) > 1:
        json_file = sys.argv[1]
    else:
        # By default look for questions_data.json in the project root
        json_file = Path(__file__).parent.parent / "questions_data.json"

    if not Path(json_file).exists():
        print(f"[ERROR] File not found: {json_file}")
        print(f"Usage: python {sys.argv[0]} [path_to_json_file]")
        sys.exit(1)

    print("=" * 60)
    print("IMPORTING QUESTIONS")
    print("=" * 60)
    print(f"File: {json_file}")
    print()

    try:
        records = load_questions_file(str(json_file))
        with db_session() as session:
            stats = import_questions(session, records)
    except (MillionaireError, SQLAlchemyError, ValueError) as e:
        logger.error(f"Import failed: {e}", exc_info=True)
        print(f"\n[ERROR] Import failed: {e}")
        sys.exit(1)

    print()
    print("=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"Questions in file: {stats['total']}")
    print(f"Imported: {stats['imported']}")
    print(f"Skipped (duplicates): {stats['skipped']}")
    print(f"Invalid: {stats['errors']}")
    print("=" * 60)

    if stats["imported"] == 0:
        print("\n[WARNING] No questions were imported")


if __name__ == "__main__":
    main()
