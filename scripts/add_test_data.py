#!/usr/bin/env python
"""
Script to add test data to database.
Creates generated questions for every level so games can be played locally.
Usage: python scripts/add_test_data.py [questions_per_level]
"""
import sys
import random
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from database.session import db_session
from database.queries import QuestionQueries
from questions.importer import import_questions
from game.prizes import DEFAULT_PRIZE_TABLE
from utils.logging import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


def generate_questions(per_level: int, rng: random.Random) -> list:
    """Generate simple arithmetic questions, harder on higher levels."""
    records = []
    for level in DEFAULT_PRIZE_TABLE.levels:
        for _ in range(per_level):
            x = rng.randint(1, 10 ** (1 + level // 5))
            y = rng.randint(1, 10 ** (1 + level // 5))
            correct = x + y
            wrong = rng.sample([n for n in range(correct - 10, correct + 11) if n != correct], 3)
            records.append({
                "level": level,
                "text": f"Сколько будет {x} + {y}?",
                "answer1": str(correct),
                "answer2": str(wrong[0]),
                "answer3": str(wrong[1]),
                "answer4": str(wrong[2]),
            })
    return records


def main():
    """Add test questions."""
    per_level = int(sys.argv[1]) if len(sys.argv) > 1 else 4
    logger.info(f"Adding {per_level} test questions per level...")

    with db_session() as session:
        stats = import_questions(session, generate_questions(per_level, random.Random()))
        counts = QuestionQueries.count_by_level(session)

    logger.info(f"Imported {stats['imported']}, skipped {stats['skipped']}")
    for level in DEFAULT_PRIZE_TABLE.levels:
        logger.info(f"Level {level}: {counts.get(level, 0)} questions")


if __name__ == "__main__":
    main()
