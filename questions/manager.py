"""
Question manager - supplies bank questions to new games.
"""
from typing import Optional, Protocol
from sqlalchemy.orm import Session
from database.models import Question
from database.queries import QuestionQueries
from utils.logging import get_logger

logger = get_logger(__name__)


class QuestionProvider(Protocol):
    """Anything able to pick a question for a level."""

    def fetch_random_question(self, session: Session, level: int) -> Optional[Question]:
        ...


class QuestionManager:
    """Picks random questions from the question bank table."""

    def fetch_random_question(self, session: Session, level: int) -> Optional[Question]:
        """
        Get a random question for a level.

        Args:
            session: Open database session
            level: Question level (0-indexed)

        Returns:
            Question object or None if the bank has no question of that level
        """
        question = QuestionQueries.get_random_question(session, level)
        if question is None:
            logger.warning(f"Question bank has no questions for level {level}")
        return question

    def missing_levels(self, session: Session, levels) -> list:
        """Levels from the given range with no questions in the bank."""
        counts = QuestionQueries.count_by_level(session)
        return [level for level in levels if not counts.get(level)]
