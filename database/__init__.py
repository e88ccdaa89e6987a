"""
Database module for Millionaire Trivia.
Contains models, database session management, and queries.
"""
from database.session import get_db_session, DatabaseSession
from database.models import (
    ANSWER_LETTERS,
    User,
    Question,
    Game,
    GameQuestion,
)

__all__ = [
    "get_db_session",
    "DatabaseSession",
    "ANSWER_LETTERS",
    "User",
    "Question",
    "Game",
    "GameQuestion",
]
