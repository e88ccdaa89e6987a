"""
Database query helpers - common database operations.
"""
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func, desc
from database.models import User, Game, Question


class UserQueries:
    """User-related database queries."""

    @staticmethod
    def get_or_create_user(
        session: Session,
        telegram_id: int,
        username: Optional[str] = None,
        full_name: Optional[str] = None
    ) -> User:
        """Get or create user by telegram_id."""
        user = session.query(User).filter(User.telegram_id == telegram_id).first()
        if not user:
            user = User(
                telegram_id=telegram_id,
                username=username,
                full_name=full_name,
                balance=0
            )
            session.add(user)
            session.flush()
        else:
            # Update username and full_name if changed
            if username:
                user.username = username
            if full_name:
                user.full_name = full_name
            session.flush()
        return user

    @staticmethod
    def get_user_by_telegram_id(session: Session, telegram_id: int) -> Optional[User]:
        """Get user by telegram_id."""
        return session.query(User).filter(User.telegram_id == telegram_id).first()

    @staticmethod
    def get_balance_top(session: Session, limit: int = 10) -> List[User]:
        """Get richest players, ties broken by who joined first."""
        return (
            session.query(User)
            .order_by(desc(User.balance), User.id)
            .limit(limit)
            .all()
        )


class GameQueries:
    """Game-related database queries."""

    @staticmethod
    def get_game_by_id(session: Session, game_id: int) -> Optional[Game]:
        """Get game by ID."""
        return session.query(Game).filter(Game.id == game_id).first()

    @staticmethod
    def get_game_for_update(session: Session, game_id: int) -> Optional[Game]:
        """Get game by ID, locking its row until the transaction ends."""
        return (
            session.query(Game)
            .filter(Game.id == game_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_in_progress_game(session: Session, user_id: int) -> Optional[Game]:
        """Get the player's unfinished game, if any."""
        return (
            session.query(Game)
            .filter(Game.user_id == user_id, Game.finished_at.is_(None))
            .order_by(desc(Game.started_at))
            .first()
        )

    @staticmethod
    def get_user_games(session: Session, user_id: int, limit: int = 10) -> List[Game]:
        """Get the player's games, newest first."""
        return (
            session.query(Game)
            .filter(Game.user_id == user_id)
            .order_by(desc(Game.started_at), desc(Game.id))
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_finished_games_before(session: Session, moment: datetime) -> List[Game]:
        """Get games that finished before the given moment."""
        return (
            session.query(Game)
            .filter(Game.finished_at.isnot(None), Game.finished_at < moment)
            .all()
        )

    @staticmethod
    def delete_finished_games_before(session: Session, moment: datetime) -> int:
        """Delete games finished before the given moment, with their questions."""
        games = GameQueries.get_finished_games_before(session, moment)
        for game in games:
            session.delete(game)
        session.flush()
        return len(games)


class QuestionQueries:
    """Question-related database queries."""

    @staticmethod
    def get_random_question(session: Session, level: int) -> Optional[Question]:
        """Get a random question of the given level."""
        return (
            session.query(Question)
            .filter(Question.level == level)
            .order_by(func.random())
            .first()
        )

    @staticmethod
    def count_by_level(session: Session) -> Dict[int, int]:
        """Get number of questions in the bank per level."""
        rows = (
            session.query(Question.level, func.count(Question.id))
            .group_by(Question.level)
            .all()
        )
        return {level: count for level, count in rows}

    @staticmethod
    def find_duplicate(
        session: Session,
        level: int,
        text: str,
        answers: List[str]
    ) -> Optional[Question]:
        """Find a question with the same level, text and answers."""
        return session.query(Question).filter(
            Question.level == level,
            Question.text == text,
            Question.answer1 == answers[0],
            Question.answer2 == answers[1],
            Question.answer3 == answers[2],
            Question.answer4 == answers[3],
        ).first()
