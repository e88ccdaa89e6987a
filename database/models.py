"""
SQLAlchemy models for Millionaire Trivia database.
"""
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Integer,
    SmallInteger,
    String,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    JSON,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
import pytz

Base = declarative_base()

# Letters shown to the player, in display order
ANSWER_LETTERS = ("a", "b", "c", "d")


class TimestampMixin:
    """Mixin for timestamp fields."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(pytz.UTC),
        server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(pytz.UTC),
        onupdate=lambda: datetime.now(pytz.UTC),
        server_default=func.now()
    )


class User(Base, TimestampMixin):
    """User model - a player and their winnings account."""
    __tablename__ = "users"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    telegram_id = Column(BigInteger, unique=True, nullable=True)
    username = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)
    balance = Column(BigInteger, nullable=False, default=0)

    # Relationships
    games = relationship("Game", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("balance >= 0", name="check_user_balance"),
        Index("idx_users_balance", "balance"),
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or f"Игрок {self.id}"

    def __repr__(self):
        return f"<User(id={self.id}, telegram_id={self.telegram_id}, username={self.username}, balance={self.balance})>"


class Question(Base, TimestampMixin):
    """Question model - question bank, one level per question."""
    __tablename__ = "questions"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    level = Column(SmallInteger, nullable=False)
    text = Column(Text, nullable=False)
    answer1 = Column(Text, nullable=False)
    answer2 = Column(Text, nullable=False)
    answer3 = Column(Text, nullable=False)
    answer4 = Column(Text, nullable=False)
    correct_answer = Column(SmallInteger, nullable=False, default=1)  # option slot 1..4

    # Relationships
    game_questions = relationship("GameQuestion", back_populates="question")

    __table_args__ = (
        CheckConstraint("level >= 0 AND level <= 14", name="check_question_level"),
        CheckConstraint("correct_answer BETWEEN 1 AND 4", name="check_correct_answer"),
        Index("idx_questions_level", "level"),
    )

    def answer_text(self, slot: int) -> str:
        """Text of option slot 1..4."""
        return getattr(self, f"answer{slot}")

    def __repr__(self):
        return f"<Question(id={self.id}, level={self.level}, text={self.text[:50]}...)>"


class Game(Base, TimestampMixin):
    """Game model - one player's run through the question ladder."""
    __tablename__ = "games"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    current_level = Column(Integer, nullable=False, default=0)
    prize = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime(timezone=True), nullable=False)
    finished_at = Column(DateTime(timezone=True), nullable=True)
    is_failed = Column(Boolean, nullable=False, default=False)
    fifty_fifty_used = Column(Boolean, nullable=False, default=False)
    audience_help_used = Column(Boolean, nullable=False, default=False)
    friend_call_used = Column(Boolean, nullable=False, default=False)
    version_id = Column(Integer, nullable=False)

    # Relationships
    user = relationship("User", back_populates="games")
    game_questions = relationship(
        "GameQuestion",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="GameQuestion.level"
    )

    __table_args__ = (
        CheckConstraint("current_level >= 0", name="check_game_current_level"),
        CheckConstraint("prize >= 0", name="check_game_prize"),
        Index("idx_games_user", "user_id"),
        Index("idx_games_finished_at", "finished_at"),
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    @property
    def previous_level(self) -> int:
        """Level of the last question the player has cleared, -1 if none."""
        return self.current_level - 1

    def question_at(self, level: int) -> Optional["GameQuestion"]:
        return next((gq for gq in self.game_questions if gq.level == level), None)

    @property
    def current_game_question(self) -> Optional["GameQuestion"]:
        return self.question_at(self.current_level)

    @property
    def previous_game_question(self) -> Optional["GameQuestion"]:
        return self.question_at(self.previous_level)

    def __repr__(self):
        return f"<Game(id={self.id}, user_id={self.user_id}, level={self.current_level}, finished={self.is_finished})>"


class GameQuestion(Base, TimestampMixin):
    """
    Game question model - a bank question placed into a game.

    Columns a-d hold the option slot (1..4) shown under each letter, so the
    same bank question gets a different letter layout in every game. The
    three help columns are filled at most once each by the game engine.
    """
    __tablename__ = "game_questions"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    game_id = Column(BigInteger, ForeignKey("games.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(BigInteger, ForeignKey("questions.id", ondelete="RESTRICT"), nullable=False)
    level = Column(SmallInteger, nullable=False)
    a = Column(SmallInteger, nullable=False)
    b = Column(SmallInteger, nullable=False)
    c = Column(SmallInteger, nullable=False)
    d = Column(SmallInteger, nullable=False)
    fifty_fifty = Column(JSON, nullable=True)  # ['a', 'c']
    audience_help = Column(JSON, nullable=True)  # {'a': 12, 'b': 70, ...}
    friend_call = Column(Text, nullable=True)

    # Relationships
    game = relationship("Game", back_populates="game_questions")
    question = relationship("Question", back_populates="game_questions")

    __table_args__ = (
        CheckConstraint("a + b + c + d = 10 AND a * b * c * d = 24", name="check_answer_permutation"),
        Index("idx_game_questions_game_level", "game_id", "level", unique=True),
    )

    @property
    def text(self) -> str:
        return self.question.text

    def variants(self) -> Dict[str, str]:
        """Answer texts keyed by the letters of this game."""
        return {
            letter: self.question.answer_text(getattr(self, letter))
            for letter in ANSWER_LETTERS
        }

    def visible_variants(self) -> Dict[str, str]:
        """Variants left on screen after fifty-fifty removed two of them."""
        variants = self.variants()
        if self.fifty_fifty:
            return {k: v for k, v in variants.items() if k in self.fifty_fifty}
        return variants

    def answer_correct(self, letter: str) -> bool:
        letter = letter.lower()
        if letter not in ANSWER_LETTERS:
            return False
        return getattr(self, letter) == self.question.correct_answer

    def correct_answer_key(self) -> str:
        return next(
            letter for letter in ANSWER_LETTERS
            if getattr(self, letter) == self.question.correct_answer
        )

    def apply_help(self, kind, resolver=None) -> None:
        """Compute a help aid for this question and store it in its column."""
        from game.help import AudienceHelp, FiftyFifty, HelpResolver

        resolver = resolver or HelpResolver()
        payload = resolver.resolve(kind, self.correct_answer_key())
        if isinstance(payload, FiftyFifty):
            self.fifty_fifty = list(payload.letters)
        elif isinstance(payload, AudienceHelp):
            self.audience_help = dict(payload.percentages)
        else:
            self.friend_call = payload.text

    def add_fifty_fifty(self, resolver=None) -> None:
        from game.help import HelpKind
        self.apply_help(HelpKind.FIFTY_FIFTY, resolver)

    def add_audience_help(self, resolver=None) -> None:
        from game.help import HelpKind
        self.apply_help(HelpKind.AUDIENCE_HELP, resolver)

    def add_friend_call(self, resolver=None) -> None:
        from game.help import HelpKind
        self.apply_help(HelpKind.FRIEND_CALL, resolver)

    @property
    def help_payloads(self) -> List:
        """Applied help aids as typed payloads, in a fixed order."""
        from game.help import FiftyFifty, AudienceHelp, FriendCall

        payloads = []
        if self.fifty_fifty:
            payloads.append(FiftyFifty(tuple(self.fifty_fifty)))
        if self.audience_help:
            payloads.append(AudienceHelp(dict(self.audience_help)))
        if self.friend_call:
            payloads.append(FriendCall(self.friend_call))
        return payloads

    def __repr__(self):
        return f"<GameQuestion(id={self.id}, game_id={self.game_id}, level={self.level}, question_id={self.question_id})>"
