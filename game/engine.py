"""
Game engine - question ladder state machine, prizes and help aids.

Every mutating operation runs in one database transaction that first checks
the time limit, then works on the locked game row. The game row carries a
version counter, so when two calls race on the same game only the first one
commits and the other becomes a no-op.
"""
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Union
import random
import pytz
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from database.models import ANSWER_LETTERS, Game, GameQuestion, User
from database.queries import GameQueries
from database.session import DatabaseSession, get_db_session
from game.help import HelpKind, HelpResolver
from game.prizes import DEFAULT_PRIZE_TABLE, PrizeTable
from game.view import GameView
from questions.manager import QuestionManager, QuestionProvider
from utils.errors import (
    DatabaseError,
    GameError,
    GameNotFoundError,
    ProvisioningError,
    ValidationError,
)
from utils.logging import get_logger
from utils.retry import retry_with_backoff, transient_database_errors
import config

logger = get_logger(__name__)


class GameStatus(Enum):
    """Game result, derived from the game's flags."""
    IN_PROGRESS = "in_progress"
    FAIL = "fail"
    TIMEOUT = "timeout"
    WON = "won"
    MONEY = "money"


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the timezone)."""
    if moment.tzinfo is None:
        return pytz.UTC.localize(moment)
    return moment


class GameEngine:
    """Main game engine class."""

    def __init__(
        self,
        db: Optional[DatabaseSession] = None,
        prize_table: PrizeTable = DEFAULT_PRIZE_TABLE,
        time_limit: Optional[timedelta] = None,
        question_provider: Optional[QuestionProvider] = None,
        help_resolver: Optional[HelpResolver] = None,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        """
        Initialize game engine.

        Args:
            db: Database session manager, the global one if omitted
            prize_table: Prizes and fireproof levels
            time_limit: Time allowed for a whole game
            question_provider: Source of questions for new games
            help_resolver: Help aid generator
            clock: Returns the current timezone-aware time
            rng: Random generator for answer shuffling
            retry_attempts: Attempts for transactions failing with transient errors
            retry_delay: Initial delay between attempts in seconds
        """
        self.config = config.config
        self.db = db or get_db_session()
        self.prize_table = prize_table
        if time_limit is None:
            time_limit = timedelta(minutes=self.config.GAME_TIME_LIMIT_MINUTES)
        self.time_limit = time_limit
        self.question_provider = question_provider or QuestionManager()
        self.rng = rng or random.Random()
        self.help_resolver = help_resolver or HelpResolver(self.rng)
        self.clock = clock
        self.retry_attempts = self.config.DATABASE_RETRY_ATTEMPTS if retry_attempts is None else retry_attempts
        self.retry_delay = self.config.DATABASE_RETRY_DELAY if retry_delay is None else retry_delay

    # Transactions

    def _run(self, operation: Callable, *args, on_conflict=None):
        """
        Run operation(session, *args) as one transaction.

        Transient storage errors roll back and rerun the whole operation.
        A concurrent update of the same game makes the call a no-op that
        returns on_conflict.
        """
        @retry_with_backoff(
            max_attempts=self.retry_attempts,
            base_delay=self.retry_delay,
            exceptions=transient_database_errors()
        )
        def attempt():
            with self.db.get_session() as session:
                return operation(session, *args)

        try:
            return attempt()
        except StaleDataError:
            logger.warning(f"Concurrent update in {operation.__name__}{args}, call ignored")
            return on_conflict
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Storage error in {operation.__name__}: {e}",
                {"operation": operation.__name__, "args": args}
            ) from e

    def _get_game(self, session: Session, game_id: int, lock: bool = True) -> Game:
        if lock:
            game = GameQueries.get_game_for_update(session, game_id)
        else:
            game = GameQueries.get_game_by_id(session, game_id)
        if not game:
            raise GameNotFoundError(f"Game {game_id} not found", {"game_id": game_id})
        return game

    def _current_question(self, game: Game) -> GameQuestion:
        game_question = game.current_game_question
        if game_question is None:
            raise GameError(
                f"Game {game.id} has no question for level {game.current_level}",
                {"game_id": game.id, "level": game.current_level}
            )
        return game_question

    # Game creation

    def create_game_for_user(self, user_id: int) -> int:
        """
        Create a game with one random question per level.

        The caller must make sure the player has no unfinished game.

        Args:
            user_id: Player ID

        Returns:
            New game ID

        Raises:
            ProvisioningError: A level has no question; nothing is saved
        """
        return self._run(self._create_game, user_id)

    def _create_game(self, session: Session, user_id: int) -> int:
        user = session.get(User, user_id)
        if not user:
            raise GameError(f"User {user_id} not found", {"user_id": user_id})

        game = Game(
            user=user,
            current_level=0,
            prize=0,
            started_at=self.clock(),
            is_failed=False,
        )
        session.add(game)

        for level in self.prize_table.levels:
            question = self.question_provider.fetch_random_question(session, level)
            if question is None or question.level != level:
                raise ProvisioningError(
                    f"No question available for level {level}",
                    {"level": level, "user_id": user_id}
                )
            slots = [1, 2, 3, 4]
            self.rng.shuffle(slots)
            game.game_questions.append(GameQuestion(
                question=question,
                level=level,
                a=slots[0],
                b=slots[1],
                c=slots[2],
                d=slots[3],
            ))

        session.flush()
        logger.info(f"Game {game.id} created for user {user_id}")
        return game.id

    # Player actions

    def answer_current_question(
        self,
        game_id: int,
        letter: str,
        expected_level: Optional[int] = None
    ) -> bool:
        """
        Answer the current question.

        Args:
            game_id: Game ID
            letter: 'a', 'b', 'c' or 'd'
            expected_level: Level of the question the player was shown; when
                the game has moved past it the answer is dropped

        Returns:
            True if the answer was correct, False if it was wrong, the time
            is up, the game was already finished or the answer was meant for
            another question
        """
        if not isinstance(letter, str) or letter.lower() not in ANSWER_LETTERS:
            raise ValidationError(
                f"Invalid answer letter: {letter!r}",
                {"allowed": list(ANSWER_LETTERS)}
            )
        return self._run(self._answer, game_id, letter.lower(), expected_level, on_conflict=False)

    def _answer(self, session: Session, game_id: int, letter: str, expected_level: Optional[int]) -> bool:
        game = self._get_game(session, game_id)
        if self._time_out(session, game) or game.is_finished:
            return False
        if expected_level is not None and expected_level != game.current_level:
            logger.info(
                f"Game {game.id}: answer for level {expected_level} ignored, "
                f"current level is {game.current_level}"
            )
            return False

        game_question = self._current_question(game)
        if game_question.answer_correct(letter):
            game.current_level += 1
            if game.current_level > self.prize_table.max_level:
                self._finish_game(session, game, self.prize_table.top_prize, failed=False)
            else:
                logger.info(f"Game {game.id}: level {game.previous_level} cleared")
            return True

        self._finish_game(
            session,
            game,
            self.prize_table.fireproof_prize(game.previous_level),
            failed=True
        )
        return False

    def take_money(self, game_id: int) -> None:
        """Finish the game with the prize of the last cleared level."""
        self._run(self._take_money, game_id)

    def _take_money(self, session: Session, game_id: int) -> None:
        game = self._get_game(session, game_id)
        if self._time_out(session, game) or game.is_finished:
            return
        self._finish_game(
            session,
            game,
            self.prize_table.prize_for(game.previous_level),
            failed=False
        )

    def use_help(self, game_id: int, help_type: Union[str, HelpKind]) -> bool:
        """
        Apply a help aid to the current question.

        Args:
            game_id: Game ID
            help_type: 'fifty_fifty', 'audience_help' or 'friend_call'

        Returns:
            True if applied, False if already used or the game is over
        """
        kind = HelpKind.parse(help_type)
        return self._run(self._use_help, game_id, kind, on_conflict=False)

    def _use_help(self, session: Session, game_id: int, kind: HelpKind) -> bool:
        game = self._get_game(session, game_id)
        if self._time_out(session, game) or game.is_finished:
            return False
        if getattr(game, kind.used_flag):
            return False

        game_question = self._current_question(game)
        setattr(game, kind.used_flag, True)
        game_question.apply_help(kind, self.help_resolver)
        logger.info(f"Game {game.id}: {kind.value} used on level {game.current_level}")
        return True

    def check_timeout(self, game_id: int) -> bool:
        """Finish the game if its time is up. Returns True if it was."""
        return self._run(self._check_timeout, game_id, on_conflict=False)

    def _check_timeout(self, session: Session, game_id: int) -> bool:
        return self._time_out(session, self._get_game(session, game_id))

    def _time_out(self, session: Session, game: Game) -> bool:
        if game.is_finished:
            return False
        if self.clock() - as_utc(game.started_at) <= self.time_limit:
            return False

        logger.info(f"Game {game.id}: time is up")
        self._finish_game(
            session,
            game,
            self.prize_table.fireproof_prize(game.previous_level),
            failed=True
        )
        return True

    def _finish_game(self, session: Session, game: Game, amount: int, failed: bool) -> None:
        """Freeze the game and credit the prize in the same transaction."""
        game.prize = amount
        game.finished_at = self.clock()
        game.is_failed = failed
        # SQL-side increment, so the credit never works from a stale balance
        game.user.balance = User.balance + amount
        session.flush()
        logger.info(
            f"Game {game.id} finished: user={game.user_id}, prize={amount}, "
            f"failed={failed}, level={game.current_level}"
        )

    # Reading

    def status(self, game: Game) -> GameStatus:
        """
        Classify a game.

        A failed game counts as timed out when it lasted longer than the
        time limit, which is evaluated against the engine's current limit.
        """
        if not game.is_finished:
            return GameStatus.IN_PROGRESS
        if game.is_failed:
            if as_utc(game.finished_at) - as_utc(game.started_at) > self.time_limit:
                return GameStatus.TIMEOUT
            return GameStatus.FAIL
        if game.current_level > self.prize_table.max_level:
            return GameStatus.WON
        return GameStatus.MONEY

    def get_status(self, game_id: int) -> GameStatus:
        """Get status of a game without changing it."""
        return self._run(self._read_status, game_id)

    def _read_status(self, session: Session, game_id: int) -> GameStatus:
        return self.status(self._get_game(session, game_id, lock=False))

    def get_game_view(self, game_id: int) -> GameView:
        """Build a read-only snapshot of a game."""
        return self._run(self._build_view, game_id)

    def _build_view(self, session: Session, game_id: int) -> GameView:
        game = self._get_game(session, game_id, lock=False)
        status = self.status(game)
        table = self.prize_table
        view = GameView(
            game_id=game.id,
            user_id=game.user_id,
            status=status.value,
            current_level=game.current_level,
            prize=game.prize,
            total_levels=len(table.prizes),
            guaranteed_prize=table.fireproof_prize(game.previous_level),
            cash_out_prize=table.prize_for(game.previous_level),
        )

        game_question = game.current_game_question
        if game_question is not None:
            view.question_text = game_question.text
            view.variants = game_question.visible_variants()
            view.helps = game_question.help_payloads
            view.current_question_prize = table.prize_for(game.current_level)
            if game.is_finished:
                view.correct_answer_key = game_question.correct_answer_key()

        if status == GameStatus.IN_PROGRESS:
            view.available_helps = [
                kind.value for kind in HelpKind if not getattr(game, kind.used_flag)
            ]
            left = self.time_limit - (self.clock() - as_utc(game.started_at))
            view.seconds_left = max(0, int(left.total_seconds()))
        return view
