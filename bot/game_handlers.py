"""
Game handlers - handle game-related user actions (new game, answers, helps, cash out).
"""
from typing import Optional
from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes
from database.session import db_session
from database.queries import UserQueries, GameQueries
from game.engine import GameEngine
from game.view import GameView
from bot.keyboards import GameKeyboard, GameOverKeyboard
from bot.messages import (
    render_question,
    render_result,
    render_rating,
    render_user_games,
)
from utils.errors import DatabaseError, ProvisioningError, MillionaireError
from utils.logging import get_logger
import config

logger = get_logger(__name__)

SERVER_ERROR_TEXT = "😔 Ошибка сервера. Попробуйте ещё раз."

_engine: Optional[GameEngine] = None


def get_engine() -> GameEngine:
    """Get or create the bot's game engine."""
    global _engine
    if _engine is None:
        _engine = GameEngine()
    return _engine


def _db_user_id(update: Update) -> Optional[int]:
    """Get (or register) the database ID of the Telegram user behind an update."""
    user = update.effective_user
    if not user:
        return None
    with db_session() as session:
        db_user = UserQueries.get_or_create_user(
            session,
            telegram_id=user.id,
            username=user.username,
            full_name=f"{user.first_name} {user.last_name or ''}".strip()
        )
        return db_user.id


def _owns_game(user_id: int, game_id: int) -> bool:
    with db_session() as session:
        game = GameQueries.get_game_by_id(session, game_id)
        return bool(game and game.user_id == user_id)


def render_view(view: GameView):
    """Text and keyboard for a game snapshot."""
    if view.is_finished:
        return render_result(view), GameOverKeyboard.get_keyboard()
    return render_question(view), GameKeyboard.get_keyboard(view)


async def send_game(update: Update, game_id: int) -> None:
    """Send the game screen as a new message."""
    text, markup = render_view(get_engine().get_game_view(game_id))
    await update.effective_message.reply_text(text, reply_markup=markup)


async def _edit_game(update: Update, game_id: int) -> None:
    """Redraw the game screen in the message holding the pressed button."""
    text, markup = render_view(get_engine().get_game_view(game_id))
    try:
        await update.callback_query.edit_message_text(text, reply_markup=markup)
    except TelegramError as e:
        # "Message is not modified" after a repeated click
        logger.debug(f"Could not edit game message for game {game_id}: {e}")


async def handle_new_game(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Start a new game, or resume the unfinished one."""
    user_id = _db_user_id(update)
    if user_id is None:
        return

    engine = get_engine()
    with db_session() as session:
        existing = GameQueries.get_in_progress_game(session, user_id)
        existing_id = existing.id if existing else None

    try:
        if existing_id is not None and not engine.check_timeout(existing_id):
            logger.info(f"User {user_id} already has game {existing_id} in progress")
            await update.effective_message.reply_text("⚠️ Вы ещё не закончили предыдущую игру")
            await send_game(update, existing_id)
            return
        game_id = engine.create_game_for_user(user_id)
    except ProvisioningError as e:
        logger.error(f"Could not create game for user {user_id}: no question for level {e.level}")
        await update.effective_message.reply_text(
            "😔 Не удалось создать игру: в базе не хватает вопросов. Попробуйте позже."
        )
        return
    except DatabaseError as e:
        logger.error(f"Database error while starting a game for user {user_id}: {e}")
        await update.effective_message.reply_text(SERVER_ERROR_TEXT)
        return

    await update.effective_message.reply_text("🎮 Новая игра началась! Удачи!")
    await send_game(update, game_id)


async def handle_current_game(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show the unfinished game, if any."""
    user_id = _db_user_id(update)
    if user_id is None:
        return

    with db_session() as session:
        game = GameQueries.get_in_progress_game(session, user_id)
        game_id = game.id if game else None

    if game_id is None:
        await update.effective_message.reply_text("У вас нет активной игры. Начните новую!")
        return

    try:
        get_engine().check_timeout(game_id)
        await send_game(update, game_id)
    except DatabaseError as e:
        logger.error(f"Database error while showing game {game_id}: {e}")
        await update.effective_message.reply_text(SERVER_ERROR_TEXT)


async def handle_take_money(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Cash out the unfinished game, if any."""
    user_id = _db_user_id(update)
    if user_id is None:
        return

    with db_session() as session:
        game = GameQueries.get_in_progress_game(session, user_id)
        game_id = game.id if game else None

    if game_id is None:
        await update.effective_message.reply_text("У вас нет активной игры.")
        return

    try:
        get_engine().take_money(game_id)
        await send_game(update, game_id)
    except DatabaseError as e:
        logger.error(f"Database error while cashing out game {game_id}: {e}")
        await update.effective_message.reply_text(SERVER_ERROR_TEXT)


async def handle_game_action(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    action: str,
    game_id: int,
    argument: Optional[str] = None,
    level: Optional[int] = None
) -> None:
    """
    Handle an inline button pressed on the game screen.

    Args:
        update: Telegram update
        context: Bot context
        action: 'answer', 'help' or 'take_money'
        game_id: Game ID
        argument: Answer letter or help type
        level: Level of the question an answer button belonged to
    """
    query = update.callback_query
    user_id = _db_user_id(update)
    if user_id is None or not _owns_game(user_id, game_id):
        await query.answer("Это не ваша игра", show_alert=True)
        return

    engine = get_engine()
    try:
        if action == "answer":
            correct = engine.answer_current_question(game_id, argument, expected_level=level)
            await query.answer("✅ Верно!" if correct else None)
        elif action == "help":
            used = engine.use_help(game_id, argument)
            await query.answer("Вы использовали подсказку" if used else "Подсказка недоступна")
        elif action == "take_money":
            engine.take_money(game_id)
            await query.answer()
        else:
            await query.answer()
            return
        await _edit_game(update, game_id)
    except DatabaseError as e:
        logger.error(f"Database error on {action} for game {game_id}: {e}")
        await query.answer("Ошибка сервера, попробуйте ещё раз", show_alert=True)
    except MillionaireError as e:
        logger.warning(f"Rejected {action} for game {game_id}: {e.message}")
        await query.answer(e.message, show_alert=True)


async def handle_rating(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show the richest players."""
    with db_session() as session:
        players = [
            (user.display_name, user.balance)
            for user in UserQueries.get_balance_top(session, config.config.RATING_TOP_LIMIT)
        ]
    await update.effective_message.reply_text(render_rating(players))


async def handle_stats(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show the player's balance and recent games."""
    user_id = _db_user_id(update)
    if user_id is None:
        return

    engine = get_engine()
    with db_session() as session:
        user = UserQueries.get_user_by_telegram_id(session, update.effective_user.id)
        balance = user.balance
        games = [
            (
                game.started_at,
                engine.status(game).value,
                min(game.current_level + 1, len(engine.prize_table.prizes)),
                game.prize,
            )
            for game in GameQueries.get_user_games(session, user_id, config.config.STATS_GAMES_LIMIT)
        ]
    await update.effective_message.reply_text(render_user_games(balance, games))
