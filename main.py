"""
Main entry point for Millionaire Trivia bot.
"""
from telegram import Update
from telegram.ext import Application, CommandHandler, MessageHandler, CallbackQueryHandler, filters
import config
from utils.logging import setup_logging, get_logger
from utils.errors import MillionaireError

# Setup logging
setup_logging()
logger = get_logger(__name__)


async def start_command(update: Update, context) -> None:
    """Handle /start command."""
    from database.session import db_session
    from database.queries import UserQueries
    from bot.keyboards import MainMenuKeyboard

    user = update.effective_user
    logger.info(f"User {user.id} ({user.username}) started the bot")

    with db_session() as session:
        UserQueries.get_or_create_user(
            session,
            telegram_id=user.id,
            username=user.username,
            full_name=f"{user.first_name} {user.last_name or ''}".strip()
        )

    welcome_text = (
        "💰 Добро пожаловать в игру «Кто хочет стать миллионером»!\n\n"
        "• 15 вопросов - от 100 ₽ до 1 000 000 ₽\n"
        "• Три подсказки на игру\n"
        "• Деньги можно забрать в любой момент\n\n"
        "Нажмите «Новая игра», чтобы начать."
    )

    await update.message.reply_text(
        welcome_text,
        reply_markup=MainMenuKeyboard.get_keyboard()
    )


async def help_command(update: Update, context) -> None:
    """Handle /help command."""
    help_text = (
        "📖 Помощь\n\n"
        "/start - Начать\n"
        "/newgame - Новая игра\n"
        "/game - Текущая игра\n"
        "/money - Забрать деньги\n"
        "/stats - Мои игры\n"
        "/rating - Рейтинг\n"
        "/rules - Правила\n"
        "/help - Эта справка"
    )
    await update.message.reply_text(help_text)


async def rules_command(update: Update, context) -> None:
    """Handle /rules command."""
    from bot.messages import RULES_TEXT

    await update.effective_message.reply_text(
        RULES_TEXT.format(minutes=config.config.GAME_TIME_LIMIT_MINUTES)
    )


async def message_handler(update: Update, context) -> None:
    """Handle text messages (main menu buttons)."""
    from bot.keyboards import (
        NEW_GAME_BUTTON,
        CURRENT_GAME_BUTTON,
        RATING_BUTTON,
        STATS_BUTTON,
        RULES_BUTTON,
    )
    from bot.game_handlers import (
        handle_new_game,
        handle_current_game,
        handle_rating,
        handle_stats,
    )

    text = update.message.text if update.message else None
    if not text:
        return

    if text == NEW_GAME_BUTTON:
        await handle_new_game(update, context)
    elif text == CURRENT_GAME_BUTTON:
        await handle_current_game(update, context)
    elif text == RATING_BUTTON:
        await handle_rating(update, context)
    elif text == STATS_BUTTON:
        await handle_stats(update, context)
    elif text == RULES_BUTTON:
        await rules_command(update, context)
    else:
        await update.message.reply_text("Используйте кнопки меню или /help")


async def callback_query_handler(update: Update, context) -> None:
    """Handle callback queries (inline button clicks)."""
    from bot.keyboards import parse_callback_data
    from bot.game_handlers import handle_game_action, handle_new_game

    query = update.callback_query

    try:
        data = query.data
        logger.debug(f"Callback query received: {data[:50]}")
        if data == "new_game":
            await query.answer()
            await handle_new_game(update, context)
            return

        action, game_id, argument, level = parse_callback_data(data)
        await handle_game_action(update, context, action, game_id, argument, level)
    except MillionaireError as e:
        logger.warning(f"Bad callback query {query.data!r}: {e.message}")
        await query.answer("Неизвестная команда", show_alert=False)
    except Exception as e:
        logger.error(f"Error handling callback query: {e}", exc_info=True)
        await query.answer("Произошла ошибка", show_alert=True)


def main() -> None:
    """Main function to start the bot."""
    from bot.game_handlers import (
        handle_new_game,
        handle_current_game,
        handle_take_money,
        handle_rating,
        handle_stats,
    )

    config.config.validate_bot()

    # Create application
    application = Application.builder().token(config.config.TELEGRAM_BOT_TOKEN).build()

    # Register handlers
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("rules", rules_command))
    application.add_handler(CommandHandler("newgame", handle_new_game))
    application.add_handler(CommandHandler("game", handle_current_game))
    application.add_handler(CommandHandler("money", handle_take_money))
    application.add_handler(CommandHandler("stats", handle_stats))
    application.add_handler(CommandHandler("rating", handle_rating))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, message_handler))
    application.add_handler(CallbackQueryHandler(callback_query_handler))

    # Start bot
    logger.info("Starting Millionaire Trivia bot...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
