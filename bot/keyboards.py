"""
Telegram keyboard and button definitions.
"""
from telegram import InlineKeyboardButton, InlineKeyboardMarkup, ReplyKeyboardMarkup, KeyboardButton
from game.view import GameView
from utils.errors import ValidationError

NEW_GAME_BUTTON = "🎮 НОВАЯ ИГРА"
CURRENT_GAME_BUTTON = "▶️ ТЕКУЩАЯ ИГРА"
RATING_BUTTON = "🏆 РЕЙТИНГ"
STATS_BUTTON = "📊 Мои игры"
RULES_BUTTON = "📖 ПРАВИЛА"

HELP_BUTTONS = {
    "fifty_fifty": "50/50",
    "audience_help": "👥 Зал",
    "friend_call": "📞 Друг",
}


class MainMenuKeyboard:
    """Main menu keyboard."""

    @staticmethod
    def get_keyboard() -> ReplyKeyboardMarkup:
        """Get main menu keyboard."""
        keyboard = [
            [KeyboardButton(NEW_GAME_BUTTON), KeyboardButton(CURRENT_GAME_BUTTON)],
            [KeyboardButton(RATING_BUTTON), KeyboardButton(STATS_BUTTON)],
            [KeyboardButton(RULES_BUTTON)],
        ]
        return ReplyKeyboardMarkup(keyboard, resize_keyboard=True)


class GameKeyboard:
    """Answer, help and take-money buttons for the question on screen."""

    @staticmethod
    def get_keyboard(view: GameView) -> InlineKeyboardMarkup:
        """
        Get game keyboard.

        Args:
            view: Snapshot of an unfinished game
        """
        keyboard = []
        for letter, text in view.variants.items():
            keyboard.append([
                InlineKeyboardButton(
                    f"{letter.upper()}) {text}",
                    callback_data=f"answer:{view.game_id}:{view.current_level}:{letter}"
                )
            ])

        help_row = [
            InlineKeyboardButton(HELP_BUTTONS[kind], callback_data=f"help:{view.game_id}:{kind}")
            for kind in HELP_BUTTONS
            if kind in view.available_helps
        ]
        if help_row:
            keyboard.append(help_row)

        keyboard.append([
            InlineKeyboardButton(
                "💰 Забрать деньги",
                callback_data=f"take_money:{view.game_id}"
            )
        ])
        return InlineKeyboardMarkup(keyboard)


class GameOverKeyboard:
    """Keyboard offered after a game has finished."""

    @staticmethod
    def get_keyboard() -> InlineKeyboardMarkup:
        keyboard = [
            [InlineKeyboardButton("🎮 Сыграть ещё", callback_data="new_game")]
        ]
        return InlineKeyboardMarkup(keyboard)


def parse_callback_data(data: str):
    """
    Split game button data into its parts.

    Args:
        data: 'answer:<game_id>:<level>:<letter>', 'help:<game_id>:<kind>'
            or 'take_money:<game_id>'

    Returns:
        Tuple (action, game_id, argument, level); argument is None for
        take_money, level is the question level an answer was given to
        and None for other actions

    Raises:
        ValidationError: Malformed data
    """
    parts = data.split(":")
    action = parts[0]
    expected = {"answer": 4, "help": 3, "take_money": 2}
    if action not in expected or len(parts) != expected[action]:
        raise ValidationError(f"Malformed callback data: {data!r}")
    try:
        game_id = int(parts[1])
        level = int(parts[2]) if action == "answer" else None
    except ValueError:
        raise ValidationError(f"Malformed number in callback data: {data!r}")
    argument = parts[-1] if len(parts) > 2 else None
    return action, game_id, argument, level
