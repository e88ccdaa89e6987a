"""
Message texts - rendering games, results and ratings for Telegram.
"""
from datetime import datetime
from typing import Iterable, List, Tuple
from game.help import AudienceHelp, FiftyFifty, FriendCall
from game.prizes import PrizeTable
from game.view import GameView

STATUS_LABELS = {
    "in_progress": "⏳ в процессе",
    "fail": "❌ проигрыш",
    "timeout": "⌛ время вышло",
    "won": "🏆 победа",
    "money": "💰 забрал деньги",
}

RULES_TEXT = (
    "📖 Правила\n\n"
    "• 15 вопросов, каждый следующий дороже предыдущего\n"
    "• Неверный ответ - игра окончена, остаётся сумма последней несгораемой отметки "
    "(4-й, 9-й и 14-й вопросы)\n"
    "• Деньги можно забрать в любой момент\n"
    "• Подсказки 50/50, помощь зала и звонок другу - по одной на игру\n"
    "• На всю игру даётся {minutes} минут"
)


def format_money(amount: int) -> str:
    """Format amount with thousands separated by spaces: 5 000 ₽."""
    return f"{amount:,}".replace(",", " ") + " ₽"


def render_prize_ladder(table: PrizeTable, current_level: int) -> str:
    """Prize ladder from the top, current level and checkpoints marked."""
    lines = []
    for level in reversed(table.levels):
        marker = "▶️" if level == current_level else "  "
        fireproof = " 🔒" if table.is_fireproof(level) else ""
        lines.append(f"{marker} {level + 1:>2}. {format_money(table.prizes[level])}{fireproof}")
    return "\n".join(lines)


def render_help(payload) -> str:
    if isinstance(payload, FiftyFifty):
        return "50/50: остались варианты " + ", ".join(letter.upper() for letter in payload.letters)
    if isinstance(payload, AudienceHelp):
        votes = ", ".join(
            f"{letter.upper()}: {percent}%"
            for letter, percent in sorted(payload.percentages.items())
        )
        return f"👥 Зал голосует: {votes}"
    if isinstance(payload, FriendCall):
        return f"📞 {payload.text}"
    return str(payload)


def render_question(view: GameView) -> str:
    """Question screen text for an unfinished game."""
    minutes, seconds = divmod(view.seconds_left, 60)
    lines = [
        f"❓ Вопрос {view.question_number} из {view.total_levels} "
        f"за {format_money(view.current_question_prize)}",
        "",
        view.question_text or "",
        "",
    ]
    lines.extend(f"{letter.upper()}) {text}" for letter, text in view.variants.items())
    if view.helps:
        lines.append("")
        lines.extend(render_help(payload) for payload in view.helps)
    lines.extend([
        "",
        f"🔒 Несгораемая сумма: {format_money(view.guaranteed_prize)}",
        f"💰 Можно забрать: {format_money(view.cash_out_prize)}",
        f"⏱ Осталось времени: {minutes}:{seconds:02d}",
    ])
    return "\n".join(lines)


def render_result(view: GameView) -> str:
    """Final message for a finished game."""
    if view.status == "won":
        header = "🏆 Поздравляем! Вы ответили на все вопросы!"
    elif view.status == "money":
        header = "💰 Вы забрали деньги."
    elif view.status == "timeout":
        header = "⌛ Время вышло. Игра закончена."
    else:
        header = "❌ Неверный ответ. Игра закончена."

    lines = [header, f"Ваш выигрыш: {format_money(view.prize)}"]
    if view.correct_answer_key and view.status != "won":
        correct_text = view.variants.get(view.correct_answer_key)
        answer = view.correct_answer_key.upper()
        if correct_text:
            answer = f"{answer}) {correct_text}"
        lines.append(f"Правильный ответ: {answer}")
    return "\n".join(lines)


def render_rating(players: Iterable[Tuple[str, int]]) -> str:
    """Players ranked by balance, richest first."""
    lines = ["🏆 Рейтинг игроков", ""]
    rows = list(players)
    if not rows:
        lines.append("Пока никто не играл")
    for place, (name, balance) in enumerate(rows, 1):
        lines.append(f"{place}. {name} - {format_money(balance)}")
    return "\n".join(lines)


def render_user_games(balance: int, games: List[Tuple[datetime, str, int, int]]) -> str:
    """
    Player's balance and recent games.

    Args:
        balance: Player's balance
        games: Tuples of (started_at, status, question number reached, prize)
    """
    lines = [f"📊 Ваш баланс: {format_money(balance)}", ""]
    if not games:
        lines.append("Вы ещё не играли")
    for started_at, status, question_number, prize in games:
        label = STATUS_LABELS.get(status, status)
        lines.append(
            f"{started_at:%d.%m.%Y %H:%M} - вопрос {question_number}, "
            f"{format_money(prize)}, {label}"
        )
    return "\n".join(lines)
