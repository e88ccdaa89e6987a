"""
Game module for Millionaire Trivia.
Contains game engine, prize table and help aids.
"""
from game.engine import GameEngine, GameStatus
from game.prizes import PrizeTable, DEFAULT_PRIZE_TABLE
from game.help import HelpKind, HelpResolver, FiftyFifty, AudienceHelp, FriendCall
from game.view import GameView

__all__ = [
    "GameEngine",
    "GameStatus",
    "PrizeTable",
    "DEFAULT_PRIZE_TABLE",
    "HelpKind",
    "HelpResolver",
    "FiftyFifty",
    "AudienceHelp",
    "FriendCall",
    "GameView",
]
