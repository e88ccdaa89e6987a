"""
Game view - read-only snapshot of a game for presentation layers.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class GameView:
    """Everything a front end needs to draw the game screen."""
    game_id: int
    user_id: int
    status: str
    current_level: int
    prize: int
    total_levels: int
    question_text: Optional[str] = None
    variants: Dict[str, str] = field(default_factory=dict)
    helps: List = field(default_factory=list)  # help payloads applied to the current question
    available_helps: List[str] = field(default_factory=list)
    current_question_prize: int = 0
    guaranteed_prize: int = 0
    cash_out_prize: int = 0
    seconds_left: int = 0
    correct_answer_key: Optional[str] = None  # only revealed once the game is over

    @property
    def is_finished(self) -> bool:
        return self.status != "in_progress"

    @property
    def question_number(self) -> int:
        """1-based number of the question on screen."""
        return min(self.current_level + 1, self.total_levels)
