"""
Prize table - payout ladder and fireproof checkpoints.
"""
from dataclasses import dataclass
from typing import Tuple
from utils.errors import ConfigurationError

PRIZES: Tuple[int, ...] = (
    100, 200, 300, 500, 1_000, 2_000, 4_000, 8_000, 16_000,
    32_000, 64_000, 125_000, 250_000, 500_000, 1_000_000,
)
# 0-indexed: the 4th, 9th and 14th questions
FIREPROOF_LEVELS: Tuple[int, ...] = (3, 8, 13)


@dataclass(frozen=True)
class PrizeTable:
    """Ordered prizes by level plus the levels whose prize can't be lost."""
    prizes: Tuple[int, ...] = PRIZES
    fireproof_levels: Tuple[int, ...] = FIREPROOF_LEVELS

    def __post_init__(self):
        if not self.prizes:
            raise ConfigurationError("Prize table must not be empty")
        if any(a >= b for a, b in zip(self.prizes, self.prizes[1:])) or self.prizes[0] < 0:
            raise ConfigurationError(
                "Prizes must be non-negative and strictly increasing",
                {"prizes": list(self.prizes)}
            )
        levels = self.fireproof_levels
        if any(a >= b for a, b in zip(levels, levels[1:])):
            raise ConfigurationError(
                "Fireproof levels must be strictly increasing",
                {"fireproof_levels": list(levels)}
            )
        if levels and (levels[0] < 0 or levels[-1] > self.max_level):
            raise ConfigurationError(
                "Fireproof levels must be within the prize table",
                {"fireproof_levels": list(levels), "max_level": self.max_level}
            )

    @property
    def max_level(self) -> int:
        return len(self.prizes) - 1

    @property
    def levels(self) -> range:
        return range(len(self.prizes))

    @property
    def top_prize(self) -> int:
        return self.prizes[-1]

    def prize_for(self, level: int) -> int:
        """Prize for clearing the given level, 0 before the first one."""
        if level < 0:
            return 0
        return self.prizes[level]

    def fireproof_prize(self, answered_level: int) -> int:
        """
        Amount kept on a lost game.

        Args:
            answered_level: Last level the player has cleared (-1 if none)

        Returns:
            Prize of the highest fireproof level not above answered_level,
            or 0 when no checkpoint has been reached
        """
        reached = [level for level in self.fireproof_levels if level <= answered_level]
        return self.prizes[reached[-1]] if reached else 0

    def is_fireproof(self, level: int) -> bool:
        return level in self.fireproof_levels


DEFAULT_PRIZE_TABLE = PrizeTable()
