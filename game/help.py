"""
Help aids - fifty-fifty, audience poll and friend call.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union
import random
import config
from database.models import ANSWER_LETTERS
from utils.errors import ValidationError

FRIEND_NAMES = (
    "Вася", "Маша", "Дядя Коля", "Бабушка", "Сосед Петрович",
    "Одноклассник Игорь", "Профессор", "Тётя Света",
)


class HelpKind(Enum):
    """Help aids available once per game."""
    FIFTY_FIFTY = "fifty_fifty"
    AUDIENCE_HELP = "audience_help"
    FRIEND_CALL = "friend_call"

    @property
    def used_flag(self) -> str:
        """Name of the Game column that marks this help as used."""
        return f"{self.value}_used"

    @classmethod
    def parse(cls, value: Union[str, "HelpKind"]) -> "HelpKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError(
                f"Unknown help type: {value!r}",
                {"allowed": [kind.value for kind in cls]}
            )


@dataclass(frozen=True)
class FiftyFifty:
    """Two letters left after removing two wrong answers."""
    letters: Tuple[str, str]
    kind = HelpKind.FIFTY_FIFTY


@dataclass(frozen=True)
class AudienceHelp:
    """Share of the audience voting for each letter, in percent."""
    percentages: Dict[str, int]
    kind = HelpKind.AUDIENCE_HELP


@dataclass(frozen=True)
class FriendCall:
    """What the friend said on the phone."""
    text: str
    kind = HelpKind.FRIEND_CALL


HelpPayload = Union[FiftyFifty, AudienceHelp, FriendCall]


class HelpResolver:
    """Computes help aids for a question given its correct letter."""

    def __init__(self, rng: Optional[random.Random] = None, friend_accuracy: Optional[float] = None):
        """
        Initialize help resolver.

        Args:
            rng: Random generator, module-level random if omitted
            friend_accuracy: Probability that the friend names the right letter
        """
        self.rng = rng or random.Random()
        if friend_accuracy is None:
            friend_accuracy = config.config.FRIEND_CALL_ACCURACY
        self.friend_accuracy = friend_accuracy

    def _wrong_letters(self, correct_key: str):
        return [letter for letter in ANSWER_LETTERS if letter != correct_key]

    def fifty_fifty(self, correct_key: str) -> FiftyFifty:
        """Keep the correct letter and one random wrong one."""
        wrong = self.rng.choice(self._wrong_letters(correct_key))
        return FiftyFifty(tuple(sorted((correct_key, wrong))))

    def audience_help(self, correct_key: str) -> AudienceHelp:
        """
        Poll the audience.

        Every letter gets some random votes and the correct one gets a bonus,
        then votes are converted to whole percentages summing to 100.
        """
        votes = {letter: self.rng.randint(1, 30) for letter in ANSWER_LETTERS}
        votes[correct_key] += self.rng.randint(20, 80)
        total = sum(votes.values())

        exact = {letter: votes[letter] * 100 / total for letter in ANSWER_LETTERS}
        percentages = {letter: int(value) for letter, value in exact.items()}
        # Largest remainder: hand out the points lost to rounding down
        remainder = 100 - sum(percentages.values())
        by_fraction = sorted(
            ANSWER_LETTERS,
            key=lambda letter: exact[letter] - percentages[letter],
            reverse=True
        )
        for letter in by_fraction[:remainder]:
            percentages[letter] += 1

        return AudienceHelp(percentages)

    def friend_call(self, correct_key: str) -> FriendCall:
        """Friend names the correct letter with friend_accuracy probability."""
        if self.rng.random() < self.friend_accuracy:
            letter = correct_key
        else:
            letter = self.rng.choice(self._wrong_letters(correct_key))
        name = self.rng.choice(FRIEND_NAMES)
        return FriendCall(f"{name} считает, что это вариант {letter.upper()}")

    def resolve(self, kind: HelpKind, correct_key: str) -> HelpPayload:
        if kind == HelpKind.FIFTY_FIFTY:
            return self.fifty_fifty(correct_key)
        elif kind == HelpKind.AUDIENCE_HELP:
            return self.audience_help(correct_key)
        else:
            return self.friend_call(correct_key)
