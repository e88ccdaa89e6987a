"""
Exceptions raised by the game engine, storage layer and configuration.

Every error carries a human-readable message plus a details dict that
handlers log next to it.
"""
from typing import Optional


class MillionaireError(Exception):
    """Root of all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r}, details={self.details})"


class GameError(MillionaireError):
    """A game operation could not be carried out."""

    @property
    def game_id(self) -> Optional[int]:
        return self.details.get("game_id")


class GameNotFoundError(GameError):
    pass


class ProvisioningError(GameError):
    """The question bank could not supply a question for every level."""

    @property
    def level(self) -> Optional[int]:
        return self.details.get("level")


class DatabaseError(MillionaireError):
    """Storage failed after retries; the transaction was rolled back."""


class ValidationError(MillionaireError):
    """Input from a player or an import file is malformed."""


class ConfigurationError(MillionaireError):
    """Settings or rule tables are inconsistent."""
