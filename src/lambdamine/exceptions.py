"""Custom exceptions for the mine simulation."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import FailureCause, Outcome


class MineError(Exception):
    """Base exception for mine errors."""

    pass


class InvalidMapError(MineError):
    """Raised when map text cannot be turned into a mine."""

    pass


class InvalidActionError(MineError):
    """Raised when a route contains an unknown command."""

    pass


class GameFinishedError(MineError):
    """Raised when an action is submitted after the game has ended."""

    def __init__(
        self,
        message: str,
        outcome: "Outcome",
        cause: "FailureCause | None" = None,
    ):
        super().__init__(message)
        self.outcome = outcome
        self.cause = cause


class RobotKilledError(GameFinishedError):
    """Raised instead of GameFinishedError when the robot was crushed."""

    pass
