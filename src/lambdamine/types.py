"""Core types for the mine simulation."""

from enum import Enum, IntEnum

from pydantic import BaseModel


class Action(IntEnum):
    """Robot commands accepted by the move executor."""

    LEFT = 1
    RIGHT = 2
    UP = 3
    DOWN = 4
    WAIT = 5
    ABORT = 6
    CUT_BEARD = 7

    @property
    def is_directional(self) -> bool:
        """Whether this action tries to move the robot."""
        return self in ACTION_DELTAS

    @property
    def char(self) -> str:
        """Route character for this action."""
        return ACTION_CHARS[self]


# Coordinate system: +X is right, +Y is up (row 1 is the bottom row)
ACTION_DELTAS: dict[Action, tuple[int, int]] = {
    Action.LEFT: (-1, 0),
    Action.RIGHT: (1, 0),
    Action.UP: (0, 1),
    Action.DOWN: (0, -1),
}

ACTION_CHARS: dict[Action, str] = {
    Action.LEFT: "L",
    Action.RIGHT: "R",
    Action.UP: "U",
    Action.DOWN: "D",
    Action.WAIT: "W",
    Action.ABORT: "A",
    Action.CUT_BEARD: "S",
}

ACTIONS_BY_CHAR: dict[str, Action] = {c: a for a, c in ACTION_CHARS.items()}


class Outcome(str, Enum):
    """Terminal state of a mine."""

    IN_PROGRESS = "in_progress"
    WIN = "win"
    FAIL = "fail"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self is not Outcome.IN_PROGRESS


class FailureCause(str, Enum):
    """Why the robot died."""

    CRUSHED = "crushed"
    DROWNED = "drowned"


class Position(BaseModel, frozen=True):
    """Immutable grid coordinate."""

    x: int
    y: int

    def __add__(self, other: "Position") -> "Position":
        return Position(x=self.x + other.x, y=self.y + other.y)

    def offset(self, action: Action) -> "Position":
        """Return new position moved one step in the action's direction."""
        dx, dy = ACTION_DELTAS[action]
        return Position(x=self.x + dx, y=self.y + dy)

    def shifted(self, dx: int, dy: int) -> "Position":
        return Position(x=self.x + dx, y=self.y + dy)

    def neighborhood(self) -> list["Position"]:
        """The 3x3 block centred on this position, itself included."""
        return [
            Position(x=self.x + dx, y=self.y + dy)
            for dy in (-1, 0, 1)
            for dx in (-1, 0, 1)
        ]

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"

    def __repr__(self) -> str:
        return f"Position(x={self.x}, y={self.y})"
