"""Mine cell types and their capabilities."""

from enum import Enum

from .exceptions import InvalidMapError


class Cell(str, Enum):
    """Contents of a single mine cell, valued by its map legend character."""

    EMPTY = " "
    EARTH = "."
    WALL = "#"
    ROBOT = "R"
    ROCK = "*"
    LAMBDA_ROCK = "@"  # Breaks open into a lambda when it lands
    LAMBDA = "\\"
    RAZOR = "!"
    BEARD = "W"
    CLOSED_LIFT = "L"
    OPEN_LIFT = "O"
    TRAMPOLINE_1 = "A"
    TRAMPOLINE_2 = "B"
    TRAMPOLINE_3 = "C"
    TRAMPOLINE_4 = "D"
    TRAMPOLINE_5 = "E"
    TRAMPOLINE_6 = "F"
    TRAMPOLINE_7 = "G"
    TRAMPOLINE_8 = "H"
    TRAMPOLINE_9 = "I"
    TARGET_1 = "1"
    TARGET_2 = "2"
    TARGET_3 = "3"
    TARGET_4 = "4"
    TARGET_5 = "5"
    TARGET_6 = "6"
    TARGET_7 = "7"
    TARGET_8 = "8"
    TARGET_9 = "9"

    @classmethod
    def from_char(cls, char: str) -> "Cell":
        """Look up a cell by its legend character.

        Raises:
            InvalidMapError: If the character is not part of the legend.
        """
        try:
            return cls(char)
        except ValueError:
            raise InvalidMapError(f"Unrecognized map character {char!r}") from None

    @property
    def code(self) -> int:
        """Byte value used by grid storage."""
        return ord(self.value)

    @property
    def is_rock(self) -> bool:
        """Whether this cell falls under gravity."""
        return self in _ROCK_TYPES

    @property
    def is_trampoline(self) -> bool:
        return self in _TRAMPOLINE_TYPES

    @property
    def is_target(self) -> bool:
        return self in _TARGET_TYPES

    @property
    def is_lift(self) -> bool:
        return self is Cell.CLOSED_LIFT or self is Cell.OPEN_LIFT

    @property
    def can_walk_onto(self) -> bool:
        """Whether the robot may step here without pushing anything."""
        return self in _WALKABLE_TYPES


TRAMPOLINES: tuple[Cell, ...] = tuple(Cell(c) for c in "ABCDEFGHI")
TARGETS: tuple[Cell, ...] = tuple(Cell(c) for c in "123456789")

# Define sets for O(1) lookup
_ROCK_TYPES = frozenset({Cell.ROCK, Cell.LAMBDA_ROCK})

_TRAMPOLINE_TYPES = frozenset(TRAMPOLINES)

_TARGET_TYPES = frozenset(TARGETS)

_WALKABLE_TYPES = frozenset({
    Cell.EMPTY,
    Cell.EARTH,
    Cell.LAMBDA,
    Cell.RAZOR,
    Cell.OPEN_LIFT,
    *TRAMPOLINES,
})

CELLS_BY_CODE: dict[int, Cell] = {cell.code: cell for cell in Cell}
