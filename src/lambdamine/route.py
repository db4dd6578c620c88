"""Conversion between command strings and actions."""

from typing import Iterable

from .exceptions import InvalidActionError
from .types import ACTIONS_BY_CHAR, Action


def parse_route(commands: str) -> list[Action]:
    """Parse a command string such as "LLDRA".

    Whitespace is ignored.

    Raises:
        InvalidActionError: If a character is not a known command.
    """
    actions: list[Action] = []
    for char in commands:
        if char.isspace():
            continue
        action = ACTIONS_BY_CHAR.get(char.upper())
        if action is None:
            raise InvalidActionError(f"Unknown command {char!r}")
        actions.append(action)
    return actions


def format_route(actions: Iterable[Action]) -> str:
    return "".join(action.char for action in actions)
