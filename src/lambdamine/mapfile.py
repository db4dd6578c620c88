"""Map text format: parsing into a Mine and writing one back out."""

from pathlib import Path

import structlog

from .cells import Cell
from .config import MineDefaults
from .exceptions import InvalidMapError
from .state import Mine
from .types import Position

logger = structlog.get_logger()

# Metadata keyword -> Mine field
_INT_METADATA: dict[str, str] = {
    "Water": "water",
    "Flooding": "flooding",
    "Waterproof": "waterproof",
    "Growth": "growth",
    "Razors": "razors",
}


def split_sections(lines: list[str]) -> tuple[list[str], list[str]]:
    """Split map lines at the first blank line into (layout, metadata)."""
    try:
        blank = lines.index("")
    except ValueError:
        return lines, []
    return lines[:blank], lines[blank + 1 :]


def parse_mine(text: str, defaults: MineDefaults | None = None) -> Mine:
    """
    Build a Mine from map text.

    The layout's last line becomes row 1; short lines are padded with Empty.

    Raises:
        InvalidMapError: On unknown layout characters, malformed metadata,
            a missing robot, or trampoline bindings that don't match the
            layout.
    """
    defaults = defaults or MineDefaults()
    layout, metadata = split_sections(text.splitlines())
    if not layout:
        raise InvalidMapError("Map has no layout")

    height = len(layout)
    width = max(len(line) for line in layout)
    if width == 0:
        raise InvalidMapError("Map layout is empty")

    mine = Mine(
        width=width,
        height=height,
        storage=defaults.storage,
        water=defaults.water,
        flooding=defaults.flooding,
        waterproof=defaults.waterproof,
        growth=defaults.growth,
        razors=defaults.razors,
    )

    for row, line in enumerate(layout):
        y = height - row
        for col, char in enumerate(line):
            cell = Cell.from_char(char)
            if cell is not Cell.EMPTY:
                mine.place(Position(x=col + 1, y=y), cell)

    for line in metadata:
        _apply_metadata(mine, line)

    mine.initialize()
    logger.debug(
        "mine_parsed",
        width=width,
        height=height,
        lambdas=mine.total_lambdas,
        water=mine.water,
        flooding=mine.flooding,
    )
    return mine


def _apply_metadata(mine: Mine, line: str) -> None:
    parts = line.split()
    if not parts:
        return
    key = parts[0]

    if key == "Trampoline":
        if len(parts) != 4 or parts[2] != "targets":
            raise InvalidMapError(f"Malformed trampoline line: {line!r}")
        mine.bind_trampoline(Cell.from_char(parts[1]), Cell.from_char(parts[3]))
        return

    field = _INT_METADATA.get(key)
    if field is None:
        logger.warning("unknown_metadata_ignored", line=line)
        return
    if len(parts) != 2:
        raise InvalidMapError(f"Malformed metadata line: {line!r}")
    try:
        value = int(parts[1])
    except ValueError:
        raise InvalidMapError(f"{key} expects an integer, got {parts[1]!r}") from None
    setattr(mine, field, value)


def load_mine(path: Path | str, defaults: MineDefaults | None = None) -> Mine:
    """Read and parse a map file."""
    text = Path(path).read_text(encoding="utf-8")
    return parse_mine(text, defaults)


def serialize_mine(mine: Mine) -> str:
    """Write the mine's current layout and metadata in map text format.

    Every numeric setting is written out, so the text reads back the same
    whatever defaults the reader applies.
    """
    grid = mine.grid
    lines = [grid.row_text(y)[1:-1] for y in range(mine.height, 0, -1)]

    lines.append("")
    lines.append(f"Water {mine.water}")
    lines.append(f"Flooding {mine.flooding}")
    lines.append(f"Waterproof {mine.waterproof}")
    lines.append(f"Growth {mine.growth}")
    lines.append(f"Razors {mine.razors}")

    for trampoline in sorted(mine.trampoline_targets, key=lambda t: t.value):
        pos = mine.trampoline_position(trampoline)
        if mine.cell_at(pos) is trampoline:
            target = mine.trampoline_targets[trampoline]
            lines.append(f"Trampoline {trampoline.value} targets {target.value}")

    return "\n".join(lines) + "\n"
