"""Per-action undo frames and rollback."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator

import structlog

from .cells import Cell
from .types import Action, FailureCause, Outcome, Position

if TYPE_CHECKING:
    from .state import Counters, Mine

logger = structlog.get_logger()


class DisplacementKind(str, Enum):
    """What moved an object from one cell to another."""

    PUSH = "push"  # Robot pushed a rock sideways
    FALL = "fall"  # Rock fell or slid during a tick
    GROW = "grow"  # Beard spread into a neighbour; the source keeps its beard


@dataclass(frozen=True)
class Displacement:
    """One object moving between cells.

    previous is what the destination held immediately before the write.
    """

    kind: DisplacementKind
    source: Position
    destination: Position
    cell: Cell
    previous: Cell


@dataclass(frozen=True)
class CellWrite:
    """A cell overwritten as a side effect (collection, teleport, cut, lift)."""

    position: Position
    previous: Cell


@dataclass
class UndoFrame:
    """Everything needed to reverse one action and its tick."""

    action: Action
    robot_from: Position
    robot_to: Position
    counters: "Counters"
    outcome: Outcome
    failure_cause: FailureCause | None = None
    displacements: list[Displacement] = field(default_factory=list)
    overwritten: list[CellWrite] = field(default_factory=list)

    def touched_positions(self) -> set[Position]:
        """Every position whose content this frame changed."""
        touched = {self.robot_from, self.robot_to}
        for d in self.displacements:
            touched.add(d.source)
            touched.add(d.destination)
        for w in self.overwritten:
            touched.add(w.position)
        return touched


class UndoLog:
    """Append-only stack of undo frames, newest last."""

    def __init__(self) -> None:
        self._frames: list[UndoFrame] = []

    def push(self, frame: UndoFrame) -> None:
        self._frames.append(frame)

    def pop(self) -> UndoFrame:
        return self._frames.pop()

    def peek(self) -> UndoFrame | None:
        return self._frames[-1] if self._frames else None

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[UndoFrame]:
        return iter(self._frames)


def rollback(mine: "Mine") -> bool:
    """
    Reverse the most recent action.

    Restores, in reverse order of application: displacements, overwritten
    cells, the robot position, then counters and outcome. The active set is
    re-evaluated on the restored grid, widened by the 3x3 blocks around
    every touched position.

    Returns:
        False (and changes nothing) if the log is empty or no moves were made.
    """
    log = mine.undo_log
    if len(log) == 0 or mine.moves_count == 0:
        logger.debug("rollback_rejected", depth=len(log), moves=mine.moves_count)
        return False

    frame = log.pop()

    for d in reversed(frame.displacements):
        if d.kind is not DisplacementKind.GROW:
            mine.set_cell(d.source, d.cell)
        mine.set_cell(d.destination, d.previous)

    for w in reversed(frame.overwritten):
        mine.set_cell(w.position, w.previous)

    mine.set_cell(frame.robot_from, Cell.ROBOT)
    mine.robot = frame.robot_from

    mine.restore_counters(frame.counters)
    mine.outcome = frame.outcome
    mine.failure_cause = frame.failure_cause

    mine.refresh_active(frame.touched_positions())

    logger.debug(
        "rollback_applied",
        action=frame.action.name,
        displacements=len(frame.displacements),
        depth=len(log),
    )
    return True
