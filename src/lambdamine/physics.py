"""Per-tick physics: falling rocks, beard growth, lift, water and deaths."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

import structlog

from .cells import Cell
from .types import FailureCause, Outcome, Position
from .undo import CellWrite, Displacement, DisplacementKind, UndoFrame

if TYPE_CHECKING:
    from .state import Mine

logger = structlog.get_logger()

CellReader = Callable[[int, int], Cell]

# Drowning rule: with True the robot survives exactly `waterproof` submerged
# ticks and drowns on the next one; with False it drowns on the
# `waterproof`-th submerged tick.
DROWN_ON_EXCEEDED_ALLOWANCE = True

# Neighbour offsets a beard spreads into
_GROWTH_OFFSETS: tuple[tuple[int, int], ...] = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
)


def rock_destination(get: CellReader, x: int, y: int) -> tuple[int, int] | None:
    """
    Where the rock at (x, y) moves this tick, or None if it stays.

    Rules in priority order:
    1. Straight down into an Empty cell.
    2. Resting on a rock: slide right-down if right and right-below are Empty.
    3. Resting on a rock: otherwise slide left-down if left and left-below
       are Empty.
    4. Resting on a lambda: slide right-down if right and right-below are
       Empty.
    """
    if not get(x, y).is_rock:
        return None
    below = get(x, y - 1)
    if below is Cell.EMPTY:
        return (x, y - 1)
    if below.is_rock:
        if get(x + 1, y) is Cell.EMPTY and get(x + 1, y - 1) is Cell.EMPTY:
            return (x + 1, y - 1)
        if get(x - 1, y) is Cell.EMPTY and get(x - 1, y - 1) is Cell.EMPTY:
            return (x - 1, y - 1)
        return None
    if below is Cell.LAMBDA:
        if get(x + 1, y) is Cell.EMPTY and get(x + 1, y - 1) is Cell.EMPTY:
            return (x + 1, y - 1)
    return None


def landing_cell(get: CellReader, rock: Cell, x: int, y: int) -> Cell:
    """Cell written at destination (x, y) for a falling rock.

    A lambda rock that lands on anything but Empty breaks open.
    """
    if rock is Cell.LAMBDA_ROCK and get(x, y - 1) is not Cell.EMPTY:
        return Cell.LAMBDA
    return rock


def is_active(get: CellReader, x: int, y: int, growth: int) -> bool:
    """Whether the cell at (x, y) may change on the next tick."""
    if rock_destination(get, x, y) is not None:
        return True
    return growth == 1 and get(x, y) is Cell.BEARD


def is_drowned(ticks_since_safe: int, waterproof: int) -> bool:
    """Whether a submerged streak exhausts the waterproof allowance."""
    if DROWN_ON_EXCEEDED_ALLOWANCE:
        return ticks_since_safe > waterproof
    return ticks_since_safe >= waterproof


def _scan_order(position: Position) -> tuple[int, int]:
    return (position.y, position.x)


@dataclass(frozen=True)
class RockMove:
    """A planned rock displacement, computed from the pre-tick grid."""

    source: Position
    destination: Position
    rock: Cell
    landed: Cell


@dataclass
class TickResult:
    """Result of a completed tick."""

    displacements: list[Displacement] = field(default_factory=list)
    grown: list[Position] = field(default_factory=list)
    lift_opened: bool = False
    water_rose: bool = False
    crushed: bool = False
    drowned: bool = False


def plan_rock_moves(mine: "Mine") -> list[RockMove]:
    """Evaluate the fall predicate for every active position."""
    get = mine.grid.get
    moves: list[RockMove] = []
    for pos in sorted(mine.active_positions, key=_scan_order):
        dest = rock_destination(get, pos.x, pos.y)
        if dest is None:
            continue
        rock = get(pos.x, pos.y)
        moves.append(
            RockMove(
                source=pos,
                destination=Position(x=dest[0], y=dest[1]),
                rock=rock,
                landed=landing_cell(get, rock, dest[0], dest[1]),
            )
        )
    return moves


def plan_growth(mine: "Mine") -> dict[Position, Position]:
    """Advance the growth countdown and collect cells beards spread into.

    Returns a mapping of newly grown cell -> the beard it grew from. Every
    eligible neighbour of every beard grows at once.
    """
    if mine.growth <= 0:
        return {}
    mine.ticks_until_growth -= 1
    if mine.ticks_until_growth > 0:
        return {}
    mine.ticks_until_growth = mine.growth

    get = mine.grid.get
    grown: dict[Position, Position] = {}
    for beard in sorted(mine.beards, key=_scan_order):
        for dx, dy in _GROWTH_OFFSETS:
            x, y = beard.x + dx, beard.y + dy
            if get(x, y) is Cell.EMPTY:
                grown.setdefault(Position(x=x, y=y), beard)
    return grown


def run_tick(mine: "Mine", frame: UndoFrame) -> TickResult:
    """
    Advance the mine by one tick, recording every change in frame.

    Order:
    1. Plan rock moves for the active set
    2. Plan beard growth
    3. Apply rock moves, then growth into cells still Empty
    4. Open the lift once every lambda is gathered
    5. Win check
    6. Flood bookkeeping
    7. Deaths (crushing beats drowning)
    """
    result = TickResult()
    rock_moves = plan_rock_moves(mine)
    growth_moves = plan_growth(mine)

    touched: list[Position] = []
    robot = mine.require_robot()

    for move in rock_moves:
        previous = mine.cell_at(move.destination)
        mine.set_cell(move.source, Cell.EMPTY)
        mine.set_cell(move.destination, move.landed)
        displacement = Displacement(
            kind=DisplacementKind.FALL,
            source=move.source,
            destination=move.destination,
            cell=move.rock,
            previous=previous,
        )
        frame.displacements.append(displacement)
        result.displacements.append(displacement)
        touched.append(move.source)
        touched.append(move.destination)
        if move.destination.x == robot.x and move.destination.y == robot.y + 1:
            result.crushed = True

    for cell_pos, beard in sorted(growth_moves.items(), key=lambda kv: _scan_order(kv[0])):
        if mine.cell_at(cell_pos) is not Cell.EMPTY:
            continue
        mine.set_cell(cell_pos, Cell.BEARD)
        displacement = Displacement(
            kind=DisplacementKind.GROW,
            source=beard,
            destination=cell_pos,
            cell=Cell.BEARD,
            previous=Cell.EMPTY,
        )
        frame.displacements.append(displacement)
        result.displacements.append(displacement)
        result.grown.append(cell_pos)
        touched.append(cell_pos)

    mine.replace_active([])
    for pos in touched:
        mine.activate_around(pos)

    # Lift
    if (
        mine.lift is not None
        and mine.lambdas_gathered == mine.total_lambdas
        and mine.cell_at(mine.lift) is Cell.CLOSED_LIFT
    ):
        frame.overwritten.append(CellWrite(position=mine.lift, previous=Cell.CLOSED_LIFT))
        mine.set_cell(mine.lift, Cell.OPEN_LIFT)
        result.lift_opened = True
        logger.info("lift_opened", lift=str(mine.lift), moves=mine.moves_count)

    if robot == mine.lift and mine.lift_is_open:
        mine.outcome = Outcome.WIN
        logger.info("mine_won", moves=mine.moves_count, lambdas=mine.lambdas_gathered)

    # Flooding
    if mine.is_submerged(robot):
        mine.ticks_since_safe += 1
    else:
        mine.ticks_since_safe = 0
    if mine.flooding > 0:
        mine.steps_until_rise -= 1
        if mine.steps_until_rise == 0:
            mine.water += 1
            mine.steps_until_rise = mine.flooding
            result.water_rose = True
    result.drowned = is_drowned(mine.ticks_since_safe, mine.waterproof)

    if mine.outcome is not Outcome.WIN:
        if result.crushed:
            mine.outcome = Outcome.FAIL
            mine.failure_cause = FailureCause.CRUSHED
            logger.info("robot_crushed", robot=str(robot), moves=mine.moves_count)
        elif result.drowned:
            mine.outcome = Outcome.FAIL
            mine.failure_cause = FailureCause.DROWNED
            logger.info("robot_drowned", robot=str(robot), water=mine.water)

    logger.debug(
        "tick_processed",
        moves=mine.moves_count,
        rocks_moved=len(rock_moves),
        grown=len(result.grown),
        water=mine.water,
        active=len(mine.active_positions),
    )
    return result
