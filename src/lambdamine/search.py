"""Breadth-first reachability search with rock and water safety prediction."""

from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Iterator

import structlog

from .cells import Cell
from .physics import is_drowned, rock_destination
from .route import format_route
from .state import Mine
from .types import Action, Position

logger = structlog.get_logger()

DEFAULT_MOVE_ORDER: tuple[Action, ...] = (Action.DOWN, Action.LEFT, Action.RIGHT, Action.UP)


@dataclass(frozen=True)
class Route:
    """Shortest safe action sequence from the search start to a cell."""

    position: Position
    cell: Cell
    actions: tuple[Action, ...]

    @property
    def commands(self) -> str:
        """Route as a command string, e.g. "DLL"."""
        return format_route(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def __str__(self) -> str:
        return f"{self.position} via {self.commands}"


@dataclass
class SearchResult:
    """Everything a finished search reached."""

    targets: list[Route] = field(default_factory=list)
    lift: Route | None = None
    explored: int = 0


@dataclass(frozen=True)
class _Step:
    position: Position
    steps: int
    streak: int  # Consecutive submerged ticks on arrival
    parent: "_Step | None" = None
    action: Action | None = None

    def actions(self) -> tuple[Action, ...]:
        moves: list[Action] = []
        step: _Step | None = self
        while step is not None and step.action is not None:
            moves.append(step.action)
            step = step.parent
        return tuple(reversed(moves))


class MineView:
    """Read-only cell accessor that treats some positions as Empty."""

    def __init__(self, mine: Mine, cleared: Iterable[Position] = ()):
        self._get = mine.grid.get
        self._cleared = {(p.x, p.y) for p in cleared}

    def get(self, x: int, y: int) -> Cell:
        if (x, y) in self._cleared:
            return Cell.EMPTY
        return self._get(x, y)


def water_level_at(mine: Mine, tick: int) -> int:
    """Water level checked during the tick-th tick from now (1-based)."""
    if mine.flooding <= 0 or tick <= 1:
        return mine.water
    elapsed = tick - 1
    if elapsed < mine.steps_until_rise:
        return mine.water
    return mine.water + 1 + (elapsed - mine.steps_until_rise) // mine.flooding


def submerged_streak(mine: Mine, position: Position, steps: int, streak: int) -> int:
    """Submerged-tick streak after arriving at position on move number steps."""
    if position.y <= water_level_at(mine, steps):
        return streak + 1
    return 0


def is_safe_step(
    mine: Mine,
    from_pos: Position,
    to_pos: Position,
    steps: int,
    streak: int = 0,
) -> bool:
    """
    Predict whether arriving at to_pos on move number steps is survivable.

    Unsafe when:
    - the submerged streak on arrival exhausts the waterproof allowance
    - stepping down releases a rock into the cell directly above to_pos
    - a rock steps + 1 rows above to_pos starts falling into its column and
      would reach the cell directly above to_pos on the arrival tick

    Rocks are judged on the current grid with the robot's cell and from_pos
    treated as Empty. The mine is never modified.
    """
    if is_drowned(submerged_streak(mine, to_pos, steps, streak), mine.waterproof):
        return False

    cleared = [from_pos] if mine.robot is None else [from_pos, mine.robot]
    view = MineView(mine, cleared)
    above = (to_pos.x, to_pos.y + 1)

    if to_pos.y == from_pos.y - 1:
        for x in range(to_pos.x - 1, to_pos.x + 2):
            if rock_destination(view.get, x, to_pos.y + 2) == above:
                return False

    y = to_pos.y + steps + 1
    if y < mine.grid.height:
        column_clear = all(
            view.get(to_pos.x, row) is Cell.EMPTY for row in range(to_pos.y + 1, y - 1)
        )
        if column_clear:
            for x in range(to_pos.x - 1, to_pos.x + 2):
                if rock_destination(view.get, x, y) == (to_pos.x, y - 1):
                    return False

    return True


class ReachabilitySearch:
    """
    Breadth-first search over robot moves, pruning unsafe cells.

    Rocks are never pushed. Trampolines are followed to their target.
    Lifts (open or closed) are recorded in `lift` but not expanded.

    Usage:
        search = ReachabilitySearch(mine)
        for route in search.targets():
            ...
        search.lift  # Route to the lift, if seen

    The generator may be abandoned at any point.
    """

    def __init__(
        self,
        mine: Mine,
        start: Position | None = None,
        move_order: tuple[Action, ...] = DEFAULT_MOVE_ORDER,
        collect: frozenset[Cell] = frozenset({Cell.LAMBDA}),
    ):
        if start is None:
            if mine.robot is None:
                raise ValueError("Mine has no robot to start from")
            start = mine.robot
        if any(not action.is_directional for action in move_order):
            raise ValueError(f"Search moves must be directional: {move_order}")
        self.mine = mine
        self.start = start
        self.move_order = move_order
        self.collect = collect
        self.lift: Route | None = None
        self.explored = 0

    def _passable(self, cell: Cell) -> bool:
        return cell.can_walk_onto or cell is Cell.ROBOT

    def targets(self) -> Iterator[Route]:
        """Yield a Route to every collectible cell, nearest first."""
        mine = self.mine
        root = _Step(position=self.start, steps=0, streak=mine.ticks_since_safe)
        frontier: deque[_Step] = deque([root])
        visited: set[Position] = {self.start}

        while frontier:
            node = frontier.popleft()
            self.explored += 1
            cell = mine.cell_at(node.position)
            if cell in self.collect:
                yield Route(position=node.position, cell=cell, actions=node.actions())

            for action in self.move_order:
                nxt = node.position.offset(action)
                if nxt in visited:
                    continue
                nxt_cell = mine.cell_at(nxt)

                if nxt_cell.is_lift:
                    if self.lift is None and is_safe_step(
                        mine, node.position, nxt, node.steps + 1, node.streak
                    ):
                        visited.add(nxt)
                        self.lift = Route(
                            position=nxt,
                            cell=nxt_cell,
                            actions=node.actions() + (action,),
                        )
                    continue
                if not self._passable(nxt_cell):
                    continue

                landing = nxt
                if nxt_cell.is_trampoline:
                    landing = mine.trampoline_destination(nxt_cell)
                    if landing in visited:
                        continue

                steps = node.steps + 1
                if not is_safe_step(mine, node.position, landing, steps, node.streak):
                    continue

                visited.add(nxt)
                visited.add(landing)
                frontier.append(
                    _Step(
                        position=landing,
                        steps=steps,
                        streak=submerged_streak(mine, landing, steps, node.streak),
                        parent=node,
                        action=action,
                    )
                )

        logger.debug(
            "search_finished",
            start=str(self.start),
            explored=self.explored,
            lift_found=self.lift is not None,
        )

    def run(self) -> SearchResult:
        """Exhaust the search and collect everything it reached."""
        found = list(self.targets())
        return SearchResult(targets=found, lift=self.lift, explored=self.explored)


def find_routes(mine: Mine, start: Position | None = None) -> SearchResult:
    """Convenience wrapper: run a default search from start (or the robot)."""
    return ReachabilitySearch(mine, start=start).run()
