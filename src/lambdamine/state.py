"""Mine state management."""

from typing import Iterable

import structlog
from pydantic import BaseModel, PrivateAttr

from .cells import Cell
from .exceptions import InvalidMapError
from .grid import GridKind, GridStorage, make_grid
from .moves import StepResult, apply_action
from .physics import is_active, rock_destination
from .types import Action, FailureCause, Outcome, Position
from .undo import UndoLog, rollback

logger = structlog.get_logger()


class Counters(BaseModel, frozen=True):
    """Every numeric counter an action can change."""

    lambdas_gathered: int
    moves_count: int
    water: int
    ticks_since_safe: int
    steps_until_rise: int
    ticks_until_growth: int
    razors: int


class MineSnapshot(BaseModel, frozen=True):
    """Complete observable state of a mine, for comparison and reporting."""

    rows: tuple[str, ...]
    robot: Position
    lift: Position | None
    total_lambdas: int
    flooding: int
    waterproof: int
    growth: int
    counters: Counters
    outcome: Outcome
    failure_cause: FailureCause | None


class Mine(BaseModel):
    """
    Mutable mine state container.

    Coordinates are padded: the interior spans x in [1, width] and
    y in [1, height], row 1 at the bottom. Row and column 0 and
    width + 1 / height + 1 hold the Wall border, so neighbour lookups
    from any interior cell never leave the grid.
    """

    width: int
    height: int
    storage: GridKind = "dense"

    # Flooding
    water: int = 0
    flooding: int = 0
    waterproof: int = 10
    ticks_since_safe: int = 0
    steps_until_rise: int = 0

    # Beards and razors
    growth: int = 25
    ticks_until_growth: int = 0
    razors: int = 0

    lambdas_gathered: int = 0
    total_lambdas: int = 0
    moves_count: int = 0

    robot: Position | None = None
    lift: Position | None = None
    trampoline_targets: dict[Cell, Cell] = {}

    outcome: Outcome = Outcome.IN_PROGRESS
    failure_cause: FailureCause | None = None

    # Private attributes for internal state
    _grid: GridStorage = PrivateAttr()

    # Marker registries, filled while the layout is placed
    _targets: dict[Cell, Position] = PrivateAttr(default_factory=dict)
    _trampolines: dict[Cell, Position] = PrivateAttr(default_factory=dict)

    # Beard index, kept in step with the grid by set_cell
    _beards: set[Position] = PrivateAttr(default_factory=set)

    # Positions whose occupant may move on the next tick
    _active: set[Position] = PrivateAttr(default_factory=set)

    _undo_log: UndoLog = PrivateAttr(default_factory=UndoLog)

    def model_post_init(self, __context) -> None:
        self._grid = make_grid(self.storage, self.width + 2, self.height + 2)

    # --- Cell operations ---

    @property
    def grid(self) -> GridStorage:
        """Underlying storage. Treat as read-only outside the engine."""
        return self._grid

    def get(self, x: int, y: int) -> Cell:
        return self._grid.get(x, y)

    def cell_at(self, position: Position) -> Cell:
        return self._grid.get(position.x, position.y)

    def require_robot(self) -> Position:
        """The robot's position.

        Raises:
            InvalidMapError: If no robot has been placed yet.
        """
        if self.robot is None:
            raise InvalidMapError("Mine has no robot")
        return self.robot

    def in_interior(self, position: Position) -> bool:
        """Check if position lies inside the wall border."""
        return 1 <= position.x <= self.width and 1 <= position.y <= self.height

    def set_cell(self, position: Position, cell: Cell) -> None:
        """Write a cell, keeping the beard index in step."""
        if self.cell_at(position) is Cell.BEARD:
            self._beards.discard(position)
        self._grid.set(position.x, position.y, cell)
        if cell is Cell.BEARD:
            self._beards.add(position)

    def place(self, position: Position, cell: Cell) -> None:
        """Write a layout cell during construction and register its role.

        Raises:
            InvalidMapError: If the position is outside the interior, or a
                second robot, lift, or duplicate marker is placed.
        """
        if not self.in_interior(position):
            raise InvalidMapError(f"Position {position} is outside the mine")
        if cell is Cell.ROBOT:
            if self.robot is not None:
                raise InvalidMapError(f"Second robot at {position}")
            self.robot = position
        elif cell.is_lift:
            if self.lift is not None:
                raise InvalidMapError(f"Second lift at {position}")
            self.lift = position
        elif cell is Cell.LAMBDA or cell is Cell.LAMBDA_ROCK:
            self.total_lambdas += 1
        elif cell.is_target:
            if cell in self._targets:
                raise InvalidMapError(f"Duplicate target {cell.value!r}")
            self._targets[cell] = position
        elif cell.is_trampoline:
            if cell in self._trampolines:
                raise InvalidMapError(f"Duplicate trampoline {cell.value!r}")
            self._trampolines[cell] = position
        self.set_cell(position, cell)

    def bind_trampoline(self, trampoline: Cell, target: Cell) -> None:
        """Record that stepping on trampoline leads to target."""
        if not trampoline.is_trampoline:
            raise InvalidMapError(f"{trampoline.value!r} is not a trampoline")
        if not target.is_target:
            raise InvalidMapError(f"{target.value!r} is not a target")
        self.trampoline_targets[trampoline] = target

    def initialize(self) -> None:
        """Validate the placed layout and derive per-tick bookkeeping.

        Call once after every cell and trampoline binding is placed.

        Raises:
            InvalidMapError: If there is no robot or a trampoline binding
                does not match the layout.
        """
        if self.robot is None:
            raise InvalidMapError("Map has no robot")
        for trampoline in self._trampolines:
            if trampoline not in self.trampoline_targets:
                raise InvalidMapError(f"Trampoline {trampoline.value!r} has no target")
        for trampoline, target in self.trampoline_targets.items():
            if trampoline not in self._trampolines:
                raise InvalidMapError(f"Trampoline {trampoline.value!r} is not on the map")
            if target not in self._targets:
                raise InvalidMapError(f"Target {target.value!r} is not on the map")

        self.steps_until_rise = self.flooding
        self.ticks_until_growth = self.growth
        self.ticks_since_safe = 0

        if (
            self.lift is not None
            and self.lambdas_gathered == self.total_lambdas
            and self.cell_at(self.lift) is Cell.CLOSED_LIFT
        ):
            self.set_cell(self.lift, Cell.OPEN_LIFT)

        self._active = {
            Position(x=x, y=y)
            for y in range(1, self.height + 1)
            for x in range(1, self.width + 1)
            if is_active(self._grid.get, x, y, self.growth)
        }
        logger.debug(
            "mine_initialized",
            width=self.width,
            height=self.height,
            lambdas=self.total_lambdas,
            active=len(self._active),
        )

    # --- Registries ---

    def target_position(self, target: Cell) -> Position:
        return self._targets[target]

    def trampoline_position(self, trampoline: Cell) -> Position:
        return self._trampolines[trampoline]

    def trampoline_destination(self, trampoline: Cell) -> Position:
        """Where the robot lands after stepping on trampoline."""
        return self._targets[self.trampoline_targets[trampoline]]

    def trampolines_for(self, target: Cell) -> list[Cell]:
        """All trampolines bound to target, in legend order."""
        return sorted(
            (t for t, tgt in self.trampoline_targets.items() if tgt is target),
            key=lambda t: t.value,
        )

    @property
    def beards(self) -> frozenset[Position]:
        return frozenset(self._beards)

    @property
    def active_positions(self) -> frozenset[Position]:
        return frozenset(self._active)

    @property
    def has_active_rocks(self) -> bool:
        """Whether waiting would move at least one rock."""
        get = self._grid.get
        return any(rock_destination(get, p.x, p.y) is not None for p in self._active)

    # --- Activity tracking ---

    def activate_around(self, position: Position) -> None:
        """Add every cell in the 3x3 block around position that can move."""
        for p in position.neighborhood():
            if self._grid.in_bounds(p.x, p.y) and is_active(
                self._grid.get, p.x, p.y, self.growth
            ):
                self._active.add(p)

    def replace_active(self, positions: Iterable[Position]) -> None:
        self._active = set(positions)

    def refresh_active(self, around: Iterable[Position]) -> None:
        """Re-evaluate the active set together with the blocks around positions."""
        candidates = set(self._active)
        for position in around:
            candidates.update(position.neighborhood())
        self._active = {
            p
            for p in candidates
            if self._grid.in_bounds(p.x, p.y)
            and is_active(self._grid.get, p.x, p.y, self.growth)
        }

    # --- Derived state ---

    @property
    def lift_is_open(self) -> bool:
        return self.lift is not None and self.cell_at(self.lift) is Cell.OPEN_LIFT

    @property
    def lambdas_remaining(self) -> int:
        return self.total_lambdas - self.lambdas_gathered

    def is_submerged(self, position: Position) -> bool:
        """Check if a position is at or below the water level."""
        return position.y <= self.water

    def counters(self) -> Counters:
        return Counters(
            lambdas_gathered=self.lambdas_gathered,
            moves_count=self.moves_count,
            water=self.water,
            ticks_since_safe=self.ticks_since_safe,
            steps_until_rise=self.steps_until_rise,
            ticks_until_growth=self.ticks_until_growth,
            razors=self.razors,
        )

    def restore_counters(self, counters: Counters) -> None:
        for name, value in counters:
            setattr(self, name, value)

    def snapshot(self) -> MineSnapshot:
        return MineSnapshot(
            rows=tuple(self._grid.rows()),
            robot=self.require_robot(),
            lift=self.lift,
            total_lambdas=self.total_lambdas,
            flooding=self.flooding,
            waterproof=self.waterproof,
            growth=self.growth,
            counters=self.counters(),
            outcome=self.outcome,
            failure_cause=self.failure_cause,
        )

    def clone(self) -> "Mine":
        """Independent copy with its own grid and an empty undo log."""
        copy = self.model_copy(
            update={"trampoline_targets": dict(self.trampoline_targets)}
        )
        copy._grid = self._grid.copy()
        copy._targets = dict(self._targets)
        copy._trampolines = dict(self._trampolines)
        copy._beards = set(self._beards)
        copy._active = set(self._active)
        copy._undo_log = UndoLog()
        return copy

    # --- Play ---

    @property
    def undo_log(self) -> UndoLog:
        return self._undo_log

    @property
    def undo_depth(self) -> int:
        """Number of actions that can currently be rolled back."""
        if self.moves_count == 0:
            return 0
        return len(self._undo_log)

    def apply(self, action: Action) -> StepResult:
        """Execute one action followed by its physics tick."""
        return apply_action(self, action)

    def apply_route(self, actions: Iterable[Action]) -> list[StepResult]:
        """Apply actions in order, stopping once the game has ended."""
        results: list[StepResult] = []
        for action in actions:
            if self.outcome.is_terminal:
                break
            results.append(self.apply(action))
        return results

    def rollback(self) -> bool:
        """Undo the most recent action. Returns False if nothing to undo."""
        return rollback(self)
