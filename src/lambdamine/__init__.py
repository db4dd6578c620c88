"""Lambda mine simulation core."""

from .cells import TARGETS, TRAMPOLINES, Cell
from .config import Config, MineDefaults, SearchConfig, find_config, load_config
from .exceptions import (
    GameFinishedError,
    InvalidActionError,
    InvalidMapError,
    MineError,
    RobotKilledError,
)
from .grid import ChunkedGrid, DenseGrid, GridStorage, make_grid
from .mapfile import load_mine, parse_mine, serialize_mine
from .moves import MoveClaim, MoveResolver, StepResult, apply_action
from .physics import TickResult, is_active, rock_destination, run_tick
from .route import format_route, parse_route
from .search import (
    DEFAULT_MOVE_ORDER,
    ReachabilitySearch,
    Route,
    SearchResult,
    find_routes,
    is_safe_step,
    water_level_at,
)
from .state import Counters, Mine, MineSnapshot
from .types import ACTION_DELTAS, Action, FailureCause, Outcome, Position
from .undo import Displacement, DisplacementKind, UndoFrame, UndoLog, rollback

__all__ = [
    # Types
    "Action",
    "Outcome",
    "FailureCause",
    "Position",
    "ACTION_DELTAS",
    # Cells
    "Cell",
    "TRAMPOLINES",
    "TARGETS",
    # Grid
    "GridStorage",
    "DenseGrid",
    "ChunkedGrid",
    "make_grid",
    # State
    "Mine",
    "Counters",
    "MineSnapshot",
    # Map text
    "parse_mine",
    "load_mine",
    "serialize_mine",
    # Routes
    "parse_route",
    "format_route",
    # Physics
    "TickResult",
    "rock_destination",
    "is_active",
    "run_tick",
    # Moves
    "MoveClaim",
    "MoveResolver",
    "StepResult",
    "apply_action",
    # Undo
    "Displacement",
    "DisplacementKind",
    "UndoFrame",
    "UndoLog",
    "rollback",
    # Search
    "DEFAULT_MOVE_ORDER",
    "ReachabilitySearch",
    "Route",
    "SearchResult",
    "find_routes",
    "is_safe_step",
    "water_level_at",
    # Config
    "Config",
    "MineDefaults",
    "SearchConfig",
    "load_config",
    "find_config",
    # Exceptions
    "MineError",
    "InvalidMapError",
    "InvalidActionError",
    "GameFinishedError",
    "RobotKilledError",
]
