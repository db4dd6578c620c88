"""Move validation and single-action execution."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from .cells import Cell
from .exceptions import GameFinishedError, RobotKilledError
from .physics import TickResult, run_tick
from .types import Action, FailureCause, Outcome, Position
from .undo import CellWrite, Displacement, DisplacementKind, UndoFrame

if TYPE_CHECKING:
    from .state import Mine

logger = structlog.get_logger()


@dataclass(frozen=True)
class MoveClaim:
    """A validated robot move ready to be enacted."""

    action: Action
    from_pos: Position
    to_pos: Position
    pushes_rock: bool = False


@dataclass
class StepResult:
    """Result of applying a single action."""

    action: Action
    from_pos: Position
    to_pos: Position  # Same as from_pos if the robot did not move
    outcome: Outcome
    moved: bool = False
    collected: Cell | None = None
    tick: TickResult | None = None
    failure_cause: FailureCause | None = None
    rejection_reason: str | None = None


class MoveResolver:
    """
    Validates and enacts robot moves against a mine.

    Legality rules:
    - Wall, target markers, a closed lift and beards block the robot
    - A rock may only be pushed sideways, into an Empty cell
    - Everything else the robot can walk onto
    """

    def __init__(self, mine: "Mine"):
        self.mine = mine

    def rejection_reason(self, action: Action) -> str | None:
        """Why a directional move is illegal, or None if it is legal."""
        mine = self.mine
        to_pos = mine.require_robot().offset(action)
        cell = mine.cell_at(to_pos)

        if cell is Cell.WALL:
            return "wall"
        if cell.is_target:
            return "target"
        if cell is Cell.CLOSED_LIFT:
            return "closed_lift"
        if cell is Cell.BEARD:
            return "beard"
        if cell.is_rock:
            if action not in (Action.LEFT, Action.RIGHT):
                return "rock_not_pushable_vertically"
            beyond = to_pos.offset(action)
            if mine.cell_at(beyond) is not Cell.EMPTY:
                return "rock_blocked"
            return None
        if not cell.can_walk_onto:
            return "obstacle"
        return None

    def validate_move(self, action: Action) -> MoveClaim | None:
        """
        Validate a directional action and return a MoveClaim if legal.
        Returns None if the move is illegal (robot stays in place).
        """
        mine = self.mine
        robot = mine.require_robot()
        reason = self.rejection_reason(action)
        if reason is not None:
            logger.debug("move_rejected", action=action.name, reason=reason)
            return None
        to_pos = robot.offset(action)
        return MoveClaim(
            action=action,
            from_pos=robot,
            to_pos=to_pos,
            pushes_rock=mine.cell_at(to_pos).is_rock,
        )

    def enact(self, claim: MoveClaim, frame: UndoFrame) -> Cell:
        """Apply a validated move. Returns what the destination held."""
        mine = self.mine
        dest_cell = mine.cell_at(claim.to_pos)
        frame.overwritten.append(CellWrite(position=claim.to_pos, previous=dest_cell))
        robot_to = claim.to_pos

        if dest_cell is Cell.LAMBDA:
            mine.lambdas_gathered += 1
        elif dest_cell is Cell.RAZOR:
            mine.razors += 1
        elif dest_cell.is_trampoline:
            robot_to = self._jump(dest_cell, claim.to_pos, frame)
        elif dest_cell is Cell.OPEN_LIFT:
            mine.outcome = Outcome.WIN
            logger.info("mine_won", moves=mine.moves_count, lambdas=mine.lambdas_gathered)
        elif claim.pushes_rock:
            beyond = claim.to_pos.offset(claim.action)
            mine.set_cell(beyond, dest_cell)
            frame.displacements.append(
                Displacement(
                    kind=DisplacementKind.PUSH,
                    source=claim.to_pos,
                    destination=beyond,
                    cell=dest_cell,
                    previous=Cell.EMPTY,
                )
            )
            mine.activate_around(beyond)

        mine.set_cell(claim.from_pos, Cell.EMPTY)
        if mine.outcome is not Outcome.WIN:
            mine.set_cell(robot_to, Cell.ROBOT)
        mine.robot = robot_to
        frame.robot_to = robot_to

        mine.activate_around(claim.from_pos)
        mine.activate_around(claim.to_pos)
        if robot_to != claim.to_pos:
            mine.activate_around(robot_to)
        return dest_cell

    def _jump(self, trampoline: Cell, entry: Position, frame: UndoFrame) -> Position:
        """Teleport through trampoline and clear every trampoline sharing its target."""
        mine = self.mine
        target = mine.trampoline_targets[trampoline]
        landing = mine.target_position(target)
        frame.overwritten.append(CellWrite(position=landing, previous=target))

        for other in mine.trampolines_for(target):
            pos = mine.trampoline_position(other)
            if mine.cell_at(pos) is not other:
                continue
            if pos != entry:
                frame.overwritten.append(CellWrite(position=pos, previous=other))
            mine.set_cell(pos, Cell.EMPTY)
            mine.activate_around(pos)

        logger.debug(
            "robot_teleported",
            trampoline=trampoline.value,
            target=target.value,
            landing=str(landing),
        )
        return landing

    def cut_beard(self, frame: UndoFrame) -> int:
        """Use a razor on every beard adjacent to the robot. Returns cells cut."""
        mine = self.mine
        robot = mine.require_robot()
        if mine.razors <= 0:
            logger.debug("cut_rejected_no_razor")
            return 0
        mine.razors -= 1
        cut = 0
        for pos in robot.neighborhood():
            if mine.cell_at(pos) is Cell.BEARD:
                frame.overwritten.append(CellWrite(position=pos, previous=Cell.BEARD))
                mine.set_cell(pos, Cell.EMPTY)
                mine.activate_around(pos)
                cut += 1
        logger.debug("beard_cut", cells=cut, razors_left=mine.razors)
        return cut


def check_playable(mine: "Mine") -> None:
    """
    Raise if the mine no longer accepts actions.

    Raises:
        RobotKilledError: If the robot was crushed.
        GameFinishedError: For any other terminal outcome.
    """
    if not mine.outcome.is_terminal:
        return
    message = f"Game already finished: {mine.outcome.value}"
    if mine.failure_cause is FailureCause.CRUSHED:
        raise RobotKilledError(message, mine.outcome, mine.failure_cause)
    raise GameFinishedError(message, mine.outcome, mine.failure_cause)


def apply_action(mine: "Mine", action: Action) -> StepResult:
    """
    Execute one action and, unless it won the game, the following tick.

    Illegal moves leave the robot in place but still count as a move and
    still advance the tick.

    Raises:
        GameFinishedError: If the outcome is no longer InProgress.
        InvalidMapError: If the mine has no robot.
    """
    check_playable(mine)
    robot = mine.require_robot()

    frame = UndoFrame(
        action=action,
        robot_from=robot,
        robot_to=robot,
        counters=mine.counters(),
        outcome=mine.outcome,
        failure_cause=mine.failure_cause,
    )
    mine.undo_log.push(frame)

    if action is Action.ABORT:
        mine.outcome = Outcome.ABORTED
        logger.info("mine_aborted", moves=mine.moves_count, lambdas=mine.lambdas_gathered)
        return StepResult(
            action=action, from_pos=robot, to_pos=robot, outcome=mine.outcome
        )

    mine.moves_count += 1
    resolver = MoveResolver(mine)
    result = StepResult(action=action, from_pos=robot, to_pos=robot, outcome=mine.outcome)

    if action.is_directional:
        claim = resolver.validate_move(action)
        if claim is not None:
            result.collected = resolver.enact(claim, frame)
            result.moved = True
            result.to_pos = frame.robot_to
        else:
            result.rejection_reason = resolver.rejection_reason(action)
    elif action is Action.CUT_BEARD:
        resolver.cut_beard(frame)

    if mine.outcome is not Outcome.WIN:
        result.tick = run_tick(mine, frame)

    result.outcome = mine.outcome
    result.failure_cause = mine.failure_cause
    return result
