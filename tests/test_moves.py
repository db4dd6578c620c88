"""Tests for move validation and execution."""

import pytest

from lambdamine.cells import Cell
from lambdamine.exceptions import (
    GameFinishedError,
    InvalidActionError,
    InvalidMapError,
    RobotKilledError,
)
from lambdamine.moves import MoveResolver
from lambdamine.route import format_route, parse_route
from lambdamine.state import Mine
from lambdamine.types import Action, FailureCause, Outcome, Position


class TestMoveValidation:
    """Tests for move legality."""

    def test_move_onto_earth(self, build):
        mine = build("#####", "#R. #", "#####")
        claim = MoveResolver(mine).validate_move(Action.RIGHT)

        assert claim is not None
        assert claim.from_pos == Position(x=2, y=2)
        assert claim.to_pos == Position(x=3, y=2)
        assert not claim.pushes_rock

    @pytest.mark.parametrize(
        "row,reason",
        [
            ("#R##", "wall"),
            ("#RW#", "beard"),
            ("#R1#", "target"),
        ],
    )
    def test_blocked(self, build, row, reason):
        mine = build("####", row, "####")
        resolver = MoveResolver(mine)
        assert resolver.validate_move(Action.RIGHT) is None
        assert resolver.rejection_reason(Action.RIGHT) == reason

    def test_closed_lift_blocks(self, build):
        mine = build("#####", "#RL\\#", "#####")
        assert MoveResolver(mine).rejection_reason(Action.RIGHT) == "closed_lift"

    def test_rock_pushable_sideways(self, build):
        mine = build("######", "#R* .#", "######")
        claim = MoveResolver(mine).validate_move(Action.RIGHT)
        assert claim is not None
        assert claim.pushes_rock

    def test_rock_blocked(self, build):
        mine = build("#####", "#R*.#", "#####")
        assert MoveResolver(mine).rejection_reason(Action.RIGHT) == "rock_blocked"

    def test_rock_not_pushable_up(self, build):
        mine = build(
            "#####",
            "# * #",
            "# R #",
            "#####",
        )
        assert (
            MoveResolver(mine).rejection_reason(Action.UP)
            == "rock_not_pushable_vertically"
        )


class TestApplyAction:
    """Tests for executing actions."""

    def test_move_clears_old_cell(self, build):
        mine = build("#####", "#R. #", "#####")
        result = mine.apply(Action.RIGHT)

        assert result.moved
        assert result.collected is Cell.EARTH
        assert mine.robot == Position(x=3, y=2)
        assert mine.cell_at(Position(x=2, y=2)) is Cell.EMPTY
        assert mine.cell_at(Position(x=3, y=2)) is Cell.ROBOT
        assert mine.moves_count == 1

    def test_illegal_move_still_counts_and_ticks(self, build):
        mine = build("####", "#R##", "####")
        result = mine.apply(Action.RIGHT)

        assert not result.moved
        assert result.rejection_reason == "wall"
        assert result.tick is not None
        assert mine.robot == Position(x=2, y=2)
        assert mine.moves_count == 1

    def test_wait_counts_and_ticks(self, build):
        mine = build("####", "#R #", "####")
        result = mine.apply(Action.WAIT)
        assert result.tick is not None
        assert mine.moves_count == 1

    def test_push_rock(self, build):
        mine = build("######", "#R* .#", "######")
        mine.apply(Action.RIGHT)

        assert mine.robot == Position(x=3, y=2)
        assert mine.cell_at(Position(x=4, y=2)) is Cell.ROCK
        assert mine.cell_at(Position(x=2, y=2)) is Cell.EMPTY

        result = mine.apply(Action.RIGHT)
        assert result.rejection_reason == "rock_blocked"

    def test_push_rock_left(self, build):
        mine = build("######", "#. *R#", "######")
        mine.apply(Action.LEFT)
        assert mine.cell_at(Position(x=3, y=2)) is Cell.ROCK
        assert mine.robot == Position(x=4, y=2)

    def test_collect_lambda(self, build):
        mine = build("######", "#R\\\\L#", "######")
        mine.apply(Action.RIGHT)
        assert mine.lambdas_gathered == 1
        assert mine.lambdas_remaining == 1
        assert not mine.lift_is_open

    def test_collect_razor(self, build):
        mine = build("####", "#R!#", "####")
        mine.apply(Action.RIGHT)
        assert mine.razors == 1

    def test_cut_beard(self, build):
        mine = build(
            "######",
            "#R!W #",
            "#  W #",
            "######",
        )
        mine.apply(Action.RIGHT)
        mine.apply(Action.CUT_BEARD)

        assert mine.razors == 0
        assert mine.beards == frozenset()
        assert mine.cell_at(Position(x=4, y=3)) is Cell.EMPTY
        assert mine.cell_at(Position(x=4, y=2)) is Cell.EMPTY
        assert mine.moves_count == 2

    def test_cut_without_razor(self, build):
        mine = build("####", "#RW#", "####")
        result = mine.apply(Action.CUT_BEARD)
        assert result.tick is not None
        assert mine.cell_at(Position(x=3, y=2)) is Cell.BEARD
        assert mine.moves_count == 1

    def test_mine_without_robot(self):
        mine = Mine(width=3, height=3)
        with pytest.raises(InvalidMapError, match="no robot"):
            mine.require_robot()
        with pytest.raises(InvalidMapError):
            mine.apply(Action.WAIT)
        assert mine.moves_count == 0
        assert len(mine.undo_log) == 0


class TestTrampolines:
    """Tests for trampoline jumps."""

    @pytest.fixture
    def mine(self, build) -> Mine:
        return build(
            "#######",
            "#RA  1#",
            "#B    #",
            "#######",
            metadata=("Trampoline A targets 1", "Trampoline B targets 1"),
        )

    def test_jump_lands_on_target(self, mine: Mine):
        result = mine.apply(Action.RIGHT)

        assert result.moved
        assert result.to_pos == Position(x=6, y=3)
        assert mine.robot == Position(x=6, y=3)
        assert mine.cell_at(Position(x=6, y=3)) is Cell.ROBOT
        assert mine.cell_at(Position(x=3, y=3)) is Cell.EMPTY
        assert mine.cell_at(Position(x=2, y=3)) is Cell.EMPTY

    def test_jump_clears_every_trampoline_to_target(self, mine: Mine):
        mine.apply(Action.RIGHT)
        assert mine.cell_at(Position(x=2, y=2)) is Cell.EMPTY


class TestTerminalStates:
    """Tests for actions after the game has ended."""

    def test_abort(self, build):
        mine = build("####", "#R #", "####")
        result = mine.apply(Action.ABORT)

        assert result.outcome is Outcome.ABORTED
        assert result.tick is None
        assert mine.moves_count == 0
        with pytest.raises(GameFinishedError) as exc_info:
            mine.apply(Action.WAIT)
        assert exc_info.value.outcome is Outcome.ABORTED

    def test_after_win(self, build):
        mine = build("####", "#RO#", "####")
        mine.apply(Action.RIGHT)
        assert mine.outcome is Outcome.WIN
        with pytest.raises(GameFinishedError):
            mine.apply(Action.LEFT)

    def test_after_crush(self, build):
        mine = build(
            "#####",
            "#*  #",
            "#   #",
            "#R  #",
            "#####",
        )
        mine.apply(Action.WAIT)
        with pytest.raises(RobotKilledError) as exc_info:
            mine.apply(Action.WAIT)
        assert exc_info.value.cause is FailureCause.CRUSHED

    def test_after_drown_is_not_killed_error(self, build):
        mine = build(
            "####",
            "#R #",
            "####",
            metadata=("Water 2", "Waterproof 0"),
        )
        mine.apply(Action.WAIT)
        assert mine.failure_cause is FailureCause.DROWNED
        with pytest.raises(GameFinishedError) as exc_info:
            mine.apply(Action.WAIT)
        assert not isinstance(exc_info.value, RobotKilledError)

    def test_apply_route_stops_at_terminal(self, build):
        mine = build("#####", "#R\\L#", "#####")
        results = mine.apply_route(parse_route("RRLLW"))
        assert len(results) == 2
        assert mine.outcome is Outcome.WIN
        assert mine.moves_count == 2


class TestRoute:
    """Tests for command strings."""

    def test_parse(self):
        assert parse_route("LRUDWAS") == [
            Action.LEFT,
            Action.RIGHT,
            Action.UP,
            Action.DOWN,
            Action.WAIT,
            Action.ABORT,
            Action.CUT_BEARD,
        ]

    def test_parse_ignores_whitespace_and_case(self):
        assert parse_route(" dl\nr ") == [Action.DOWN, Action.LEFT, Action.RIGHT]

    def test_parse_rejects_unknown(self):
        with pytest.raises(InvalidActionError):
            parse_route("LX")

    def test_format(self):
        assert format_route([Action.DOWN, Action.LEFT, Action.CUT_BEARD]) == "DLS"
