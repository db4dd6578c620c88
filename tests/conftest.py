"""Shared test fixtures for mine tests."""

from pathlib import Path
from typing import Callable

import pytest
import structlog

from lambdamine.config import MineDefaults
from lambdamine.mapfile import load_mine, parse_mine
from lambdamine.state import Mine

MAPS_DIR = Path(__file__).parent.parent / "maps"

MineFactory = Callable[..., Mine]


@pytest.fixture
def build() -> MineFactory:
    """Build a mine from layout rows (top row first) and metadata lines."""

    def _build(*rows: str, metadata: tuple[str, ...] = (), storage: str = "dense") -> Mine:
        text = "\n".join(rows)
        if metadata:
            text += "\n\n" + "\n".join(metadata)
        return parse_mine(text, MineDefaults(storage=storage))

    return _build


@pytest.fixture
def contest1_path() -> Path:
    return MAPS_DIR / "contest1.map"


@pytest.fixture
def contest1(contest1_path: Path) -> Mine:
    """Small contest map.

        ######   y=6
        #. *R#   y=5  robot (5, 5), rock (4, 5)
        #  \\.#   y=4  lambda (4, 4)
        #\\ * #   y=3  lambda (2, 3), rock (4, 3)
        L  .\\#   y=2  closed lift (1, 2), lambda (5, 2)
        ######   y=1
    """
    return load_mine(contest1_path)


@pytest.fixture
def corridor(build: MineFactory) -> Mine:
    """Single hazard-free row: robot, three lambdas, lift at the far end."""
    return build(
        "#########",
        "#R\\ \\ \\L#",
        "#########",
    )


@pytest.fixture
def playground(build: MineFactory) -> Mine:
    """Map exercising rocks, pushes, lambdas, razors, beards, water and trampolines."""
    return build(
        "##########",
        "#R *. W  #",
        "#.A*.  !.#",
        "#*. \\ 1 .#",
        "#. \\**   #",
        "#..  . \\L#",
        "##########",
        metadata=(
            "Flooding 4",
            "Growth 3",
            "Razors 1",
            "Trampoline A targets 1",
        ),
    )


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop any structlog configuration a test installed (the CLI does)."""
    yield
    structlog.reset_defaults()
