"""Configuration loading from TOML files."""

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .grid import GridKind
from .types import Action

CONFIGS_DIR = Path(__file__).parent / "configs"

_SEARCH_ACTIONS = {
    "down": Action.DOWN,
    "left": Action.LEFT,
    "right": Action.RIGHT,
    "up": Action.UP,
}


class MineDefaults(BaseModel):
    """Values used when a map omits a metadata line."""

    water: int = 0
    flooding: int = 0
    waterproof: int = 10
    growth: int = 25
    razors: int = 0
    storage: GridKind = "dense"


class SearchConfig(BaseModel):
    """Reachability search settings."""

    # Ties between equally short routes go to the earlier direction
    move_order: list[str] = Field(default_factory=lambda: ["down", "left", "right", "up"])

    @field_validator("move_order")
    @classmethod
    def _check_move_order(cls, value: list[str]) -> list[str]:
        names = [name.lower() for name in value]
        unknown = [name for name in names if name not in _SEARCH_ACTIONS]
        if unknown:
            raise ValueError(f"Unknown search directions: {unknown}")
        if len(set(names)) != len(names):
            raise ValueError("Search directions must not repeat")
        return names

    def actions(self) -> tuple[Action, ...]:
        return tuple(_SEARCH_ACTIONS[name] for name in self.move_order)


class Config(BaseModel):
    """Complete configuration."""

    mine: MineDefaults = Field(default_factory=MineDefaults)
    search: SearchConfig = Field(default_factory=SearchConfig)


def load_config(config_path: Path) -> Config:
    """Read a TOML file into a Config; missing tables take their defaults.

    Raises:
        FileNotFoundError: If config_path does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
        pydantic.ValidationError: If a value has the wrong type or range.
    """
    with open(config_path, "rb") as f:
        return Config.model_validate(tomllib.load(f))


def find_config(name: str) -> Path:
    """Resolve a --config argument to a file.

    Anything that looks like a path (has a directory part or a .toml
    suffix) is used as given. A bare name selects one of the configs
    shipped inside the package.

    Raises:
        FileNotFoundError: If nothing matches.
    """
    path = Path(name)
    if path.suffix == ".toml" or len(path.parts) > 1:
        if path.is_file():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    bundled = CONFIGS_DIR / f"{name}.toml"
    if bundled.is_file():
        return bundled
    raise FileNotFoundError(f"No bundled config {name!r}; choose from {list_configs()}")


def list_configs() -> list[str]:
    """Names of the configs shipped with the package."""
    return sorted(p.stem for p in CONFIGS_DIR.glob("*.toml"))
