"""Bounded cell storage for the mine, with dense and chunked backings."""

from abc import ABC, abstractmethod
from typing import Literal

import numpy as np
from numpy.typing import NDArray

from .cells import CELLS_BY_CODE, Cell

CHUNK_SIZE = 32

GridKind = Literal["dense", "chunked"]

_EMPTY_CODE = Cell.EMPTY.code


def chunk_coords(x: int, y: int) -> tuple[int, int]:
    """Convert grid coordinates to chunk coordinates."""
    return (x // CHUNK_SIZE, y // CHUNK_SIZE)


def local_coords(x: int, y: int) -> tuple[int, int]:
    """Convert grid coordinates to local coordinates within a chunk."""
    return (x % CHUNK_SIZE, y % CHUNK_SIZE)


class GridStorage(ABC):
    """A width x height store of cells addressed by (x, y).

    Row 0 is the bottom row. Reads and writes outside
    [0, width) x [0, height) raise IndexError.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _check_bounds(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise IndexError(
                f"Cell ({x}, {y}) outside grid of {self.width}x{self.height}"
            )

    def get(self, x: int, y: int) -> Cell:
        self._check_bounds(x, y)
        return CELLS_BY_CODE[self._read(x, y)]

    def set(self, x: int, y: int, cell: Cell) -> None:
        self._check_bounds(x, y)
        self._write(x, y, cell.code)

    def fill_border(self, cell: Cell = Cell.WALL) -> None:
        """Overwrite the outermost ring of cells."""
        code = cell.code
        for x in range(self.width):
            self._write(x, 0, code)
            self._write(x, self.height - 1, code)
        for y in range(self.height):
            self._write(0, y, code)
            self._write(self.width - 1, y, code)

    def row_text(self, y: int) -> str:
        """Legend characters of one row, left to right."""
        self._check_bounds(0, y)
        return "".join(chr(self._read(x, y)) for x in range(self.width))

    def rows(self) -> list[str]:
        """All rows as legend text, top row first."""
        return [self.row_text(y) for y in range(self.height - 1, -1, -1)]

    @abstractmethod
    def _read(self, x: int, y: int) -> int: ...

    @abstractmethod
    def _write(self, x: int, y: int, code: int) -> None: ...

    @abstractmethod
    def copy(self) -> "GridStorage": ...


class DenseGrid(GridStorage):
    """Grid backed by a single uint8 array of legend bytes.

    Array shape is (height, width), indexed [y, x].
    """

    def __init__(self, width: int, height: int):
        super().__init__(width, height)
        self._cells: NDArray[np.uint8] = np.full(
            (height, width), _EMPTY_CODE, dtype=np.uint8
        )

    def _read(self, x: int, y: int) -> int:
        return int(self._cells[y, x])

    def _write(self, x: int, y: int, code: int) -> None:
        self._cells[y, x] = code

    def row_text(self, y: int) -> str:
        self._check_bounds(0, y)
        return self._cells[y].tobytes().decode("ascii")

    def copy(self) -> "DenseGrid":
        clone = DenseGrid(self.width, self.height)
        clone._cells = self._cells.copy()
        return clone


class ChunkedGrid(GridStorage):
    """Sparse grid made of CHUNK_SIZE x CHUNK_SIZE arrays created on first write.

    Unallocated chunks read as Empty, so mostly-empty maps only pay for the
    chunks that hold something.
    """

    def __init__(self, width: int, height: int):
        super().__init__(width, height)
        self._chunks: dict[tuple[int, int], NDArray[np.uint8]] = {}

    @property
    def chunk_count(self) -> int:
        """Number of allocated chunks."""
        return len(self._chunks)

    def _read(self, x: int, y: int) -> int:
        chunk = self._chunks.get(chunk_coords(x, y))
        if chunk is None:
            return _EMPTY_CODE
        lx, ly = local_coords(x, y)
        return int(chunk[ly, lx])

    def _write(self, x: int, y: int, code: int) -> None:
        key = chunk_coords(x, y)
        chunk = self._chunks.get(key)
        if chunk is None:
            if code == _EMPTY_CODE:
                return
            chunk = np.full((CHUNK_SIZE, CHUNK_SIZE), _EMPTY_CODE, dtype=np.uint8)
            self._chunks[key] = chunk
        lx, ly = local_coords(x, y)
        chunk[ly, lx] = code

    def copy(self) -> "ChunkedGrid":
        clone = ChunkedGrid(self.width, self.height)
        clone._chunks = {key: chunk.copy() for key, chunk in self._chunks.items()}
        return clone


def make_grid(kind: GridKind, width: int, height: int) -> GridStorage:
    """Create an all-Empty grid with a Wall border."""
    if kind == "dense":
        grid: GridStorage = DenseGrid(width, height)
    elif kind == "chunked":
        grid = ChunkedGrid(width, height)
    else:
        raise ValueError(f"Unknown grid kind: {kind}")
    grid.fill_border()
    return grid
