"""Tests for grid storage backends."""

import pytest

from lambdamine.cells import Cell
from lambdamine.grid import (
    CHUNK_SIZE,
    ChunkedGrid,
    DenseGrid,
    chunk_coords,
    local_coords,
    make_grid,
)


@pytest.fixture(params=["dense", "chunked"])
def grid(request):
    return make_grid(request.param, 6, 5)


class TestCoordinates:
    """Tests for chunk coordinate conversion."""

    def test_chunk_coords(self):
        assert chunk_coords(0, 0) == (0, 0)
        assert chunk_coords(CHUNK_SIZE - 1, CHUNK_SIZE) == (0, 1)
        assert chunk_coords(70, 5) == (2, 0)

    def test_local_coords(self):
        assert local_coords(0, 0) == (0, 0)
        assert local_coords(CHUNK_SIZE + 3, 2 * CHUNK_SIZE + 7) == (3, 7)


class TestGridStorage:
    """Behaviour shared by both backends."""

    def test_border_is_wall(self, grid):
        for x in range(6):
            assert grid.get(x, 0) is Cell.WALL
            assert grid.get(x, 4) is Cell.WALL
        for y in range(5):
            assert grid.get(0, y) is Cell.WALL
            assert grid.get(5, y) is Cell.WALL

    def test_interior_starts_empty(self, grid):
        for y in range(1, 4):
            for x in range(1, 5):
                assert grid.get(x, y) is Cell.EMPTY

    def test_set_then_get(self, grid):
        grid.set(2, 3, Cell.ROCK)
        grid.set(4, 1, Cell.LAMBDA)
        assert grid.get(2, 3) is Cell.ROCK
        assert grid.get(4, 1) is Cell.LAMBDA

    @pytest.mark.parametrize("x,y", [(-1, 0), (0, -1), (6, 0), (0, 5)])
    def test_out_of_bounds_raises(self, grid, x, y):
        with pytest.raises(IndexError):
            grid.get(x, y)
        with pytest.raises(IndexError):
            grid.set(x, y, Cell.EARTH)

    def test_rows_top_first(self, grid):
        grid.set(1, 3, Cell.ROBOT)
        grid.set(4, 1, Cell.LAMBDA)
        assert grid.rows() == [
            "######",
            "#R   #",
            "#    #",
            "#   \\#",
            "######",
        ]

    def test_copy_is_independent(self, grid):
        grid.set(2, 2, Cell.ROCK)
        clone = grid.copy()
        clone.set(2, 2, Cell.EMPTY)
        assert grid.get(2, 2) is Cell.ROCK
        assert clone.get(2, 2) is Cell.EMPTY

    def test_rejects_empty_dimensions(self):
        with pytest.raises(ValueError):
            DenseGrid(0, 3)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            make_grid("sparse", 3, 3)


class TestChunkedGrid:
    """Tests for lazy chunk allocation."""

    def test_no_chunks_until_written(self):
        grid = ChunkedGrid(100, 100)
        assert grid.chunk_count == 0
        assert grid.get(50, 50) is Cell.EMPTY

    def test_write_allocates_one_chunk(self):
        grid = ChunkedGrid(100, 100)
        grid.set(50, 50, Cell.ROCK)
        assert grid.chunk_count == 1
        assert grid.get(50, 50) is Cell.ROCK

    def test_writing_empty_does_not_allocate(self):
        grid = ChunkedGrid(100, 100)
        grid.set(10, 10, Cell.EMPTY)
        assert grid.chunk_count == 0

    def test_matches_dense(self):
        dense = make_grid("dense", 70, 40)
        chunked = make_grid("chunked", 70, 40)
        for grid in (dense, chunked):
            grid.set(33, 31, Cell.ROCK)
            grid.set(64, 2, Cell.BEARD)
        assert dense.rows() == chunked.rows()
