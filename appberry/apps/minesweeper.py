"""Minesweeper game state.

Grids are immutable values: ``reveal`` and ``toggle_flag`` return a new
``Grid`` and leave their argument untouched. Bombs are fixed when the grid
is built; ``adjacent_count`` is -1 on bomb cells and the number of bombs
among the in-bounds 8-neighbourhood everywhere else.
"""

from __future__ import annotations

import enum
import random
from dataclasses import dataclass, replace
from typing import Iterable, Iterator, List, Optional, Set, Tuple

BOMB = -1

Coord = Tuple[int, int]


class GameStatus(str, enum.Enum):
    in_progress = "in_progress"
    won = "won"
    lost = "lost"


class InvalidConfiguration(ValueError):
    """Grid dimensions or bomb count that cannot make a playable board."""


@dataclass(frozen=True)
class Cell:
    has_bomb: bool = False
    is_revealed: bool = False
    is_flagged: bool = False
    adjacent_count: int = 0


@dataclass(frozen=True)
class Grid:
    rows: int
    cols: int
    bomb_count: int
    cells: Tuple[Tuple[Cell, ...], ...]
    status: GameStatus = GameStatus.in_progress

    def cell(self, row: int, col: int) -> Cell:
        return self.cells[row][col]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def neighbours(self, row: int, col: int) -> Iterator[Coord]:
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                if dr == 0 and dc == 0:
                    continue
                r, c = row + dr, col + dc
                if self.in_bounds(r, c):
                    yield (r, c)

    @property
    def revealed_safe(self) -> int:
        return sum(1 for row in self.cells for cell in row if cell.is_revealed and not cell.has_bomb)

    @property
    def flags(self) -> int:
        return sum(1 for row in self.cells for cell in row if cell.is_flagged)


def validate(rows: int, cols: int, bomb_count: int) -> None:
    if rows < 1 or cols < 1:
        raise InvalidConfiguration(f"grid must be at least 1x1, got {rows}x{cols}")
    if not 0 <= bomb_count < rows * cols:
        raise InvalidConfiguration(
            f"bomb_count must be in [0, {rows * cols}), got {bomb_count}"
        )


def build_grid(rows: int, cols: int, bombs: Iterable[Coord]) -> Grid:
    """Build a fresh in-progress grid with bombs at the given coordinates."""
    bomb_set: Set[Coord] = set(bombs)
    validate(rows, cols, len(bomb_set))
    for r, c in bomb_set:
        if not (0 <= r < rows and 0 <= c < cols):
            raise InvalidConfiguration(f"bomb at ({r}, {c}) is outside a {rows}x{cols} grid")

    cells: List[Tuple[Cell, ...]] = []
    for r in range(rows):
        row: List[Cell] = []
        for c in range(cols):
            if (r, c) in bomb_set:
                row.append(Cell(has_bomb=True, adjacent_count=BOMB))
                continue
            count = 0
            for dr in (-1, 0, 1):
                for dc in (-1, 0, 1):
                    if (dr or dc) and (r + dr, c + dc) in bomb_set:
                        count += 1
            row.append(Cell(adjacent_count=count))
        cells.append(tuple(row))
    return Grid(rows=rows, cols=cols, bomb_count=len(bomb_set), cells=tuple(cells))


def new_game(
    rows: int = 5,
    cols: int = 5,
    bomb_count: int = 5,
    rng: Optional[random.Random] = None,
) -> Grid:
    validate(rows, cols, bomb_count)
    rng = rng or random.Random()
    # random.shuffle is a Fisher-Yates shuffle; the prefix is a uniform sample.
    indices = list(range(rows * cols))
    rng.shuffle(indices)
    bombs = [divmod(i, cols) for i in indices[:bomb_count]]
    return build_grid(rows, cols, bombs)


def reveal(grid: Grid, row: int, col: int) -> Tuple[Grid, GameStatus]:
    if grid.status != GameStatus.in_progress or not grid.in_bounds(row, col):
        return grid, grid.status
    target = grid.cell(row, col)
    if target.is_revealed or target.is_flagged:
        return grid, grid.status

    cells = [list(r) for r in grid.cells]

    if target.has_bomb:
        for r in range(grid.rows):
            for c in range(grid.cols):
                if cells[r][c].has_bomb:
                    cells[r][c] = replace(cells[r][c], is_revealed=True, is_flagged=False)
        lost = replace(grid, cells=_freeze(cells), status=GameStatus.lost)
        return lost, lost.status

    stack: List[Coord] = [(row, col)]
    while stack:
        r, c = stack.pop()
        cell = cells[r][c]
        if cell.is_revealed or cell.is_flagged:
            continue
        cells[r][c] = replace(cell, is_revealed=True)
        if cell.adjacent_count == 0:
            for nr, nc in grid.neighbours(r, c):
                neighbour = cells[nr][nc]
                if not neighbour.is_revealed and not neighbour.is_flagged:
                    stack.append((nr, nc))

    revealed = replace(grid, cells=_freeze(cells))
    if revealed.revealed_safe == grid.rows * grid.cols - grid.bomb_count:
        revealed = replace(revealed, status=GameStatus.won)
    return revealed, revealed.status


def toggle_flag(grid: Grid, row: int, col: int) -> Grid:
    if grid.status != GameStatus.in_progress or not grid.in_bounds(row, col):
        return grid
    cell = grid.cell(row, col)
    if cell.is_revealed:
        return grid
    cells = [list(r) for r in grid.cells]
    cells[row][col] = replace(cell, is_flagged=not cell.is_flagged)
    return replace(grid, cells=_freeze(cells))


def player_view(grid: Grid) -> List[List[str]]:
    """Render what the player may see: ``#`` hidden, ``F`` flag, ``*`` bomb, digits."""
    view: List[List[str]] = []
    for row in grid.cells:
        line: List[str] = []
        for cell in row:
            if cell.is_revealed:
                line.append("*" if cell.has_bomb else str(cell.adjacent_count))
            elif cell.is_flagged:
                line.append("F")
            else:
                line.append("#")
        view.append(line)
    return view


def _freeze(cells: List[List[Cell]]) -> Tuple[Tuple[Cell, ...], ...]:
    return tuple(tuple(r) for r in cells)
