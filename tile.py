from __future__ import annotations

import numpy as np
from dataclasses import dataclass
from typing import Tuple


class OutOfBoundsError(IndexError):
    """Raised when a coordinate outside of the grid is accessed."""


@dataclass(frozen=True)
class Tile:
    """One map cell: can it be walked through, does it block sight, was it seen."""
    blocked: bool
    blocks_sight: bool
    explored: bool = False

    @classmethod
    def wall(cls) -> "Tile":
        return cls(blocked=True, blocks_sight=True)

    @classmethod
    def floor(cls) -> "Tile":
        return cls(blocked=False, blocks_sight=False)

    @property
    def is_wall(self) -> bool:
        return self.blocks_sight


class TileGrid:
    """
    Плотная карта тайлов width x height.

    Хранится как три булевых массива numpy формы (height, width), индекс [y, x].
    Любой доступ за пределами карты - ошибка программиста и приводит к
    OutOfBoundsError: отрицательные индексы numpy никогда не используются для
    "заворачивания" координат.
    """

    def __init__(self, width: int, height: int, fill: Tile | None = None):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        fill = fill or Tile.wall()
        self._width = width
        self._height = height
        self.blocked = np.full((height, width), fill.blocked, dtype=bool)
        self.blocks_sight = np.full((height, width), fill.blocks_sight, dtype=bool)
        self.explored = np.full((height, width), fill.explored, dtype=bool)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def shape(self) -> Tuple[int, int]:
        return self._height, self._width

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def _check(self, x: int, y: int):
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(f"({x}, {y}) is outside of the {self._width}x{self._height} grid")

    def get(self, x: int, y: int) -> Tile:
        self._check(x, y)
        return Tile(bool(self.blocked[y, x]), bool(self.blocks_sight[y, x]), bool(self.explored[y, x]))

    def set(self, x: int, y: int, tile: Tile):
        """Записывает тайл. Флаг explored монотонен: уже исследованная клетка остается исследованной."""
        self._check(x, y)
        self.blocked[y, x] = tile.blocked
        self.blocks_sight[y, x] = tile.blocks_sight
        self.explored[y, x] = self.explored[y, x] or tile.explored

    def __getitem__(self, xy: Tuple[int, int]) -> Tile:
        return self.get(*xy)

    def __setitem__(self, xy: Tuple[int, int], tile: Tile):
        self.set(xy[0], xy[1], tile)

    def fill_area(self, x1: int, y1: int, x2: int, y2: int, tile: Tile):
        """Заполняет прямоугольник [x1, x2) x [y1, y2) одним тайлом."""
        if x1 >= x2 or y1 >= y2:
            return
        self._check(x1, y1)
        self._check(x2 - 1, y2 - 1)
        self.blocked[y1:y2, x1:x2] = tile.blocked
        self.blocks_sight[y1:y2, x1:x2] = tile.blocks_sight
        if tile.explored:
            self.explored[y1:y2, x1:x2] = True

    @property
    def transparent(self) -> np.ndarray:
        return ~self.blocks_sight

    @property
    def walkable(self) -> np.ndarray:
        return ~self.blocked

    def mark_explored(self, mask: np.ndarray):
        """Помечает исследованными все клетки, где mask == True. Никогда не сбрасывает флаг."""
        if mask.shape != self.shape:
            raise ValueError(f"Mask shape {mask.shape} does not match grid shape {self.shape}")
        self.explored |= mask

    def floor_count(self) -> int:
        return int(np.count_nonzero(~self.blocked))

    def tobytes(self) -> bytes:
        return self.blocked.tobytes() + self.blocks_sight.tobytes() + self.explored.tobytes()
