from __future__ import annotations

import numpy as np
import tcod.constants
import tcod.map
from typing import List, Tuple

from tile import OutOfBoundsError

class FovMap:
    """
    Граница внешнего алгоритма поля зрения.

    Реализация получает для каждой клетки пару (прозрачна, проходима), считает
    видимые клетки от точки обзора с радиусом и флагом light_walls и отвечает
    на вопрос is_in_fov. Массивы имеют форму (height, width), индекс [y, x].
    Радиус 0 означает "без ограничения".
    """
    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.transparent = np.zeros((height, width), dtype=bool)
        self.walkable = np.zeros((height, width), dtype=bool)
        self.visible = np.zeros((height, width), dtype=bool)

    def _check(self, x: int, y: int):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBoundsError(f"({x}, {y}) is outside of the {self.width}x{self.height} FOV map")

    def set_properties(self, x: int, y: int, transparent: bool, walkable: bool):
        self._check(x, y)
        self.transparent[y, x] = transparent
        self.walkable[y, x] = walkable

    def configure(self, transparent: np.ndarray, walkable: np.ndarray):
        """Загружает свойства всех клеток сразу."""
        expected = (self.height, self.width)
        if transparent.shape != expected or walkable.shape != expected:
            raise ValueError(f"Expected arrays of shape {expected}, got {transparent.shape} and {walkable.shape}")
        self.transparent[...] = transparent
        self.walkable[...] = walkable

    def compute_fov(self, x: int, y: int, radius: int = 0, light_walls: bool = True):
        raise NotImplementedError

    def is_in_fov(self, x: int, y: int) -> bool:
        self._check(x, y)
        return bool(self.visible[y, x])

class RaycastFov(FovMap):
    """Permissive ray casting: лучи бросаются от игрока к каждой клетке в радиусе."""

    def compute_fov(self, x: int, y: int, radius: int = 0, light_walls: bool = True):
        self._check(x, y)
        self.visible[...] = False
        self.visible[y, x] = True # Клетка игрока всегда видима

        if radius > 0:
            min_x, max_x = max(0, x - radius), min(self.width - 1, x + radius)
            min_y, max_y = max(0, y - radius), min(self.height - 1, y + radius)
        else:
            min_x, max_x, min_y, max_y = 0, self.width - 1, 0, self.height - 1

        for ty in range(min_y, max_y + 1):
            for tx in range(min_x, max_x + 1):
                if radius > 0 and (tx - x)**2 + (ty - y)**2 > radius**2:
                    continue
                self._cast_ray(x, y, tx, ty, radius, light_walls)

    def _cast_ray(self, px: int, py: int, x1: int, y1: int, radius: int, light_walls: bool):
        for lx, ly in bresenham_line(px, py, x1, y1)[1:]:
            if radius > 0 and (lx - px)**2 + (ly - py)**2 > radius**2:
                break
            if not self.transparent[ly, lx]:
                # Луч уперся в препятствие
                if light_walls:
                    self.visible[ly, lx] = True
                break
            self.visible[ly, lx] = True

class TcodFov(FovMap):
    """Поле зрения из библиотеки tcod (по умолчанию алгоритм FOV_BASIC)."""

    def __init__(self, width: int, height: int, algorithm: int = tcod.constants.FOV_BASIC):
        super().__init__(width, height)
        self.algorithm = algorithm

    def compute_fov(self, x: int, y: int, radius: int = 0, light_walls: bool = True):
        self._check(x, y)
        self.visible = tcod.map.compute_fov(
            self.transparent, pov=(y, x), radius=radius, light_walls=light_walls, algorithm=self.algorithm
        )

def bresenham_line(x0: int, y0: int, x1: int, y1: int) -> List[Tuple[int, int]]:
    """Bresenham's Line Algorithm."""
    points = []
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy
    while True:
        points.append((x0, y0))
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy
    return points

FOV_MAPS = {
    'raycast': RaycastFov,
    'tcod': TcodFov,
}

def make_fov_map(algorithm: str, width: int, height: int) -> FovMap:
    try:
        fov_class = FOV_MAPS[algorithm]
    except KeyError:
        raise ValueError(f"Unknown FOV algorithm: {algorithm}") from None
    return fov_class(width, height)
