from __future__ import annotations
import logging
from enum import Enum, auto
from typing import Iterable, List, Optional, Tuple

from entities import Entity
from fov import FovMap
from tile import TileGrid

logger = logging.getLogger(__name__)

class StaleVisibilityError(RuntimeError):
    """Visibility was used before it was computed for the current layout and position."""

class FovState(Enum):
    STALE = auto()
    FRESH = auto()

class Shade(Enum):
    LIGHT_WALL = auto()
    LIGHT_GROUND = auto()
    DARK_WALL = auto()
    DARK_GROUND = auto()

class VisibilityTracker:
    """
    Связывает карту тайлов с внешним алгоритмом поля зрения.

    Порядок всегда один: sync_transparency -> recompute -> fold_explored.
    fold_explored по устаревшей видимости испортил бы флаг explored навсегда
    (он монотонен), поэтому в состоянии STALE он бросает StaleVisibilityError.
    """
    NEVER = (-1, -1)

    def __init__(self, fov_map: FovMap):
        self.fov_map = fov_map
        self.state = FovState.STALE
        self.synced = False
        self.last_position: Tuple[int, int] = self.NEVER

    def sync_transparency(self, grid: TileGrid):
        """Переносит прозрачность и проходимость всех клеток в FOV-карту. Вызывается после генерации."""
        if (grid.width, grid.height) != (self.fov_map.width, self.fov_map.height):
            raise ValueError(f"Grid is {grid.width}x{grid.height}, "
                             f"FOV map is {self.fov_map.width}x{self.fov_map.height}")
        self.fov_map.configure(grid.transparent, grid.walkable)
        self.synced = True
        # Раскладка поменялась: старая видимость больше не годится
        self.invalidate()
        self.last_position = self.NEVER

    def invalidate(self):
        self.state = FovState.STALE

    def needs_recompute(self, x: int, y: int) -> bool:
        return self.state is FovState.STALE or (x, y) != self.last_position

    def recompute(self, x: int, y: int, radius: int = 0, light_walls: bool = True):
        if not self.synced:
            raise StaleVisibilityError("sync_transparency() must run before recompute()")
        self.fov_map.compute_fov(x, y, radius, light_walls)
        self.last_position = (x, y)
        self.state = FovState.FRESH
        logger.debug("Recomputed FOV from (%d, %d), radius %d", x, y, radius)

    def is_visible(self, x: int, y: int) -> bool:
        return self.fov_map.is_in_fov(x, y)

    def fold_explored(self, grid: TileGrid):
        """Помечает все видимые сейчас клетки исследованными. Флаг никогда не сбрасывается."""
        if self.state is not FovState.FRESH:
            raise StaleVisibilityError("fold_explored() called before recompute() for the current position")
        grid.mark_explored(self.fov_map.visible)

    def update(self, grid: TileGrid, x: int, y: int, radius: int = 0, light_walls: bool = True) -> bool:
        """Пересчитывает видимость, только если игрок сдвинулся (или на первом кадре). Возвращает True, если пересчет был."""
        if not self.needs_recompute(x, y):
            return False
        self.invalidate()
        self.recompute(x, y, radius, light_walls)
        self.fold_explored(grid)
        return True

    def shade(self, grid: TileGrid, x: int, y: int) -> Optional[Shade]:
        """Выбирает тип заливки клетки. None - клетка еще не исследована и не рисуется."""
        tile = grid.get(x, y)
        if self.is_visible(x, y):
            return Shade.LIGHT_WALL if tile.is_wall else Shade.LIGHT_GROUND
        if tile.explored:
            return Shade.DARK_WALL if tile.is_wall else Shade.DARK_GROUND
        return None

    def visible_entities(self, entities: Iterable[Entity]) -> List[Entity]:
        return [e for e in entities if self.is_visible(e.x, e.y)]
