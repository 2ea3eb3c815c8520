from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from tile import TileGrid

@dataclass
class Entity:
    """Позиция объекта на карте и то, блокирует ли он движение."""
    x: int
    y: int
    blocks: bool = True
    name: str = "object"
    char: str = "?"

    @property
    def pos(self) -> Tuple[int, int]:
        return self.x, self.y

    def set_pos(self, x: int, y: int):
        self.x = x
        self.y = y

def create_player(x: int, y: int) -> Entity:
    return Entity(x, y, blocks=True, name="player", char="@")

def create_orc(x: int, y: int) -> Entity:
    return Entity(x, y, blocks=True, name="orc", char="o")

def create_troll(x: int, y: int) -> Entity:
    return Entity(x, y, blocks=True, name="troll", char="T")

def get_blocking_entity_at(entities: Iterable[Entity], x: int, y: int) -> Optional[Entity]:
    for entity in entities:
        if entity.blocks and entity.x == x and entity.y == y:
            return entity
    return None

def is_blocked(x: int, y: int, grid: TileGrid, entities: Iterable[Entity]) -> bool:
    """Клетка заблокирована, если это стена или на ней стоит блокирующий объект."""
    # Сначала проверяем сам тайл (за пределами карты - OutOfBoundsError)
    if grid.get(x, y).blocked:
        return True
    return get_blocking_entity_at(entities, x, y) is not None

def move_by(entity: Entity, dx: int, dy: int, grid: TileGrid, entities: List[Entity]) -> bool:
    """Сдвигает объект на (dx, dy), если целевая клетка свободна. Возвращает True при успехе."""
    target_x, target_y = entity.x + dx, entity.y + dy

    # Цель за пределами карты, движение отменяется
    if not grid.in_bounds(target_x, target_y):
        return False

    others = (e for e in entities if e is not entity)
    if is_blocked(target_x, target_y, grid, others):
        return False

    entity.set_pos(target_x, target_y)
    return True
