from __future__ import annotations
import logging
import random
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from entities import Entity, create_orc, create_troll, is_blocked
from tile import TileGrid

if TYPE_CHECKING:
    from map_generator import Rect

logger = logging.getLogger(__name__)

# Веса видов монстров: орк и тролль поровну
MONSTER_CHANCES: Dict[Callable[[int, int], Entity], int] = {
    create_orc: 50,
    create_troll: 50,
}

def generate_monster_position(room: Rect, grid: TileGrid, entities: Sequence[Entity], rng: random.Random,
                              max_attempts: int = 100) -> Optional[Tuple[int, int]]:
    """
    Ищет случайную свободную клетку внутри комнаты.

    Клетка подходит, если тайл не заблокирован и на нем нет блокирующего объекта.
    После max_attempts неудачных попыток возвращает None: переполненная комната
    не должна подвешивать генерацию.
    """
    (min_x, min_y), (max_x, max_y) = room.interior
    if min_x > max_x or min_y > max_y:
        return None

    for _ in range(max_attempts):
        x = rng.randint(min_x, max_x)
        y = rng.randint(min_y, max_y)
        if not is_blocked(x, y, grid, entities):
            return x, y
    return None

def place_monsters(room: Rect, grid: TileGrid, entities: Sequence[Entity], rng: random.Random,
                   max_monsters: int = 3, max_attempts: int = 100) -> List[Entity]:
    """Расставляет от 0 до max_monsters блокирующих монстров в комнате. Возвращает только новых."""
    placed: List[Entity] = []
    num_monsters = rng.randint(0, max_monsters)
    monster_factories = list(MONSTER_CHANCES.keys())
    monster_weights = list(MONSTER_CHANCES.values())

    for _ in range(num_monsters):
        position = generate_monster_position(room, grid, [*entities, *placed], rng, max_attempts)
        if position is None:
            logger.debug("No free tile for a monster in %s after %d attempts, skipping", room, max_attempts)
            continue
        chosen_factory = rng.choices(monster_factories, weights=monster_weights, k=1)[0]
        placed.append(chosen_factory(*position))

    return placed
