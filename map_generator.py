from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from entities import Entity
from spawner import place_monsters
from tile import Tile, TileGrid

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Rect:
    """A rectangle on the map. used for rooms."""
    x1: int
    y1: int
    x2: int
    y2: int

    @classmethod
    def from_size(cls, x: int, y: int, w: int, h: int) -> "Rect":
        """Builds a rect from its top-left corner and size. w and h must be positive."""
        return cls(x, y, x + w, y + h)

    @property
    def center(self) -> Tuple[int, int]:
        """Returns the center coordinates of the rectangle."""
        center_x = (self.x1 + self.x2) // 2
        center_y = (self.y1 + self.y2) // 2
        return center_x, center_y

    @property
    def interior(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        """Inclusive corners of the carved area: the rect without its border."""
        return (self.x1 + 1, self.y1 + 1), (self.x2 - 1, self.y2 - 1)

    def intersects(self, other: "Rect") -> bool:
        """Returns true if this rectangle intersects with another one."""
        return (self.x1 <= other.x2 and self.x2 >= other.x1 and
                self.y1 <= other.y2 and self.y2 >= other.y1)

    intersects_with = intersects

class MapGenerator:
    """
    Генерирует карту из комнат и коридоров.

    Комнаты ставятся выборкой с отклонением: max_rooms попыток, пересекающаяся
    комната просто отбрасывается. Каждая новая комната соединяется L-образным
    коридором с предыдущей принятой комнатой, поэтому все комнаты связны.
    Вся случайность берется из переданного rng.
    """
    def __init__(self, width: int, height: int, rng: random.Random):
        self.width = width
        self.height = height
        self.rng = rng
        self.grid = TileGrid(width, height, Tile.wall())
        self.rooms: List[Rect] = []
        self.monsters: List[Entity] = []

    def generate(self, max_rooms: int = 30, room_min_size: int = 6, room_max_size: int = 10,
                 max_room_monsters: int = 3, max_placement_attempts: int = 100,
                 player: Optional[Entity] = None,
                 existing: Sequence[Entity] = ()) -> Tuple[TileGrid, Tuple[int, int]]:
        """
        Генерирует карту с комнатами и коридорами.

        Возвращает карту и точку старта (центр первой комнаты, либо (0, 0),
        если не удалось поставить ни одной комнаты). Если передан player, он
        переносится в точку старта до расстановки монстров, чтобы они его не
        перекрывали. existing - уже стоящие на карте объекты, их клетки заняты.
        Новые монстры накапливаются в self.monsters.
        """
        if room_min_size > room_max_size:
            raise ValueError(f"room_min_size ({room_min_size}) is larger than room_max_size ({room_max_size})")

        self.grid = TileGrid(self.width, self.height, Tile.wall())
        self.rooms = []
        self.monsters = []
        occupants: List[Entity] = list(existing)
        if player is not None and all(e is not player for e in occupants):
            occupants.append(player)
        spawn = (0, 0)
        rejected = 0

        for _ in range(max_rooms):
            w = self.rng.randint(room_min_size, room_max_size)
            h = self.rng.randint(room_min_size, room_max_size)
            # Комната не помещается в карту: попытка потрачена
            if w >= self.width or h >= self.height:
                rejected += 1
                continue
            x = self.rng.randint(0, self.width - w - 1)
            y = self.rng.randint(0, self.height - h - 1)
            new_room = Rect.from_size(x, y, w, h)

            if any(new_room.intersects(other_room) for other_room in self.rooms):
                rejected += 1
                continue

            self._create_room(new_room)
            new_x, new_y = new_room.center

            if not self.rooms:
                spawn = (new_x, new_y)
                if player is not None:
                    player.set_pos(new_x, new_y)
            else:
                prev_x, prev_y = self.rooms[-1].center
                if self.rng.randint(0, 1) == 1:
                    self._create_h_tunnel(prev_x, new_x, prev_y)
                    self._create_v_tunnel(prev_y, new_y, new_x)
                else:
                    self._create_v_tunnel(prev_y, new_y, prev_x)
                    self._create_h_tunnel(prev_x, new_x, new_y)

            placed = place_monsters(new_room, self.grid, [*occupants, *self.monsters], self.rng,
                                    max_room_monsters, max_placement_attempts)
            self.monsters.extend(placed)
            self.rooms.append(new_room)

        logger.info("Generated %dx%d map: %d rooms accepted, %d rejected, spawn at %s",
                    self.width, self.height, len(self.rooms), rejected, spawn)
        return self.grid, spawn

    def _create_room(self, room: Rect):
        self.grid.fill_area(room.x1 + 1, room.y1 + 1, room.x2, room.y2, Tile.floor())

    def _create_h_tunnel(self, x1: int, x2: int, y: int):
        self.grid.fill_area(min(x1, x2), y, max(x1, x2) + 1, y + 1, Tile.floor())

    def _create_v_tunnel(self, y1: int, y2: int, x: int):
        self.grid.fill_area(x, min(y1, y2), x + 1, max(y1, y2) + 1, Tile.floor())

def generate_dungeon(width: int, height: int, max_rooms: int, room_min_size: int, room_max_size: int,
                     rng: random.Random, entities: Optional[List[Entity]] = None,
                     max_room_monsters: int = 3, max_placement_attempts: int = 100,
                     player: Optional[Entity] = None) -> Tuple[TileGrid, Tuple[int, int]]:
    """
    Строит подземелье и дописывает расставленных монстров в entities, если список передан.

    player (он может лежать и в entities) переносится в точку старта до
    расстановки монстров, поэтому на нем монстр не окажется.
    """
    map_gen = MapGenerator(width, height, rng)
    grid, spawn = map_gen.generate(max_rooms, room_min_size, room_max_size,
                                   max_room_monsters, max_placement_attempts,
                                   player=player, existing=entities or ())
    if entities is not None:
        entities.extend(map_gen.monsters)
    return grid, spawn
