from __future__ import annotations
import random
from dataclasses import dataclass, field
from typing import List

from config import GameConfig
from entities import Entity, create_player, get_blocking_entity_at, move_by
from fov import make_fov_map
from map_generator import MapGenerator
from tile import TileGrid
from visibility import VisibilityTracker

@dataclass
class GameState:
    """Состояние одной сессии: карта, объекты (игрок первым) и видимость."""
    config: GameConfig
    grid: TileGrid
    player: Entity
    entities: List[Entity]
    visibility: VisibilityTracker
    log: List[str] = field(default_factory=list)

    @classmethod
    def new_game(cls, config: GameConfig) -> "GameState":
        """Генерирует новое подземелье по конфигу и готовит поле зрения."""
        config.validate()
        rng = random.Random(config.seed)
        player = create_player(0, 0)

        map_gen = MapGenerator(config.map_width, config.map_height, rng)
        grid, _spawn = map_gen.generate(
            max_rooms=config.max_rooms,
            room_min_size=config.room_min_size,
            room_max_size=config.room_max_size,
            max_room_monsters=config.max_room_monsters,
            max_placement_attempts=config.max_placement_attempts,
            player=player,
        )

        visibility = VisibilityTracker(make_fov_map(config.fov_algorithm, config.map_width, config.map_height))
        visibility.sync_transparency(grid)

        state = cls(config=config, grid=grid, player=player, entities=[player, *map_gen.monsters],
                    visibility=visibility)
        state.refresh_visibility()
        return state

    def refresh_visibility(self) -> bool:
        return self.visibility.update(self.grid, self.player.x, self.player.y,
                                      self.config.fov_radius, self.config.fov_light_walls)

    def move_player(self, dx: int, dy: int) -> bool:
        """Двигает игрока и обновляет поле зрения. Возвращает True, если игрок сдвинулся."""
        moved = move_by(self.player, dx, dy, self.grid, self.entities)
        if moved:
            self.refresh_visibility()
            return True

        target_x, target_y = self.player.x + dx, self.player.y + dy
        if self.grid.in_bounds(target_x, target_y):
            blocker = get_blocking_entity_at((e for e in self.entities if e is not self.player), target_x, target_y)
            if blocker is not None:
                self.log.append(f"The {blocker.name} blocks your way.")
        return False
