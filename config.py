from dataclasses import dataclass
from typing import Optional

FOV_ALGORITHMS = ('raycast', 'tcod')

@dataclass
class GameConfig:
    map_width: int = 80
    map_height: int = 45
    max_rooms: int = 30
    room_min_size: int = 6
    room_max_size: int = 10
    max_room_monsters: int = 3
    max_placement_attempts: int = 100
    fov_radius: int = 0 # 0 - без ограничения радиуса
    fov_light_walls: bool = True
    fov_algorithm: str = 'raycast' # 'raycast' or 'tcod'
    seed: Optional[int] = None

    def validate(self) -> "GameConfig":
        """Проверяет параметры и возвращает сам конфиг."""
        if self.map_width <= 0 or self.map_height <= 0:
            raise ValueError(f"Map size must be positive, got {self.map_width}x{self.map_height}")
        if self.max_rooms < 0:
            raise ValueError(f"max_rooms must not be negative, got {self.max_rooms}")
        if self.room_min_size < 1:
            raise ValueError(f"room_min_size must be at least 1, got {self.room_min_size}")
        if self.room_min_size > self.room_max_size:
            raise ValueError(f"room_min_size ({self.room_min_size}) is larger than room_max_size ({self.room_max_size})")
        if self.max_room_monsters < 0:
            raise ValueError(f"max_room_monsters must not be negative, got {self.max_room_monsters}")
        if self.max_placement_attempts < 1:
            raise ValueError(f"max_placement_attempts must be at least 1, got {self.max_placement_attempts}")
        if self.fov_radius < 0:
            raise ValueError(f"fov_radius must not be negative, got {self.fov_radius}")
        if self.fov_algorithm not in FOV_ALGORITHMS:
            raise ValueError(f"Unknown FOV algorithm: {self.fov_algorithm}")
        return self
