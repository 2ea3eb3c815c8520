import argparse
import logging
from typing import List, Optional

from config import FOV_ALGORITHMS, GameConfig
from game_state import GameState
from visibility import Shade

SHADE_CHARS = {
    Shade.LIGHT_WALL: '#',
    Shade.LIGHT_GROUND: '.',
    Shade.DARK_WALL: '%',
    Shade.DARK_GROUND: ',',
    None: ' ',
}

def render_ascii(state: GameState, fog: bool = False) -> str:
    """
    Рисует карту текстом: '#' стена, '.' пол, объекты своими символами.

    С fog=True неисследованные клетки пусты, исследованные но невидимые
    рисуются '%' и ',', а объекты показываются только в поле зрения.
    """
    grid = state.grid
    rows = []
    for y in range(grid.height):
        row = []
        for x in range(grid.width):
            if fog:
                row.append(SHADE_CHARS[state.visibility.shade(grid, x, y)])
            else:
                row.append('#' if grid.get(x, y).is_wall else '.')
        rows.append(row)

    entities = state.visibility.visible_entities(state.entities) if fog else state.entities
    # Игрок рисуется последним, поверх всего
    for entity in sorted(entities, key=lambda e: e is state.player):
        rows[entity.y][entity.x] = entity.char
    return "\n".join("".join(row) for row in rows)

def build_parser() -> argparse.ArgumentParser:
    defaults = GameConfig()
    parser = argparse.ArgumentParser(description="Generate a dungeon and print it as text.")
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--width', type=int, default=defaults.map_width)
    parser.add_argument('--height', type=int, default=defaults.map_height)
    parser.add_argument('--max-rooms', type=int, default=defaults.max_rooms)
    parser.add_argument('--room-min-size', type=int, default=defaults.room_min_size)
    parser.add_argument('--room-max-size', type=int, default=defaults.room_max_size)
    parser.add_argument('--max-room-monsters', type=int, default=defaults.max_room_monsters)
    parser.add_argument('--fov', choices=FOV_ALGORITHMS, default=defaults.fov_algorithm)
    parser.add_argument('--fov-radius', type=int, default=defaults.fov_radius)
    parser.add_argument('--fog', action='store_true', help="show only what the player has seen from the spawn point")
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    config = GameConfig(
        map_width=args.width,
        map_height=args.height,
        max_rooms=args.max_rooms,
        room_min_size=args.room_min_size,
        room_max_size=args.room_max_size,
        max_room_monsters=args.max_room_monsters,
        fov_algorithm=args.fov,
        fov_radius=args.fov_radius,
        seed=args.seed,
    )
    try:
        state = GameState.new_game(config)
    except ValueError as e:
        print(f"error: {e}")
        return 2

    print(render_ascii(state, fog=args.fog))
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
