import contextlib
import io
import random
import unittest
import unittest.mock as mock
from collections import deque

import numpy as np

from config import GameConfig
from entities import Entity, create_orc, create_player, create_troll, is_blocked, move_by
from fov import FovMap, RaycastFov, TcodFov, bresenham_line, make_fov_map
from game_state import GameState
from main import main, render_ascii
from map_generator import MapGenerator, Rect, generate_dungeon
from spawner import generate_monster_position, place_monsters
from tile import OutOfBoundsError, Tile, TileGrid
from visibility import FovState, Shade, StaleVisibilityError, VisibilityTracker


def carve(grid: TileGrid, x1: int, y1: int, x2: int, y2: int):
    """Вырезает пол в прямоугольнике [x1, x2] x [y1, y2] включительно."""
    for y in range(y1, y2 + 1):
        for x in range(x1, x2 + 1):
            grid.set(x, y, Tile.floor())

def reachable_from(grid: TileGrid, start):
    """Заливка по 4 соседям только по полу."""
    seen = {start}
    queue = deque([start])
    while queue:
        x, y = queue.popleft()
        for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            nx, ny = x + dx, y + dy
            if grid.in_bounds(nx, ny) and (nx, ny) not in seen and not grid.get(nx, ny).blocked:
                seen.add((nx, ny))
                queue.append((nx, ny))
    return seen

def two_rooms_grid() -> TileGrid:
    """Две комнаты 3x3, соединенные коридором в обход стены."""
    grid = TileGrid(12, 7)
    carve(grid, 1, 1, 3, 3)
    carve(grid, 7, 1, 9, 3)
    # Коридор: (4,3) -> (4,5) -> (6,5) -> (6,3), с поворотами, чтобы комнаты не видели друг друга
    carve(grid, 4, 3, 4, 5)
    carve(grid, 5, 5, 5, 5)
    carve(grid, 6, 3, 6, 5)
    return grid


class MaxRandom(random.Random):
    """randint всегда отдает верхнюю границу."""
    def randint(self, a, b):
        return b


class TestTile(unittest.TestCase):

    def test_constructors(self):
        """Проверяет стену и пол."""
        wall = Tile.wall()
        floor = Tile.floor()
        self.assertEqual((wall.blocked, wall.blocks_sight, wall.explored), (True, True, False))
        self.assertEqual((floor.blocked, floor.blocks_sight, floor.explored), (False, False, False))
        self.assertTrue(wall.is_wall)
        self.assertFalse(floor.is_wall)


class TestTileGrid(unittest.TestCase):

    def setUp(self):
        self.grid = TileGrid(10, 6)

    def test_filled_with_walls(self):
        """Новая карта полностью состоит из стен."""
        self.assertEqual((self.grid.width, self.grid.height), (10, 6))
        self.assertEqual(self.grid.shape, (6, 10))
        self.assertEqual(self.grid.floor_count(), 0)
        self.assertEqual(self.grid.get(9, 5), Tile.wall())

    def test_get_and_set(self):
        self.grid.set(3, 4, Tile.floor())
        self.assertEqual(self.grid[3, 4], Tile.floor())
        # Соседняя клетка не задета (нет путаницы x/y)
        self.assertEqual(self.grid[4, 3], Tile.wall())
        self.grid[4, 3] = Tile.floor()
        self.assertFalse(self.grid.get(4, 3).blocked)

    def test_out_of_bounds_fails_fast(self):
        """Выход за границы - всегда ошибка, без заворачивания отрицательных индексов."""
        for x, y in [(-1, 0), (0, -1), (10, 0), (0, 6), (10, 6)]:
            with self.assertRaises(OutOfBoundsError):
                self.grid.get(x, y)
            with self.assertRaises(OutOfBoundsError):
                self.grid.set(x, y, Tile.floor())
        self.assertTrue(issubclass(OutOfBoundsError, IndexError))
        self.assertEqual(self.grid.floor_count(), 0)

    def test_fill_area_checks_bounds(self):
        with self.assertRaises(OutOfBoundsError):
            self.grid.fill_area(-2, 0, 3, 3, Tile.floor())
        with self.assertRaises(OutOfBoundsError):
            self.grid.fill_area(5, 2, 11, 4, Tile.floor())
        self.assertEqual(self.grid.floor_count(), 0)
        self.grid.fill_area(1, 1, 4, 3, Tile.floor())
        self.assertEqual(self.grid.floor_count(), 6)

    def test_explored_is_monotonic(self):
        """Перезапись тайла не сбрасывает флаг explored."""
        mask = np.zeros(self.grid.shape, dtype=bool)
        mask[2, 3] = True
        self.grid.mark_explored(mask)
        self.assertTrue(self.grid.get(3, 2).explored)
        self.grid.set(3, 2, Tile.floor())
        self.assertTrue(self.grid.get(3, 2).explored)
        self.grid.mark_explored(np.zeros(self.grid.shape, dtype=bool))
        self.assertTrue(self.grid.get(3, 2).explored)

    def test_mark_explored_rejects_wrong_shape(self):
        with self.assertRaises(ValueError):
            self.grid.mark_explored(np.zeros((10, 6), dtype=bool))

    def test_invalid_size(self):
        with self.assertRaises(ValueError):
            TileGrid(0, 5)


class TestRect(unittest.TestCase):

    def test_from_size_and_center(self):
        """Центр считается целочисленным делением."""
        room = Rect.from_size(2, 2, 10, 7)
        self.assertEqual((room.x1, room.y1, room.x2, room.y2), (2, 2, 12, 9))
        self.assertEqual(room.center, (7, 5))
        self.assertEqual(room.interior, ((3, 3), (11, 8)))

    def test_intersection_is_symmetric(self):
        a = Rect(0, 0, 5, 5)
        cases = [Rect(3, 3, 8, 8), Rect(5, 0, 10, 5), Rect(6, 0, 10, 5), Rect(0, 6, 5, 9), Rect(1, 1, 2, 2)]
        for b in cases:
            self.assertEqual(a.intersects(b), b.intersects(a))
            self.assertEqual(a.intersects_with(b), a.intersects(b))

    def test_shared_border_counts_as_intersection(self):
        """Комнаты с общей границей считаются пересекающимися."""
        self.assertTrue(Rect(0, 0, 5, 5).intersects(Rect(5, 0, 10, 5)))
        self.assertFalse(Rect(0, 0, 5, 5).intersects(Rect(6, 0, 10, 5)))
        self.assertFalse(Rect(0, 0, 5, 5).intersects(Rect(0, 6, 5, 10)))


class TestMapGenerator(unittest.TestCase):

    def generate(self, seed, **kwargs):
        map_gen = MapGenerator(80, 45, random.Random(seed))
        grid, spawn = map_gen.generate(**kwargs)
        return map_gen, grid, spawn

    def test_rooms_never_overlap(self):
        for seed in range(10):
            map_gen, _, _ = self.generate(seed)
            self.assertGreater(len(map_gen.rooms), 0)
            self.assertLessEqual(len(map_gen.rooms), 30)
            for i, a in enumerate(map_gen.rooms):
                for b in map_gen.rooms[i + 1:]:
                    self.assertFalse(a.intersects(b), f"Комнаты {a} и {b} пересекаются (seed={seed})")

    def test_room_interiors_are_floor(self):
        map_gen, grid, _ = self.generate(1)
        for room in map_gen.rooms:
            for y in range(room.y1 + 1, room.y2):
                for x in range(room.x1 + 1, room.x2):
                    self.assertFalse(grid.get(x, y).blocked)

    def test_spawn_is_center_of_first_room(self):
        for seed in range(5):
            map_gen, grid, spawn = self.generate(seed)
            self.assertEqual(spawn, map_gen.rooms[0].center)
            self.assertFalse(grid.get(*spawn).blocked)

    def test_all_rooms_connected(self):
        """Все комнаты достижимы из первой по полу (заливка по 4 соседям)."""
        for seed in range(10):
            map_gen, grid, spawn = self.generate(seed)
            reachable = reachable_from(grid, spawn)
            for room in map_gen.rooms:
                self.assertIn(room.center, reachable, f"seed={seed}")
            # Весь вырезанный пол - одна связная область
            self.assertEqual(len(reachable), grid.floor_count())

    def test_map_border_stays_wall(self):
        _, grid, _ = self.generate(2)
        self.assertTrue(grid.blocked[0, :].all())
        self.assertTrue(grid.blocked[-1, :].all())
        self.assertTrue(grid.blocked[:, 0].all())
        self.assertTrue(grid.blocked[:, -1].all())

    def test_generation_is_deterministic(self):
        first_entities, second_entities = [], []
        grid_a, spawn_a = generate_dungeon(80, 45, 30, 6, 10, random.Random(42), first_entities)
        grid_b, spawn_b = generate_dungeon(80, 45, 30, 6, 10, random.Random(42), second_entities)
        self.assertEqual(grid_a.tobytes(), grid_b.tobytes())
        self.assertEqual(spawn_a, spawn_b)
        self.assertEqual(first_entities, second_entities)

    def test_zero_rooms(self):
        """max_rooms = 0: сплошная стена и точка старта (0, 0)."""
        map_gen, grid, spawn = self.generate(0, max_rooms=0)
        self.assertEqual(spawn, (0, 0))
        self.assertEqual(grid.floor_count(), 0)
        self.assertEqual(map_gen.rooms, [])
        self.assertEqual(map_gen.monsters, [])

    def test_rooms_larger_than_map(self):
        """Комнаты больше карты не ставятся, цикл все равно завершается."""
        map_gen = MapGenerator(5, 5, random.Random(3))
        grid, spawn = map_gen.generate(max_rooms=30, room_min_size=6, room_max_size=10)
        self.assertEqual(spawn, (0, 0))
        self.assertEqual(grid.floor_count(), 0)
        self.assertEqual(map_gen.rooms, [])

    def test_inverted_room_sizes_rejected(self):
        with self.assertRaises(ValueError):
            self.generate(0, room_min_size=8, room_max_size=4)

    def test_tunnels_are_inclusive(self):
        map_gen = MapGenerator(12, 12, random.Random(0))
        map_gen._create_h_tunnel(8, 3, 5)
        map_gen._create_v_tunnel(2, 6, 10)
        for x in range(3, 9):
            self.assertFalse(map_gen.grid.get(x, 5).blocked)
        self.assertTrue(map_gen.grid.get(2, 5).blocked)
        self.assertTrue(map_gen.grid.get(9, 5).blocked)
        for y in range(2, 7):
            self.assertFalse(map_gen.grid.get(10, y).blocked)
        self.assertEqual(map_gen.grid.floor_count(), 6 + 5)

    def test_monsters_placed_on_free_floor(self):
        player = create_player(0, 0)
        for seed in range(5):
            map_gen, grid, spawn = self.generate(seed, player=player)
            self.assertEqual(player.pos, spawn)
            positions = [m.pos for m in map_gen.monsters]
            self.assertEqual(len(positions), len(set(positions)), "Два монстра на одной клетке")
            self.assertNotIn(spawn, positions)
            for monster in map_gen.monsters:
                self.assertTrue(monster.blocks)
                self.assertFalse(grid.get(monster.x, monster.y).blocked)
                self.assertTrue(any(room.x1 < monster.x < room.x2 and room.y1 < monster.y < room.y2
                                    for room in map_gen.rooms))
            self.assertLessEqual(len(map_gen.monsters), 3 * len(map_gen.rooms))

    def test_existing_entities_are_respected(self):
        """Уже стоящие объекты занимают клетки, игрок переносится в точку старта и не перекрывается."""
        for seed in range(40):
            player = create_player(0, 0)
            entities = [player]
            grid, spawn = generate_dungeon(80, 45, 30, 6, 10, random.Random(seed), entities, player=player)
            self.assertIs(entities[0], player)
            self.assertEqual(sum(1 for e in entities if e.name == "player"), 1)
            self.assertEqual(player.pos, spawn)
            monster_positions = [e.pos for e in entities[1:]]
            self.assertNotIn(spawn, monster_positions, f"Монстр стоит на точке старта (seed={seed})")

    def test_player_lookalike_does_not_hide_player(self):
        """Другой объект с такими же полями не подменяет игрока при проверке занятости."""
        for seed in range(40):
            player = create_player(0, 0)
            lookalike = create_player(0, 0)
            map_gen, _, spawn = self.generate(seed, player=player, existing=[lookalike])
            self.assertEqual(player.pos, spawn)
            self.assertEqual(lookalike.pos, (0, 0))
            self.assertNotIn(spawn, [m.pos for m in map_gen.monsters], f"seed={seed}")

    def test_room_borders_stay_wall(self):
        """Граница комнаты остается стеной везде, кроме клеток коридоров."""
        for seed in range(10):
            map_gen = MapGenerator(80, 45, random.Random(seed))
            with mock.patch.object(map_gen, '_create_h_tunnel', wraps=map_gen._create_h_tunnel) as h_tunnel, \
                    mock.patch.object(map_gen, '_create_v_tunnel', wraps=map_gen._create_v_tunnel) as v_tunnel:
                grid, _ = map_gen.generate()

            corridor = set()
            for call in h_tunnel.call_args_list:
                x1, x2, y = call.args
                corridor.update((x, y) for x in range(min(x1, x2), max(x1, x2) + 1))
            for call in v_tunnel.call_args_list:
                y1, y2, x = call.args
                corridor.update((x, y) for y in range(min(y1, y2), max(y1, y2) + 1))

            for room in map_gen.rooms:
                border = {(x, y) for x in range(room.x1, room.x2 + 1) for y in (room.y1, room.y2)}
                border |= {(x, y) for y in range(room.y1, room.y2 + 1) for x in (room.x1, room.x2)}
                for x, y in border - corridor:
                    self.assertTrue(grid.get(x, y).blocked, f"Граница {room} вырезана в ({x}, {y}), seed={seed}")


class TestSpawner(unittest.TestCase):

    def setUp(self):
        self.grid = TileGrid(10, 10)
        self.room = Rect.from_size(1, 1, 6, 6)
        carve(self.grid, 2, 2, 6, 6)

    def test_positions_inside_room(self):
        rng = random.Random(5)
        entities = []
        for _ in range(10):
            entities.extend(place_monsters(self.room, self.grid, entities, rng, max_monsters=3))
        positions = [e.pos for e in entities]
        self.assertEqual(len(positions), len(set(positions)))
        for x, y in positions:
            self.assertTrue(2 <= x <= 6 and 2 <= y <= 6)
        self.assertTrue(all(e.name in ("orc", "troll") for e in entities))

    def test_zero_max_monsters(self):
        self.assertEqual(place_monsters(self.room, self.grid, [], random.Random(1), max_monsters=0), [])

    def test_saturated_room_skips_placement(self):
        """Когда свободных клеток нет, попытки ограничены и монстр пропускается."""
        placed = place_monsters(self.room, self.grid, [], MaxRandom(0), max_monsters=3, max_attempts=20)
        # Все попытки бьют в (6, 6): первый встает, остальные пропускаются
        self.assertEqual([m.pos for m in placed], [(6, 6)])

    def test_blocking_entity_occupies_tile(self):
        occupied = [create_orc(x, y) for x in range(2, 7) for y in range(2, 7)]
        self.assertIsNone(generate_monster_position(self.room, self.grid, occupied, random.Random(0)))
        self.assertEqual(place_monsters(self.room, self.grid, occupied, MaxRandom(0)), [])

    def test_non_blocking_entity_does_not_occupy(self):
        items = [Entity(x, y, blocks=False, name="potion", char="!") for x in range(2, 7) for y in range(2, 7)]
        self.assertIsNotNone(generate_monster_position(self.room, self.grid, items, random.Random(0)))

    def test_room_without_interior(self):
        self.assertIsNone(generate_monster_position(Rect.from_size(0, 0, 1, 1), self.grid, [], random.Random(0)))


class TestEntities(unittest.TestCase):

    def setUp(self):
        self.grid = TileGrid(7, 3)
        carve(self.grid, 1, 1, 5, 1)

    def test_is_blocked(self):
        """Стена блокирует всегда, блокирующий объект - даже на полу."""
        troll = create_troll(3, 1)
        potion = Entity(4, 1, blocks=False, name="potion", char="!")
        entities = [troll, potion]
        self.assertTrue(is_blocked(0, 1, self.grid, entities))
        self.assertTrue(is_blocked(3, 1, self.grid, entities))
        self.assertFalse(is_blocked(4, 1, self.grid, entities))
        self.assertFalse(is_blocked(2, 1, self.grid, entities))
        # Стена с объектом на ней - тоже заблокирована
        self.assertTrue(is_blocked(0, 0, self.grid, [create_orc(0, 0)]))

    def test_is_blocked_out_of_bounds(self):
        with self.assertRaises(OutOfBoundsError):
            is_blocked(7, 1, self.grid, [])

    def test_move_by(self):
        player = create_player(1, 1)
        orc = create_orc(3, 1)
        entities = [player, orc]
        self.assertFalse(move_by(player, -1, 0, self.grid, entities), "Игрок не должен проходить сквозь стены")
        self.assertTrue(move_by(player, 1, 0, self.grid, entities))
        self.assertEqual(player.pos, (2, 1))
        self.assertFalse(move_by(player, 1, 0, self.grid, entities), "Игрок не должен проходить сквозь монстра")
        self.assertEqual(player.pos, (2, 1))

    def test_move_off_map_is_cancelled(self):
        grid = TileGrid(3, 3, Tile.floor())
        player = create_player(0, 0)
        self.assertFalse(move_by(player, -1, 0, grid, [player]))
        self.assertEqual(player.pos, (0, 0))


class TestFov(unittest.TestCase):

    def open_room(self, fov_map: FovMap):
        grid = TileGrid(7, 7)
        carve(grid, 1, 1, 5, 5)
        fov_map.configure(grid.transparent, grid.walkable)
        return grid

    def test_bresenham_line(self):
        self.assertEqual(bresenham_line(0, 0, 3, 0), [(0, 0), (1, 0), (2, 0), (3, 0)])
        self.assertEqual(bresenham_line(2, 2, 0, 0), [(2, 2), (1, 1), (0, 0)])

    def test_raycast_open_room(self):
        fov_map = RaycastFov(7, 7)
        self.open_room(fov_map)
        fov_map.compute_fov(3, 3, radius=0, light_walls=True)
        self.assertTrue(fov_map.visible.all())

    def test_raycast_without_light_walls(self):
        fov_map = RaycastFov(7, 7)
        grid = self.open_room(fov_map)
        fov_map.compute_fov(3, 3, radius=0, light_walls=False)
        np.testing.assert_array_equal(fov_map.visible, grid.walkable)

    def test_raycast_wall_blocks_sight(self):
        grid = TileGrid(10, 3)
        carve(grid, 1, 1, 8, 1)
        grid.set(5, 1, Tile.wall())
        fov_map = RaycastFov(10, 3)
        fov_map.configure(grid.transparent, grid.walkable)
        fov_map.compute_fov(2, 1)
        self.assertTrue(fov_map.is_in_fov(4, 1))
        self.assertTrue(fov_map.is_in_fov(5, 1))
        self.assertFalse(fov_map.is_in_fov(7, 1))

    def test_raycast_radius(self):
        grid = TileGrid(13, 13)
        carve(grid, 1, 1, 11, 11)
        fov_map = RaycastFov(13, 13)
        fov_map.configure(grid.transparent, grid.walkable)
        fov_map.compute_fov(6, 6, radius=2)
        self.assertTrue(fov_map.is_in_fov(8, 6))
        self.assertFalse(fov_map.is_in_fov(9, 6))
        self.assertFalse(fov_map.is_in_fov(8, 8))

    def test_tcod_separated_rooms(self):
        grid = TileGrid(12, 5)
        carve(grid, 1, 1, 4, 3)
        carve(grid, 7, 1, 10, 3)
        fov_map = make_fov_map('tcod', 12, 5)
        self.assertIsInstance(fov_map, TcodFov)
        fov_map.configure(grid.transparent, grid.walkable)
        fov_map.compute_fov(2, 2)
        self.assertTrue(fov_map.is_in_fov(2, 2))
        self.assertTrue(fov_map.is_in_fov(4, 3))
        self.assertFalse(fov_map.is_in_fov(8, 2))

    def test_out_of_bounds_and_bad_input(self):
        fov_map = RaycastFov(4, 4)
        with self.assertRaises(OutOfBoundsError):
            fov_map.is_in_fov(4, 0)
        with self.assertRaises(OutOfBoundsError):
            fov_map.compute_fov(-1, 0)
        with self.assertRaises(ValueError):
            fov_map.configure(np.ones((3, 3), dtype=bool), np.ones((3, 3), dtype=bool))
        with self.assertRaises(ValueError):
            make_fov_map('shadowcast', 4, 4)

    def test_set_properties(self):
        fov_map = RaycastFov(3, 3)
        fov_map.set_properties(1, 2, transparent=True, walkable=False)
        self.assertTrue(fov_map.transparent[2, 1])
        self.assertFalse(fov_map.walkable[2, 1])


class TestVisibilityTracker(unittest.TestCase):

    def setUp(self):
        self.grid = two_rooms_grid()
        self.tracker = VisibilityTracker(RaycastFov(self.grid.width, self.grid.height))

    def test_recompute_requires_sync(self):
        with self.assertRaises(StaleVisibilityError):
            self.tracker.recompute(2, 2)

    def test_fold_requires_fresh_visibility(self):
        """fold_explored по устаревшей видимости запрещен."""
        self.tracker.sync_transparency(self.grid)
        with self.assertRaises(StaleVisibilityError):
            self.tracker.fold_explored(self.grid)
        self.tracker.recompute(2, 2)
        self.tracker.invalidate()
        with self.assertRaises(StaleVisibilityError):
            self.tracker.fold_explored(self.grid)
        self.assertFalse(self.grid.explored.any())

    def test_sync_recompute_fold(self):
        self.tracker.sync_transparency(self.grid)
        self.tracker.recompute(2, 2)
        self.assertEqual(self.tracker.state, FovState.FRESH)
        self.tracker.fold_explored(self.grid)
        self.assertTrue(self.grid.get(2, 2).explored)
        self.assertTrue(self.grid.get(1, 1).explored)
        self.assertFalse(self.grid.get(8, 2).explored, "Вторая комната не видна из первой")
        np.testing.assert_array_equal(self.grid.explored, self.tracker.fov_map.visible)

    def test_explored_is_monotonic(self):
        self.tracker.sync_transparency(self.grid)
        for _ in range(2):
            self.tracker.recompute(2, 2)
            self.tracker.fold_explored(self.grid)
        explored_before = self.grid.explored.copy()

        self.tracker.update(self.grid, 8, 2)
        self.assertFalse(self.tracker.is_visible(2, 2))
        self.assertTrue(self.grid.get(2, 2).explored)
        self.assertTrue(self.grid.get(8, 2).explored)
        self.assertTrue((self.grid.explored | ~explored_before).all())

    def test_update_only_on_movement(self):
        """Пересчет только при смене позиции игрока (и на первом кадре)."""
        self.tracker.sync_transparency(self.grid)
        with mock.patch.object(self.tracker.fov_map, 'compute_fov',
                               wraps=self.tracker.fov_map.compute_fov) as compute:
            self.assertTrue(self.tracker.update(self.grid, 2, 2))
            self.assertFalse(self.tracker.update(self.grid, 2, 2))
            self.assertTrue(self.tracker.update(self.grid, 3, 2))
            self.assertEqual(compute.call_count, 2)
        self.assertEqual(self.tracker.last_position, (3, 2))

    def test_sync_resets_state(self):
        self.tracker.sync_transparency(self.grid)
        self.tracker.update(self.grid, 2, 2)
        self.tracker.sync_transparency(self.grid)
        self.assertEqual(self.tracker.state, FovState.STALE)
        self.assertEqual(self.tracker.last_position, VisibilityTracker.NEVER)
        self.assertTrue(self.tracker.update(self.grid, 2, 2))

    def test_sync_rejects_mismatched_grid(self):
        with self.assertRaises(ValueError):
            self.tracker.sync_transparency(TileGrid(5, 5))

    def test_shade(self):
        """Четыре вида заливки плюс неисследованные клетки."""
        self.tracker.sync_transparency(self.grid)
        self.tracker.update(self.grid, 2, 2)
        self.assertEqual(self.tracker.shade(self.grid, 2, 2), Shade.LIGHT_GROUND)
        self.assertEqual(self.tracker.shade(self.grid, 0, 0), Shade.LIGHT_WALL)
        self.assertIsNone(self.tracker.shade(self.grid, 8, 2))

        self.tracker.update(self.grid, 8, 2)
        self.assertEqual(self.tracker.shade(self.grid, 2, 2), Shade.DARK_GROUND)
        self.assertEqual(self.tracker.shade(self.grid, 0, 0), Shade.DARK_WALL)
        self.assertEqual(self.tracker.shade(self.grid, 8, 2), Shade.LIGHT_GROUND)

    def test_visible_entities(self):
        self.tracker.sync_transparency(self.grid)
        self.tracker.update(self.grid, 2, 2)
        near, far = create_orc(3, 3), create_troll(8, 2)
        self.assertEqual(self.tracker.visible_entities([near, far]), [near])


class TestGameState(unittest.TestCase):

    def setUp(self):
        self.config = GameConfig(map_width=40, map_height=25, max_rooms=12, seed=7)

    def test_new_game(self):
        state = GameState.new_game(self.config)
        self.assertIs(state.entities[0], state.player)
        self.assertFalse(state.grid.get(*state.player.pos).blocked)
        self.assertTrue(state.visibility.is_visible(*state.player.pos))
        self.assertTrue(state.grid.get(*state.player.pos).explored)
        others = [e.pos for e in state.entities[1:]]
        self.assertNotIn(state.player.pos, others)

    def test_new_game_is_reproducible(self):
        a = GameState.new_game(self.config)
        b = GameState.new_game(GameConfig(map_width=40, map_height=25, max_rooms=12, seed=7))
        self.assertEqual(a.grid.tobytes(), b.grid.tobytes())
        self.assertEqual([(e.name, e.pos) for e in a.entities], [(e.name, e.pos) for e in b.entities])

    def test_new_game_with_tcod(self):
        self.config.fov_algorithm = 'tcod'
        state = GameState.new_game(self.config)
        self.assertTrue(state.visibility.is_visible(*state.player.pos))

    def test_move_player(self):
        grid = TileGrid(7, 3)
        carve(grid, 1, 1, 5, 1)
        player, orc = create_player(1, 1), create_orc(3, 1)
        tracker = VisibilityTracker(RaycastFov(7, 3))
        tracker.sync_transparency(grid)
        state = GameState(config=GameConfig(map_width=7, map_height=3), grid=grid, player=player,
                          entities=[player, orc], visibility=tracker)
        state.refresh_visibility()

        self.assertFalse(state.move_player(-1, 0))
        self.assertEqual(state.log, [])
        self.assertTrue(state.move_player(1, 0))
        self.assertEqual(tracker.last_position, (2, 1))
        self.assertFalse(state.move_player(1, 0))
        self.assertEqual(state.log, ["The orc blocks your way."])
        self.assertEqual(player.pos, (2, 1))

    def test_config_validation(self):
        bad_configs = [
            GameConfig(map_width=0),
            GameConfig(max_rooms=-1),
            GameConfig(room_min_size=0),
            GameConfig(room_min_size=9, room_max_size=6),
            GameConfig(max_room_monsters=-1),
            GameConfig(max_placement_attempts=0),
            GameConfig(fov_radius=-2),
            GameConfig(fov_algorithm='magic'),
        ]
        for config in bad_configs:
            with self.assertRaises(ValueError):
                config.validate()
        self.assertIsInstance(GameConfig().validate(), GameConfig)

    def test_degenerate_config_gives_wall_map(self):
        state = GameState.new_game(GameConfig(map_width=5, map_height=5, seed=1))
        self.assertEqual(state.player.pos, (0, 0))
        self.assertEqual(state.grid.floor_count(), 0)
        self.assertEqual(state.entities, [state.player])


class TestMain(unittest.TestCase):

    def run_main(self, argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main(argv)
        return code, out.getvalue()

    def test_prints_map(self):
        code, output = self.run_main(['--seed', '3', '--width', '40', '--height', '20', '--max-rooms', '10'])
        self.assertEqual(code, 0)
        lines = output.rstrip("\n").split("\n")
        self.assertEqual(len(lines), 20)
        self.assertTrue(all(len(line) == 40 for line in lines))
        self.assertEqual(output.count('@'), 1)

    def test_fog(self):
        code, output = self.run_main(['--seed', '3', '--width', '40', '--height', '20', '--fog'])
        self.assertEqual(code, 0)
        self.assertIn('@', output)

    def test_invalid_arguments(self):
        code, output = self.run_main(['--room-min-size', '12', '--room-max-size', '6'])
        self.assertEqual(code, 2)
        self.assertIn("error", output)

    def test_render_ascii_marks_entities(self):
        state = GameState.new_game(GameConfig(map_width=40, map_height=25, seed=11))
        rows = render_ascii(state).split("\n")
        for entity in state.entities:
            self.assertEqual(rows[entity.y][entity.x], entity.char)


if __name__ == '__main__':
    unittest.main()
