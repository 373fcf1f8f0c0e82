"""
Placement Pool Builder
======================
Candidate tiles for randomized monster positions in one location.

Problem:
    On a randomized map, monsters need fresh positions that suit how they
    move: walkers on open ground, fliers far from the path, moths/bats at
    mid range, plants close to it.

Solution:
    - Start from every reachable tile at distance 0
    - Breadth-first search outward over the whole location (walls
      included), skipping the boss screen
    - Bucket tiles by distance into four pools
    - Place monsters by rejection sampling: draw tiles at random and keep
      the first one clear of entrances and previously placed monsters

Rejection sampling can fail to find a packing that exists; the caller
treats a failed placement as an ordinary rejection.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import numpy as np
import logging

from encounter_shuffle.core.definitions import (
    BIRD_MIN_DISTANCE,
    HAZARD_MASK,
    HAZARD_MASK_AMPHIBIOUS,
    MOTH_DISTANCE,
    PLANT_DISTANCE,
    PLANT_FLOWER_TILE,
    PLANT_OVERRIDE_LOCATION,
    Placement,
    grid_to_tile,
    tile_to_grid,
    tile_xy,
)
from encounter_shuffle.data.rom_model import Location, MonsterData, Rom
from encounter_shuffle.generation.reachability import ReachabilityAnalyzer
from encounter_shuffle.generation.terrain import TerrainIndex
from encounter_shuffle.utils.rng import SeededRandom

logger = logging.getLogger(__name__)

# below, above, right, left
NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


@dataclass
class PlacementPools:
    """Candidate tiles per placement category. Pools may overlap."""
    normal: List[int] = field(default_factory=list)
    moth: List[int] = field(default_factory=list)
    bird: List[int] = field(default_factory=list)
    plant: List[int] = field(default_factory=list)

    def pool(self, placement: Placement) -> List[int]:
        if placement is Placement.NORMAL:
            return self.normal
        if placement is Placement.MOTH:
            return self.moth
        if placement is Placement.BIRD:
            return self.bird
        if placement is Placement.PLANT:
            return self.plant
        raise AssertionError(f"Unknown placement: {placement!r}")

    def sizes(self) -> Dict[str, int]:
        return {p.value: len(self.pool(p)) for p in Placement}


class PlacementPoolBuilder:
    """Distance map and placement pools for one location."""

    def __init__(self, rom: Rom, location: Location, terrain: Optional[TerrainIndex] = None):
        self.location = location
        self.terrain = terrain or TerrainIndex(rom, location)
        self.analyzer = ReachabilityAnalyzer(rom, location, self.terrain)
        self._result: Optional[Tuple[np.ndarray, PlacementPools]] = None

    def distance_map(self) -> np.ndarray:
        """(rows, cols) int32 grid of BFS distance; -1 where never reached."""
        return self._build()[0]

    def build_pools(self) -> PlacementPools:
        return self._build()[1]

    def placer(self, rng: SeededRandom) -> 'MonsterPlacer':
        return MonsterPlacer(self.build_pools(), self.location, rng)

    def _build(self) -> Tuple[np.ndarray, PlacementPools]:
        if self._result is not None:
            return self._result

        location = self.location
        reachable = self.analyzer.compute_reachable(flying=False)
        rows, cols = self.terrain.shape
        distance = np.full((rows, cols), -1, dtype=np.int32)
        pools = PlacementPools()
        hazard = HAZARD_MASK_AMPHIBIOUS if location.is_amphibious() else HAZARD_MASK
        flower_override = location.id == PLANT_OVERRIDE_LOCATION

        queue = deque()
        for tile in reachable:
            r, c = tile_to_grid(tile)
            distance[r, c] = 0
            queue.append((r, c))

        while queue:
            r, c = queue.popleft()
            tile = grid_to_tile(r, c)
            if location.boss_screen is not None and location.screen_id(tile) == location.boss_screen:
                continue
            d = int(distance[r, c])
            for dr, dc in NEIGHBOR_OFFSETS:
                nr, nc = r + dr, c + dc
                if 0 <= nr < rows and 0 <= nc < cols and distance[nr, nc] < 0:
                    distance[nr, nc] = d + 1
                    queue.append((nr, nc))

            if d == 0 and not reachable[tile] & hazard:
                pools.normal.append(tile)
            if flower_override:
                if self.terrain.metatile(tile) == PLANT_FLOWER_TILE:
                    pools.plant.append(tile)
            elif PLANT_DISTANCE[0] <= d <= PLANT_DISTANCE[1]:
                pools.plant.append(tile)
            if MOTH_DISTANCE[0] <= d <= MOTH_DISTANCE[1]:
                pools.moth.append(tile)
            if d >= BIRD_MIN_DISTANCE:
                pools.bird.append(tile)

        logger.debug(f"{location}: placement pools {pools.sizes()}")
        self._result = (distance, pools)
        return self._result


class MonsterPlacer:
    """
    Picks positions for monsters in one location.

    Keeps track of everything it has placed so later monsters keep their
    distance from earlier ones.
    """

    def __init__(self, pools: PlacementPools, location: Location, rng: SeededRandom):
        self.pools = pools
        self.rng = rng
        self.entrances = [(e.x >> 4, e.y >> 4) for e in location.used_entrances()]
        self.placed: List[Tuple[int, int, int, int]] = []  # (monster id, x, y, clearance)
        self.attempts = 0

    def place(self, monster: MonsterData) -> Optional[int]:
        """Packed tile for the monster, or None if its pool has no room."""
        self.attempts += 1
        pool = list(self.pools.pool(monster.placement))
        r = monster.clearance()
        while pool:
            i = self.rng.next_int(len(pool))
            pos = pool[i]
            pool[i] = pool[-1]
            pool.pop()

            x, y = tile_xy(pos)
            if any((y - y1) ** 2 + (x - x1) ** 2 < (r + r1) ** 2 for _, x1, y1, r1 in self.placed):
                continue
            if any((y - ey) ** 2 + (x - ex) ** 2 < (r + 1) ** 2 for ex, ey in self.entrances):
                continue

            self.placed.append((monster.id, x, y, r))
            return pos
        return None
