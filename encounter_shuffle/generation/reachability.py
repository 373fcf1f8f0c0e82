"""
Reachability Analyzer
=====================
Which tiles of a location can actually be walked to from an entrance.

Algorithm:
    1. Classify every in-bounds tile as passable or blocked (TerrainIndex)
    2. Union each passable tile with its right and lower passable neighbors
       (the location-wide grid makes screen edges ordinary adjacencies)
    3. Keep the components that contain a used entrance
    4. Return those tiles with their raw effects bytes
"""

from typing import Dict, List, Optional
import numpy as np
import logging

from encounter_shuffle.core.definitions import grid_to_tile, tile_to_grid
from encounter_shuffle.data.rom_model import Location, Rom
from encounter_shuffle.generation.terrain import TerrainIndex

logger = logging.getLogger(__name__)


class UnionFind:
    """Disjoint sets over 0..size-1 with path halving and union by size."""

    def __init__(self, size: int):
        self.parent: List[int] = list(range(size))
        self.size: List[int] = [1] * size

    def find(self, x: int) -> int:
        parent = self.parent
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def union(self, a: int, b: int) -> int:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return ra
        if self.size[ra] < self.size[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        self.size[ra] += self.size[rb]
        return ra


class ReachabilityAnalyzer:
    """Flood fill of a location's passable tiles from its entrances."""

    def __init__(self, rom: Rom, location: Location, terrain: Optional[TerrainIndex] = None):
        self.location = location
        self.terrain = terrain or TerrainIndex(rom, location)

    def compute_reachable(self, flying: bool = False) -> Dict[int, int]:
        """
        Map of reachable packed tiles to their effects bytes.

        Tiles are in row-major order. Entrances that are out of bounds or
        sit on a blocked tile contribute nothing.
        """
        passable = self.terrain.passable_grid(flying)
        rows, cols = passable.shape
        cells = np.argwhere(passable)

        uf = UnionFind(rows * cols)
        for r, c in cells:
            idx = r * cols + c
            if c + 1 < cols and passable[r, c + 1]:
                uf.union(idx, idx + 1)
            if r + 1 < rows and passable[r + 1, c]:
                uf.union(idx, idx + cols)

        roots = set()
        for entrance in self.location.used_entrances():
            tile = entrance.packed
            if not self.terrain.in_bounds(tile):
                logger.warning(f"{self.location}: entrance at {tile:#06x} is out of bounds")
                continue
            r, c = tile_to_grid(tile)
            if not passable[r, c]:
                logger.debug(f"{self.location}: entrance at {tile:#06x} is not on a passable tile")
                continue
            roots.add(uf.find(r * cols + c))

        reachable: Dict[int, int] = {}
        if not roots:
            return reachable
        for r, c in cells:
            if uf.find(r * cols + c) in roots:
                tile = grid_to_tile(int(r), int(c))
                reachable[tile] = self.terrain.effects(tile)

        logger.debug(f"{self.location}: {len(reachable)} reachable tiles from {len(roots)} component(s)")
        return reachable

    def reachable_mask(self, flying: bool = False) -> np.ndarray:
        """Boolean grid version of compute_reachable."""
        mask = np.zeros(self.terrain.shape, dtype=bool)
        for tile in self.compute_reachable(flying):
            mask[tile_to_grid(tile)] = True
        return mask
