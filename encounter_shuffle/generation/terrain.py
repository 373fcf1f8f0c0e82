"""
Terrain Index
=============
Per-tile passability for one location.

Each metatile's effects byte says whether walkers and fliers can cross
it. Screens carrying a flag may swap low metatiles (< $20) for their
tileset alternates (e.g. a wall that opens once the flag is set); a
blocked tile on such a screen is judged by its alternate instead. Exit
tiles are never passable.
"""

from typing import Iterator, List
import numpy as np
import logging

from encounter_shuffle.core.definitions import (
    ALTERNATE_TILE_LIMIT,
    BLOCKED_FLYING,
    BLOCKED_WALKING,
    SCREEN_COLS,
    SCREEN_ROWS,
    TerrainClass,
    TileEffect,
    grid_to_tile,
    unpack_tile,
)
from encounter_shuffle.data.rom_model import Location, Rom, Screen

logger = logging.getLogger(__name__)


class TerrainIndex:
    """Tile effect lookups for a single location."""

    def __init__(self, rom: Rom, location: Location):
        self.location = location
        self.alternates = rom.tilesets[location.tileset].alternates
        self.effects_table = rom.tile_effects[location.tile_effects].effects
        self.screens: List[List[Screen]] = [[rom.screens[s] for s in row] for row in location.screens]
        self.exits = {exit_.packed for exit_ in location.exits}
        self.flagged_screens = {flag.screen for flag in location.flags}
        self.amphibious = location.is_amphibious()

    @property
    def shape(self):
        """(rows, cols) of the location-wide tile grid."""
        return self.location.height * SCREEN_ROWS, self.location.width * SCREEN_COLS

    def tiles(self) -> Iterator[int]:
        """All in-bounds packed tiles, row-major."""
        rows, cols = self.shape
        for row in range(rows):
            for col in range(cols):
                yield grid_to_tile(row, col)

    def in_bounds(self, tile: int) -> bool:
        sy, sx, y, _ = unpack_tile(tile)
        return sy < self.location.height and sx < self.location.width and y < SCREEN_ROWS

    def metatile(self, tile: int) -> int:
        screen = self.screens[tile >> 12][(tile >> 8) & 0xf]
        return screen.tiles[tile & 0xff]

    def effects(self, tile: int) -> int:
        """Raw effects byte of the tile's default metatile."""
        return self.effects_table[self.metatile(tile)]

    def resolved_effects(self, tile: int, flying: bool = False) -> int:
        """Effects after applying a flag-conditional alternate, if any."""
        flying = flying or self.amphibious
        mask = BLOCKED_FLYING if flying else BLOCKED_WALKING
        metatile = self.metatile(tile)
        effects = self.effects_table[metatile]
        if ((tile >> 8) in self.flagged_screens and effects & mask
                and metatile < ALTERNATE_TILE_LIMIT and self.alternates[metatile] != metatile):
            effects = self.effects_table[self.alternates[metatile]]
        return effects

    def is_blocked(self, tile: int, flying: bool = False) -> bool:
        if tile in self.exits:
            return True
        flying = flying or self.amphibious
        mask = BLOCKED_FLYING if flying else BLOCKED_WALKING
        return bool(self.resolved_effects(tile, flying) & mask)

    def terrain_class(self, tile: int, flying: bool = False) -> TerrainClass:
        flying = flying or self.amphibious
        effects = self.resolved_effects(tile, flying)
        if effects & TileEffect.IMPASSIBLE:
            return TerrainClass.WALL
        if effects & TileEffect.NO_WALK:
            return TerrainClass.WATER if flying else TerrainClass.WALL
        if effects & TileEffect.SLOPE:
            return TerrainClass.SLOPE
        return TerrainClass.OPEN

    def passable_grid(self, flying: bool = False) -> np.ndarray:
        """(rows, cols) boolean array: True where the tile can be crossed."""
        rows, cols = self.shape
        grid = np.zeros((rows, cols), dtype=bool)
        for row in range(rows):
            for col in range(cols):
                grid[row, col] = not self.is_blocked(grid_to_tile(row, col), flying)
        logger.debug(f"{self.location}: {int(grid.sum())}/{grid.size} passable tiles (flying={flying})")
        return grid
