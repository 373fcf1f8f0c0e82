"""
Encounter Shuffle Core Module
=============================

Constants shared by every stage and the graphics constraint algebra.

Usage:
    from encounter_shuffle.core import Constraint, Placement, pack_tile
"""

from encounter_shuffle.core.definitions import (
    Placement,
    SpawnType,
    TerrainClass,
    TileEffect,
    GRAPHICS_SLOTS,
    SLOT_BASE,
    pack_tile,
    unpack_tile,
    tile_to_grid,
    grid_to_tile,
    location_label,
)
from encounter_shuffle.core.constraint import (
    Constraint,
    ConstraintError,
    PageSet,
    ALL_PAGES,
    NO_PAGES,
    bit,
)

__all__ = [
    # Definitions
    'Placement',
    'SpawnType',
    'TerrainClass',
    'TileEffect',
    'GRAPHICS_SLOTS',
    'SLOT_BASE',
    'pack_tile',
    'unpack_tile',
    'tile_to_grid',
    'grid_to_tile',
    'location_label',
    # Constraints
    'Constraint',
    'ConstraintError',
    'PageSet',
    'ALL_PAGES',
    'NO_PAGES',
    'bit',
]
