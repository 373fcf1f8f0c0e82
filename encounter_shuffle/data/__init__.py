"""
Data Module for Encounter Shuffle
=================================

In-memory game data the shuffler reads and writes.

Classes:
    Rom, Location, Spawn, Entrance, Exit, Flag: entity model
    Screen, Tileset, TileEffects: map data
    MonsterData: monster object record
    LocationAdjustment: validated per-location tweaks

Constants:
    LOCATION_ADJUSTMENTS: the adjustment table, keyed by location id
"""

from .rom_model import (
    Entrance,
    Exit,
    Flag,
    Location,
    MonsterData,
    Rom,
    Screen,
    Spawn,
    TileEffects,
    Tileset,
)
from .adjustments import (
    ConfigurationError,
    LocationAdjustment,
    LOCATION_ADJUSTMENTS,
    MONSTER_ADJUSTMENTS,
    adjustment_for,
    load_adjustments,
)

__all__ = [
    # Entity model
    'Entrance',
    'Exit',
    'Flag',
    'Location',
    'MonsterData',
    'Rom',
    'Screen',
    'Spawn',
    'TileEffects',
    'Tileset',
    # Adjustments
    'ConfigurationError',
    'LocationAdjustment',
    'LOCATION_ADJUSTMENTS',
    'MONSTER_ADJUSTMENTS',
    'adjustment_for',
    'load_adjustments',
]
