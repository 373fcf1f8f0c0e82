"""
Generation Module for Encounter Shuffle
=======================================

Usage:
    from encounter_shuffle.generation import ShuffleConfig, shuffle_monsters
    report = shuffle_monsters(rom, ShuffleConfig(), SeededRandom(1))
"""

from .terrain import TerrainIndex
from .reachability import ReachabilityAnalyzer, UnionFind
from .placement import MonsterPlacer, PlacementPoolBuilder, PlacementPools
from .graphics import Graphics, GraphicsError
from .report import ShuffleReport
from .committer import PlacementCommitter
from .monster_pool import (
    LocationSession,
    LocationSlots,
    MonsterClassConflict,
    MonsterClassRegistry,
    MonsterPool,
    MonsterSlotRequest,
    ShuffleConfig,
    shuffle_monsters,
)

__all__ = [
    # Map analysis
    'TerrainIndex',
    'ReachabilityAnalyzer',
    'UnionFind',
    'PlacementPoolBuilder',
    'PlacementPools',
    'MonsterPlacer',
    # Graphics
    'Graphics',
    'GraphicsError',
    # Assignment
    'LocationSession',
    'LocationSlots',
    'MonsterClassConflict',
    'MonsterClassRegistry',
    'MonsterPool',
    'MonsterSlotRequest',
    'ShuffleConfig',
    'shuffle_monsters',
    'PlacementCommitter',
    'ShuffleReport',
]
