"""
Encounter Shuffle
=================

Monster encounter shuffler for a game randomizer: moves monsters between
locations while respecting each location's sprite pattern/palette slots,
flier quotas and placement rules.

Submodules:
- core: Definitions and the graphics constraint algebra
- data: Entity model, per-location adjustments, sample world
- generation: Terrain, reachability, placement pools and the monster pool
- utils: Seeded RNG

Pipeline:
    Stage 1: TerrainIndex / ReachabilityAnalyzer - which tiles can be walked to
    Stage 2: PlacementPoolBuilder - where each kind of monster may go
    Stage 3: Graphics - which sprite pages each monster needs
    Stage 4: MonsterPool - global shuffle and greedy assignment
    Stage 5: PlacementCommitter - write spawns back, disable leftovers
"""

__version__ = "1.0.0"

__all__ = ['core', 'data', 'generation', 'utils']
