"""
ENCOUNTER SHUFFLE DEFINITIONS
=============================
Central constants and type definitions for the entire project.

This file is the SINGLE SOURCE OF TRUTH for:
- Screen / tile geometry and packed tile coordinates
- Tile effect bits and terrain classes
- Spawn kinds and spawn-table slot numbering
- Monster catalogues (eligible, fliers, moths/bats, untouched)
- Placement categories

Import from here instead of duplicating constants across modules.

"""

from typing import Dict, FrozenSet, Tuple
from enum import Enum, IntEnum

# ==========================================
# SCREEN GEOMETRY
# ==========================================
# A screen is 15 rows x 16 columns of metatiles. Packed tile ids are
# (screen_row, screen_col, sub_row, sub_col) nibbles: $YXyx.

SCREEN_ROWS: int = 15
SCREEN_COLS: int = 16
TILES_PER_SCREEN: int = SCREEN_ROWS * SCREEN_COLS  # 0xf0


def pack_tile(screen_row: int, screen_col: int, sub_row: int, sub_col: int) -> int:
    """Pack screen/sub-tile coordinates into a $YXyx tile id."""
    return (screen_row << 12) | (screen_col << 8) | (sub_row << 4) | sub_col


def unpack_tile(tile: int) -> Tuple[int, int, int, int]:
    """Inverse of pack_tile: (screen_row, screen_col, sub_row, sub_col)."""
    return (tile >> 12) & 0xf, (tile >> 8) & 0xf, (tile >> 4) & 0xf, tile & 0xf


def tile_to_grid(tile: int) -> Tuple[int, int]:
    """Packed tile -> absolute (row, col) in a location-wide grid."""
    sy, sx, y, x = unpack_tile(tile)
    return sy * SCREEN_ROWS + y, sx * SCREEN_COLS + x


def grid_to_tile(row: int, col: int) -> int:
    """Absolute (row, col) -> packed tile."""
    sy, y = divmod(row, SCREEN_ROWS)
    sx, x = divmod(col, SCREEN_COLS)
    return pack_tile(sy, sx, y, x)


def tile_xy(tile: int) -> Tuple[int, int]:
    """Packed tile -> (x, y) in 16-pixel tile units (16 rows per screen)."""
    x = (tile & 0xf00) >> 4 | (tile & 0xf)
    y = (tile & 0xf000) >> 8 | (tile & 0xf0) >> 4
    return x, y


# ==========================================
# TILE EFFECTS
# ==========================================

class TileEffect(IntEnum):
    """Bits of the per-metatile effects byte."""
    PAIN = 0x01
    NO_WALK = 0x02      # water, for walkers
    IMPASSIBLE = 0x04   # walls, for everyone
    SLOPE = 0x20


class TerrainClass(Enum):
    """Coarse terrain class derived from a tile's effects."""
    OPEN = 'open'
    SLOPE = 'slope'
    WATER = 'water'
    WALL = 'wall'


BLOCKED_FLYING: int = TileEffect.IMPASSIBLE
BLOCKED_WALKING: int = TileEffect.IMPASSIBLE | TileEffect.NO_WALK

# Tiles with these bits are not "normal" ground for walking monsters.
HAZARD_MASK: int = 0x27
HAZARD_MASK_AMPHIBIOUS: int = 0x25

# Graphics slots of a Constraint, in order.
GRAPHICS_SLOTS: Tuple[str, ...] = ('pat0', 'pat1', 'pal2', 'pal3')

# Only metatiles below this id have flag-conditional alternates.
ALTERNATE_TILE_LIMIT: int = 0x20

# Locations traversed by dolphin: water counts as open.
AMPHIBIOUS_LOCATIONS: FrozenSet[int] = frozenset({0x60, 0x64, 0x68})

# Swamp plants grow on flower tiles instead of near the path.
PLANT_OVERRIDE_LOCATION: int = 0x1a
PLANT_FLOWER_TILE: int = 0xf0

# ==========================================
# PLACEMENT
# ==========================================

class Placement(Enum):
    """Where a monster may be placed on a randomized map."""
    NORMAL = 'normal'
    MOTH = 'moth'
    BIRD = 'bird'
    PLANT = 'plant'


PLANT_DISTANCE: Tuple[int, int] = (2, 4)
MOTH_DISTANCE: Tuple[int, int] = (3, 7)
BIRD_MIN_DISTANCE: int = 12

CLEARANCE_SMALL: int = 3
CLEARANCE_LARGE: int = 6

# ==========================================
# SPAWNS
# ==========================================

class SpawnType(IntEnum):
    """Low bits of a spawn's type byte."""
    MONSTER = 0
    NPC = 1
    TRIGGER = 2   # chests use ids below 0x80
    WALL = 3


SLOT_BASE: int = 0x0d              # spawn index 0 is slot $0d
MONSTER_ID_OFFSET: int = 0x50      # monster spawn id + $50 = object id
CHEST_TRIGGER_LIMIT: int = 0x80
MIMIC_CHEST_START: int = 0x70
BOSS_NPC_START: int = 0xc0
SHOOTING_WALL_KIND: int = 0x30
INERT_SPAWN_ID: int = 0xb0
UNUSED_SPAWN_MARK: int = 0xfe
KENSU_NPC_ID: int = 0x6b

# ==========================================
# MONSTER CATALOGUES
# ==========================================

# Shufflable monsters (object id -> name).
MONSTER_NAMES: Dict[int, str] = {
    0x4b: 'wraith??',
    0x4f: 'wraith',
    0x50: 'Blue Slime',
    0x51: 'Weretiger',
    0x52: 'Green Jelly',
    0x53: 'Red Slime',
    0x54: 'Rock Golem',
    0x55: 'Blue Bat',
    0x56: 'Green Wyvern',
    0x58: 'Orc',
    0x59: 'Red Flying Swamp Insect',
    0x5a: 'Blue Mushroom',
    0x5b: 'Swamp Tomato',
    0x5c: 'Flying Meadow Insect',
    0x5d: 'Swamp Plant',
    0x5f: 'Large Blue Slime',
    0x60: 'Ice Zombie',
    0x61: 'Green Living Rock',
    0x62: 'Green Spider',
    0x63: 'Red/Purple Wyvern',
    0x64: 'Draygonia Soldier',
    0x65: 'Ice Entity',
    0x66: 'Red Living Rock',
    0x67: 'Ice Golem',
    0x69: 'Giant Red Slime',
    0x6a: 'Troll',
    0x6b: 'Red Jelly',
    0x6c: 'Medusa',
    0x6d: 'Red Crab',
    0x6e: 'Medusa Head',
    0x6f: 'Evil Bird',
    0x71: 'Red/Purple Mushroom',
    0x72: 'Violet Earth Entity',
    0x73: 'Mimic',
    0x74: 'Red Spider',
    0x75: 'Fishman',
    0x76: 'Jellyfish',
    0x77: 'Kraken',
    0x78: 'Dark Green Wyvern',
    0x79: 'Sand Monster',
    0x7b: 'Wraith Shadow 1',
    0x7c: 'Killer Moth',
    0x80: 'Draygonia Archer',
    0x81: 'Evil Bomber Bird',
    0x82: 'Lavaman/blob',
    0x84: 'Lizardman (w/ flail)',
    0x85: 'Giant Eye',
    0x86: 'Salamander',
    0x87: 'Sorceror',
    0x89: 'Draygonia Knight',
    0x8a: 'Devil',
    0x8c: 'Wraith Shadow 2',
    0x91: 'Tarantula',
    0x92: 'Skeleton',
    0x94: 'Purple Giant Eye',
    0x95: 'Black Knight (w/ flail)',
    0x96: 'Scorpion',
    0x98: 'Sandman/blob',
    0x99: 'Mummy',
    0x9a: 'Tomb Guardian',
    0xa0: 'Ground Sentry (1)',
    0xa1: 'Tower Defense Mech (2)',
    0xa2: 'Tower Sentinel',
    0xa3: 'Air Sentry',
    0xbc: 'vamp2 bat',
    0xc1: 'vamp1 bat',
    0xc4: 'summoned insect',
}

ELIGIBLE_MONSTERS: FrozenSet[int] = frozenset(MONSTER_NAMES)

# May be placed anywhere reachable, limited by per-location quota.
FLYERS: FrozenSet[int] = frozenset({0x59, 0x5c, 0x6e, 0x6f, 0x81, 0x8a, 0xa3, 0xc4})

MOTHS_AND_BATS: FrozenSet[int] = frozenset({0x55, 0x5d, 0x7c, 0xbc, 0xc1})

# Never moved; their graphics are a hard requirement of their location.
UNTOUCHED_MONSTERS: FrozenSet[int] = frozenset({0x7e, 0x7f, 0x83, 0x8d, 0x8e, 0x8f, 0x9f, 0xa6})

# Locations whose id matches this mask drop no coins.
NO_COIN_LOCATION_MASK: int = 0x58


def location_label(location_id: int) -> str:
    """Report key for a location, e.g. '$1a'."""
    return f'${location_id:02x}'


# ==========================================
# EXPORTS
# ==========================================

__all__ = [
    # Geometry
    'SCREEN_ROWS',
    'SCREEN_COLS',
    'TILES_PER_SCREEN',
    'pack_tile',
    'unpack_tile',
    'tile_to_grid',
    'grid_to_tile',
    'tile_xy',

    # Effects
    'TileEffect',
    'TerrainClass',
    'BLOCKED_FLYING',
    'BLOCKED_WALKING',
    'HAZARD_MASK',
    'HAZARD_MASK_AMPHIBIOUS',
    'ALTERNATE_TILE_LIMIT',
    'AMPHIBIOUS_LOCATIONS',
    'PLANT_OVERRIDE_LOCATION',
    'PLANT_FLOWER_TILE',
    'GRAPHICS_SLOTS',

    # Placement
    'Placement',
    'PLANT_DISTANCE',
    'MOTH_DISTANCE',
    'BIRD_MIN_DISTANCE',
    'CLEARANCE_SMALL',
    'CLEARANCE_LARGE',

    # Spawns
    'SpawnType',
    'SLOT_BASE',
    'MONSTER_ID_OFFSET',
    'CHEST_TRIGGER_LIMIT',
    'MIMIC_CHEST_START',
    'BOSS_NPC_START',
    'SHOOTING_WALL_KIND',
    'INERT_SPAWN_ID',
    'UNUSED_SPAWN_MARK',
    'KENSU_NPC_ID',

    # Monsters
    'MONSTER_NAMES',
    'ELIGIBLE_MONSTERS',
    'FLYERS',
    'MOTHS_AND_BATS',
    'UNTOUCHED_MONSTERS',
    'NO_COIN_LOCATION_MASK',
    'location_label',
]
