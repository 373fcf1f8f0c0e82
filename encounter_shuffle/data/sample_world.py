"""
Sample World
============
A small, fully synthetic ROM for demos and tests.

Metatiles (tile effects table $b3, tileset $80):
    OPEN   $00  plain ground
    WALL   $01  impassible
    WATER  $02  blocks walkers only
    SLOPE  $03  walkable, but not normal ground
    PAIN   $04  walkable, hurts
    GATE   $05  impassible; alternate is OPEN on flagged screens
    FLOWER $f0  plain ground, where swamp plants grow

Locations:
    $10 Valley      2x2, three open screens and one solid wall screen
    $11 Lake Cave   1x1 with a pond and a treasure chest
    $12 Gatehouse   1x1 split by a flag-gated wall, with an NPC
    $13 Shrine      skipped by its adjustment
    $14 Tower       tower location
"""

from typing import Dict, List, Optional
import logging

from encounter_shuffle.core.definitions import (
    MONSTER_ID_OFFSET,
    MONSTER_NAMES,
    SCREEN_COLS,
    SCREEN_ROWS,
    Placement,
    SpawnType,
    pack_tile,
)
from encounter_shuffle.data.adjustments import load_adjustments
from encounter_shuffle.data.rom_model import (
    Entrance,
    Flag,
    Location,
    MonsterData,
    Rom,
    Screen,
    Spawn,
    TileEffects,
    Tileset,
)

logger = logging.getLogger(__name__)

# ==========================================
# METATILES
# ==========================================

OPEN = 0x00
WALL = 0x01
WATER = 0x02
SLOPE = 0x03
PAIN = 0x04
GATE = 0x05
FLOWER = 0xf0

TILESET_ID = 0x80
TILE_EFFECTS_ID = 0xb3

FIELD_SCREEN = 0x00
ROOM_SCREEN = 0x01
POND_SCREEN = 0x02
GATED_SCREEN = 0x03
SOLID_SCREEN = 0x04

DEFAULT_PATTERNS = [0x40, 0x41]
DEFAULT_PALETTES = [0x10, 0x11]

SAMPLE_MONSTER_ADJUSTMENTS = {
    0x10: {'maxFlyers': 1, 'nonFlyers': {0x10: (1, 1)}},
    0x11: {},
    0x12: {'fixedSlots': {'pat1': 0x41}},
    0x13: {'skip': True},
    0x14: {'tower': True},
}

SAMPLE_ADJUSTMENTS = load_adjustments(SAMPLE_MONSTER_ADJUSTMENTS)


# ==========================================
# BUILDING BLOCKS
# ==========================================

def make_tileset() -> Tileset:
    alternates = list(range(0x20))
    alternates[GATE] = OPEN
    return Tileset(TILESET_ID, alternates)


def make_tile_effects() -> TileEffects:
    effects = [0] * 256
    effects[WALL] = 0x04
    effects[WATER] = 0x02
    effects[SLOPE] = 0x20
    effects[PAIN] = 0x01
    effects[GATE] = 0x04
    return TileEffects(TILE_EFFECTS_ID, effects)


def filled_screen(screen_id: int, metatile: int = OPEN) -> Screen:
    return Screen(screen_id, [metatile] * (SCREEN_ROWS * SCREEN_COLS))


def screen_from_rows(screen_id: int, rows: List[List[int]]) -> Screen:
    return Screen(screen_id, [tile for row in rows for tile in row])


def room_screen(screen_id: int = ROOM_SCREEN) -> Screen:
    """Open interior ringed by walls."""
    rows = [[OPEN] * SCREEN_COLS for _ in range(SCREEN_ROWS)]
    for r in range(SCREEN_ROWS):
        for c in range(SCREEN_COLS):
            if r in (0, SCREEN_ROWS - 1) or c in (0, SCREEN_COLS - 1):
                rows[r][c] = WALL
    return screen_from_rows(screen_id, rows)


def pond_screen(screen_id: int = POND_SCREEN) -> Screen:
    """Open ground, a 5x6 pond in the middle and flowers along the top."""
    rows = [[OPEN] * SCREEN_COLS for _ in range(SCREEN_ROWS)]
    for r in range(5, 10):
        for c in range(5, 11):
            rows[r][c] = WATER
    for c in range(1, 5):
        rows[1][c] = FLOWER
    return screen_from_rows(screen_id, rows)


def gated_screen(screen_id: int = GATED_SCREEN) -> Screen:
    """Column 8 is a gate wall splitting the screen in two."""
    rows = [[OPEN] * SCREEN_COLS for _ in range(SCREEN_ROWS)]
    for r in range(SCREEN_ROWS):
        rows[r][8] = GATE
    return screen_from_rows(screen_id, rows)


def entrance_at(tile: int, used: bool = True) -> Entrance:
    """Entrance at the top-left pixel of a packed tile."""
    y = (tile >> 12) << 8 | ((tile >> 4) & 0xf) << 4
    x = ((tile >> 8) & 0xf) << 8 | (tile & 0xf) << 4
    return Entrance(x, y, used)


def spawn_at(tile: int, kind: int, spawn_id: int, pattern_bank: int = 0, **kwargs) -> Spawn:
    y = (tile >> 12) << 8 | ((tile >> 4) & 0xf) << 4
    x = ((tile >> 8) & 0xf) << 8 | (tile & 0xf) << 4
    return Spawn(y, x, kind, spawn_id, pattern_bank, **kwargs)


def monster_spawn(tile: int, monster_id: int, pattern_bank: int = 0) -> Spawn:
    return spawn_at(tile, SpawnType.MONSTER, (monster_id - MONSTER_ID_OFFSET) & 0xff, pattern_bank)


def monster(monster_id: int, placement: Placement = Placement.NORMAL,
            monster_class: Optional[str] = None, large: bool = False,
            palettes=frozenset({2}), gold_drop: int = 0) -> MonsterData:
    return MonsterData(monster_id, MONSTER_NAMES.get(monster_id, ''), monster_class,
                       placement, large, gold_drop, frozenset(palettes))


def sample_monsters() -> Dict[int, MonsterData]:
    monsters = [
        monster(0x50, monster_class='slime'),
        monster(0x53, monster_class='slime'),
        monster(0x51, palettes={3}),
        monster(0x54, large=True),
        monster(0x55, Placement.MOTH, palettes={3}),
        monster(0x58),
        monster(0x5a, palettes={3}),
        monster(0x5c, Placement.BIRD, palettes={3}),
        monster(0x5d, Placement.PLANT),
        monster(0x62),
        monster(0x6e, Placement.BIRD),
        monster(0xa0, large=True),
    ]
    return {m.id: m for m in monsters}


def base_rom(locations: Optional[List[Location]] = None,
             objects: Optional[Dict[int, MonsterData]] = None) -> Rom:
    """Rom with the sample screens, tileset and effects."""
    screens = [
        filled_screen(FIELD_SCREEN),
        room_screen(),
        pond_screen(),
        gated_screen(),
        filled_screen(SOLID_SCREEN, WALL),
    ]
    return Rom(
        locations=list(locations or []),
        screens={s.id: s for s in screens},
        tilesets={TILESET_ID: make_tileset()},
        tile_effects={TILE_EFFECTS_ID: make_tile_effects()},
        objects=dict(objects if objects is not None else sample_monsters()),
    )


def make_location(location_id: int, screens: List[List[int]], name: str = '', **kwargs) -> Location:
    kwargs.setdefault('sprite_patterns', list(DEFAULT_PATTERNS))
    kwargs.setdefault('sprite_palettes', list(DEFAULT_PALETTES))
    return Location(location_id, name, width=len(screens[0]), height=len(screens),
                    screens=screens, tileset=TILESET_ID, tile_effects=TILE_EFFECTS_ID, **kwargs)


# ==========================================
# THE SAMPLE WORLD
# ==========================================

def build_sample_rom() -> Rom:
    """The five-location world described in the module docstring."""
    valley = make_location(
        0x10, [[FIELD_SCREEN, FIELD_SCREEN], [FIELD_SCREEN, SOLID_SCREEN]], 'Valley',
        entrances=[entrance_at(pack_tile(0, 0, 7, 7))],
        spawns=[
            monster_spawn(pack_tile(0, 0, 3, 3), 0x50),
            monster_spawn(pack_tile(0, 1, 4, 9), 0x51),
            monster_spawn(pack_tile(1, 0, 6, 6), 0x5c),
            monster_spawn(pack_tile(0, 1, 10, 2), 0x55),
            monster_spawn(pack_tile(1, 0, 2, 12), 0x58),
        ],
    )
    lake = make_location(
        0x11, [[POND_SCREEN]], 'Lake Cave',
        entrances=[entrance_at(pack_tile(0, 0, 14, 7))],
        spawns=[
            spawn_at(pack_tile(0, 0, 2, 2), SpawnType.TRIGGER, 0x01, pattern_bank=1),
            monster_spawn(pack_tile(0, 0, 3, 12), 0x53),
            monster_spawn(pack_tile(0, 0, 11, 3), 0x62),
            monster_spawn(pack_tile(0, 0, 12, 12), 0x5d),
        ],
        sprite_patterns=[0x40, 0x5e],
    )
    gatehouse = make_location(
        0x12, [[GATED_SCREEN]], 'Gatehouse',
        entrances=[entrance_at(pack_tile(0, 0, 7, 2))],
        flags=[Flag(0x00)],
        spawns=[
            spawn_at(pack_tile(0, 0, 2, 4), SpawnType.NPC, 0x20),
            monster_spawn(pack_tile(0, 0, 10, 3), 0x54),
            monster_spawn(pack_tile(0, 0, 5, 12), 0x58),
            monster_spawn(pack_tile(0, 0, 12, 12), 0x7e),
            monster_spawn(pack_tile(0, 0, 3, 13), 0x6e),
        ],
    )
    shrine = make_location(
        0x13, [[ROOM_SCREEN]], 'Shrine',
        entrances=[entrance_at(pack_tile(0, 0, 13, 7))],
        spawns=[monster_spawn(pack_tile(0, 0, 6, 6), 0x5a)],
    )
    tower = make_location(
        0x14, [[ROOM_SCREEN]], 'Tower',
        entrances=[entrance_at(pack_tile(0, 0, 13, 7))],
        spawns=[monster_spawn(pack_tile(0, 0, 5, 5), 0xa0)],
        sprite_patterns=[0x44, 0x45],
    )
    rom = base_rom([valley, lake, gatehouse, shrine, tower])
    logger.debug(f"Built sample world with {len(rom.locations)} locations")
    return rom
