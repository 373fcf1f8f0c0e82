"""
In-memory ROM entity model.

Plain dataclasses for the parts of the game data the shuffler reads and
writes: locations with their screens, entrances, exits, flags and spawn
tables, plus the tilesets, tile effects and monster records they refer to.
Parsing these out of a ROM image happens elsewhere; everything here is
already resident.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Optional
import logging

from encounter_shuffle.core.definitions import (
    AMPHIBIOUS_LOCATIONS,
    BOSS_NPC_START,
    CHEST_TRIGGER_LIMIT,
    CLEARANCE_LARGE,
    CLEARANCE_SMALL,
    FLYERS,
    MONSTER_ID_OFFSET,
    MOTHS_AND_BATS,
    SHOOTING_WALL_KIND,
    SLOT_BASE,
    TILES_PER_SCREEN,
    UNUSED_SPAWN_MARK,
    Placement,
    SpawnType,
)

logger = logging.getLogger(__name__)


@dataclass
class Screen:
    """A single screen: 240 metatile ids in row-major order."""
    id: int
    tiles: List[int]

    def __post_init__(self):
        if len(self.tiles) != TILES_PER_SCREEN:
            raise ValueError(f"Screen {self.id:#x} has {len(self.tiles)} tiles, expected {TILES_PER_SCREEN}")


@dataclass
class Tileset:
    """Tileset with its 32-entry flag-conditional alternate table."""
    id: int
    alternates: List[int] = field(default_factory=lambda: list(range(0x20)))


@dataclass
class TileEffects:
    """Per-metatile effects bytes (256 entries)."""
    id: int
    effects: List[int] = field(default_factory=lambda: [0] * 256)


@dataclass
class MonsterData:
    """Read-only view of a monster object record."""
    id: int
    name: str = ''
    monster_class: Optional[str] = None
    placement: Placement = Placement.NORMAL
    large: bool = False
    gold_drop: int = 0
    palettes: FrozenSet[int] = frozenset()  # sprite palette slots used (2 and/or 3)

    def clearance(self) -> int:
        return CLEARANCE_LARGE if self.large else CLEARANCE_SMALL

    @property
    def is_flyer(self) -> bool:
        return self.id in FLYERS

    @property
    def is_moth_or_bat(self) -> bool:
        return self.id in MOTHS_AND_BATS


@dataclass
class Entrance:
    """Entrance in pixel coordinates (16 bits each)."""
    x: int
    y: int
    used: bool = True

    @property
    def screen(self) -> int:
        return (self.y >> 8) << 4 | (self.x >> 8)

    @property
    def tile(self) -> int:
        return (self.y & 0xf0) | ((self.x >> 4) & 0xf)

    @property
    def packed(self) -> int:
        return self.screen << 8 | self.tile


@dataclass
class Exit:
    """Exit tile and its destination."""
    screen: int
    tile: int
    dest: int = 0xff
    entrance: int = 0

    @property
    def packed(self) -> int:
        return self.screen << 8 | self.tile


@dataclass
class Flag:
    """Flag attached to a screen position ($YX)."""
    screen: int
    flag: int = 0x2ef


@dataclass
class Spawn:
    """
    One entry of a location's spawn table.

    Coordinates are pixels; a location-wide y spans 16 tile rows per screen
    (row 15 of each screen is unused), matching packed tile ids.
    """
    y: int
    x: int
    type: int
    id: int
    pattern_bank: int = 0
    used: bool = True
    invisible: bool = False
    timed: bool = False

    # --- position -------------------------------------------------------

    @property
    def yt(self) -> int:
        return self.y >> 4

    @property
    def xt(self) -> int:
        return self.x >> 4

    @property
    def screen(self) -> int:
        return (self.y >> 8) << 4 | (self.x >> 8)

    @screen.setter
    def screen(self, screen: int) -> None:
        self.y = (screen >> 4) << 8 | (self.y & 0xff)
        self.x = (screen & 0xf) << 8 | (self.x & 0xff)

    @property
    def tile(self) -> int:
        return (self.y & 0xf0) | ((self.x >> 4) & 0xf)

    @tile.setter
    def tile(self, tile: int) -> None:
        self.y = (self.y & ~0xf0) | (tile & 0xf0)
        self.x = (self.x & ~0xf0) | ((tile & 0xf) << 4)

    # --- kind -----------------------------------------------------------

    def is_monster(self) -> bool:
        return self.type == SpawnType.MONSTER

    def is_npc(self) -> bool:
        return self.type == SpawnType.NPC and self.id < BOSS_NPC_START

    def is_boss(self) -> bool:
        return self.type == SpawnType.NPC and self.id >= BOSS_NPC_START

    def is_chest(self) -> bool:
        return self.type == SpawnType.TRIGGER and self.id < CHEST_TRIGGER_LIMIT

    def is_invisible(self) -> bool:
        return self.is_chest() and self.invisible

    def is_wall(self) -> bool:
        return self.type == SpawnType.WALL

    def is_shooting_wall(self) -> bool:
        return self.is_wall() and (self.id & 0xf0) == SHOOTING_WALL_KIND

    @property
    def monster_id(self) -> int:
        return (self.id + MONSTER_ID_OFFSET) & 0xff

    @monster_id.setter
    def monster_id(self, monster_id: int) -> None:
        self.id = (monster_id - MONSTER_ID_OFFSET) & 0xff

    def to_bytes(self) -> bytes:
        """Four-byte spawn record: y, x, type, id."""
        y = self.yt & 0xff if self.used else UNUSED_SPAWN_MARK
        x = (self.xt & 0x7f) | (0x80 if self.timed else 0)
        kind = (self.type & 0x07) | (0x20 if self.invisible else 0) | ((self.pattern_bank & 1) << 7)
        return bytes([y, x, kind, self.id & 0xff])


@dataclass
class Location:
    """A map location and its spawn table."""
    id: int
    name: str = ''
    used: bool = True
    width: int = 1
    height: int = 1
    screens: List[List[int]] = field(default_factory=lambda: [[0]])
    tileset: int = 0x80
    tile_effects: int = 0xb3
    entrances: List[Entrance] = field(default_factory=list)
    exits: List[Exit] = field(default_factory=list)
    flags: List[Flag] = field(default_factory=list)
    spawns: List[Spawn] = field(default_factory=list)
    sprite_patterns: Optional[List[int]] = field(default_factory=lambda: [0, 0])
    sprite_palettes: Optional[List[int]] = field(default_factory=lambda: [0, 0])
    boss_screen: Optional[int] = None

    def __post_init__(self):
        if len(self.screens) != self.height or any(len(row) != self.width for row in self.screens):
            raise ValueError(f"Location {self.id:#04x}: screens do not match {self.width}x{self.height}")

    def spawn(self, slot: int) -> Spawn:
        """Spawn for a slot number ($0d is the first spawn)."""
        index = slot - SLOT_BASE
        if not 0 <= index < len(self.spawns):
            raise KeyError(f"Expected spawn ${slot:02x} in location ${self.id:02x}")
        return self.spawns[index]

    def slots(self) -> Iterator[int]:
        return iter(range(SLOT_BASE, SLOT_BASE + len(self.spawns)))

    def screen_id(self, tile: int) -> int:
        """Screen id under a packed tile."""
        return self.screens[tile >> 12][(tile >> 8) & 0xf]

    def flag_at(self, pos: int) -> Optional[Flag]:
        for flag in self.flags:
            if flag.screen == pos:
                return flag
        return None

    def is_amphibious(self) -> bool:
        return self.id in AMPHIBIOUS_LOCATIONS

    def has_sprite_tables(self) -> bool:
        return bool(self.sprite_patterns) and bool(self.sprite_palettes)

    def used_entrances(self) -> List[Entrance]:
        return [e for e in self.entrances if e.used]

    def spawn_table(self) -> bytes:
        """Serialized spawn table, terminated by $ff."""
        return b''.join(s.to_bytes() for s in self.spawns) + b'\xff'

    def __str__(self) -> str:
        return f"Location ${self.id:02x} {self.name}".rstrip()


@dataclass
class Rom:
    """Everything the shuffler needs, keyed by id."""
    locations: List[Location] = field(default_factory=list)
    screens: Dict[int, Screen] = field(default_factory=dict)
    tilesets: Dict[int, Tileset] = field(default_factory=dict)
    tile_effects: Dict[int, TileEffects] = field(default_factory=dict)
    objects: Dict[int, MonsterData] = field(default_factory=dict)

    def used_locations(self) -> Iterator[Location]:
        return (loc for loc in self.locations if loc.used)

    def location(self, location_id: int) -> Location:
        for loc in self.locations:
            if loc.id == location_id:
                return loc
        raise KeyError(f"No location ${location_id:02x}")

    def spawn_tables(self) -> Dict[int, bytes]:
        """Spawn tables of all used locations, keyed by location id."""
        return {loc.id: loc.spawn_table() for loc in self.used_locations()}
