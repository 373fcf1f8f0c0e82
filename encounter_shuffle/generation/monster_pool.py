"""
Monster Pool
============
Global monster shuffle: harvest every eligible monster spawn, shuffle
them, then refill each location's slots greedily under its graphics,
flier and class constraints.

States:
    Collecting   populate() each used location
    Shuffled     seeded shuffle of location order, then monster order
    Assigning    pop locations from the end; per location:
                   a. skip tower locations
                   b. seed the constraint from chests, NPCs, walls and
                      untouched monsters (exact meets; failure is bad data)
                   c. scan the first few global entries for fliers
                   d. walk the global list; accepted non-fliers go to `used`
                   e. reuse monsters from `used` for any remaining slots
                   f. neutralize what is still open
                   g. fix the location's pages and set pattern banks
    Done

Rejections are always local: a monster that does not fit one location
stays in the pool for the next. Only malformed static data raises.

Usage:
    report = shuffle_monsters(rom, ShuffleConfig(randomize_maps=True), SeededRandom(7))
    print(report.summary())
"""

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Mapping, Optional
import math
import logging

from encounter_shuffle.core.constraint import Constraint, ConstraintError
from encounter_shuffle.core.definitions import (
    ELIGIBLE_MONSTERS,
    KENSU_NPC_ID,
    MIMIC_CHEST_START,
    UNTOUCHED_MONSTERS,
    location_label,
)
from encounter_shuffle.data.adjustments import (
    LOCATION_ADJUSTMENTS,
    LocationAdjustment,
    adjustment_for,
)
from encounter_shuffle.data.rom_model import Location, MonsterData, Rom
from encounter_shuffle.generation.committer import PlacementCommitter
from encounter_shuffle.generation.graphics import Graphics
from encounter_shuffle.generation.placement import MonsterPlacer, PlacementPoolBuilder
from encounter_shuffle.generation.report import ShuffleReport
from encounter_shuffle.utils.rng import SeededRandom

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


# ==========================================
# CONFIGURATION
# ==========================================

@dataclass
class ShuffleConfig:
    """Options for one shuffle run."""
    shuffle_tower_monsters: bool = False
    shuffle_sprite_palettes: bool = False
    randomize_maps: bool = False
    flier_scan_window: int = 40
    progress_interval: int = 16

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> 'ShuffleConfig':
        """Build from a plain dict; unknown keys are dropped with a warning."""
        known = {f.name for f in fields(cls)}
        for key in config:
            if key not in known:
                logger.warning(f"Ignoring unknown shuffle option '{key}'")
        return cls(**{k: v for k, v in config.items() if k in known})


# ==========================================
# DATA STRUCTURES
# ==========================================

class MonsterClassConflict(ValueError):
    """Two different monsters registered for one class in one location."""


@dataclass
class MonsterSlotRequest:
    """One harvested monster spawn, as it looked where it started."""
    monster_id: int
    pattern: int
    pal2: Optional[int] = None
    pal3: Optional[int] = None
    pattern_bank: int = 0


@dataclass
class LocationSlots:
    """A location's open slot numbers ($0d + spawn index)."""
    location: Location
    slots: List[int] = field(default_factory=list)
    adjustment: LocationAdjustment = field(default_factory=LocationAdjustment)


class MonsterClassRegistry:
    """Per-location map of monster class -> the one monster id allowed for it."""

    def __init__(self):
        self._representatives: Dict[str, int] = {}

    def allows(self, monster_class: Optional[str], monster_id: int) -> bool:
        if not monster_class:
            return True
        representative = self._representatives.get(monster_class)
        return representative is None or representative == monster_id

    def register(self, monster_class: Optional[str], monster_id: int) -> None:
        if not monster_class:
            return
        if not self.allows(monster_class, monster_id):
            raise MonsterClassConflict(
                f"Class '{monster_class}' already represented by {self._representatives[monster_class]:#04x}, "
                f"cannot add {monster_id:#04x}")
        self._representatives[monster_class] = monster_id

    def representative(self, monster_class: str) -> Optional[int]:
        return self._representatives.get(monster_class)

    def __len__(self) -> int:
        return len(self._representatives)


# ==========================================
# PER-LOCATION ASSIGNMENT
# ==========================================

class LocationSession:
    """
    Assignment state for the location currently being filled.

    Holds the running graphics constraint, remaining flier quota, class
    representatives and open slots; try_add_monster either commits a
    monster to a slot or leaves everything unchanged (apart from the
    flier quota, which a flier spends as soon as it is considered).
    """

    def __init__(self, rom: Rom, entry: LocationSlots, constraint: Constraint,
                 graphics: Graphics, config: ShuffleConfig, committer: PlacementCommitter,
                 placer: Optional[MonsterPlacer] = None):
        self.rom = rom
        self.location = entry.location
        self.slots = entry.slots
        self.adjustment = entry.adjustment
        self.constraint = constraint
        self.graphics = graphics
        self.config = config
        self.committer = committer
        self.placer = placer
        self.flyers = entry.adjustment.max_flyers
        self.classes = MonsterClassRegistry()
        self.attempts = 0
        self.flyers_added = 0

    @property
    def remaining(self) -> int:
        return len(self.slots)

    def try_add_monster(self, request: MonsterSlotRequest) -> bool:
        if not self.slots:
            return False
        self.attempts += 1
        monster = self.rom.objects[request.monster_id]
        label = location_label(self.location.id)

        if not self.classes.allows(monster.monster_class, monster.id):
            logger.debug(f"{label}: {monster.id:#04x} rejected, class {monster.monster_class} taken")
            return False

        flyer = monster.is_flyer
        if flyer:
            if not self.flyers:
                logger.debug(f"{label}: {monster.id:#04x} rejected, no flier quota left")
                return False
            self.flyers -= 1

        c = self.graphics.get_monster_constraint(self.location.id, monster.id)
        meet = self.constraint.try_meet(c)
        if (meet is None and self.constraint.pal2.size == math.inf
                and self.constraint.pal3.size == math.inf and self.config.shuffle_sprite_palettes):
            meet = self.constraint.try_meet(c, exact=True)
        if meet is None:
            logger.debug(f"{label}: {monster.id:#04x} rejected, graphics {c}")
            return False

        position = None
        if self.placer is not None:
            position = self.placer.place(monster)
            if position is None:
                logger.debug(f"{label}: {monster.id:#04x} rejected, no room in {monster.placement.value} pool")
                return False

        self.committer.report.log(self.location.id, f"  Adding {monster.id:x}: {meet}")
        self.constraint = meet
        self.classes.register(monster.monster_class, monster.id)
        if flyer:
            self.flyers_added += 1

        index = self._choose_slot(flyer or monster.is_moth_or_bat)
        slot = self.slots.pop(index)
        offset = None if position is not None else self.adjustment.non_flyers.get(slot)
        self.committer.assign(self.location, slot, monster.id, position, offset)
        return True

    def _choose_slot(self, flies: bool) -> int:
        """Index into slots: fliers/moths prefer offset slots, others avoid them."""
        offsets = self.adjustment.non_flyers
        for i, slot in enumerate(self.slots):
            if (slot in offsets) == flies:
                return i
        return 0


# ==========================================
# GLOBAL POOL
# ==========================================

class MonsterPool:
    """Harvests monsters from every location and redistributes them."""

    def __init__(self, rom: Rom, graphics: Graphics, config: Optional[ShuffleConfig] = None,
                 adjustments: Mapping[int, LocationAdjustment] = LOCATION_ADJUSTMENTS,
                 report: Optional[ShuffleReport] = None):
        self.rom = rom
        self.graphics = graphics
        self.config = config or ShuffleConfig()
        self.adjustments = adjustments
        self.report = report if report is not None else ShuffleReport()
        self.committer = PlacementCommitter(self.report)
        self.monsters: List[MonsterSlotRequest] = []
        self.used: List[MonsterSlotRequest] = []
        self.locations: List[LocationSlots] = []

    # ------------------------------------------------------------------
    # Collecting
    # ------------------------------------------------------------------

    def populate(self, location: Location) -> LocationSlots:
        """Harvest a location's eligible monsters and open their slots."""
        adjustment = adjustment_for(location.id, self.adjustments)
        skip = (adjustment.skip
                or (adjustment.tower and not self.config.shuffle_tower_monsters)
                or not location.has_sprite_tables())

        requests: List[MonsterSlotRequest] = []
        slots: List[int] = []
        if not skip:
            for slot, spawn in zip(location.slots(), location.spawns):
                if not spawn.used or not spawn.is_monster():
                    continue
                monster_id = spawn.monster_id
                if monster_id in UNTOUCHED_MONSTERS or monster_id not in ELIGIBLE_MONSTERS:
                    continue
                monster = self.rom.objects.get(monster_id)
                if monster is None:
                    continue
                requests.append(self._request(location, spawn.pattern_bank, monster))
                self.report.record_start(monster_id, location.id)
                slots.append(slot)

        if not requests:
            slots = []
        entry = LocationSlots(location, slots, adjustment)
        self.locations.append(entry)
        self.monsters.extend(requests)
        logger.debug(f"{location}: harvested {len(requests)} monster(s)" + (" (skipped)" if skip else ""))
        return entry

    def populate_all(self) -> None:
        for location in self.rom.used_locations():
            self.populate(location)
        logger.info(f"Collected {len(self.monsters)} monsters from {len(self.locations)} locations")

    @staticmethod
    def _request(location: Location, pattern_bank: int, monster: MonsterData) -> MonsterSlotRequest:
        pal2 = location.sprite_palettes[0] if 2 in monster.palettes else None
        pal3 = location.sprite_palettes[1] if 3 in monster.palettes else None
        return MonsterSlotRequest(monster.id, location.sprite_patterns[pattern_bank], pal2, pal3, pattern_bank)

    # ------------------------------------------------------------------
    # Shuffling and assignment
    # ------------------------------------------------------------------

    def shuffle(self, rng: SeededRandom, progress: Optional[ProgressCallback] = None) -> ShuffleReport:
        """Shuffle and assign every collected location. Consumes the pool."""
        report = self.report
        report.pre_shuffle_locations = [e.location.id for e in self.locations]
        report.pre_shuffle_monsters = [m.monster_id for m in self.monsters]
        rng.shuffle(self.locations)
        rng.shuffle(self.monsters)
        report.post_shuffle_locations = [e.location.id for e in self.locations]
        report.post_shuffle_monsters = [m.monster_id for m in self.monsters]

        total = len(self.locations)
        interval = self.config.progress_interval
        done = 0
        while self.locations:
            self._assign(self.locations.pop(), rng)
            done += 1
            if progress is not None and interval > 0 and done % interval == 0:
                progress(done, total)
        if progress is not None and (interval <= 0 or done % interval != 0 or done == 0):
            progress(done, total)

        logger.info(f"Placed {report.placed_count()} monsters in {total} locations, "
                    f"{sum(report.unfilled.values())} slot(s) unfilled")
        return report

    def initial_constraint(self, location: Location, adjustment: LocationAdjustment) -> Constraint:
        """Constraint implied by everything in the location that will not move."""
        constraint = Constraint.for_location(
            adjustment, location, keep_palettes=not self.config.shuffle_sprite_palettes)
        try:
            for spawn in location.spawns:
                if not spawn.used:
                    continue
                if spawn.is_chest() and not spawn.is_invisible():
                    chest = Constraint.TREASURE_CHEST if spawn.id < MIMIC_CHEST_START else Constraint.MIMIC
                    constraint = constraint.meet(chest, exact=True)
                elif spawn.is_npc() or spawn.is_boss():
                    c = self.graphics.get_npc_constraint(location.id, spawn.id)
                    constraint = constraint.meet(c, exact=True)
                    if spawn.is_npc() and spawn.id == KENSU_NPC_ID:
                        constraint = constraint.meet(Constraint.KENSU_CHEST, exact=True)
                elif spawn.is_shooting_wall():
                    constraint = constraint.meet(Constraint.SHOOTING_WALL, exact=True)
                elif spawn.is_monster() and spawn.monster_id in UNTOUCHED_MONSTERS:
                    c = self.graphics.get_monster_constraint(location.id, spawn.monster_id)
                    constraint = constraint.meet(c, exact=True)
        except ConstraintError as e:
            raise ConstraintError(f"{location}: {e}") from e
        return constraint

    def _assign(self, entry: LocationSlots, rng: SeededRandom) -> None:
        location, adjustment = entry.location, entry.adjustment
        self.report.begin_location(location.id)
        if adjustment.tower or not location.has_sprite_tables():
            logger.debug(f"{location}: left as is")
            return

        constraint = self.initial_constraint(location, adjustment)
        self.report.log(location.id, f"Initial pass: {', '.join(s.label() for s in constraint.fixed)}")

        placer = None
        if entry.slots and self.config.randomize_maps:
            placer = PlacementPoolBuilder(self.rom, location).placer(rng)
        session = LocationSession(self.rom, entry, constraint, self.graphics,
                                  self.config, self.committer, placer)

        # c. fliers first, from the front of the pool
        if session.flyers and session.remaining:
            accepted = []
            for i, request in enumerate(self.monsters[:self.config.flier_scan_window]):
                if not session.remaining:
                    break
                if not self.rom.objects[request.monster_id].is_flyer:
                    continue
                if session.try_add_monster(request):
                    accepted.append(i)
            for i in reversed(accepted):
                del self.monsters[i]

        # d. fresh monsters
        i = 0
        while i < len(self.monsters) and session.remaining:
            if session.try_add_monster(self.monsters[i]):
                request = self.monsters.pop(i)
                if not self.rom.objects[request.monster_id].is_flyer:
                    self.used.append(request)
            else:
                i += 1

        # e. reuse; an accepted entry rotates to the back
        i = 0
        while i < len(self.used) and session.remaining:
            if session.try_add_monster(self.used[i]):
                self.used.append(self.used.pop(i))
            else:
                i += 1

        session.constraint.fix(location, rng)
        self.committer.neutralize(location, entry.slots)
        entry.slots.clear()
        for spawn in location.spawns:
            self.graphics.configure(location, spawn)

        self.report.attempts[location.id] = session.attempts
        logger.info(f"{location}: {session.attempts} attempt(s), "
                    f"{session.flyers_added} flier(s), constraint {session.constraint}")


# ==========================================
# ENTRY POINT
# ==========================================

def shuffle_monsters(rom: Rom, config: Optional[ShuffleConfig] = None,
                     rng: Optional[SeededRandom] = None,
                     graphics: Optional[Graphics] = None,
                     adjustments: Mapping[int, LocationAdjustment] = LOCATION_ADJUSTMENTS,
                     progress: Optional[ProgressCallback] = None) -> ShuffleReport:
    """Run a full monster shuffle over every used location of `rom`."""
    config = config or ShuffleConfig()
    rng = rng or SeededRandom()
    graphics = graphics or Graphics(rom)
    if config.shuffle_sprite_palettes:
        graphics.shuffle_palettes(rng)
    pool = MonsterPool(rom, graphics, config, adjustments)
    pool.populate_all()
    return pool.shuffle(rng, progress)


if __name__ == "__main__":
    from encounter_shuffle.data.sample_world import SAMPLE_ADJUSTMENTS, build_sample_rom

    logging.basicConfig(level=logging.INFO)

    rom = build_sample_rom()
    report = shuffle_monsters(rom, ShuffleConfig(randomize_maps=True), SeededRandom(2024),
                              adjustments=SAMPLE_ADJUSTMENTS)
    print(report.summary())
    for label, lines in report.location_lines.items():
        print(f"\n{label}")
        for line in lines:
            print(line)
