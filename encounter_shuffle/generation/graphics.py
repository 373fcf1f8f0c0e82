"""
Sprite Graphics Constraints
===========================
Hands out the graphics Constraint for every monster and NPC, and sets
spawn pattern banks once a location's pages are fixed.

A monster's constraint is the join of how it appears in every location it
spawns in: which palette slots it uses and which pattern page it is drawn
from. Callers can also pass constraints directly (e.g. decoded from
metasprites elsewhere); those take precedence over derived ones.

Usage:
    graphics = Graphics(rom)
    c = graphics.get_monster_constraint(location.id, 0x50)
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple
import logging

from encounter_shuffle.core.constraint import Constraint
from encounter_shuffle.core.definitions import (
    MIMIC_CHEST_START,
    NO_COIN_LOCATION_MASK,
)
from encounter_shuffle.data.rom_model import Location, Rom, Spawn
from encounter_shuffle.utils.rng import SeededRandom

logger = logging.getLogger(__name__)

STOM_FIGHT_LOCATION, STOM_NPC = 0x1e, 0x60
GUARDIAN_STATUE_LOCATION, GUARDIAN_STATUE_NPC = 0xa0, 0xc9

# Pattern banks as seen by Constraint.from_spawn: 2 = bank 0, 3 = bank 1.
DEFAULT_PATTERNS = frozenset({2})
DEFAULT_NPC_PALETTES = frozenset({2})


class GraphicsError(ValueError):
    """A spawn's sprite cannot be drawn with its location's pages."""


class Graphics:
    """Per-monster and per-NPC sprite constraints for one ROM."""

    def __init__(self, rom: Rom,
                 monster_constraints: Optional[Mapping[int, Constraint]] = None,
                 npc_constraints: Optional[Mapping[int, Constraint]] = None):
        self.rom = rom
        self.monster_constraints: Dict[int, Constraint] = dict(monster_constraints or {})
        self.npc_constraints: Dict[int, Constraint] = dict(npc_constraints or {})
        self.all_sprite_palettes: Set[int] = set()
        self._derive()

    def _derive(self) -> None:
        """Fill in constraints not supplied by the caller from spawn usage."""
        monster_spawns: Dict[int, List[Tuple[Location, Spawn]]] = defaultdict(list)
        npc_spawns: Dict[int, List[Tuple[Location, Spawn]]] = defaultdict(list)
        for location in self.rom.used_locations():
            if not location.has_sprite_tables():
                continue
            for spawn in location.spawns:
                if not spawn.used:
                    continue
                if spawn.is_monster():
                    monster_spawns[spawn.monster_id].append((location, spawn))
                elif spawn.is_npc() or spawn.is_boss():
                    npc_spawns[spawn.id].append((location, spawn))

        for monster_id, spawns in monster_spawns.items():
            monster = self.rom.objects.get(monster_id)
            palettes = monster.palettes if monster is not None else frozenset()
            constraint = self.compute_constraint(palettes, DEFAULT_PATTERNS, spawns, True)
            self.monster_constraints.setdefault(monster_id, constraint)

        for npc_id, spawns in npc_spawns.items():
            constraint = self.compute_constraint(DEFAULT_NPC_PALETTES, DEFAULT_PATTERNS, spawns, True)
            self.npc_constraints.setdefault(npc_id, constraint)

        logger.debug(f"Graphics: {len(self.monster_constraints)} monster and "
                     f"{len(self.npc_constraints)} NPC constraints, "
                     f"{len(self.all_sprite_palettes)} sprite palettes")

    def compute_constraint(self, palettes: Iterable[int], patterns: Iterable[int],
                           spawns: List[Tuple[Location, Spawn]], shiftable: bool) -> Constraint:
        """
        Join of the constraints implied by each appearance.

        Shiftable sprites are keyed per (location, bank); others only per
        location, with bank-1 spawns seen through swapped pattern banks.
        """
        palettes = frozenset(palettes)
        patterns = frozenset(patterns)
        shiftable = shiftable and patterns == DEFAULT_PATTERNS

        appearances: Dict[Tuple[int, int], Tuple[Location, Spawn]] = {}
        for location, spawn in spawns:
            bank = spawn.pattern_bank if shiftable else 0
            appearances[(location.id, bank)] = (location, spawn)
        if not appearances:
            raise GraphicsError('Expected at least one appearance')

        result: Optional[Constraint] = None
        for location, spawn in appearances.values():
            for pal in palettes:
                if pal > 1:
                    self.all_sprite_palettes.add(location.sprite_palettes[pal - 2])
            c = Constraint.from_spawn(palettes, patterns, location, spawn, shiftable)
            result = c if result is None else result.join(c)
            if not shiftable and spawn.pattern_bank:
                result = result.shifted()
        return result

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_monster_constraint(self, location_id: int, monster_id: int) -> Constraint:
        c = self.monster_constraints.get(monster_id, Constraint.NONE)
        if (location_id & NO_COIN_LOCATION_MASK) == NO_COIN_LOCATION_MASK:
            return c
        monster = self.rom.objects.get(monster_id)
        if monster is None or not monster.gold_drop:
            return c
        return c.try_meet(Constraint.COIN, exact=True) or Constraint.NONE

    def get_npc_constraint(self, location_id: int, npc_id: int) -> Constraint:
        c = self.npc_constraints.get(npc_id, Constraint.NONE)
        if location_id == STOM_FIGHT_LOCATION and npc_id == STOM_NPC:
            return c.try_meet(Constraint.STOM_FIGHT, exact=True) or Constraint.NONE
        if location_id == GUARDIAN_STATUE_LOCATION and npc_id == GUARDIAN_STATUE_NPC:
            return c.try_meet(Constraint.GUARDIAN_STATUE, exact=True) or Constraint.NONE
        return c

    def shuffle_palettes(self, rng: SeededRandom) -> None:
        """Give every palette-constrained sprite a random palette."""
        palettes = sorted(self.all_sprite_palettes)
        for k, c in self.monster_constraints.items():
            self.monster_constraints[k] = c.shuffle_palette(rng, palettes)
        for k, c in self.npc_constraints.items():
            self.npc_constraints[k] = c.shuffle_palette(rng, palettes)
        logger.info(f"Shuffled sprite palettes over {len(palettes)} candidates")

    # ------------------------------------------------------------------
    # Realization
    # ------------------------------------------------------------------

    def configure(self, location: Location, spawn: Spawn) -> None:
        """Point the spawn at whichever pattern bank holds its sprite page."""
        if not spawn.used:
            return
        if spawn.is_monster():
            c = self.monster_constraints.get(spawn.monster_id)
        elif spawn.is_npc():
            c = self.npc_constraints.get(spawn.id)
        elif spawn.is_chest():
            c = Constraint.TREASURE_CHEST if spawn.id < MIMIC_CHEST_START else Constraint.MIMIC
        else:
            c = None
        if c is None:
            return

        if len(c.floating) >= 2:
            raise GraphicsError(f"{location}: don't know what to do with two floats for {spawn}")
        if not c.floating:
            return
        if c.floating[0].has(location.sprite_patterns[0]):
            spawn.pattern_bank = 0
        elif c.floating[0].has(location.sprite_patterns[1]):
            spawn.pattern_bank = 1
        elif spawn.is_monster():
            raise GraphicsError(f"{location}: no matching pattern bank for monster {spawn.monster_id:#04x}")


__all__ = ['Graphics', 'GraphicsError']
