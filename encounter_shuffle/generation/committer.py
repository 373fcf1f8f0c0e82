"""
Placement Committer
===================
Writes accepted assignments back onto spawn records, and disables the
slots nothing could fill.
"""

from typing import Iterable, Optional, Tuple
import logging

from encounter_shuffle.core.definitions import INERT_SPAWN_ID, location_label
from encounter_shuffle.data.rom_model import Location, Spawn
from encounter_shuffle.generation.report import ShuffleReport

logger = logging.getLogger(__name__)


class PlacementCommitter:
    """Applies placement outcomes to a location's spawn table."""

    def __init__(self, report: Optional[ShuffleReport] = None):
        self.report = report if report is not None else ShuffleReport()

    def assign(self, location: Location, slot: int, monster_id: int,
               position: Optional[int] = None,
               offset: Optional[Tuple[int, int]] = None) -> Spawn:
        """
        Put a monster into a slot.

        Args:
            position: packed tile on a randomized map (wins over offset)
            offset: (dy, dx) in 16-pixel units for a fixed layout
        """
        spawn = location.spawn(slot)
        if position is not None:
            spawn.screen = position >> 8
            spawn.tile = position & 0xff
        elif offset is not None:
            dy, dx = offset
            spawn.y += dy * 16
            spawn.x += dx * 16
        spawn.monster_id = monster_id
        self.report.record_placement(monster_id, location.id)
        self.report.log(location.id, f"    slot {slot:x}: {spawn}")
        return spawn

    def neutralize(self, location: Location, slots: Iterable[int]) -> int:
        """Disable unfilled slots. Returns how many were disabled."""
        slots = list(slots)
        if not slots:
            return 0
        logger.error(f"Failed to fill location {location_label(location.id)}: {len(slots)} remaining")
        for slot in slots:
            spawn = location.spawn(slot)
            spawn.x = spawn.y = 0
            spawn.id = INERT_SPAWN_ID
            spawn.used = False
        self.report.record_unfilled(location.id, len(slots))
        return len(slots)
