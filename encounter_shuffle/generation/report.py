"""
Shuffle Report
==============
Everything a shuffle run decided, kept for spoiler logs and debugging.

Keys in the flat form (`as_dict`) are:
    'pre-shuffle locations' / 'pre-shuffle monsters'
    'post-shuffle locations' / 'post-shuffle monsters'
    'start-xx'  locations where monster $xx started
    'mon-xx'    locations where monster $xx was placed
    '$xx'       log lines for location $xx
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from encounter_shuffle.core.definitions import location_label


@dataclass
class ShuffleReport:
    """Record of one shuffle run."""
    pre_shuffle_locations: List[int] = field(default_factory=list)
    pre_shuffle_monsters: List[int] = field(default_factory=list)
    post_shuffle_locations: List[int] = field(default_factory=list)
    post_shuffle_monsters: List[int] = field(default_factory=list)
    location_lines: Dict[str, List[str]] = field(default_factory=dict)
    starts: Dict[int, List[str]] = field(default_factory=dict)
    placements: Dict[int, List[str]] = field(default_factory=dict)
    attempts: Dict[int, int] = field(default_factory=dict)
    unfilled: Dict[int, int] = field(default_factory=dict)

    def begin_location(self, location_id: int) -> List[str]:
        lines = self.location_lines[location_label(location_id)] = []
        return lines

    def log(self, location_id: int, line: str) -> None:
        self.location_lines.setdefault(location_label(location_id), []).append(line)

    def record_start(self, monster_id: int, location_id: int) -> None:
        self.starts.setdefault(monster_id, []).append(location_label(location_id))

    def record_placement(self, monster_id: int, location_id: int) -> None:
        self.placements.setdefault(monster_id, []).append(location_label(location_id))

    def record_unfilled(self, location_id: int, count: int) -> None:
        self.unfilled[location_id] = self.unfilled.get(location_id, 0) + count

    def placed_count(self) -> int:
        return sum(len(v) for v in self.placements.values())

    def as_dict(self) -> Dict[str, Any]:
        """Flat view keyed the way spoiler logs expect."""
        out: Dict[str, Any] = {
            'pre-shuffle locations': list(self.pre_shuffle_locations),
            'pre-shuffle monsters': list(self.pre_shuffle_monsters),
            'post-shuffle locations': list(self.post_shuffle_locations),
            'post-shuffle monsters': list(self.post_shuffle_monsters),
        }
        for monster_id, locations in self.starts.items():
            out[f'start-{monster_id:x}'] = list(locations)
        for monster_id, locations in self.placements.items():
            out[f'mon-{monster_id:x}'] = list(locations)
        for label, lines in self.location_lines.items():
            out[label] = list(lines)
        return out

    def summary(self) -> str:
        """Human-readable summary."""
        harvested = len(self.pre_shuffle_monsters)
        placed = self.placed_count()
        lines = []
        lines.append("=" * 60)
        lines.append("MONSTER SHUFFLE REPORT")
        lines.append("=" * 60)

        status = "COMPLETE" if not self.unfilled else "PARTIAL"
        lines.append(f"\nStatus: {status}")

        lines.append(f"\nTotals:")
        lines.append(f"  Locations: {len(self.pre_shuffle_locations)}")
        lines.append(f"  Monsters Harvested: {harvested}")
        lines.append(f"  Monsters Placed: {placed}")
        lines.append(f"  Placement Attempts: {sum(self.attempts.values())}")

        if self.unfilled:
            lines.append(f"\nUnfilled Slots:")
            for location_id in sorted(self.unfilled):
                lines.append(f"  {location_label(location_id)}: {self.unfilled[location_id]}")

        lines.append("=" * 60)
        return "\n".join(lines)
