"""
Per-location monster adjustments.

The raw table is written as plain dicts (same keys the level designers
use) and converted once, at import time, into frozen LocationAdjustment
records. Anything unexpected in the table is a configuration bug and
raises immediately rather than surfacing mid-shuffle.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Sequence, Tuple
import logging

from encounter_shuffle.core.definitions import GRAPHICS_SLOTS

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Malformed static adjustment data."""


@dataclass(frozen=True)
class LocationAdjustment:
    """Static per-location tweaks for the monster shuffle."""
    max_flyers: int = 0
    # slot -> (dy, dx) in 16-pixel units, applied on non-randomized maps
    non_flyers: Mapping[int, Tuple[int, int]] = field(default_factory=dict, hash=False)
    skip: bool = False
    tower: bool = False
    # graphics slot name -> page that must not change
    fixed_slots: Mapping[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # read-only copies; instances (DEFAULT_ADJUSTMENT included) are shared
        object.__setattr__(self, 'non_flyers', MappingProxyType(dict(self.non_flyers)))
        object.__setattr__(self, 'fixed_slots', MappingProxyType(dict(self.fixed_slots)))


DEFAULT_ADJUSTMENT = LocationAdjustment()

_KEY_MAP = {
    'maxFlyers': 'max_flyers',
    'nonFlyers': 'non_flyers',
    'skip': 'skip',
    'tower': 'tower',
    'fixedSlots': 'fixed_slots',
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_offset(location_id: int, slot: Any, offset: Any) -> Tuple[int, int]:
    if (not isinstance(offset, Sequence) or isinstance(offset, str)
            or len(offset) != 2 or not all(_is_int(v) for v in offset)):
        raise ConfigurationError(
            f"nonFlyers[{slot!r}] at {location_id:#04x} must be a (dy, dx) pair of ints: {offset!r}")
    return offset[0], offset[1]


def parse_adjustment(location_id: int, raw: Mapping[str, Any]) -> LocationAdjustment:
    """Validate one raw table entry."""
    unexpected = [k for k in raw if k not in _KEY_MAP]
    if unexpected:
        raise ConfigurationError(
            f"Unexpected property '{unexpected[0]}' in MONSTER_ADJUSTMENTS[{location_id:#04x}]")

    kwargs: Dict[str, Any] = {}
    for key, value in raw.items():
        kwargs[_KEY_MAP[key]] = value

    max_flyers = kwargs.get('max_flyers', 0)
    if not _is_int(max_flyers) or max_flyers < 0:
        raise ConfigurationError(f"maxFlyers must be a non-negative int at {location_id:#04x}: {max_flyers!r}")

    for flag in ('skip', 'tower'):
        if not isinstance(kwargs.get(flag, False), bool):
            raise ConfigurationError(f"{flag} must be a bool at {location_id:#04x}")

    raw_offsets = kwargs.get('non_flyers', {})
    if not isinstance(raw_offsets, Mapping):
        raise ConfigurationError(f"nonFlyers at {location_id:#04x} must map slot -> (dy, dx): {raw_offsets!r}")
    non_flyers = {}
    for slot, offset in raw_offsets.items():
        if not _is_int(slot):
            raise ConfigurationError(f"nonFlyers slot at {location_id:#04x} must be an int: {slot!r}")
        non_flyers[slot] = _parse_offset(location_id, slot, offset)
    kwargs['non_flyers'] = non_flyers

    fixed_slots = kwargs.get('fixed_slots', {})
    if not isinstance(fixed_slots, Mapping):
        raise ConfigurationError(f"fixedSlots at {location_id:#04x} must map slot name -> page: {fixed_slots!r}")
    for name, page in fixed_slots.items():
        if name not in GRAPHICS_SLOTS:
            raise ConfigurationError(f"Unknown fixed slot '{name}' at {location_id:#04x}")
        if not _is_int(page) or page < 0:
            raise ConfigurationError(f"fixedSlots['{name}'] at {location_id:#04x} must be a page number: {page!r}")
    kwargs['fixed_slots'] = dict(fixed_slots)

    return LocationAdjustment(**kwargs)


def load_adjustments(table: Mapping[int, Mapping[str, Any]]) -> Dict[int, LocationAdjustment]:
    """Convert a raw adjustment table, failing on the first bad entry."""
    adjustments = {loc_id: parse_adjustment(loc_id, raw) for loc_id, raw in table.items()}
    logger.debug(f"Loaded {len(adjustments)} location adjustments")
    return adjustments


# ==========================================
# RAW TABLE
# ==========================================

MONSTER_ADJUSTMENTS: Dict[int, Dict[str, Any]] = {
    0x03: {'fixedSlots': {'pat1': 0x60}, 'maxFlyers': 2},
    0x07: {'nonFlyers': {0x0f: (0, -3), 0x10: (-10, 0), 0x11: (0, 4)}},
    0x14: {'maxFlyers': 2},
    0x15: {'maxFlyers': 2},
    0x1a: {
        'fixedSlots': {'pal3': 0x23, 'pat1': 0x4f},
        'maxFlyers': 2,
        'nonFlyers': {0x10: (4, 0), 0x11: (5, 0), 0x12: (4, 0),
                      0x13: (5, 0), 0x14: (4, 0), 0x15: (4, 0)},
    },
    0x1b: {'skip': True},
    0x20: {'maxFlyers': 1},
    0x21: {'fixedSlots': {'pat1': 0x50}, 'maxFlyers': 1},
    0x27: {'nonFlyers': {0x0d: (0, 0x10)}},
    0x28: {'maxFlyers': 1},
    0x29: {'maxFlyers': 1},
    0x2b: {'nonFlyers': {0x14: (0x20, -8)}},
    0x40: {'maxFlyers': 2, 'nonFlyers': {0x13: (12, -0x10)}},
    0x41: {'maxFlyers': 2, 'nonFlyers': {0x15: (0, -6)}},
    0x42: {'maxFlyers': 2, 'nonFlyers': {0x0d: (0, 8), 0x0e: (-8, 8)}},
    0x47: {'maxFlyers': 1, 'nonFlyers': {0x0d: (-8, -8)}},
    0x4a: {'maxFlyers': 1, 'nonFlyers': {0x0e: (4, 0), 0x0f: (0, -3), 0x10: (0, 4)}},
    0x4c: {},
    0x4d: {'maxFlyers': 1},
    0x4e: {'maxFlyers': 1},
    0x4f: {},
    0x57: {'fixedSlots': {'pat1': 0x4d}},
    0x59: {'tower': True},
    0x5a: {'tower': True},
    0x5b: {'tower': True},
    0x60: {'fixedSlots': {'pal3': 0x08, 'pat1': 0x52}, 'maxFlyers': 2, 'skip': True},
    0x64: {'fixedSlots': {'pal3': 0x08, 'pat1': 0x52}, 'skip': True},
    0x68: {'fixedSlots': {'pal3': 0x08, 'pat1': 0x52}, 'skip': True},
    0x69: {'maxFlyers': 1, 'nonFlyers': {0x17: (4, 6)}},
    0x6a: {'maxFlyers': 1, 'nonFlyers': {0x15: (0, 0x18)}},
    0x6c: {'maxFlyers': 1, 'nonFlyers': {0x17: (0, 0x18)}},
    0x6d: {'maxFlyers': 1, 'nonFlyers': {0x11: (0x10, 0), 0x1b: (0, 0), 0x1c: (6, 0)}},
    0x78: {'maxFlyers': 1, 'nonFlyers': {0x16: (-8, -8)}},
    0x7c: {'maxFlyers': 1, 'nonFlyers': {0x15: (-0x27, 0x54)}},
    0x84: {'nonFlyers': {0x12: (0, -4), 0x13: (0, 4), 0x14: (-6, 0), 0x15: (14, 12)}},
    0x88: {'maxFlyers': 1},
    0x89: {'maxFlyers': 1},
    0x8a: {
        'maxFlyers': 1,
        'nonFlyers': {0x0d: (7, 0), 0x0e: (0, 0), 0x0f: (7, 3), 0x10: (0, 6), 0x11: (11, -0x10)},
    },
    0x8f: {'skip': True},
    0x90: {'maxFlyers': 2, 'nonFlyers': {0x14: (-0xb, -3), 0x15: (0, 0x10)}},
    0x91: {'maxFlyers': 2, 'nonFlyers': {0x18: (0, 14), 0x19: (4, -0x10)}},
    0x98: {'maxFlyers': 2, 'nonFlyers': {0x14: (-6, 6), 0x15: (0, -0x10)}},
    0x9e: {'maxFlyers': 2},
    0xa2: {'maxFlyers': 1, 'nonFlyers': {0x12: (0, 11), 0x13: (6, 0)}},
    0xa5: {'nonFlyers': {0x17: (6, 6), 0x18: (-6, 0), 0x19: (-1, -7)}},
    0xa6: {'skip': True},
    0xa8: {'skip': True},
    0xa9: {'maxFlyers': 2, 'nonFlyers': {0x16: (0x1a, -0x10), 0x17: (0, 0x20)}},
    0xab: {'maxFlyers': 2, 'nonFlyers': {0x0d: (1, 0), 0x0e: (2, -2)}},
    0xad: {'maxFlyers': 2, 'nonFlyers': {0x18: (0, 8), 0x19: (0, -8)}},
    0xaf: {'nonFlyers': {0x0d: (0, 0), 0x0e: (0, 0), 0x13: (0x3b, -0x26)}},
    0xb4: {'maxFlyers': 2, 'nonFlyers': {0x11: (6, 0), 0x12: (0, 6)}},
    0xd7: {'skip': True},
}

LOCATION_ADJUSTMENTS: Dict[int, LocationAdjustment] = load_adjustments(MONSTER_ADJUSTMENTS)


def adjustment_for(location_id: int,
                   table: Mapping[int, LocationAdjustment] = LOCATION_ADJUSTMENTS) -> LocationAdjustment:
    return table.get(location_id, DEFAULT_ADJUSTMENT)
