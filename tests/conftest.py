"""
Shared fixtures for the encounter shuffle tests.

Everything is built from the synthetic sample world so tests never need
real game data.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from encounter_shuffle.core.definitions import pack_tile
from encounter_shuffle.data.sample_world import (
    FIELD_SCREEN,
    base_rom,
    build_sample_rom,
    entrance_at,
    make_location,
)


@pytest.fixture
def sample_rom():
    """The five-location sample world."""
    return build_sample_rom()


@pytest.fixture
def single_screen():
    """Factory: (rom, location) for a one-screen location."""
    def build(screen_id=FIELD_SCREEN, location_id=0x30, entrances=None, **kwargs):
        if entrances is None:
            entrances = [entrance_at(pack_tile(0, 0, 7, 7))]
        location = make_location(location_id, [[screen_id]], entrances=entrances, **kwargs)
        rom = base_rom([location])
        return rom, location
    return build
