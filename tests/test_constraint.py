"""
Tests for the graphics constraint algebra.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import math

import pytest

from encounter_shuffle.core.constraint import (
    ALL_PAGES,
    NO_PAGES,
    Constraint,
    ConstraintError,
    PageSet,
    bit,
)
from encounter_shuffle.data.adjustments import LocationAdjustment
from encounter_shuffle.data.sample_world import FIELD_SCREEN, make_location
from encounter_shuffle.utils.rng import SeededRandom


class TestPageSet:
    """Page sets and the unconstrained sentinel."""

    def test_all_has_infinite_size(self):
        assert ALL_PAGES.size == math.inf
        assert ALL_PAGES.has(0x12)

    def test_intersect_and_union(self):
        a, b = PageSet({1, 2, 3}), PageSet({2, 3, 4})
        assert a.intersect(b) == PageSet({2, 3})
        assert a.union(b) == PageSet({1, 2, 3, 4})
        assert a.intersect(ALL_PAGES) == a
        assert a.union(ALL_PAGES).is_all

    def test_iteration_is_sorted(self):
        assert list(PageSet({5, 1, 3})) == [1, 3, 5]

    def test_cannot_iterate_all(self):
        with pytest.raises(TypeError):
            list(ALL_PAGES)

    def test_empty(self):
        assert NO_PAGES.size == 0
        assert not NO_PAGES.has(0)


class TestMeet:
    """Intersection of constraints."""

    def test_narrows_fixed_slots(self):
        a = Constraint.of(pat0=PageSet({0x40, 0x41}), pal2=PageSet({1, 2}))
        b = Constraint.of(pat0=bit(0x41), pal2=PageSet({2, 3}))
        result = a.meet(b, exact=True)
        assert result.pat0 == bit(0x41)
        assert result.pal2 == bit(2)
        assert result.pal3.is_all

    def test_empty_intersection_fails(self):
        a = Constraint.of(pat0=bit(0x40))
        b = Constraint.of(pat0=bit(0x41))
        assert a.try_meet(b, exact=True) is None
        with pytest.raises(ConstraintError):
            a.meet(b, exact=True)

    def test_non_exact_will_not_claim_palettes(self):
        c = Constraint.of(pal2=bit(0x10))
        assert Constraint.ALL.try_meet(c) is None
        assert Constraint.ALL.try_meet(c, exact=True).pal2 == bit(0x10)

    def test_non_exact_fine_without_palettes(self):
        c = Constraint.of(pat0=bit(0x40))
        assert Constraint.ALL.try_meet(c).pat0 == bit(0x40)

    def test_non_exact_fine_once_a_palette_is_set(self):
        running = Constraint.of(pal2=bit(0x10))
        assert running.try_meet(Constraint.of(pal3=bit(0x11))).pal3 == bit(0x11)

    def test_palette_sizes_never_grow(self):
        running = Constraint.of(pal2=PageSet({1, 2, 3}), pal3=PageSet({4, 5}))
        for other in [Constraint.of(pal2=PageSet({2, 3})), Constraint.of(pal3=bit(5)), Constraint.ALL]:
            merged = running.meet(other)
            assert merged.pal2.size <= running.pal2.size
            assert merged.pal3.size <= running.pal3.size
            running = merged


class TestFloats:
    """Floating pattern sets."""

    def test_disjoint_floats_accumulate(self):
        result = Constraint.of(floating=(bit(0x40),)).meet(Constraint.TREASURE_CHEST)
        assert set(result.floating) == {bit(0x40), bit(0x5e)}

    def test_third_float_fails(self):
        two = Constraint.of(floating=(bit(0x40), bit(0x5e)))
        assert two.try_meet(Constraint.of(floating=(bit(0x42),))) is None

    def test_intersecting_floats_narrow(self):
        a = Constraint.of(floating=(PageSet({0x40, 0x41}),))
        b = Constraint.of(floating=(PageSet({0x41, 0x42}),))
        assert a.meet(b).floating == (bit(0x41),)

    def test_float_disjoint_from_one_bank_pins_the_other(self):
        running = Constraint.of(pat1=bit(0x41))
        result = running.meet(Constraint.of(floating=(bit(0x40),)))
        assert result.pat0 == bit(0x40)
        assert result.floating == ()

    def test_float_disjoint_from_both_banks_fails(self):
        running = Constraint.of(pat0=bit(0x40), pat1=bit(0x41))
        assert running.try_meet(Constraint.of(floating=(bit(0x5e),))) is None


class TestJoin:
    """Union of constraints."""

    def test_join_unions_fields(self):
        a = Constraint.of(pal2=bit(1), floating=(bit(0x40),))
        b = Constraint.of(pal2=bit(2), floating=(bit(0x41),))
        result = a.join(b)
        assert result.pal2 == PageSet({1, 2})
        assert result.floating == (PageSet({0x40, 0x41}),)

    def test_join_requires_matching_floats(self):
        with pytest.raises(ConstraintError):
            Constraint.of(floating=(bit(0x40),)).join(Constraint.ALL)

    def test_shifted_swaps_banks(self):
        c = Constraint.of(pat0=bit(1), pat1=bit(2)).shifted()
        assert (c.pat0, c.pat1) == (bit(2), bit(1))


class TestFix:
    """Choosing concrete pages."""

    def test_keeps_current_pages_when_allowed(self):
        location = make_location(0x30, [[FIELD_SCREEN]], sprite_patterns=[0x40, 0x41], sprite_palettes=[0x10, 0x11])
        Constraint.of(pat0=PageSet({0x40, 0x42}), pal2=PageSet({0x10, 0x12})).fix(location, SeededRandom(1))
        assert location.sprite_patterns == [0x40, 0x41]
        assert location.sprite_palettes == [0x10, 0x11]

    def test_replaces_disallowed_pages(self):
        location = make_location(0x30, [[FIELD_SCREEN]], sprite_patterns=[0x40, 0x41], sprite_palettes=[0x10, 0x11])
        Constraint.of(pat1=bit(0x45), pal3=bit(0x22)).fix(location, SeededRandom(1))
        assert location.sprite_patterns == [0x40, 0x45]
        assert location.sprite_palettes == [0x10, 0x22]

    def test_float_takes_a_free_bank(self):
        location = make_location(0x30, [[FIELD_SCREEN]], sprite_patterns=[0x40, 0x41])
        Constraint.TREASURE_CHEST.fix(location, SeededRandom(1))
        assert location.sprite_patterns == [0x5e, 0x41]

    def test_float_already_in_a_bank_stays(self):
        location = make_location(0x30, [[FIELD_SCREEN]], sprite_patterns=[0x40, 0x5e])
        Constraint.TREASURE_CHEST.fix(location, SeededRandom(1))
        assert location.sprite_patterns == [0x40, 0x5e]

    def test_empty_slot_raises(self):
        location = make_location(0x30, [[FIELD_SCREEN]])
        with pytest.raises(ConstraintError):
            Constraint.NONE.fix(location, SeededRandom(1))


class TestConstruction:
    """Building constraints for locations and palettes."""

    def test_for_location_pins_fixed_slots(self):
        adjustment = LocationAdjustment(fixed_slots={'pat1': 0x4f, 'pal3': 0x23})
        c = Constraint.for_location(adjustment)
        assert c.pat1 == bit(0x4f)
        assert c.pal3 == bit(0x23)
        assert c.pat0.is_all and c.pal2.is_all

    def test_for_location_keeps_current_palettes(self):
        location = make_location(0x30, [[FIELD_SCREEN]], sprite_palettes=[0x10, 0x11])
        adjustment = LocationAdjustment(fixed_slots={'pal3': 0x23})
        c = Constraint.for_location(adjustment, location, keep_palettes=True)
        assert c.pal2 == bit(0x10)
        assert c.pal3 == bit(0x23)

    def test_shuffle_palette_only_touches_constrained_slots(self):
        c = Constraint.of(pal2=bit(0x10)).shuffle_palette(SeededRandom(4), [0x30, 0x31])
        assert c.pal2 in (bit(0x30), bit(0x31))
        assert c.pal3.is_all
