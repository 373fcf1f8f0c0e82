"""
Graphics Constraint Algebra
===========================
Tracks which sprite pattern pages and palettes are still allowed in a
location, given everything placed there so far.

A Constraint has four fixed slots (pat0, pat1, pal2, pal3), each a
PageSet, plus up to two "floating" pattern sets: sprites that can be
drawn from either pattern bank, as long as one bank holds a page from the
set.

Operations:
    - join: union, used to merge all the ways one monster appears
    - try_meet / meet: intersection, used to add a monster to a location
    - fix: choose concrete pages and write them onto the location
"""

from typing import FrozenSet, Iterable, Iterator, List, Optional, Sequence, TYPE_CHECKING
import math
import logging

from encounter_shuffle.core.definitions import GRAPHICS_SLOTS

if TYPE_CHECKING:
    from encounter_shuffle.data.adjustments import LocationAdjustment
    from encounter_shuffle.data.rom_model import Location, Spawn
    from encounter_shuffle.utils.rng import SeededRandom

logger = logging.getLogger(__name__)


class ConstraintError(ValueError):
    """A constraint that was required to hold could not be satisfied."""


# ============================================================================
# PAGE SETS
# ============================================================================

class PageSet:
    """Immutable set of page ids, or the unconstrained set of all pages."""

    __slots__ = ('_pages',)

    def __init__(self, pages: Optional[Iterable[int]] = None):
        self._pages: Optional[FrozenSet[int]] = None if pages is None else frozenset(pages)

    @property
    def is_all(self) -> bool:
        return self._pages is None

    @property
    def size(self) -> float:
        return math.inf if self._pages is None else len(self._pages)

    def has(self, page: int) -> bool:
        return self._pages is None or page in self._pages

    def intersect(self, other: 'PageSet') -> 'PageSet':
        if self._pages is None:
            return other
        if other._pages is None:
            return self
        return PageSet(self._pages & other._pages)

    def union(self, other: 'PageSet') -> 'PageSet':
        if self._pages is None or other._pages is None:
            return ALL_PAGES
        return PageSet(self._pages | other._pages)

    def __iter__(self) -> Iterator[int]:
        if self._pages is None:
            raise TypeError('cannot iterate an unconstrained page set')
        return iter(sorted(self._pages))

    def __len__(self) -> int:
        if self._pages is None:
            raise TypeError('unconstrained page set has no length')
        return len(self._pages)

    def __eq__(self, other) -> bool:
        return isinstance(other, PageSet) and self._pages == other._pages

    def __hash__(self) -> int:
        return hash(self._pages)

    def label(self) -> str:
        if self._pages is None:
            return 'all'
        return '[' + ', '.join(f'{p:02x}' for p in sorted(self._pages)) + ']'

    def __repr__(self) -> str:
        return f'PageSet({self.label()})'


ALL_PAGES = PageSet()
NO_PAGES = PageSet(())


def bit(page: int) -> PageSet:
    return PageSet((page,))


# ============================================================================
# CONSTRAINT
# ============================================================================

class Constraint:
    """Immutable graphics constraint: four fixed slots plus floating patterns."""

    __slots__ = ('fixed', 'floating')

    ALL: 'Constraint'
    NONE: 'Constraint'
    COIN: 'Constraint'
    TREASURE_CHEST: 'Constraint'
    MIMIC: 'Constraint'
    KENSU_CHEST: 'Constraint'
    SHOOTING_WALL: 'Constraint'
    STOM_FIGHT: 'Constraint'
    GUARDIAN_STATUE: 'Constraint'

    def __init__(self, fixed: Sequence[PageSet], floating: Sequence[PageSet] = ()):
        if len(fixed) != 4:
            raise ValueError(f'expected 4 fixed slots, got {len(fixed)}')
        self.fixed = tuple(fixed)
        self.floating = tuple(floating)

    @classmethod
    def of(cls, pat0: PageSet = ALL_PAGES, pat1: PageSet = ALL_PAGES,
           pal2: PageSet = ALL_PAGES, pal3: PageSet = ALL_PAGES,
           floating: Sequence[PageSet] = ()) -> 'Constraint':
        return cls((pat0, pat1, pal2, pal3), floating)

    @property
    def pat0(self) -> PageSet:
        return self.fixed[0]

    @property
    def pat1(self) -> PageSet:
        return self.fixed[1]

    @property
    def pal2(self) -> PageSet:
        return self.fixed[2]

    @property
    def pal3(self) -> PageSet:
        return self.fixed[3]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def for_location(cls, adjustment: 'LocationAdjustment',
                     location: Optional['Location'] = None,
                     keep_palettes: bool = False) -> 'Constraint':
        """
        Starting constraint for a location.

        Fixed slots from the adjustment table are pinned. With keep_palettes
        the location's current sprite palettes are pinned too, since nothing
        will recolor them.
        """
        fixed: List[PageSet] = [ALL_PAGES] * 4
        for name, page in adjustment.fixed_slots.items():
            fixed[GRAPHICS_SLOTS.index(name)] = bit(page)
        if keep_palettes and location is not None and location.sprite_palettes:
            for k in (0, 1):
                if fixed[2 + k].is_all:
                    fixed[2 + k] = bit(location.sprite_palettes[k])
        return cls(fixed)

    @classmethod
    def from_spawn(cls, palettes: Iterable[int], patterns: Iterable[int],
                   location: 'Location', spawn: 'Spawn', shiftable: bool) -> 'Constraint':
        """
        Constraint implied by one spawn as it appears in its location.

        Args:
            palettes: sprite palette slots used (2 and/or 3)
            patterns: pattern banks used (2 = bank 0, 3 = bank 1)
            shiftable: sprite can be drawn from either bank
        """
        palettes = set(palettes)
        patterns = set(patterns)
        shiftable = shiftable and patterns == {2}
        pat0 = ALL_PAGES if shiftable or 2 not in patterns else bit(location.sprite_patterns[0])
        pat1 = ALL_PAGES if shiftable or 3 not in patterns else bit(location.sprite_patterns[1])
        floating = [bit(location.sprite_patterns[spawn.pattern_bank])] if shiftable else []
        pal2 = bit(location.sprite_palettes[0]) if 2 in palettes else ALL_PAGES
        pal3 = bit(location.sprite_palettes[1]) if 3 in palettes else ALL_PAGES
        return cls((pat0, pat1, pal2, pal3), floating)

    def shifted(self) -> 'Constraint':
        """Same constraint with the two pattern banks swapped."""
        return Constraint((self.fixed[1], self.fixed[0], self.fixed[2], self.fixed[3]), self.floating)

    # ------------------------------------------------------------------
    # Lattice operations
    # ------------------------------------------------------------------

    def join(self, other: 'Constraint') -> 'Constraint':
        """Union: everything either constraint allows."""
        if len(self.floating) != len(other.floating):
            raise ConstraintError(f'incompatible float: {self} {other}')
        fixed = [a.union(b) for a, b in zip(self.fixed, other.fixed)]
        floating = [a.union(b) for a, b in zip(self.floating, other.floating)]
        return Constraint(fixed, floating)

    def try_meet(self, other: 'Constraint', exact: bool = False) -> Optional['Constraint']:
        """
        Intersection, or None if nothing satisfies both.

        A non-exact meet will not be the first to claim this location's
        palettes: if both palette slots are still unconstrained here and
        `other` needs either of them, it fails and the caller decides
        whether an exact meet is allowed.
        """
        if (not exact and self.pal2.is_all and self.pal3.is_all
                and not (other.pal2.is_all and other.pal3.is_all)):
            return None

        fixed: List[PageSet] = []
        for a, b in zip(self.fixed, other.fixed):
            meet = a.intersect(b)
            if not meet.size:
                return None
            fixed.append(meet)

        # Invariant: floats are pairwise disjoint, at most two of them.
        floating: List[PageSet] = []
        for s in self.floating + other.floating:
            if s.is_all:
                raise ConstraintError(f'unconstrained float in {self} / {other}')
            for i, f in enumerate(floating):
                meet = f.intersect(s)
                if meet.size:
                    floating[i] = meet
                    break
            else:
                floating.append(s)
                if len(floating) > 2:
                    return None

        # Invariant: every float intersects both fixed pattern banks. A float
        # disjoint from one bank must live in the other, which pins it.
        i = 0
        while i < len(floating):
            f = floating[i]
            for j in (0, 1):
                if not f.intersect(fixed[j]).size:
                    pinned = f.intersect(fixed[1 - j])
                    if not pinned.size:
                        return None
                    fixed[1 - j] = pinned
                    del floating[i]
                    i = -1
                    break
            i += 1

        return Constraint(fixed, floating)

    def meet(self, other: 'Constraint', exact: bool = False) -> 'Constraint':
        result = self.try_meet(other, exact)
        if result is None:
            raise ConstraintError(f'Could not meet:\n  {self}\n  {other}')
        return result

    # ------------------------------------------------------------------
    # Realization
    # ------------------------------------------------------------------

    def fix(self, location: 'Location', rng: 'SeededRandom') -> None:
        """Pick concrete pages and write them onto the location."""
        patterns = list(location.sprite_patterns)
        palettes = list(location.sprite_palettes)
        chosen: List[Optional[int]] = [None, None]

        for f in self.floating:
            if any(c is not None and f.has(c) for c in chosen):
                continue
            for j in (0, 1):
                if chosen[j] is None and f.has(patterns[j]) and self.fixed[j].has(patterns[j]):
                    chosen[j] = patterns[j]
                    break
            else:
                for j in (0, 1):
                    if chosen[j] is not None:
                        continue
                    options = list(f.intersect(self.fixed[j]))
                    if options:
                        chosen[j] = rng.pick(options)
                        break
                else:
                    raise ConstraintError(f'No pattern bank left for float {f.label()} in {location}')

        for j in (0, 1):
            if chosen[j] is None:
                chosen[j] = _choose(self.fixed[j], patterns[j], rng)

        location.sprite_patterns = [int(p) for p in chosen]
        location.sprite_palettes = [_choose(self.fixed[2 + k], palettes[k], rng) for k in (0, 1)]
        logger.debug(f'{location}: fixed patterns {location.sprite_patterns} palettes {location.sprite_palettes}')

    def shuffle_palette(self, rng: 'SeededRandom', palettes: Sequence[int]) -> 'Constraint':
        """Replace each constrained palette slot with a random palette."""
        if not palettes:
            return self
        fixed = list(self.fixed)
        for k in (2, 3):
            if not fixed[k].is_all:
                fixed[k] = bit(rng.pick(palettes))
        return Constraint(fixed, self.floating)

    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        return (isinstance(other, Constraint) and self.fixed == other.fixed
                and set(self.floating) == set(other.floating))

    def __hash__(self) -> int:
        return hash((self.fixed, frozenset(self.floating)))

    def __str__(self) -> str:
        fixed = ' '.join(f'{name}={s.label()}' for name, s in zip(GRAPHICS_SLOTS, self.fixed))
        if self.floating:
            fixed += ' float=' + ' '.join(s.label() for s in self.floating)
        return fixed

    def __repr__(self) -> str:
        return f'Constraint({self})'


def _choose(allowed: PageSet, current: int, rng: 'SeededRandom') -> int:
    """Keep the current page if allowed, else pick one at random."""
    if allowed.has(current):
        return current
    if not allowed.size:
        raise ConstraintError('empty page set')
    return rng.pick(list(allowed))


# Sprite pages of fixed game objects.
Constraint.ALL = Constraint.of()
Constraint.NONE = Constraint.of(NO_PAGES, NO_PAGES, NO_PAGES, NO_PAGES)
Constraint.COIN = Constraint.of(floating=(bit(0x5e),))
Constraint.TREASURE_CHEST = Constraint.of(floating=(bit(0x5e),))
Constraint.MIMIC = Constraint.of(floating=(bit(0x5f),))
Constraint.KENSU_CHEST = Constraint.of(floating=(bit(0x5e),))
Constraint.SHOOTING_WALL = Constraint.of(floating=(bit(0x6b),))
Constraint.STOM_FIGHT = Constraint.of(floating=(bit(0x66),))
Constraint.GUARDIAN_STATUE = Constraint.of(floating=(bit(0x67),))
