"""
Test Suite for the Monster Pool
===============================

Covers:
1. Collecting: what gets harvested and which locations are skipped
2. Assignment scenarios: flier quotas, class uniqueness, used-pool reuse
3. Failure handling: unfilled slots are neutralized and reported
4. Whole-run properties on the sample world: slot conservation,
   determinism, placement on randomized maps
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from collections import Counter

import pytest

from encounter_shuffle.core.constraint import Constraint, bit
from encounter_shuffle.core.definitions import (
    FLYERS,
    INERT_SPAWN_ID,
    UNUSED_SPAWN_MARK,
    location_label,
    pack_tile,
)
from encounter_shuffle.data.adjustments import LocationAdjustment
from encounter_shuffle.data.sample_world import (
    FIELD_SCREEN,
    SAMPLE_ADJUSTMENTS,
    base_rom,
    build_sample_rom,
    entrance_at,
    make_location,
    monster_spawn,
)
from encounter_shuffle.generation.committer import PlacementCommitter
from encounter_shuffle.generation.graphics import Graphics
from encounter_shuffle.generation.monster_pool import (
    LocationSession,
    LocationSlots,
    MonsterClassConflict,
    MonsterClassRegistry,
    MonsterPool,
    MonsterSlotRequest,
    ShuffleConfig,
    shuffle_monsters,
)
from encounter_shuffle.generation.placement import PlacementPoolBuilder
from encounter_shuffle.utils.rng import SeededRandom


def field_location(location_id, monster_ids, screens=None):
    """A location whose monster spawns sit on a diagonal."""
    spawns = [monster_spawn(pack_tile(0, 0, 2 + i, 2 + i), m) for i, m in enumerate(monster_ids)]
    return make_location(location_id, screens or [[FIELD_SCREEN]],
                         entrances=[entrance_at(pack_tile(0, 0, 7, 7))], spawns=spawns)


def monster_ids(location):
    return [s.monster_id for s in location.spawns if s.used and s.is_monster()]


def run(rom, adjustments, seed=1, **config):
    pool = MonsterPool(rom, Graphics(rom), ShuffleConfig(**config), adjustments)
    pool.populate_all()
    report = pool.shuffle(SeededRandom(seed))
    return pool, report


class TestConfig:
    """ShuffleConfig construction."""

    def test_defaults(self):
        config = ShuffleConfig()
        assert config.flier_scan_window == 40
        assert not config.randomize_maps

    def test_from_dict_drops_unknown_keys(self, caplog):
        with caplog.at_level('WARNING'):
            config = ShuffleConfig.from_dict({'randomize_maps': True, 'shuffle_bosses': True})
        assert config.randomize_maps
        assert 'shuffle_bosses' in caplog.text


class TestClassRegistry:
    """One representative per class."""

    def test_allows_same_monster_again(self):
        registry = MonsterClassRegistry()
        registry.register('slime', 0x50)
        assert registry.allows('slime', 0x50)
        assert not registry.allows('slime', 0x53)
        assert registry.allows(None, 0x53)

    def test_conflict_raises(self):
        registry = MonsterClassRegistry()
        registry.register('slime', 0x50)
        with pytest.raises(MonsterClassConflict):
            registry.register('slime', 0x53)


class TestCollecting:
    """populate() harvesting rules."""

    def test_sample_world_harvest(self, sample_rom):
        pool = MonsterPool(sample_rom, Graphics(sample_rom), ShuffleConfig(), SAMPLE_ADJUSTMENTS)
        pool.populate_all()
        slots = {e.location.id: e.slots for e in pool.locations}
        assert slots[0x10] == [0x0d, 0x0e, 0x0f, 0x10, 0x11]
        assert slots[0x11] == [0x0e, 0x0f, 0x10]
        # NPC in slot $0d, untouched monster in $10
        assert slots[0x12] == [0x0e, 0x0f, 0x11]
        assert slots[0x13] == []
        assert slots[0x14] == []
        assert len(pool.monsters) == 11

    def test_tower_harvested_when_enabled(self, sample_rom):
        pool = MonsterPool(sample_rom, Graphics(sample_rom), ShuffleConfig(shuffle_tower_monsters=True),
                           SAMPLE_ADJUSTMENTS)
        entry = pool.populate(sample_rom.location(0x14))
        assert entry.slots == [0x0d]

    def test_request_records_starting_graphics(self, sample_rom):
        pool = MonsterPool(sample_rom, Graphics(sample_rom), ShuffleConfig(), SAMPLE_ADJUSTMENTS)
        pool.populate(sample_rom.location(0x10))
        request = pool.monsters[1]
        assert request.monster_id == 0x51
        assert (request.pattern, request.pal2, request.pal3, request.pattern_bank) == (0x40, None, 0x11, 0)
        assert pool.report.starts[0x51] == ['$10']


class TestAssignmentScenarios:
    """Small worlds with a known outcome."""

    def test_three_slots_no_fliers(self):
        def build():
            target = field_location(0x30, [0x51, 0x54, 0x58])
            donor = field_location(0x31, [0x62, 0x5a, 0x5c, 0x6e])
            return base_rom([target, donor])

        adjustments = {0x30: LocationAdjustment(max_flyers=0), 0x31: LocationAdjustment(tower=True)}
        outcomes = []
        for _ in range(2):
            rom = build()
            _, report = run(rom, adjustments, seed=42, shuffle_tower_monsters=True)
            target = rom.location(0x30)
            ids = monster_ids(target)
            assert len(ids) == 3
            assert not FLYERS.intersection(ids)
            assert report.unfilled == {}
            assert sum(len(v) for v in report.placements.values()) == 3
            outcomes.append(rom.spawn_tables())
        assert outcomes[0] == outcomes[1]

    def test_skip_location_makes_no_attempts(self):
        rom = base_rom([field_location(0x30, [0x51, 0x54])])
        _, report = run(rom, {0x30: LocationAdjustment(skip=True)})
        assert report.attempts[0x30] == 0
        assert monster_ids(rom.location(0x30)) == [0x51, 0x54]
        assert report.pre_shuffle_monsters == []

    def test_used_pool_fills_class_conflicts(self):
        rom = base_rom([field_location(0x30, [0x50, 0x53, 0x51])])
        pool, report = run(rom, {})
        ids = monster_ids(rom.location(0x30))
        assert len(ids) == 3
        assert report.unfilled == {}
        slimes = {i for i in ids if i in (0x50, 0x53)}
        assert len(slimes) == 1
        assert 0x51 in ids
        assert len(set(ids)) == 2
        assert [m.monster_id for m in pool.monsters] == list({0x50, 0x53} - slimes)

    def test_flier_without_quota_is_neutralized(self, caplog):
        rom = base_rom([field_location(0x30, [0x5c])])
        with caplog.at_level('ERROR'):
            _, report = run(rom, {})
        spawn = rom.location(0x30).spawns[0]
        assert (spawn.x, spawn.y, spawn.id, spawn.used) == (0, 0, INERT_SPAWN_ID, False)
        assert spawn.to_bytes()[0] == UNUSED_SPAWN_MARK
        assert report.unfilled == {0x30: 1}
        assert 'Failed to fill location $30' in caplog.text
        assert 'PARTIAL' in report.summary()

    def test_flier_with_quota_takes_offset_slot(self):
        rom = base_rom([field_location(0x30, [0x5c, 0x58])])
        adjustments = {0x30: LocationAdjustment(max_flyers=1, non_flyers={0x0e: (1, 0)})}
        run(rom, adjustments)
        spawns = rom.location(0x30).spawns
        assert spawns[1].monster_id == 0x5c
        assert spawns[0].monster_id == 0x58

    def test_flier_quota_larger_than_open_slots(self):
        target = field_location(0x30, [0x5c])
        donor = field_location(0x31, [0x5c, 0x5c])
        rom = base_rom([target, donor])
        adjustments = {0x30: LocationAdjustment(max_flyers=2), 0x31: LocationAdjustment(tower=True)}
        pool, report = run(rom, adjustments, shuffle_tower_monsters=True)
        assert monster_ids(rom.location(0x30)) == [0x5c]
        assert report.placements == {0x5c: ['$30']}
        assert report.unfilled == {}
        assert len(pool.monsters) == 2

    def test_full_session_rejects_without_spending_quota(self):
        rom = base_rom([field_location(0x30, [0x5c])])
        entry = LocationSlots(rom.location(0x30), [], LocationAdjustment(max_flyers=2))
        session = LocationSession(rom, entry, Constraint.ALL, Graphics(rom), ShuffleConfig(), PlacementCommitter())
        assert not session.try_add_monster(MonsterSlotRequest(0x5c, 0x40))
        assert session.flyers == 2
        assert session.attempts == 0

    def test_offsets_move_static_spawns(self):
        rom = base_rom([field_location(0x30, [0x58])])
        before = (rom.location(0x30).spawns[0].y, rom.location(0x30).spawns[0].x)
        run(rom, {0x30: LocationAdjustment(non_flyers={0x0d: (2, -1)})})
        spawn = rom.location(0x30).spawns[0]
        assert (spawn.y, spawn.x) == (before[0] + 32, before[1] - 16)


class TestPaletteShuffle:
    """Runs where sprite palettes are recolored."""

    @staticmethod
    def open_session(rom, shuffle_palettes):
        entry = LocationSlots(rom.location(0x30), [0x0d])
        config = ShuffleConfig(shuffle_sprite_palettes=shuffle_palettes)
        return LocationSession(rom, entry, Constraint.ALL, Graphics(rom), config, PlacementCommitter())

    def test_first_palette_user_claims_location_palette(self):
        rom = base_rom([field_location(0x30, [0x58])])
        session = self.open_session(rom, True)
        assert session.try_add_monster(MonsterSlotRequest(0x58, 0x40, pal2=0x10))
        assert session.constraint.pal2 == bit(0x10)
        assert session.constraint.pal3.is_all
        assert session.remaining == 0
        assert session.committer.report.placements == {0x58: ['$30']}

    def test_palette_user_rejected_without_recoloring(self):
        rom = base_rom([field_location(0x30, [0x58])])
        session = self.open_session(rom, False)
        assert not session.try_add_monster(MonsterSlotRequest(0x58, 0x40, pal2=0x10))
        assert session.constraint == Constraint.ALL
        assert session.slots == [0x0d]

    def test_initial_constraint_leaves_palettes_open(self):
        rom = base_rom([field_location(0x30, [0x58])])
        location = rom.location(0x30)
        recolor = MonsterPool(rom, Graphics(rom), ShuffleConfig(shuffle_sprite_palettes=True), {})
        c = recolor.initial_constraint(location, LocationAdjustment())
        assert c.pal2.is_all and c.pal3.is_all
        keep = MonsterPool(rom, Graphics(rom), ShuffleConfig(), {})
        c = keep.initial_constraint(location, LocationAdjustment())
        assert (c.pal2, c.pal3) == (bit(0x10), bit(0x11))

    @pytest.mark.parametrize('seed', [1, 7, 2024])
    def test_placed_monsters_match_location_palettes(self, seed):
        rom = build_sample_rom()
        graphics = Graphics(rom)
        report = shuffle_monsters(rom, ShuffleConfig(shuffle_sprite_palettes=True), SeededRandom(seed),
                                  graphics=graphics, adjustments=SAMPLE_ADJUSTMENTS)
        for c in graphics.monster_constraints.values():
            assert c.pal2.is_all or c.pal2.size == 1
            assert c.pal3.is_all or c.pal3.size == 1
        assert report.placed_count() + sum(report.unfilled.values()) == len(report.pre_shuffle_monsters)
        for monster_id, labels in report.placements.items():
            for label in labels:
                location = rom.location(int(label[1:], 16))
                c = graphics.get_monster_constraint(location.id, monster_id)
                assert c.pal2.has(location.sprite_palettes[0])
                assert c.pal3.has(location.sprite_palettes[1])


class TestSampleWorld:
    """Whole-run properties."""

    @pytest.mark.parametrize('seed', [1, 7, 2024])
    @pytest.mark.parametrize('randomize_maps', [False, True])
    def test_slot_conservation(self, seed, randomize_maps):
        rom = build_sample_rom()
        _, report = run(rom, SAMPLE_ADJUSTMENTS, seed=seed, randomize_maps=randomize_maps)
        started = Counter(label for labels in report.starts.values() for label in labels)
        placed = Counter(label for labels in report.placements.values() for label in labels)
        for location in rom.used_locations():
            label = location_label(location.id)
            assert placed[label] + report.unfilled.get(location.id, 0) == started[label]

    @pytest.mark.parametrize('seed', [1, 7, 2024])
    def test_flier_quota(self, seed):
        rom = build_sample_rom()
        _, report = run(rom, SAMPLE_ADJUSTMENTS, seed=seed)
        for monster_id, labels in report.placements.items():
            if monster_id not in FLYERS:
                continue
            for label, count in Counter(labels).items():
                location_id = int(label[1:], 16)
                assert count <= SAMPLE_ADJUSTMENTS.get(location_id, LocationAdjustment()).max_flyers

    @pytest.mark.parametrize('seed', [1, 7, 2024])
    def test_one_monster_per_class(self, seed):
        rom = build_sample_rom()
        run(rom, SAMPLE_ADJUSTMENTS, seed=seed)
        for location in rom.used_locations():
            by_class = {}
            for monster_id in monster_ids(location):
                m = rom.objects.get(monster_id)
                if m is None or not m.monster_class:
                    continue
                by_class.setdefault(m.monster_class, set()).add(monster_id)
            assert all(len(ids) == 1 for ids in by_class.values())

    def test_same_seed_same_spawn_tables(self):
        tables = []
        for _ in range(2):
            rom = build_sample_rom()
            shuffle_monsters(rom, ShuffleConfig(randomize_maps=True), SeededRandom(99),
                             adjustments=SAMPLE_ADJUSTMENTS)
            tables.append(rom.spawn_tables())
        assert tables[0] == tables[1]

    def test_randomized_positions_come_from_pools(self):
        rom = build_sample_rom()
        run(rom, SAMPLE_ADJUSTMENTS, seed=5, randomize_maps=True)
        valley = rom.location(0x10)
        pools = PlacementPoolBuilder(rom, valley).build_pools()
        for spawn in valley.spawns:
            if not spawn.used:
                continue
            placement = rom.objects[spawn.monster_id].placement
            assert (spawn.screen << 8 | spawn.tile) in pools.pool(placement)

    def test_untouched_and_tower_spawns_stay(self):
        rom = build_sample_rom()
        run(rom, SAMPLE_ADJUSTMENTS, seed=3)
        assert rom.location(0x12).spawns[3].monster_id == 0x7e
        assert monster_ids(rom.location(0x14)) == [0xa0]

    def test_report_keys(self):
        rom = build_sample_rom()
        _, report = run(rom, SAMPLE_ADJUSTMENTS, seed=3)
        flat = report.as_dict()
        assert sorted(flat['pre-shuffle locations']) == [0x10, 0x11, 0x12, 0x13, 0x14]
        assert sorted(flat['post-shuffle locations']) == sorted(flat['pre-shuffle locations'])
        assert flat['start-50'] == ['$10']
        assert flat['$11'][0].startswith('Initial pass:')
        assert 'MONSTER SHUFFLE REPORT' in report.summary()

    @pytest.mark.parametrize('interval,expected', [
        (2, [(2, 5), (4, 5), (5, 5)]),
        (5, [(5, 5)]),
        (16, [(5, 5)]),
    ])
    def test_progress_callback(self, interval, expected):
        rom = build_sample_rom()
        calls = []
        shuffle_monsters(rom, ShuffleConfig(progress_interval=interval), SeededRandom(1),
                         adjustments=SAMPLE_ADJUSTMENTS, progress=lambda done, total: calls.append((done, total)))
        assert calls == expected
