"""
Test suite for DangerCache.

Tests cover:
- Per-unit entries and lazy recomputation
- Aggregate danger maps, their decomposability and the memo bound
- Entry-scoped invalidation and callbacks
- Generational handles and slot reuse
- Parallel refresh
- Rebinding to a new occupancy snapshot
- In-place grid edits
"""
from __future__ import annotations

import pytest

from tick_tactics import (
    Battlefield,
    CostTable,
    DangerCache,
    EngineConfig,
    MovementClass,
    OccupancySnapshot,
    StaleHandleError,
    TacticalEngine,
    TacticalGrid,
    TerrainKind,
    ThreatArea,
    UnitRoster,
    UnitStats,
    merge_areas,
)

INF = MovementClass.INFANTRY


def _unit(pos, movement=2, wmin=1, wmax=1, faction="red"):
    return UnitStats(pos, movement, INF, faction, wmin, wmax)


def _setup(units, width=8, height=8, grid=None, config=None):
    roster = UnitRoster()
    handles = [roster.spawn(u) for u in units]
    engine = _engine_for(roster, grid or TacticalGrid(width, height), config)
    return roster, handles, engine, DangerCache(engine, roster)


def _engine_for(roster, grid, config=None, costs=None):
    occupancy = OccupancySnapshot.from_units(s for _, s in roster.items())
    field = Battlefield(grid=grid, costs=costs or CostTable.default(), occupancy=occupancy)
    return TacticalEngine(field, config)


class TestEntries:
    def test_area_matches_engine(self):
        roster, (h1,), engine, cache = _setup([_unit((2, 2), wmax=2)])
        assert cache.area(h1) == engine.compute_threat_area(roster.get(h1))

    def test_area_is_cached(self):
        _, (h1,), _, cache = _setup([_unit((2, 2))])
        first = cache.area(h1)
        assert h1 in cache
        assert cache.area(h1) is first
        assert len(cache) == 1

    def test_stat_change_is_never_served_stale(self):
        roster, (h1,), _, cache = _setup([_unit((2, 2))])
        before = cache.area(h1)
        roster.update(h1, _unit((2, 2), movement=3))
        assert h1 not in cache
        after = cache.area(h1)
        assert after != before
        assert before.move_tiles < after.move_tiles

    def test_dead_handle_raises(self):
        roster, (h1,), _, cache = _setup([_unit((2, 2))])
        roster.despawn(h1)
        with pytest.raises(StaleHandleError):
            cache.area(h1)


class TestDangerMap:
    def test_overlapping_enemies_decompose(self):
        _, (e1, e2), _, cache = _setup([
            _unit((2, 2), movement=2, wmin=1, wmax=1),
            _unit((4, 3), movement=2, wmin=1, wmax=2),
        ])
        a = cache.compute_danger_map({e1})
        b = cache.compute_danger_map({e2})
        both = cache.compute_danger_map({e1, e2})
        assert both == a | b
        assert both.move_tiles == a.move_tiles | b.move_tiles
        assert both.attack_tiles == (a.attack_tiles | b.attack_tiles) - both.move_tiles
        # (5, 2) is attack-only for e1 but a stop tile for e2.
        assert (5, 2) in a.attack_tiles
        assert (5, 2) in b.move_tiles
        assert (5, 2) in both.move_tiles
        assert (5, 2) not in both.attack_tiles

    def test_any_partition_decomposes(self):
        units = [_unit((x, y), movement=2, wmax=2) for x, y in [(1, 1), (6, 1), (3, 5), (6, 6)]]
        _, handles, _, cache = _setup(units)
        whole = cache.compute_danger_map(handles)
        for split in range(1, len(handles)):
            left = cache.compute_danger_map(handles[:split])
            right = cache.compute_danger_map(handles[split:])
            assert whole == left | right

    def test_single_unit_map_equals_area(self):
        _, (h1,), _, cache = _setup([_unit((3, 3))])
        assert cache.compute_danger_map([h1]) == cache.area(h1)

    def test_empty_selection(self):
        _, _, _, cache = _setup([_unit((3, 3))])
        assert cache.compute_danger_map([]) == ThreatArea()

    def test_aggregate_memoized_regardless_of_order(self):
        _, (h1, h2), _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        first = cache.compute_danger_map([h1, h2])
        assert cache.compute_danger_map([h2, h1]) is first

    def test_member_change_rebuilds_aggregate_only_for_that_unit(self):
        roster, (h1, h2), _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        first = cache.compute_danger_map([h1, h2])
        untouched = cache.area(h2)
        roster.update(h1, roster.get(h1).moved_to((2, 1)))
        second = cache.compute_danger_map([h1, h2])
        assert second is not first
        assert (4, 1) not in first.move_tiles
        assert (4, 1) in second.move_tiles
        assert cache.area(h2) is untouched

    def test_departed_units_ignored(self):
        roster, (h1, h2), _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        cache.compute_danger_map([h1, h2])
        roster.despawn(h1)
        assert cache.compute_danger_map([h1, h2]) == cache.area(h2)

    def test_faction_danger(self):
        _, (r1, r2, b1), _, cache = _setup([
            _unit((1, 1)), _unit((6, 6)), _unit((3, 3), faction="blue"),
        ])
        assert cache.faction_danger("red") == cache.compute_danger_map([r1, r2])
        assert cache.faction_danger("blue") == cache.area(b1)
        assert cache.faction_danger("green") == ThreatArea()

    def test_merge_areas_matches_pairwise_union(self):
        areas = [
            ThreatArea(frozenset({(0, 0)}), frozenset({(1, 0)})),
            ThreatArea(frozenset({(1, 0)}), frozenset({(2, 0), (0, 0)})),
            ThreatArea(frozenset(), frozenset({(5, 5)})),
        ]
        assert merge_areas(areas) == areas[0] | areas[1] | areas[2]
        assert merge_areas([]) == ThreatArea()

    def test_aggregate_memo_keeps_most_recent(self):
        _, (h1, h2, h3), _, cache = _setup(
            [_unit((1, 1)), _unit((5, 5)), _unit((1, 6))],
            config=EngineConfig(max_aggregates=2),
        )
        a = cache.compute_danger_map([h1])
        b = cache.compute_danger_map([h2])
        assert cache.compute_danger_map([h1]) is a
        cache.compute_danger_map([h3])
        assert len(cache._aggregates) == 2
        assert cache.compute_danger_map([h1]) is a
        again = cache.compute_danger_map([h2])
        assert again is not b
        assert again == b
        assert len(cache._aggregates) == 2


class TestInvalidation:
    def test_invalidate_fires_callback(self):
        _, (h1, h2), _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        events = []
        cache.on_invalidate(events.append)
        cache.area(h1)
        cache.invalidate(h1)
        cache.invalidate(h2)  # no entry yet, no event
        assert events == [h1]
        assert h1 not in cache

    def test_off_invalidate(self):
        _, (h1,), _, cache = _setup([_unit((1, 1))])
        events = []
        cache.on_invalidate(events.append)
        cache.off_invalidate(events.append)
        cache.off_invalidate(events.append)
        cache.area(h1)
        cache.invalidate(h1)
        assert events == []

    def test_invalidate_drops_aggregates(self):
        _, (h1, h2), _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        first = cache.compute_danger_map([h1, h2])
        cache.invalidate(h1)
        second = cache.compute_danger_map([h1, h2])
        assert second == first
        assert second is not first

    def test_invalidate_leaves_other_entries(self):
        _, (h1, h2), _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        keep = cache.area(h2)
        cache.area(h1)
        cache.invalidate(h1)
        assert h2 in cache
        assert cache.area(h2) is keep

    def test_invalidate_all(self):
        _, handles, _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        cache.compute_danger_map(handles)
        cache.invalidate_all()
        assert len(cache) == 0

    def test_slot_reuse_never_returns_old_entry(self):
        roster, (h1,), _, cache = _setup([_unit((1, 1))])
        old_area = cache.area(h1)
        roster.despawn(h1)
        h_new = roster.spawn(_unit((6, 6)))
        assert h_new.index == h1.index
        assert h_new != h1
        assert h_new not in cache
        assert cache.area(h_new) != old_area
        assert cache.prune() == [h1]
        assert len(cache) == 1


class TestRefresh:
    def test_refresh_computes_missing_entries(self):
        _, handles, _, cache = _setup([_unit((1, 1)), _unit((5, 5)), _unit((3, 6))])
        assert cache.refresh() == 3
        assert all(h in cache for h in handles)
        assert cache.refresh() == 0

    def test_refresh_subset(self):
        _, (h1, h2), _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        assert cache.refresh([h2]) == 1
        assert h2 in cache
        assert h1 not in cache

    def test_refresh_only_dirty(self):
        roster, (h1, h2), _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        cache.refresh()
        roster.update(h2, _unit((5, 5), movement=1))
        assert cache.refresh() == 1

    def test_parallel_refresh_matches_engine(self):
        units = [_unit((x, y), movement=3, wmin=1, wmax=2) for x in (1, 4, 7) for y in (1, 4, 7)]
        config = EngineConfig(max_workers=3, parallel_threshold=2)
        grid = TacticalGrid(9, 9)
        grid.fill_rect((2, 2), (2, 6), TerrainKind.FOREST)
        roster, handles, engine, cache = _setup(units, grid=grid, config=config)
        assert cache.refresh() == len(units)
        for h in handles:
            assert cache.area(h) == engine.compute_threat_area(roster.get(h))

    def test_refresh_prunes_departed(self):
        roster, (h1, h2), _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        cache.refresh()
        roster.despawn(h1)
        cache.refresh()
        assert len(cache) == 1


class TestRebind:
    def test_only_units_touching_changed_tiles_invalidated(self):
        roster, (r1, r2, b1), _, cache = _setup(
            [_unit((1, 1)), _unit((8, 8)), _unit((1, 4), faction="blue")],
            width=10, height=10,
        )
        cache.refresh(roster.by_faction("red"))
        far = cache.area(r2)
        assert (1, 3) in cache.area(r1).move_tiles

        roster.update(b1, roster.get(b1).moved_to((1, 3)))
        new_engine = cache.engine.with_occupancy(
            OccupancySnapshot.from_units(s for _, s in roster.items())
        )
        assert cache.rebind(new_engine) == [r1]
        assert cache.engine is new_engine
        assert cache.area(r2) is far
        area = cache.area(r1)
        assert (1, 3) not in area.move_tiles
        assert (1, 3) in area.attack_tiles

    def test_new_grid_invalidates_everything(self):
        roster, handles, _, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        cache.refresh()
        grid = TacticalGrid(8, 8)
        grid.set((2, 1), TerrainKind.WALL)
        affected = cache.rebind(_engine_for(roster, grid))
        assert sorted(affected, key=lambda h: h.index) == handles
        assert (2, 1) not in cache.area(handles[0]).move_tiles

    def test_unchanged_snapshot_keeps_entries(self):
        roster, handles, engine, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        cache.refresh()
        same = engine.with_occupancy(engine.battlefield.occupancy)
        assert cache.rebind(same) == []
        assert len(cache) == 2

    def test_hostile_leaving_start_tile_recomputes(self):
        roster = UnitRoster()
        h = roster.spawn(_unit((2, 2)))
        field = Battlefield(
            grid=TacticalGrid(5, 5),
            costs=CostTable.default(),
            occupancy=OccupancySnapshot({(2, 2): "blue"}),
        )
        cache = DangerCache(TacticalEngine(field), roster)
        assert cache.area(h) == ThreatArea()

        cleared = cache.engine.with_occupancy(OccupancySnapshot({(2, 2): "red"}))
        assert cache.rebind(cleared) == [h]
        area = cache.area(h)
        assert area == cleared.compute_threat_area(roster.get(h))
        assert len(area.move_tiles) == 13


class TestGridEdits:
    def test_wall_placed_after_caching_is_seen(self):
        _, (h1, h2), engine, cache = _setup([_unit((1, 1)), _unit((5, 5))])
        both = cache.compute_danger_map([h1, h2])
        assert (2, 1) in cache.area(h1).move_tiles

        engine.battlefield.grid.set((2, 1), TerrainKind.WALL)
        assert h1 not in cache
        assert h2 not in cache
        area = cache.area(h1)
        assert (2, 1) not in area.move_tiles
        assert area == engine.compute_threat_area(_unit((1, 1)))
        assert cache.compute_danger_map([h1, h2]) is not both

    def test_editing_a_copy_keeps_entries(self):
        roster, (h1,), engine, cache = _setup([_unit((1, 1))])
        first = cache.area(h1)
        edited = engine.battlefield.grid.copy()
        edited.set((2, 1), TerrainKind.WALL)
        assert h1 in cache
        assert cache.area(h1) is first

        affected = cache.rebind(_engine_for(roster, edited))
        assert affected == [h1]
        assert (2, 1) not in cache.area(h1).move_tiles
