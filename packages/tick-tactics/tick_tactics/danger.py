"""DangerCache - per-unit threat areas with cheap aggregate overlays."""
from __future__ import annotations

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable

from tick_tactics.threat import threat_area
from tick_tactics.types import Faction, Position, ThreatArea, UnitHandle, UnitStats

if TYPE_CHECKING:
    from tick_tactics.engine import TacticalEngine
    from tick_tactics.roster import UnitRoster

logger = logging.getLogger(__name__)

InvalidateCallback = Callable[[UnitHandle], None]


@dataclass(frozen=True)
class _Entry:
    """Cached threat area plus what it was computed from."""

    stats: UnitStats
    area: ThreatArea
    # Tiles whose occupancy could change the search result.
    footprint: frozenset[Position]
    grid_version: int


def _assess(engine: TacticalEngine, stats: UnitStats) -> _Entry:
    grid = engine.battlefield.grid
    version = grid.version
    result = engine.reachability(stats, budget=stats.movement)
    # The start tile is always watched, even when the search came back empty.
    footprint: set[Position] = {stats.position, *result.costs}
    for pos in result.costs:
        footprint.update(grid.neighbors(pos))
    area = threat_area(grid, result.stops, stats.weapon_min, stats.weapon_max)
    return _Entry(
        stats=stats,
        area=area,
        footprint=frozenset(footprint),
        grid_version=version,
    )


def merge_areas(areas: Iterable[ThreatArea]) -> ThreatArea:
    """Union of several areas with move/attack disjointness re-applied."""
    move: set[Position] = set()
    attack: set[Position] = set()
    for area in areas:
        move |= area.move_tiles
        attack |= area.attack_tiles
    attack -= move
    return ThreatArea(move_tiles=frozenset(move), attack_tiles=frozenset(attack))


class DangerCache:
    """Caches one ThreatArea per unit and unions them on demand.

    Entries are keyed by generational handle and carry the stats they were
    computed from. A read whose stats no longer match the roster, or whose
    entry was invalidated, recomputes that one unit before answering, so a
    stale area is never returned. Entries computed before an in-place edit
    of the grid are stale too. Aggregates over a selection are memoized,
    least recently used first out once ``max_aggregates`` is exceeded, and
    dropped whenever one of their members changes; building them never
    runs a search.
    """

    def __init__(self, engine: TacticalEngine, roster: UnitRoster) -> None:
        self._engine = engine
        self._roster = roster
        self._entries: dict[UnitHandle, _Entry] = {}
        self._aggregates: OrderedDict[frozenset[UnitHandle], ThreatArea] = (
            OrderedDict()
        )
        self._on_invalidate: list[InvalidateCallback] = []

    @property
    def engine(self) -> TacticalEngine:
        return self._engine

    # --- Callback registration ---

    def on_invalidate(self, cb: InvalidateCallback) -> None:
        """Register a callback fired when a unit's entry is dropped."""
        self._on_invalidate.append(cb)

    def off_invalidate(self, cb: InvalidateCallback) -> None:
        try:
            self._on_invalidate.remove(cb)
        except ValueError:
            pass

    # --- Entry access ---

    def _fresh(self, handle: UnitHandle) -> _Entry | None:
        entry = self._entries.get(handle)
        if entry is None or not self._roster.alive(handle):
            return None
        if entry.stats != self._roster.get(handle):
            return None
        if entry.grid_version != self._engine.battlefield.grid.version:
            return None
        return entry

    def _store(self, handle: UnitHandle, entry: _Entry) -> None:
        if handle in self._entries:
            self._drop_aggregates(handle)
        self._entries[handle] = entry

    def _drop_aggregates(self, handle: UnitHandle) -> None:
        stale = [key for key in self._aggregates if handle in key]
        for key in stale:
            del self._aggregates[key]

    def cached(self, handle: UnitHandle) -> bool:
        """True if *handle* has an up-to-date entry."""
        return self._fresh(handle) is not None

    def area(self, handle: UnitHandle) -> ThreatArea:
        """Threat area of one unit, recomputed if missing or stale.

        Raises StaleHandleError if the unit has left the roster.
        """
        stats = self._roster.get(handle)
        entry = self._fresh(handle)
        if entry is None:
            logger.debug("Recomputing threat area for %s", handle)
            entry = _assess(self._engine, stats)
            self._store(handle, entry)
        return entry.area

    # --- Aggregates ---

    def compute_danger_map(self, selection: Iterable[UnitHandle]) -> ThreatArea:
        """Combined threat area of the selected units.

        Handles of departed units are treated as absent.
        """
        live = frozenset(h for h in selection if self._roster.alive(h))
        if not live:
            return ThreatArea()
        cached = self._aggregates.get(live)
        if cached is not None and all(self._fresh(h) is not None for h in live):
            self._aggregates.move_to_end(live)
            return cached
        ordered = sorted(live, key=lambda h: (h.index, h.generation))
        areas = [self.area(h) for h in ordered]
        combined = merge_areas(areas)
        self._aggregates[live] = combined
        self._aggregates.move_to_end(live)
        while len(self._aggregates) > self._engine.config.max_aggregates:
            self._aggregates.popitem(last=False)
        return combined

    def faction_danger(self, faction: Faction) -> ThreatArea:
        """Combined threat area of every live unit of *faction*."""
        return self.compute_danger_map(self._roster.by_faction(faction))

    # --- Invalidation ---

    def invalidate(self, handle: UnitHandle) -> None:
        """Drop one unit's entry and every aggregate that includes it."""
        self._drop_aggregates(handle)
        if self._entries.pop(handle, None) is not None:
            logger.debug("Invalidated threat area for %s", handle)
            for cb in self._on_invalidate:
                cb(handle)

    def invalidate_all(self) -> None:
        for handle in list(self._entries):
            self.invalidate(handle)
        self._aggregates.clear()

    def prune(self) -> list[UnitHandle]:
        """Drop entries of units no longer in the roster; return them."""
        dead = [h for h in self._entries if not self._roster.alive(h)]
        for handle in dead:
            self.invalidate(handle)
        return dead

    def rebind(self, engine: TacticalEngine) -> list[UnitHandle]:
        """Switch to *engine*'s snapshot, dropping only affected entries.

        If the grid, cost table or faction relations differ every entry is
        dropped. Otherwise only units whose search footprint touches a tile
        with a changed occupant are. Returns the invalidated handles.
        """
        old = self._engine.battlefield
        new = engine.battlefield
        self._engine = engine
        if (
            old.grid is not new.grid
            or old.costs is not new.costs
            or old.relations is not new.relations
        ):
            affected = list(self._entries)
        else:
            changed = old.occupancy.changed(new.occupancy)
            affected = [
                h for h, e in self._entries.items() if e.footprint & changed
            ]
        for handle in affected:
            self.invalidate(handle)
        return affected

    def refresh(self, handles: Iterable[UnitHandle] | None = None) -> int:
        """Recompute every missing or stale entry; return how many ran.

        Dirty units are assessed in parallel once there are at least
        ``parallel_threshold`` of them. All results are joined before any
        entry is written, so the entry table is only touched from the
        calling thread.
        """
        self.prune()
        if handles is None:
            candidates = self._roster.handles()
        else:
            candidates = [h for h in handles if self._roster.alive(h)]
        dirty = [h for h in candidates if self._fresh(h) is None]
        if not dirty:
            return 0

        stats = [self._roster.get(h) for h in dirty]
        config = self._engine.config
        if len(dirty) >= config.parallel_threshold:
            logger.debug(
                "Refreshing %d threat areas on %d workers",
                len(dirty), config.max_workers,
            )
            engine = self._engine
            with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
                entries = list(pool.map(lambda s: _assess(engine, s), stats))
        else:
            entries = [_assess(self._engine, s) for s in stats]

        for handle, entry in zip(dirty, entries):
            self._store(handle, entry)
        return len(dirty)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, UnitHandle) and self.cached(handle)
