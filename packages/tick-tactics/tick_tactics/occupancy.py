"""Occupancy snapshots and faction relations."""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from tick_tactics.types import Faction, Position, UnitStats

NEUTRAL: Faction = "neutral"


class FactionRelations:
    """Decides which factions are hostile to each other.

    Two factions are hostile unless they are the same faction, are allied,
    or either one is neutral.
    """

    def __init__(
        self,
        neutral: Iterable[Faction] = (NEUTRAL,),
        alliances: Iterable[tuple[Faction, Faction]] = (),
    ) -> None:
        self._neutral = frozenset(neutral)
        self._allied: frozenset[frozenset[Faction]] = frozenset(
            frozenset(pair) for pair in alliances
        )

    def is_neutral(self, faction: Faction) -> bool:
        return faction in self._neutral

    def allied(self, a: Faction, b: Faction) -> bool:
        return a == b or frozenset((a, b)) in self._allied

    def hostile(self, a: Faction, b: Faction) -> bool:
        if a in self._neutral or b in self._neutral:
            return False
        return not self.allied(a, b)


class OccupancySnapshot:
    """Immutable view of which faction stands on each tile."""

    def __init__(self, occupants: Mapping[Position, Faction] | None = None) -> None:
        self._occupants: Mapping[Position, Faction] = MappingProxyType(
            dict(occupants or {})
        )

    @classmethod
    def from_units(cls, units: Iterable[UnitStats]) -> OccupancySnapshot:
        return cls({u.position: u.faction for u in units})

    def faction_at(self, pos: Position) -> Faction | None:
        return self._occupants.get(pos)

    def occupied(self) -> frozenset[Position]:
        return frozenset(self._occupants)

    def changed(self, other: OccupancySnapshot) -> frozenset[Position]:
        """Positions whose occupant differs between the two snapshots."""
        keys = set(self._occupants) | set(other._occupants)
        return frozenset(
            p for p in keys
            if self._occupants.get(p) != other._occupants.get(p)
        )

    def __len__(self) -> int:
        return len(self._occupants)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OccupancySnapshot):
            return NotImplemented
        return dict(self._occupants) == dict(other._occupants)

    def __hash__(self) -> int:
        return hash(frozenset(self._occupants.items()))
