"""CostTable - step costs per (terrain, movement class)."""
from __future__ import annotations

from typing import Iterable, Mapping

from tick_tactics.types import MissingCostError, MovementClass, TerrainKind

# Table value marking a terrain as impassable for a movement class.
BLOCKED = None

StepCost = int | None


class CostTable:
    """Immutable lookup from (terrain, movement class) to a step cost.

    A cost is a positive integer, or ``BLOCKED``. Asking about a pair that
    has no entry is a configuration error and raises MissingCostError.
    """

    def __init__(
        self, entries: Mapping[tuple[TerrainKind, MovementClass], StepCost]
    ) -> None:
        for (terrain, mclass), cost in entries.items():
            if cost is BLOCKED:
                continue
            if isinstance(cost, bool) or not isinstance(cost, int) or cost < 1:
                raise ValueError(
                    f"Step cost for ({terrain.name}, {mclass.name}) must be "
                    f"a positive int or BLOCKED, got {cost!r}"
                )
        self._entries: dict[tuple[TerrainKind, MovementClass], StepCost] = dict(
            entries
        )
        costs = [c for c in self._entries.values() if c is not BLOCKED]
        self._min_cost: int = min(costs) if costs else 1

    @classmethod
    def from_rows(
        cls,
        rows: Mapping[MovementClass, Mapping[TerrainKind, StepCost]],
    ) -> CostTable:
        """Build a table from ``{movement_class: {terrain: cost}}`` rows."""
        entries: dict[tuple[TerrainKind, MovementClass], StepCost] = {}
        for mclass, row in rows.items():
            for terrain, cost in row.items():
                entries[(terrain, mclass)] = cost
        return cls(entries)

    @classmethod
    def default(cls) -> CostTable:
        """A complete table covering every terrain and movement class."""
        T = TerrainKind
        return cls.from_rows({
            MovementClass.INFANTRY: {
                T.GROUND: 1, T.ROAD: 1, T.FOREST: 2, T.MOUNTAIN: 3,
                T.WATER: BLOCKED, T.WALL: BLOCKED,
            },
            MovementClass.CAVALRY: {
                T.GROUND: 1, T.ROAD: 1, T.FOREST: 3, T.MOUNTAIN: BLOCKED,
                T.WATER: BLOCKED, T.WALL: BLOCKED,
            },
            MovementClass.ARMOR: {
                T.GROUND: 1, T.ROAD: 1, T.FOREST: 2, T.MOUNTAIN: BLOCKED,
                T.WATER: BLOCKED, T.WALL: BLOCKED,
            },
            MovementClass.FLYING: {
                T.GROUND: 1, T.ROAD: 1, T.FOREST: 1, T.MOUNTAIN: 1,
                T.WATER: 1, T.WALL: BLOCKED,
            },
        })

    @property
    def min_cost(self) -> int:
        """Smallest non-blocked step cost in the table."""
        return self._min_cost

    def cost(self, terrain: TerrainKind, movement_class: MovementClass) -> StepCost:
        try:
            return self._entries[(terrain, movement_class)]
        except KeyError:
            raise MissingCostError(terrain, movement_class) from None

    def passable(self, terrain: TerrainKind, movement_class: MovementClass) -> bool:
        return self.cost(terrain, movement_class) is not BLOCKED

    def covers(
        self,
        terrains: Iterable[TerrainKind],
        classes: Iterable[MovementClass],
    ) -> bool:
        """True if every terrain/class combination has an entry."""
        classes = list(classes)
        return all(
            (t, c) in self._entries for t in terrains for c in classes
        )
