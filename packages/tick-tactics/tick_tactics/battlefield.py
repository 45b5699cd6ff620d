"""Battlefield - the immutable snapshot every query reads from."""
from __future__ import annotations

from dataclasses import dataclass, field

from tick_tactics.costs import CostTable
from tick_tactics.grid import TacticalGrid
from tick_tactics.occupancy import FactionRelations, OccupancySnapshot


@dataclass(frozen=True)
class Battlefield:
    """Grid, cost table, occupancy and faction relations for one batch.

    Searches only read from a Battlefield, so any number of them may run
    concurrently against the same instance. Callers must not mutate the
    grid while queries are in flight; edit a ``grid.copy()`` and build a
    new Battlefield instead. Edits made in place anyway bump the grid
    version, which a DangerCache treats as invalidating every entry.
    """

    grid: TacticalGrid
    costs: CostTable
    occupancy: OccupancySnapshot = field(default_factory=OccupancySnapshot)
    relations: FactionRelations = field(default_factory=FactionRelations)

    def with_occupancy(self, occupancy: OccupancySnapshot) -> Battlefield:
        return Battlefield(
            grid=self.grid,
            costs=self.costs,
            occupancy=occupancy,
            relations=self.relations,
        )
