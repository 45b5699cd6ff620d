"""TacticalEngine - per-unit movement, threat and path queries."""
from __future__ import annotations

import logging
from typing import Sequence

from tick_tactics.battlefield import Battlefield
from tick_tactics.config import EngineConfig
from tick_tactics.costs import BLOCKED
from tick_tactics.occupancy import OccupancySnapshot
from tick_tactics.reachability import Heuristic, ReachabilityResult, search
from tick_tactics.threat import targets_in, threat_area
from tick_tactics.types import (
    MovementClass,
    Position,
    ThreatArea,
    UnitStats,
)

logger = logging.getLogger(__name__)


class TacticalEngine:
    """Query surface over one immutable Battlefield.

    Every method is a pure function of the battlefield and its arguments,
    so one engine may serve concurrent callers. Use ``with_occupancy`` to
    get an engine over a fresh snapshot when units move.
    """

    def __init__(
        self, battlefield: Battlefield, config: EngineConfig | None = None
    ) -> None:
        self.battlefield = battlefield
        self.config: EngineConfig = config if config is not None else EngineConfig()
        self._heuristic = self._make_heuristic()

    def _make_heuristic(self) -> Heuristic:
        grid = self.battlefield.grid
        scale = self.battlefield.costs.min_cost if self.config.scale_heuristic else 1

        def heuristic(a: Position, b: Position) -> float:
            return grid.heuristic(a, b) * scale

        return heuristic

    def with_occupancy(self, occupancy: OccupancySnapshot) -> TacticalEngine:
        return TacticalEngine(
            self.battlefield.with_occupancy(occupancy), self.config
        )

    # --- Queries ---

    def reachability(
        self,
        unit: UnitStats,
        budget: int | None = None,
        goal: Position | None = None,
    ) -> ReachabilityResult:
        """Run the raw search for *unit*. ``budget=None`` is unbounded."""
        return search(
            self.battlefield,
            unit.position,
            unit.movement_class,
            unit.faction,
            budget=budget,
            goal=goal,
            heuristic=self._heuristic if goal is not None else None,
        )

    def compute_movement_range(self, unit: UnitStats) -> frozenset[Position]:
        """Tiles *unit* can end its move on this turn, start included."""
        return self.reachability(unit, budget=unit.movement).stops

    def compute_threat_area(self, unit: UnitStats) -> ThreatArea:
        return threat_area(
            self.battlefield.grid,
            self.compute_movement_range(unit),
            unit.weapon_min,
            unit.weapon_max,
        )

    def compute_path(
        self,
        unit: UnitStats,
        goal: Position,
        budget: int | None = None,
    ) -> list[Position] | None:
        """Cheapest path from the unit's position to *goal*, both inclusive.

        Returns None when no path exists, the goal is off the grid, or the
        goal is held by another unit. A unit already standing on *goal* gets
        the one-element path ``[goal]``.
        """
        if not self.battlefield.grid.in_bounds(goal):
            return None
        result = self.reachability(unit, budget=budget, goal=goal)
        if not result.goal_reached or goal not in result.stops:
            logger.debug("No path from %s to %s", unit.position, goal)
            return None
        return result.path_to(goal)

    def path_cost(
        self, path: Sequence[Position], movement_class: MovementClass
    ) -> int:
        """Total step cost of walking *path*; the first tile is free."""
        grid = self.battlefield.grid
        costs = self.battlefield.costs
        total = 0
        for pos in path[1:]:
            step = costs.cost(grid.terrain(pos), movement_class)
            if step is BLOCKED:
                raise ValueError(
                    f"Path enters {pos}, impassable for {movement_class.name}"
                )
            total += step
        return total

    def targets(self, unit: UnitStats) -> list[Position]:
        """Hostile-held positions inside the unit's threat area."""
        bf = self.battlefield
        return targets_in(
            self.compute_threat_area(unit), bf.occupancy, unit.faction, bf.relations
        )
