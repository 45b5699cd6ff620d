"""Best-first search over a Battlefield (Dijkstra and A* in one)."""
from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from tick_tactics.costs import BLOCKED
from tick_tactics.types import Faction, MovementClass, Position

if TYPE_CHECKING:
    from tick_tactics.battlefield import Battlefield

logger = logging.getLogger(__name__)

Heuristic = Callable[[Position, Position], float]


@dataclass(frozen=True)
class ReachabilityResult:
    """Outcome of one search.

    Attributes:
        start: Where the search began.
        costs: Lowest known cumulative cost per reached position.
        came_from: Predecessor of each reached position except the start.
        stops: Reached positions the unit may end movement on. Tiles held by
            friendly or neutral units are passed through but never stops.
        settled: Positions popped from the frontier with their final cost.
        goal: Target of a path query, or None for a range query.
        goal_reached: True if the goal was popped from the frontier.
    """

    start: Position
    costs: dict[Position, int] = field(default_factory=dict)
    came_from: dict[Position, Position] = field(default_factory=dict)
    stops: frozenset[Position] = frozenset()
    settled: frozenset[Position] = frozenset()
    goal: Position | None = None
    goal_reached: bool = False

    @property
    def empty(self) -> bool:
        return not self.costs

    def reached(self, pos: Position) -> bool:
        return pos in self.costs

    def cost_to(self, pos: Position) -> int | None:
        return self.costs.get(pos)

    def path_to(self, pos: Position) -> list[Position] | None:
        """Reconstruct the path start -> pos (inclusive), or None."""
        if pos not in self.costs:
            return None
        path: list[Position] = [pos]
        current = pos
        while current in self.came_from:
            current = self.came_from[current]
            path.append(current)
        path.reverse()
        return path


def search(
    battlefield: Battlefield,
    start: Position,
    movement_class: MovementClass,
    faction: Faction,
    budget: int | None = None,
    goal: Position | None = None,
    heuristic: Heuristic | None = None,
) -> ReachabilityResult:
    """Label-correcting best-first search from *start*.

    With no goal the heuristic is ignored and the search expands every
    position whose cumulative cost fits in *budget* (Dijkstra). With a goal
    and an admissible, consistent heuristic it stops as soon as the goal is
    popped (A*). ``budget=None`` means unbounded.

    Frontier ties are broken by ascending (x, y) so results are
    reproducible. Raises MissingCostError if the cost table lacks an entry
    for a terrain the search touches.
    """
    grid = battlefield.grid
    costs = battlefield.costs
    occupancy = battlefield.occupancy
    relations = battlefield.relations

    if not grid.in_bounds(start):
        logger.warning("Search start %s is outside the grid", start)
        return ReachabilityResult(start=start, goal=goal)
    if costs.cost(grid.terrain(start), movement_class) is BLOCKED:
        logger.warning(
            "Search start %s is impassable for %s", start, movement_class.name
        )
        return ReachabilityResult(start=start, goal=goal)
    occupant = occupancy.faction_at(start)
    if occupant is not None and relations.hostile(faction, occupant):
        logger.warning(
            "Search start %s is held by hostile faction %r", start, occupant
        )
        return ReachabilityResult(start=start, goal=goal)

    def h(pos: Position) -> float:
        if goal is None or heuristic is None:
            return 0
        return heuristic(pos, goal)

    best: dict[Position, int] = {start: 0}
    came_from: dict[Position, Position] = {}
    settled: set[Position] = set()
    frontier: list[tuple[float, Position, int]] = [(h(start), start, 0)]
    goal_reached = False

    while frontier:
        _, current, g = heapq.heappop(frontier)
        if g > best[current]:
            continue
        settled.add(current)
        if goal is not None and current == goal:
            goal_reached = True
            break

        for neighbor in grid.neighbors(current):
            step = costs.cost(grid.terrain(neighbor), movement_class)
            if step is BLOCKED:
                continue
            holder = occupancy.faction_at(neighbor)
            if holder is not None and relations.hostile(faction, holder):
                continue
            new_cost = g + step
            if budget is not None and new_cost > budget:
                continue
            known = best.get(neighbor)
            if known is not None and new_cost >= known:
                continue
            best[neighbor] = new_cost
            came_from[neighbor] = current
            heapq.heappush(frontier, (new_cost + h(neighbor), neighbor, new_cost))

    stops = frozenset(
        p for p in best
        if p == start or occupancy.faction_at(p) is None
    )
    logger.debug(
        "search from %s (%s, budget=%s, goal=%s): %d reached, %d settled",
        start, movement_class.name, budget, goal, len(best), len(settled),
    )
    return ReachabilityResult(
        start=start,
        costs=best,
        came_from=came_from,
        stops=stops,
        settled=frozenset(settled),
        goal=goal,
        goal_reached=goal_reached,
    )
