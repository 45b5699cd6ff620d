"""Weapon-range expansion from a movement set to a ThreatArea."""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from tick_tactics.types import Faction, Position, ThreatArea

if TYPE_CHECKING:
    from tick_tactics.grid import TacticalGrid
    from tick_tactics.occupancy import FactionRelations, OccupancySnapshot


def ring_offsets(weapon_min: int, weapon_max: int) -> list[tuple[int, int]]:
    """Offsets whose Manhattan length lies in [weapon_min, weapon_max].

    >>> sorted(ring_offsets(1, 1))
    [(-1, 0), (0, -1), (0, 1), (1, 0)]
    """
    if weapon_min < 0 or weapon_max < weapon_min:
        raise ValueError(
            f"Invalid weapon range [{weapon_min}, {weapon_max}]"
        )
    offsets: list[tuple[int, int]] = []
    for dx in range(-weapon_max, weapon_max + 1):
        rest = weapon_max - abs(dx)
        for dy in range(-rest, rest + 1):
            if abs(dx) + abs(dy) >= weapon_min:
                offsets.append((dx, dy))
    return offsets


def threat_area(
    grid: TacticalGrid,
    move_tiles: Iterable[Position],
    weapon_min: int,
    weapon_max: int,
) -> ThreatArea:
    """Expand every move tile by the weapon ring and split the result.

    Every stopping tile is expanded, not only the outer frontier, because
    each one opens its own firing positions.
    """
    move = frozenset(move_tiles)
    offsets = ring_offsets(weapon_min, weapon_max)
    covered: set[Position] = set()
    for x, y in move:
        for dx, dy in offsets:
            target = (x + dx, y + dy)
            if grid.in_bounds(target):
                covered.add(target)
    return ThreatArea(move_tiles=move, attack_tiles=frozenset(covered - move))


def targets_in(
    area: ThreatArea,
    occupancy: OccupancySnapshot,
    faction: Faction,
    relations: FactionRelations,
) -> list[Position]:
    """Hostile-held positions covered by *area*, in (x, y) order."""
    return sorted(
        pos for pos in occupancy.occupied()
        if pos in area.attack_tiles or pos in area.move_tiles
        if relations.hostile(faction, occupancy.faction_at(pos))
    )
