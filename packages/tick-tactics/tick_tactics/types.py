"""Shared types, value objects and errors for tick-tactics."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

Position = tuple[int, int]
Faction = str

# Endpoints of one unit-length segment on the tile-corner lattice.
BorderEdge = tuple[Position, Position]


class TerrainKind(Enum):
    GROUND = "ground"
    FOREST = "forest"
    MOUNTAIN = "mountain"
    WATER = "water"
    ROAD = "road"
    WALL = "wall"


class MovementClass(Enum):
    INFANTRY = "infantry"
    CAVALRY = "cavalry"
    FLYING = "flying"
    ARMOR = "armor"


@dataclass(frozen=True)
class UnitStats:
    """Immutable per-query description of a unit.

    Attributes:
        position: Tile the unit currently stands on.
        movement: Movement budget per turn (must be >= 0).
        movement_class: Indexes the cost table.
        faction: Faction tag used for hostility checks.
        weapon_min: Minimum weapon range (Manhattan).
        weapon_max: Maximum weapon range (Manhattan, >= weapon_min).
    """

    position: Position
    movement: int
    movement_class: MovementClass
    faction: Faction
    weapon_min: int = 1
    weapon_max: int = 1

    def __post_init__(self) -> None:
        if self.movement < 0:
            raise ValueError(f"movement must be >= 0, got {self.movement}")
        if self.weapon_min < 0:
            raise ValueError(f"weapon_min must be >= 0, got {self.weapon_min}")
        if self.weapon_max < self.weapon_min:
            raise ValueError(
                f"weapon_max ({self.weapon_max}) must be >= "
                f"weapon_min ({self.weapon_min})"
            )

    def moved_to(self, position: Position) -> UnitStats:
        """Return a copy of these stats standing on *position*."""
        return UnitStats(
            position=position,
            movement=self.movement,
            movement_class=self.movement_class,
            faction=self.faction,
            weapon_min=self.weapon_min,
            weapon_max=self.weapon_max,
        )


@dataclass(frozen=True, slots=True)
class UnitHandle:
    """Generation-checked reference into a UnitRoster slot."""

    index: int
    generation: int


@dataclass(frozen=True)
class ThreatArea:
    """Tiles a unit (or group) can move onto versus only attack.

    ``move_tiles`` and ``attack_tiles`` are always disjoint.
    """

    move_tiles: frozenset[Position] = frozenset()
    attack_tiles: frozenset[Position] = frozenset()

    def __post_init__(self) -> None:
        overlap = self.move_tiles & self.attack_tiles
        if overlap:
            raise ValueError(
                f"move_tiles and attack_tiles overlap at {sorted(overlap)}"
            )

    @property
    def tiles(self) -> frozenset[Position]:
        """Every tile covered by the area, movable or attackable."""
        return self.move_tiles | self.attack_tiles

    def union(self, other: ThreatArea) -> ThreatArea:
        """Merge two areas, re-applying move/attack disjointness."""
        move = self.move_tiles | other.move_tiles
        attack = (self.attack_tiles | other.attack_tiles) - move
        return ThreatArea(move_tiles=move, attack_tiles=attack)

    __or__ = union

    def __bool__(self) -> bool:
        return bool(self.move_tiles or self.attack_tiles)


class MissingCostError(KeyError):
    """Raised when the cost table has no entry for a terrain/class pair."""

    def __init__(self, terrain: TerrainKind, movement_class: MovementClass) -> None:
        self.terrain = terrain
        self.movement_class = movement_class
        super().__init__(
            f"No step cost for terrain {terrain.name} and "
            f"movement class {movement_class.name}"
        )


class StaleHandleError(KeyError):
    """Raised when a UnitHandle refers to a departed or reused slot."""

    def __init__(self, handle: UnitHandle, message: str) -> None:
        self.handle = handle
        super().__init__(message)


def manhattan(a: Position, b: Position) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])
