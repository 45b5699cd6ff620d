"""TacticalGrid - bounded 2D tile map with sparse terrain storage."""
from __future__ import annotations

from tick_tactics.types import Position, TerrainKind, manhattan

# 4-neighborhood in a fixed order: east, west, south, north.
_DIRS_4 = [(1, 0), (-1, 0), (0, 1), (0, -1)]


class TacticalGrid:
    """Maps in-bounds positions to a TerrainKind.

    Only non-default tiles are stored. Unset positions report the default
    terrain. The grid is treated as read-only while queries run against it.
    Every write bumps ``version`` so caches can tell an edited grid apart.
    """

    def __init__(
        self,
        width: int,
        height: int,
        default: TerrainKind = TerrainKind.GROUND,
    ) -> None:
        if width < 1 or height < 1:
            raise ValueError(
                f"Grid dimensions must be >= 1, got {width}x{height}"
            )
        self._width = width
        self._height = height
        self._default = default
        self._tiles: dict[Position, TerrainKind] = {}
        self._version = 0

    # --- Properties ---

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def default(self) -> TerrainKind:
        """Terrain reported for unset positions."""
        return self._default

    @property
    def version(self) -> int:
        """Counter bumped by every terrain write."""
        return self._version

    def _check_bounds(self, pos: Position) -> None:
        if not self.in_bounds(pos):
            raise ValueError(
                f"{pos} out of bounds for {self._width}x{self._height} grid"
            )

    # --- Mutation ---

    def set(self, pos: Position, terrain: TerrainKind) -> None:
        """Set the terrain at a position. Setting the default removes it."""
        self._check_bounds(pos)
        if terrain == self._default:
            self._tiles.pop(pos, None)
        else:
            self._tiles[pos] = terrain
        self._version += 1

    def clear(self, pos: Position) -> None:
        """Reset a position to the default terrain."""
        if self._tiles.pop(pos, None) is not None:
            self._version += 1

    def copy(self) -> TacticalGrid:
        """Independent grid with the same size and terrain."""
        clone = TacticalGrid(self._width, self._height, self._default)
        clone._tiles = dict(self._tiles)
        return clone

    def fill(self, positions: list[Position], terrain: TerrainKind) -> None:
        for pos in positions:
            self.set(pos, terrain)

    def fill_rect(
        self,
        corner1: Position,
        corner2: Position,
        terrain: TerrainKind,
    ) -> None:
        """Fill a rectangle (inclusive) with a terrain kind."""
        x1, y1 = min(corner1[0], corner2[0]), min(corner1[1], corner2[1])
        x2, y2 = max(corner1[0], corner2[0]), max(corner1[1], corner2[1])
        for x in range(x1, x2 + 1):
            for y in range(y1, y2 + 1):
                self.set((x, y), terrain)

    # --- Queries ---

    def in_bounds(self, pos: Position) -> bool:
        x, y = pos
        return 0 <= x < self._width and 0 <= y < self._height

    def terrain(self, pos: Position) -> TerrainKind:
        """Terrain at an in-bounds position."""
        self._check_bounds(pos)
        return self._tiles.get(pos, self._default)

    def neighbors(self, pos: Position) -> list[Position]:
        x, y = pos
        result: list[Position] = []
        for dx, dy in _DIRS_4:
            n = (x + dx, y + dy)
            if self.in_bounds(n):
                result.append(n)
        return result

    def heuristic(self, a: Position, b: Position) -> float:
        return float(manhattan(a, b))

    def of_kind(self, terrain: TerrainKind) -> list[Position]:
        """Return all positions with the given terrain, in (x, y) order."""
        if terrain == self._default:
            return [p for p in self.tiles() if p not in self._tiles]
        return sorted(p for p, t in self._tiles.items() if t == terrain)

    def tiles(self) -> list[Position]:
        """Every in-bounds position, ordered by (x, y)."""
        return [
            (x, y) for x in range(self._width) for y in range(self._height)
        ]

    def terrain_kinds(self) -> frozenset[TerrainKind]:
        """Terrain kinds present anywhere on the grid."""
        kinds = set(self._tiles.values())
        if len(self._tiles) < self._width * self._height:
            kinds.add(self._default)
        return frozenset(kinds)
