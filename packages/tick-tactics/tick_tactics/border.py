"""Boundary-edge extraction for outlining tile regions."""
from __future__ import annotations

from typing import Iterable

from tick_tactics.types import BorderEdge, Position


def extract_border(region: Iterable[Position]) -> list[BorderEdge]:
    """Return the unit-length lattice edges that bound *region*.

    Tile (x, y) spans corners (x, y) to (x + 1, y + 1). An edge is emitted
    for every side whose neighbor tile is not in the region, so a region
    with holes or several blobs yields several closed loops. Edges are not
    stitched into polygons; the list is sorted for reproducibility.
    """
    tiles = frozenset(region)
    edges: list[BorderEdge] = []
    for x, y in tiles:
        if (x, y - 1) not in tiles:
            edges.append(((x, y), (x + 1, y)))
        if (x, y + 1) not in tiles:
            edges.append(((x, y + 1), (x + 1, y + 1)))
        if (x - 1, y) not in tiles:
            edges.append(((x, y), (x, y + 1)))
        if (x + 1, y) not in tiles:
            edges.append(((x + 1, y), (x + 1, y + 1)))
    edges.sort()
    return edges
