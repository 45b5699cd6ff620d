"""tick-tactics - Grid reachability, threat and danger overlays."""
from __future__ import annotations

from tick_tactics.battlefield import Battlefield
from tick_tactics.border import extract_border
from tick_tactics.config import EngineConfig
from tick_tactics.costs import BLOCKED, CostTable
from tick_tactics.danger import DangerCache, merge_areas
from tick_tactics.engine import TacticalEngine
from tick_tactics.grid import TacticalGrid
from tick_tactics.occupancy import NEUTRAL, FactionRelations, OccupancySnapshot
from tick_tactics.reachability import ReachabilityResult, search
from tick_tactics.roster import UnitRoster
from tick_tactics.threat import ring_offsets, targets_in, threat_area
from tick_tactics.types import (
    BorderEdge,
    Faction,
    MissingCostError,
    MovementClass,
    Position,
    StaleHandleError,
    TerrainKind,
    ThreatArea,
    UnitHandle,
    UnitStats,
)

__all__ = [
    "BLOCKED",
    "NEUTRAL",
    "Battlefield",
    "BorderEdge",
    "CostTable",
    "DangerCache",
    "EngineConfig",
    "Faction",
    "FactionRelations",
    "MissingCostError",
    "MovementClass",
    "OccupancySnapshot",
    "Position",
    "ReachabilityResult",
    "StaleHandleError",
    "TacticalEngine",
    "TacticalGrid",
    "TerrainKind",
    "ThreatArea",
    "UnitHandle",
    "UnitRoster",
    "UnitStats",
    "extract_border",
    "merge_areas",
    "ring_offsets",
    "search",
    "targets_in",
    "threat_area",
]
