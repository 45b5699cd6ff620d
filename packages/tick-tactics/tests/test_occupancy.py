"""Tests for OccupancySnapshot and FactionRelations."""
from __future__ import annotations

from tick_tactics.occupancy import NEUTRAL, FactionRelations, OccupancySnapshot
from tick_tactics.types import MovementClass, UnitStats


class TestFactionRelations:
    def test_same_faction_not_hostile(self) -> None:
        rel = FactionRelations()
        assert not rel.hostile("blue", "blue")

    def test_different_factions_hostile(self) -> None:
        rel = FactionRelations()
        assert rel.hostile("blue", "red")
        assert rel.hostile("red", "blue")

    def test_neutral_never_hostile(self) -> None:
        rel = FactionRelations()
        assert rel.is_neutral(NEUTRAL)
        assert not rel.hostile("blue", NEUTRAL)
        assert not rel.hostile(NEUTRAL, "red")

    def test_custom_neutrals(self) -> None:
        rel = FactionRelations(neutral=["villagers"])
        assert not rel.hostile("blue", "villagers")
        assert rel.hostile("blue", NEUTRAL)

    def test_alliances_symmetric(self) -> None:
        rel = FactionRelations(alliances=[("blue", "green")])
        assert rel.allied("green", "blue")
        assert not rel.hostile("blue", "green")
        assert not rel.hostile("green", "blue")
        assert rel.hostile("green", "red")


class TestOccupancySnapshot:
    def test_empty(self) -> None:
        occ = OccupancySnapshot()
        assert occ.faction_at((0, 0)) is None
        assert len(occ) == 0

    def test_faction_at(self) -> None:
        occ = OccupancySnapshot({(1, 2): "red"})
        assert occ.faction_at((1, 2)) == "red"
        assert occ.faction_at((2, 1)) is None

    def test_source_mapping_copied(self) -> None:
        source = {(0, 0): "blue"}
        occ = OccupancySnapshot(source)
        source[(1, 1)] = "red"
        assert occ.faction_at((1, 1)) is None

    def test_from_units(self) -> None:
        units = [
            UnitStats((0, 0), 2, MovementClass.INFANTRY, "blue"),
            UnitStats((3, 1), 2, MovementClass.CAVALRY, "red"),
        ]
        occ = OccupancySnapshot.from_units(units)
        assert occ.occupied() == {(0, 0), (3, 1)}
        assert occ.faction_at((3, 1)) == "red"

    def test_changed(self) -> None:
        before = OccupancySnapshot({(0, 0): "blue", (2, 2): "red", (4, 4): "red"})
        after = OccupancySnapshot({(0, 1): "blue", (2, 2): "red", (4, 4): "blue"})
        assert before.changed(after) == {(0, 0), (0, 1), (4, 4)}
        assert after.changed(before) == before.changed(after)

    def test_changed_identical_is_empty(self) -> None:
        occ = OccupancySnapshot({(0, 0): "blue"})
        assert occ.changed(OccupancySnapshot({(0, 0): "blue"})) == frozenset()

    def test_equality_and_hash(self) -> None:
        a = OccupancySnapshot({(0, 0): "blue"})
        b = OccupancySnapshot({(0, 0): "blue"})
        assert a == b
        assert hash(a) == hash(b)
        assert a != OccupancySnapshot({(0, 0): "red"})
