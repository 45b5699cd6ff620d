"""UnitRoster - slot storage for unit stats with generational handles."""
from __future__ import annotations

from typing import Iterator

from tick_tactics.types import Faction, StaleHandleError, UnitHandle, UnitStats


class UnitRoster:
    """Stores UnitStats in reusable slots.

    Each slot carries a generation counter that is bumped when the slot is
    freed, so a handle to a departed unit never resolves to the unit that
    later reuses the slot.
    """

    def __init__(self) -> None:
        self._stats: list[UnitStats | None] = []
        self._generations: list[int] = []
        self._free: list[int] = []

    def spawn(self, stats: UnitStats) -> UnitHandle:
        if self._free:
            index = self._free.pop()
        else:
            index = len(self._stats)
            self._stats.append(None)
            self._generations.append(0)
        self._stats[index] = stats
        return UnitHandle(index, self._generations[index])

    def despawn(self, handle: UnitHandle) -> None:
        if not self.alive(handle):
            return
        self._stats[handle.index] = None
        self._generations[handle.index] += 1
        self._free.append(handle.index)

    def alive(self, handle: UnitHandle) -> bool:
        return (
            0 <= handle.index < len(self._stats)
            and self._generations[handle.index] == handle.generation
            and self._stats[handle.index] is not None
        )

    def get(self, handle: UnitHandle) -> UnitStats:
        if not self.alive(handle):
            raise StaleHandleError(handle, f"Unit {handle} is not alive")
        stats = self._stats[handle.index]
        assert stats is not None
        return stats

    def update(self, handle: UnitHandle, stats: UnitStats) -> None:
        if not self.alive(handle):
            raise StaleHandleError(
                handle, f"Cannot update stats of dead unit {handle}"
            )
        self._stats[handle.index] = stats

    def handles(self) -> list[UnitHandle]:
        """Live handles in slot order."""
        return [h for h, _ in self.items()]

    def items(self) -> Iterator[tuple[UnitHandle, UnitStats]]:
        for index, stats in enumerate(self._stats):
            if stats is not None:
                yield UnitHandle(index, self._generations[index]), stats

    def by_faction(self, faction: Faction) -> list[UnitHandle]:
        return [h for h, s in self.items() if s.faction == faction]

    def __len__(self) -> int:
        return len(self._stats) - len(self._free)

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, UnitHandle) and self.alive(handle)
