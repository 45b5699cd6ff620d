"""Engine configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Immutable configuration for the tactical engine.

    Attributes:
        max_workers: ThreadPoolExecutor max workers for cache refresh.
        parallel_threshold: Minimum number of dirty units before a refresh
            fans out to the thread pool instead of computing inline.
        scale_heuristic: Scale the Manhattan heuristic by the cost table's
            minimum step cost.
        max_aggregates: Most danger-map aggregates a DangerCache keeps;
            the least recently used is dropped first.
    """

    max_workers: int = 4
    parallel_threshold: int = 8
    scale_heuristic: bool = True
    max_aggregates: int = 64

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.parallel_threshold < 1:
            raise ValueError(
                f"parallel_threshold must be >= 1, got {self.parallel_threshold}"
            )
        if self.max_aggregates < 1:
            raise ValueError(
                f"max_aggregates must be >= 1, got {self.max_aggregates}"
            )
