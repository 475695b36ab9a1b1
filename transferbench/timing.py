"""
Wall-clock timing for HTTP round-trips.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class TimingRecord:
    """A single timing measurement."""

    name: str
    start_ns: int
    end_ns: int
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ns(self) -> int:
        """Duration in nanoseconds."""
        return self.end_ns - self.start_ns

    @property
    def duration_ms(self) -> int:
        """Duration in whole milliseconds."""
        return self.duration_ns // 1_000_000


class TimingContext:
    """Context manager for timing code blocks.

    The record is available after the block exits, whether or not it raised.

    Usage:
        with TimingContext("gzip", url=url) as timing:
            # code to time
            pass
        print(timing.record.duration_ms)
    """

    def __init__(self, name: str, **metadata: Any):
        self.name = name
        self.metadata = metadata
        self._start_ns: int = 0
        self._record: TimingRecord | None = None

    def __enter__(self) -> TimingContext:
        self._start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        end_ns = time.perf_counter_ns()
        self._record = TimingRecord(
            name=self.name,
            start_ns=self._start_ns,
            end_ns=end_ns,
            metadata=self.metadata,
        )

    @property
    def record(self) -> TimingRecord | None:
        """Get the timing record after context exit."""
        return self._record
