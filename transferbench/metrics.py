"""
Result records for transfer measurements and their comparison.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Iterable, Union

from transferbench.encoding import EncodingVariant

ARCHIVE_LABEL = "Manual ZIP"


def encoded_label(variant: EncodingVariant) -> str:
    """Label of the content-encoding leg for a variant."""
    return f"HTTP Compression ({variant.value})"


@dataclass(frozen=True)
class TransferResult:
    """One HTTP round-trip as seen on the wire."""

    label: str
    transfer_size: int  # bytes received, before any decoding
    duration_ms: int
    encoding_variant: EncodingVariant
    uncompressed_size: int | None = None
    content_length: str | None = None
    content_encoding: str | None = None
    content_type: str | None = None

    @property
    def compression_ratio(self) -> float | None:
        """Share of the decoded payload saved on the wire.

        None when the decoded size is unknown, NaN when it is zero. Negative
        when the encoded body came out larger than the payload.
        """
        if self.uncompressed_size is None:
            return None
        if self.uncompressed_size == 0:
            return math.nan
        return 1 - self.transfer_size / self.uncompressed_size

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["encoding_variant"] = self.encoding_variant.value
        data["compression_ratio"] = _json_float(self.compression_ratio)
        return data


@dataclass(frozen=True)
class TransferError:
    """A measurement that produced no result."""

    label: str
    url: str
    encoding_variant: EncodingVariant
    kind: str  # "transport" or "http_status"
    message: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["encoding_variant"] = self.encoding_variant.value
        return data


TransferOutcome = Union[TransferResult, TransferError]


def select_best(results: Iterable[TransferResult]) -> TransferResult:
    """Smallest transfer size; the first one wins a tie."""
    best: TransferResult | None = None
    for result in results:
        if best is None or result.transfer_size < best.transfer_size:
            best = result
    if best is None:
        raise ValueError("select_best() needs at least one result")
    return best


@dataclass(frozen=True)
class ComparisonResult:
    """Encoded legs against the archive leg for one payload size."""

    size: int
    encoded_results: tuple[TransferResult, ...]
    archive_result: TransferResult
    best: TransferResult
    failures: tuple[TransferError, ...] = ()

    @classmethod
    def build(
        cls,
        size: int,
        encoded_results: Iterable[TransferResult],
        archive_result: TransferResult,
        failures: Iterable[TransferError] = (),
    ) -> ComparisonResult:
        encoded = tuple(encoded_results)
        return cls(
            size=size,
            encoded_results=encoded,
            archive_result=archive_result,
            best=select_best((*encoded, archive_result)),
            failures=tuple(failures),
        )

    @property
    def primary(self) -> TransferResult:
        """The first encoded leg, used for the headline comparison."""
        return self.encoded_results[0]

    def encoded_by_variant(self, variant: EncodingVariant) -> TransferResult | None:
        for result in self.encoded_results:
            if result.encoding_variant == variant:
                return result
        return None

    def size_difference(self, result: TransferResult | None = None) -> int:
        """Encoded transfer size minus archive transfer size, in bytes."""
        result = result or self.primary
        return result.transfer_size - self.archive_result.transfer_size

    def percentage_difference(self, result: TransferResult | None = None) -> float:
        """Size difference as a percentage of the encoded transfer size."""
        result = result or self.primary
        if result.transfer_size == 0:
            return math.nan
        return self.size_difference(result) / result.transfer_size * 100

    def time_difference(self, result: TransferResult | None = None) -> int:
        """Encoded duration minus archive duration, in milliseconds."""
        result = result or self.primary
        return result.duration_ms - self.archive_result.duration_ms

    @property
    def winner_label(self) -> str:
        """Smaller side of the headline comparison; a tie goes to the encoded leg."""
        if self.size_difference() > 0:
            return self.archive_result.label
        return self.primary.label

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "encoded_results": [
                {
                    **r.to_dict(),
                    "size_difference": self.size_difference(r),
                    "percentage_difference": _json_float(self.percentage_difference(r)),
                    "time_difference": self.time_difference(r),
                }
                for r in self.encoded_results
            ],
            "archive_result": self.archive_result.to_dict(),
            "winner": self.winner_label,
            "best": self.best.label,
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass(frozen=True)
class SkippedComparison:
    """A payload size for which no comparison could be built."""

    size: int
    reason: str
    failures: tuple[TransferError, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "reason": self.reason,
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass
class BenchmarkSummary:
    """Per-size outcomes of a benchmark sweep, in request order."""

    sizes: tuple[int, ...]
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    rows: list[ComparisonResult | SkippedComparison] = field(default_factory=list)
    cancelled: bool = False

    def add(self, outcome: ComparisonResult | SkippedComparison) -> None:
        self.rows.append(outcome)

    @property
    def comparisons(self) -> list[ComparisonResult]:
        return [row for row in self.rows if isinstance(row, ComparisonResult)]

    @property
    def skipped(self) -> list[SkippedComparison]:
        return [row for row in self.rows if isinstance(row, SkippedComparison)]

    @property
    def wall_time_s(self) -> float:
        """Total wall clock time in seconds."""
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "sizes": list(self.sizes),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "wall_time_s": self.wall_time_s,
            "cancelled": self.cancelled,
            "comparisons": [c.to_dict() for c in self.comparisons],
            "skipped": [s.to_dict() for s in self.skipped],
        }


def _json_float(value: float | None) -> float | None:
    # JSON has no NaN
    if value is None or math.isnan(value):
        return None
    return value
