"""
Transfer benchmark: HTTP content-encoding versus a zip attachment.

This package fetches the same JSON payload with negotiated gzip/deflate/brotli
encoding and as a zip archive, and compares the bytes that cross the wire.

Usage:
    python -m transferbench
    python -m transferbench 5000
    python -m transferbench benchmark --output ./results
"""

from transferbench.timing import TimingRecord, TimingContext
from transferbench.encoding import EncodingVariant, negotiate_encoding
from transferbench.metrics import (
    TransferResult,
    TransferError,
    TransferOutcome,
    ComparisonResult,
    SkippedComparison,
    BenchmarkSummary,
    select_best,
)
from transferbench.client import TransferClient
from transferbench.session import BenchmarkConfig, BenchmarkSession, Comparator
from transferbench.report import ReportGenerator

__all__ = [
    # Timing primitives
    "TimingRecord",
    "TimingContext",
    # Content-coding
    "EncodingVariant",
    "negotiate_encoding",
    # Results
    "TransferResult",
    "TransferError",
    "TransferOutcome",
    "ComparisonResult",
    "SkippedComparison",
    "BenchmarkSummary",
    "select_best",
    # HTTP client
    "TransferClient",
    # Session management
    "BenchmarkConfig",
    "BenchmarkSession",
    "Comparator",
    # Reporting
    "ReportGenerator",
]
