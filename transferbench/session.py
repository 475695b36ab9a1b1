"""
Benchmark session orchestrator.

Runs the content-encoding legs and the archive leg for each payload size, one
request at a time, and collects the comparisons into a summary.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

import httpx

from transferbench.config import (
    BENCHMARK_SIZES,
    COOLDOWN_MS,
    get_archive_base_url,
    get_encoded_base_url,
    get_request_timeout,
)
from transferbench.client import TransferClient
from transferbench.encoding import MEASURED_VARIANTS
from transferbench.metrics import (
    BenchmarkSummary,
    ComparisonResult,
    SkippedComparison,
    TransferError,
    TransferResult,
)

logger = logging.getLogger(__name__)


@dataclass
class BenchmarkConfig:
    """Configuration for a benchmark run."""

    sizes: tuple[int, ...] = BENCHMARK_SIZES
    cooldown_ms: int = COOLDOWN_MS
    encoded_base_url: str = ""
    archive_base_url: str = ""
    timeout_s: float = 0.0

    # Report artifacts are only written when an output directory is set
    output_dir: Path | None = None

    def __post_init__(self) -> None:
        """Fill environment defaults and normalise values."""
        self.sizes = tuple(int(s) for s in self.sizes)
        if not self.sizes:
            raise ValueError("At least one payload size is required")
        if self.cooldown_ms < 0:
            raise ValueError(f"cooldown_ms must be >= 0, got {self.cooldown_ms}")

        self.encoded_base_url = (self.encoded_base_url or get_encoded_base_url()).rstrip("/")
        self.archive_base_url = (self.archive_base_url or get_archive_base_url()).rstrip("/")
        self.timeout_s = self.timeout_s or get_request_timeout()
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)

    def encoded_url(self, size: int) -> str:
        return f"{self.encoded_base_url}/data/{size}"

    def archive_url(self, size: int) -> str:
        return f"{self.archive_base_url}/data/{size}"


class Comparator:
    """Measures every leg for one payload size and reduces them to a comparison."""

    def __init__(self, client: TransferClient, config: BenchmarkConfig):
        self.client = client
        self.config = config

    async def compare(self, size: int) -> ComparisonResult | SkippedComparison:
        """Run all legs for `size` in order: each encoded variant, then the archive.

        A lost encoded leg is dropped; without the archive leg or without any
        encoded leg there is nothing to compare and a SkippedComparison comes back.
        """
        logger.info(f"=== Comparing transfer sizes for {size} records ===")

        encoded_url = self.config.encoded_url(size)
        encoded: list[TransferResult] = []
        failures: list[TransferError] = []

        for variant in MEASURED_VARIANTS:
            logger.info(f"Measuring HTTP compression ({variant.value})...")
            outcome = await self.client.measure_encoded(encoded_url, variant)
            if isinstance(outcome, TransferError):
                failures.append(outcome)
            else:
                encoded.append(outcome)

        logger.info("Measuring manual zip...")
        archive = await self.client.measure_archive(self.config.archive_url(size))
        if isinstance(archive, TransferError):
            failures.append(archive)
            return SkippedComparison(size, "archive leg failed", tuple(failures))
        if not encoded:
            return SkippedComparison(size, "all encoded legs failed", tuple(failures))

        result = ComparisonResult.build(size, encoded, archive, failures)
        self._log_comparison(result)
        return result

    def _log_comparison(self, result: ComparisonResult) -> None:
        difference = result.size_difference()
        percentage = result.percentage_difference()
        logger.info(
            f"Size {result.size}: {result.primary.label} vs {result.archive_result.label}: "
            f"difference={difference:,} bytes ({percentage:.2f}%), "
            f"time difference={result.time_difference()}ms, "
            f"{result.winner_label} is {abs(percentage):.2f}% smaller; best={result.best.label}"
        )


class BenchmarkSession:
    """Manages a benchmark sweep over the configured payload sizes.

    Orchestrates:
    - One comparison per size, strictly in order
    - A cooldown after every size so runs never overlap on the servers
    - Report generation when an output directory is configured
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        progress_callback: Callable[[int, int, str], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize benchmark session.

        Args:
            config: Benchmark configuration
            progress_callback: Optional callback for progress updates.
                              Called with (current, total, message).
            transport: Optional httpx transport, used instead of the network
        """
        self.config = config
        self.transport = transport
        self._progress_callback = progress_callback

    def _report_progress(self, current: int, total: int, message: str) -> None:
        """Report progress if callback is set."""
        if self._progress_callback:
            self._progress_callback(current, total, message)

    def setup(self) -> logging.Handler | None:
        """Create the output directory and log to a file inside it."""
        if self.config.output_dir is None:
            return None

        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        (self.config.output_dir / "charts").mkdir(exist_ok=True)
        (self.config.output_dir / "logs").mkdir(exist_ok=True)

        log_path = self.config.output_dir / "logs" / "benchmark.log"
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logging.getLogger().addHandler(file_handler)
        return file_handler

    async def run(self, cancel_event: asyncio.Event | None = None) -> BenchmarkSummary:
        """Execute the full sweep.

        Args:
            cancel_event: When set, the sweep stops before the next size or
                          during a cooldown and the partial summary is returned.

        Returns:
            BenchmarkSummary with one row per size that ran.
        """
        file_handler = self.setup()
        try:
            return await self._run(cancel_event)
        finally:
            if file_handler is not None:
                logging.getLogger().removeHandler(file_handler)
                file_handler.close()

    async def _run(self, cancel_event: asyncio.Event | None) -> BenchmarkSummary:
        summary = BenchmarkSummary(sizes=self.config.sizes)
        total = len(self.config.sizes)
        logger.info(f"Starting benchmark at {summary.start_time}")

        async with TransferClient(self.config.timeout_s, self.transport) as client:
            if cancel_event is None or not cancel_event.is_set():
                await self._check_servers(client)
            comparator = Comparator(client, self.config)

            for i, size in enumerate(self.config.sizes):
                if cancel_event is not None and cancel_event.is_set():
                    summary.cancelled = True
                    break

                self._report_progress(i, total, f"Comparing {size} records")
                outcome = await comparator.compare(size)
                summary.add(outcome)
                if isinstance(outcome, SkippedComparison):
                    logger.warning(f"Skipped size {size}: {outcome.reason}")

                self._report_progress(i + 1, total, f"Cooling down after {size} records")
                if await self._cooldown(cancel_event):
                    summary.cancelled = True
                    break

        summary.end_time = datetime.now()
        logger.info(f"Benchmark completed at {summary.end_time}")
        if summary.cancelled:
            logger.warning(f"Benchmark cancelled after {len(summary.rows)} of {total} sizes")

        if self.config.output_dir is not None:
            self._generate_reports(summary)
        return summary

    async def _check_servers(self, client: TransferClient) -> None:
        """Warn up front about a payload server that is not answering."""
        for name, base_url in (
            ("Encoded", self.config.encoded_base_url),
            ("Archive", self.config.archive_base_url),
        ):
            if not await client.health_check(base_url):
                logger.warning(f"{name} server at {base_url} is not responding to /health")

    async def _cooldown(self, cancel_event: asyncio.Event | None) -> bool:
        """Pause between sizes. Returns True if cancelled while waiting."""
        delay = self.config.cooldown_ms / 1000
        if cancel_event is None:
            await asyncio.sleep(delay)
            return False
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    def _generate_reports(self, summary: BenchmarkSummary) -> None:
        """Generate all output reports."""
        from transferbench.report import ReportGenerator

        ReportGenerator(self.config.output_dir, summary).generate_all()
        logger.info(f"Reports generated in {self.config.output_dir}")
