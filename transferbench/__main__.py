#!/usr/bin/env python3
"""
CLI entry point for the transfer benchmark.

Usage:
    python -m transferbench            # single comparison, 1000 records
    python -m transferbench 5000       # single comparison, 5000 records
    python -m transferbench benchmark  # sweep over all sizes
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from transferbench.config import BENCHMARK_SIZES, COOLDOWN_MS, parse_size
from transferbench.report import print_comparison, print_summary
from transferbench.session import BenchmarkConfig, BenchmarkSession

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the benchmark run."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def parse_size_argument(raw: str | None) -> int:
    """Record count from the CLI, read the same way the payload servers read it."""
    return parse_size(raw)


def create_progress_callback():
    """Create a rich progress bar callback and its cleanup function."""
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    )

    task_id = None
    started = False

    def callback(current: int, total: int, message: str) -> None:
        nonlocal task_id, started

        if not started:
            progress.start()
            task_id = progress.add_task(message, total=total)
            started = True
        else:
            progress.update(task_id, completed=current, description=message)

        if current >= total:
            progress.stop()

    return callback, lambda: progress.stop() if started else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare HTTP content-encoding against a zip attachment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Compare 1000 records
    python -m transferbench

    # Compare a given record count
    python -m transferbench 5000

    # Sweep over 100, 500, 1000, 5000 and 10000 records
    python -m transferbench benchmark

    # Write summary.json, report.html and a chart
    python -m transferbench benchmark -o ./results
        """,
    )

    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="'benchmark' for a sweep, otherwise the record count (default: 1000)",
    )

    parser.add_argument(
        "--encoded-url",
        default="",
        help="Base URL of the content-encoding server (default: $ENCODED_BASE_URL or http://localhost:3001)",
    )

    parser.add_argument(
        "--archive-url",
        default="",
        help="Base URL of the zip server (default: $ARCHIVE_BASE_URL or http://localhost:3002)",
    )

    parser.add_argument(
        "--cooldown-ms",
        type=int,
        default=COOLDOWN_MS,
        help=f"Pause between sizes in a sweep (default: {COOLDOWN_MS})",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=0.0,
        help="Per-request timeout in seconds (default: $REQUEST_TIMEOUT_S or 30)",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output directory for summary.json, report.html and charts",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the benchmark CLI."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose)

    sweep = args.target == "benchmark"
    config = BenchmarkConfig(
        sizes=BENCHMARK_SIZES if sweep else (parse_size_argument(args.target),),
        cooldown_ms=args.cooldown_ms if sweep else 0,
        encoded_base_url=args.encoded_url,
        archive_base_url=args.archive_url,
        timeout_s=args.timeout,
        output_dir=args.output,
    )

    console.rule("Compression Transfer Benchmark")
    console.print(f"  Encoded server: {config.encoded_base_url}")
    console.print(f"  Archive server: {config.archive_base_url}")
    console.print(f"  Sizes:          {', '.join(str(s) for s in config.sizes)}")
    if sweep:
        console.print(f"  Cooldown:       {config.cooldown_ms}ms")
    console.print(f"  Timeout:        {config.timeout_s}s")
    console.rule()

    progress_callback, cleanup = create_progress_callback() if sweep else (None, lambda: None)

    try:
        session = BenchmarkSession(config, progress_callback=progress_callback)

        summary = asyncio.run(session.run())
        cleanup()

        for row in summary.rows:
            print_comparison(row, console)
        console.print()
        if sweep:
            print_summary(summary, console)
        console.print(f"Wall clock time: {summary.wall_time_s:.2f}s")
        if config.output_dir is not None:
            console.print(f"Results saved to: {config.output_dir}")
            console.print(f"  - HTML Report:  {config.output_dir / 'report.html'}")
            console.print(f"  - Summary JSON: {config.output_dir / 'summary.json'}")
        return 0

    except KeyboardInterrupt:
        cleanup()
        console.print("\nBenchmark interrupted by user")
        return 130

    except Exception as e:
        cleanup()
        logging.exception("Benchmark failed with error")
        print(f"\nError: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
