"""
Report generation for benchmark results.
"""

from __future__ import annotations

import html
import json
import logging
import math
from pathlib import Path

from rich.console import Console
from rich.table import Table

from transferbench.encoding import MEASURED_VARIANTS
from transferbench.metrics import BenchmarkSummary, ComparisonResult, SkippedComparison

logger = logging.getLogger(__name__)


def format_ratio(ratio: float | None) -> str:
    if ratio is None or math.isnan(ratio):
        return "n/a"
    return f"{ratio * 100:.2f}%"


def format_percentage(value: float) -> str:
    if math.isnan(value):
        return "n/a"
    return f"{value:.2f}%"


def print_comparison(result: ComparisonResult | SkippedComparison, console: Console | None = None) -> None:
    """Print the detailed results of one comparison."""
    console = console or Console()

    if isinstance(result, SkippedComparison):
        console.print(f"[yellow]Size {result.size} skipped: {result.reason}[/yellow]")
        for failure in result.failures:
            console.print(f"  {failure.label}: {failure.kind} error ({failure.message})")
        return

    console.print(f"\n[bold]--- Results for {result.size} records ---[/bold]")
    for r in result.encoded_results:
        console.print(f"{r.label}:")
        console.print(f"  Transfer Size: {r.transfer_size:,} bytes")
        console.print(f"  Uncompressed Size: {r.uncompressed_size:,} bytes")
        console.print(f"  Compression Ratio: {format_ratio(r.compression_ratio)}")
        console.print(f"  Duration: {r.duration_ms}ms")
        console.print(f"  Content-Encoding: {r.content_encoding or 'none'}")
        console.print(f"  Content-Type: {r.content_type}")

    archive = result.archive_result
    console.print(f"\n{archive.label}:")
    console.print(f"  Transfer Size: {archive.transfer_size:,} bytes")
    console.print(f"  Duration: {archive.duration_ms}ms")
    console.print(f"  Content-Type: {archive.content_type}")

    for failure in result.failures:
        console.print(f"[yellow]{failure.label} missing: {failure.kind} error ({failure.message})[/yellow]")

    difference = result.size_difference()
    percentage = result.percentage_difference()
    console.print("\n[bold]--- Comparison ---[/bold]")
    console.print(f"Size difference: {difference:,} bytes")
    console.print(f"Percentage difference: {format_percentage(percentage)}")
    console.print(f"{result.winner_label} is {format_percentage(abs(percentage))} smaller")
    console.print(f"Time difference: {result.time_difference()}ms")
    console.print(f"Best: [green]{result.best.label}[/green] ({result.best.transfer_size:,} bytes)")


def build_summary_table(summary: BenchmarkSummary) -> Table:
    """One row per size, skipped sizes included."""
    table = Table(title="Benchmark Summary")
    table.add_column("Size", justify="right")
    for variant in MEASURED_VARIANTS:
        table.add_column(f"HTTP {variant.value}", justify="right")
    table.add_column("Manual ZIP", justify="right")
    table.add_column("Difference", justify="right")
    table.add_column("Winner")
    table.add_column("Best")

    for row in summary.rows:
        if isinstance(row, SkippedComparison):
            blanks = ["-"] * (len(MEASURED_VARIANTS) + 3)
            table.add_row(str(row.size), *blanks, f"skipped ({row.reason})")
            continue

        encoded_cells = []
        for variant in MEASURED_VARIANTS:
            r = row.encoded_by_variant(variant)
            encoded_cells.append(str(r.transfer_size) if r else "-")
        table.add_row(
            str(row.size),
            *encoded_cells,
            str(row.archive_result.transfer_size),
            format_percentage(row.percentage_difference()),
            row.winner_label,
            row.best.label,
        )
    return table


def print_summary(summary: BenchmarkSummary, console: Console | None = None) -> None:
    console = console or Console()
    console.print(build_summary_table(summary))
    if summary.cancelled:
        console.print("[yellow]Benchmark was cancelled before all sizes ran[/yellow]")


class ReportGenerator:
    """Generates benchmark report artifacts in an output directory."""

    def __init__(self, output_dir: Path, summary: BenchmarkSummary):
        self.output_dir = output_dir
        self.summary = summary

    def generate_all(self) -> None:
        """Generate all report artifacts."""
        logger.info("Generating benchmark reports...")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.generate_summary_json()
        self.generate_size_chart()
        self.generate_html_report()

        logger.info("Report generation complete")

    def generate_summary_json(self) -> None:
        """Write the summary to summary.json."""
        path = self.output_dir / "summary.json"
        with open(path, "w") as f:
            json.dump(self.summary.to_dict(), f, indent=2)
        logger.info(f"Wrote summary to {path}")

    def generate_size_chart(self) -> None:
        """Grouped bar chart of transfer size per leg for each payload size."""
        import matplotlib
        matplotlib.use("Agg")  # Non-interactive backend
        import matplotlib.pyplot as plt

        comparisons = self.summary.comparisons
        if not comparisons:
            logger.warning("No comparisons available for size chart")
            return

        series = []
        for variant in MEASURED_VARIANTS:
            legs = [c.encoded_by_variant(variant) for c in comparisons]
            series.append((variant.value, [leg.transfer_size if leg else 0 for leg in legs]))
        series.append(("zip", [c.archive_result.transfer_size for c in comparisons]))

        fig, ax = plt.subplots(figsize=(12, 6))
        width = 0.8 / len(series)
        for i, (name, values) in enumerate(series):
            positions = [x + i * width for x in range(len(comparisons))]
            ax.bar(positions, values, width, label=name)

        ax.set_xlabel("Records")
        ax.set_ylabel("Transfer size (bytes)")
        ax.set_title("Transfer Size by Strategy")
        ax.set_xticks([x + width * (len(series) - 1) / 2 for x in range(len(comparisons))])
        ax.set_xticklabels([str(c.size) for c in comparisons])
        ax.legend()

        plt.tight_layout()
        chart_path = self.output_dir / "charts" / "transfer_sizes.png"
        chart_path.parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(chart_path, dpi=150)
        plt.close(fig)
        logger.info(f"Saved size chart to {chart_path}")

    def generate_html_report(self) -> None:
        """Generate an HTML page with the summary table."""
        header_cells = "".join(f"<th>HTTP {v.value}</th>" for v in MEASURED_VARIANTS)
        rows = ""
        for row in self.summary.rows:
            if isinstance(row, SkippedComparison):
                rows += f"""
            <tr class="skipped">
                <td>{row.size}</td>
                <td colspan="{len(MEASURED_VARIANTS) + 4}">skipped: {html.escape(row.reason)}</td>
            </tr>
            """
                continue

            cells = ""
            for variant in MEASURED_VARIANTS:
                r = row.encoded_by_variant(variant)
                if r is None:
                    cells += "<td>-</td>"
                else:
                    cells += f"<td>{r.transfer_size:,} <small>({format_ratio(r.compression_ratio)})</small></td>"
            rows += f"""
            <tr>
                <td>{row.size}</td>
                {cells}
                <td>{row.archive_result.transfer_size:,}</td>
                <td>{format_percentage(row.percentage_difference())}</td>
                <td>{html.escape(row.winner_label)}</td>
                <td><strong>{html.escape(row.best.label)}</strong></td>
            </tr>
            """

        chart_exists = (self.output_dir / "charts" / "transfer_sizes.png").exists()
        chart = '<img src="charts/transfer_sizes.png" alt="Transfer sizes">' if chart_exists else ""

        page = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Benchmark Report - Compression Transfer</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 2rem; }}
        table {{ border-collapse: collapse; }}
        th, td {{ border: 1px solid #ccc; padding: 0.4rem 0.8rem; text-align: right; }}
        tr.skipped td {{ color: #b00; }}
        img {{ max-width: 100%; margin-top: 2rem; }}
    </style>
</head>
<body>
    <h1>Compression Transfer Benchmark</h1>
    <p>Started {self.summary.start_time:%Y-%m-%d %H:%M:%S}, wall time {self.summary.wall_time_s:.2f}s{" (cancelled)" if self.summary.cancelled else ""}</p>
    <table>
        <tr><th>Size</th>{header_cells}<th>Manual ZIP</th><th>Difference</th><th>Winner</th><th>Best</th></tr>
        {rows}
    </table>
    {chart}
</body>
</html>
"""
        path = self.output_dir / "report.html"
        with open(path, "w") as f:
            f.write(page)
        logger.info(f"Wrote HTML report to {path}")
