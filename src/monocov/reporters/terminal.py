"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from monocov.summary import AXES

if TYPE_CHECKING:
    from pathlib import Path

    from monocov.pipeline import MergeResult
    from monocov.summary import SummaryEntry
    from monocov.thresholds import ThresholdFailure

console = Console()

_HIGH_COVERAGE = 80.0
_MEDIUM_COVERAGE = 50.0


def _coverage_color(percentage: float) -> str:
    """Return a Rich color name for a coverage percentage."""
    if percentage >= _HIGH_COVERAGE:
        return "green"
    if percentage >= _MEDIUM_COVERAGE:
        return "yellow"
    return "red"


class CLIReporter:
    """Rich terminal output for merge runs."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_coverage_total(self, total: SummaryEntry) -> None:
        """Print the merged ``total`` scope as a table, one row per axis."""
        table = Table(title="Merged Coverage", title_style="bold cyan")
        table.add_column("Axis", style="bold")
        table.add_column("Covered", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Coverage", justify="right")

        for axis in AXES:
            metric = total.metric(axis)
            color = _coverage_color(metric.pct)
            table.add_row(
                axis.capitalize(),
                str(metric.covered),
                str(metric.total),
                str(metric.skipped),
                f"[{color}]{metric.pct:.1f}%[/{color}]",
            )

        self.console.print(table)

    def print_merge_result(self, result: MergeResult) -> None:
        """Print inputs, outputs and the merged totals of a run."""
        self.print_info(f"Summary inputs: {len(result.summary.inputs)}")
        for path in result.summary.inputs:
            self.print_info(f"  • {escape(_display_path(path, result.root))}")
        self.print_info(f"Lcov inputs: {len(result.lcov.inputs)}")
        for path in result.lcov.inputs:
            self.print_info(f"  • {escape(_display_path(path, result.root))}")

        self.console.print()
        self.print_coverage_total(result.summary.total)
        self.console.print()

        self.print_success(f"Wrote {escape(str(result.summary.output))}")
        self.print_success(f"Wrote {escape(str(result.lcov.output))}")

    def print_threshold_failures(self, failures: list[ThresholdFailure]) -> None:
        for failure in failures:
            self.print_error(failure.describe())


def _display_path(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


# Singleton instance for easy import
reporter = CLIReporter()
