"""Terminal formatting for exectime reports.

Durations are stored in nanoseconds and shown with adaptive units.
Color is applied with ``click.style`` only when requested.
"""

from __future__ import annotations

import math
import shlex
from typing import Sequence

import click

from exectime.harness import ComparisonFailure
from exectime.stats import SampleStatistics

PROGRAM_NAME = "exectime"

_LABEL_WIDTH = 12


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------


def format_time_ns(ns: float, precision: int = 3) -> str:
    """Format a duration given in nanoseconds with adaptive units."""
    if math.isnan(ns):
        return "N/A"
    magnitude = abs(ns)
    if magnitude < 1_000:
        return f"{ns:.0f}ns"
    if magnitude < 1_000_000:
        return f"{ns / 1_000:.{precision}f}µs"
    if magnitude < 1_000_000_000:
        return f"{ns / 1_000_000:.{precision}f}ms"
    seconds = ns / 1_000_000_000
    if magnitude < 60_000_000_000:
        return f"{seconds:.{precision}f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m{seconds % 60:.{precision}f}s"


def format_pct(value: float, precision: int = 2) -> str:
    """Format a percentage."""
    if math.isnan(value):
        return "N/A"
    return f"{value:.{precision}f}%"


def _rse_color(rse: float) -> str:
    if rse < 1:
        return "green"
    if rse < 5:
        return "yellow"
    return "red"


def _decode(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


def format_report(
    stats: SampleStatistics,
    *,
    command: Sequence[str],
    colorize: bool = False,
) -> str:
    """Format the statistics of a completed run.

    Args:
        stats: Statistics over the duration sample, in nanoseconds.
        command: The command that was measured.
        colorize: Whether to emit ANSI colors.

    Returns:
        Formatted string for terminal output.
    """

    def label(text: str) -> str:
        padded = f"  {text:<{_LABEL_WIDTH}}"
        return click.style(padded, bold=True) if colorize else padded

    def accent(text: str, color: str) -> str:
        return click.style(text, fg=color) if colorize else text

    low, high = stats.one_sigma_interval
    lines: list[str] = [
        f"{PROGRAM_NAME}: {shlex.join(command)}",
        f"{label('iterations')}{stats.sample_size}",
        (
            f"{label('range')}{format_time_ns(stats.minimum)} - "
            f"{format_time_ns(stats.maximum)} ({format_time_ns(stats.range)})"
        ),
        f"{label('average')}{accent(format_time_ns(stats.average), 'cyan')}",
        f"{label('median')}{format_time_ns(stats.median)}",
        f"{label('variance')}{stats.variance / 1e12:.6f}ms²",
        (
            f"{label('std dev')}{format_time_ns(stats.standard_deviation)} "
            f"({format_time_ns(low)} - {format_time_ns(high)})"
        ),
    ]

    for band in stats.sigma_bands():
        observed = f"{band.count}/{stats.sample_size} ({format_pct(band.observed_pct)})"
        if colorize and band.observed_pct < band.expected_pct:
            observed = accent(observed, "yellow")
        lines.append(
            f"{label(f'within {band.k}σ')}{observed}, "
            f"normal {format_pct(band.expected_pct)}"
        )

    lines.append(f"{label('std error')}{format_time_ns(stats.standard_error)}")
    rse = format_pct(stats.relative_standard_error)
    lines.append(f"{label('rel. error')}{accent(rse, _rse_color(stats.relative_standard_error))}")
    return "\n".join(lines)


def format_comparison_failure(failure: ComparisonFailure, *, colorize: bool = False) -> str:
    """Format an output mismatch with both payloads for diagnosis."""

    def heading(text: str, color: str) -> str:
        return click.style(text, fg=color, bold=True) if colorize else text

    lines = [
        f"{PROGRAM_NAME}: output of iteration {failure.iteration} differs from the reference",
        heading("--- expected", "green"),
        _decode(failure.expected).rstrip("\n"),
        heading("+++ actual", "red"),
        _decode(failure.actual).rstrip("\n"),
    ]
    return "\n".join(lines)
