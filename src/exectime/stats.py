"""Descriptive statistics over a sample of trial durations.

All spread measures use the population variance (divisor ``n``), so
``standard_error`` is consistent with ``standard_deviation``.  An empty
sample yields a zeroed record instead of NaN or an exception, because "no
data" is still something the caller has to report on.

The sigma bands count how many measurements fall within k standard
deviations of the mean; the reporter puts them next to what a normal
distribution would give (68.27%, 95.45%, 99.73%).
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Sequence

# Share of a normal distribution within +-k standard deviations, in percent.
NORMAL_DISTRIBUTION_PCT: dict[int, float] = {
    1: 68.27,
    2: 95.45,
    3: 99.73,
}

# Reported instead of dividing by a zero average.
ZERO_AVERAGE_RSE = 100.0


# ---------------------------------------------------------------------------
# SampleStatistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SigmaBand:
    """Occupancy of the interval ``[average - k*sd, average + k*sd]``."""

    k: int
    count: int
    observed_pct: float
    expected_pct: float


@dataclass(frozen=True)
class SampleStatistics:
    """Summary statistics for a sample of durations."""

    sample_size: int = 0
    minimum: float = 0.0
    maximum: float = 0.0
    range: float = 0.0
    average: float = 0.0
    median: float = 0.0
    variance: float = 0.0  # population variance
    standard_deviation: float = 0.0
    standard_error: float = 0.0
    relative_standard_error: float = 0.0  # percent of the average
    within_1_sigma: int = 0
    within_2_sigma: int = 0
    within_3_sigma: int = 0

    def sigma_bands(self) -> list[SigmaBand]:
        """Sigma-band counts alongside the normal-distribution expectation."""
        counts = {
            1: self.within_1_sigma,
            2: self.within_2_sigma,
            3: self.within_3_sigma,
        }
        bands = []
        for k, count in counts.items():
            observed = count / self.sample_size * 100 if self.sample_size else 0.0
            bands.append(
                SigmaBand(
                    k=k,
                    count=count,
                    observed_pct=observed,
                    expected_pct=NORMAL_DISTRIBUTION_PCT[k],
                )
            )
        return bands

    @property
    def one_sigma_interval(self) -> tuple[float, float]:
        """The ``average +- standard_deviation`` interval."""
        return (
            self.average - self.standard_deviation,
            self.average + self.standard_deviation,
        )

    def to_dict(self) -> dict[str, float | int]:
        """Serialize to a dict with rounded values."""
        return {
            "sample_size": self.sample_size,
            "minimum": round(self.minimum, 6),
            "maximum": round(self.maximum, 6),
            "range": round(self.range, 6),
            "average": round(self.average, 6),
            "median": round(self.median, 6),
            "variance": round(self.variance, 6),
            "standard_deviation": round(self.standard_deviation, 6),
            "standard_error": round(self.standard_error, 6),
            "relative_standard_error": round(self.relative_standard_error, 6),
            "within_1_sigma": self.within_1_sigma,
            "within_2_sigma": self.within_2_sigma,
            "within_3_sigma": self.within_3_sigma,
        }


# ---------------------------------------------------------------------------
# Calculation
# ---------------------------------------------------------------------------


def calculate(sample: Sequence[float]) -> SampleStatistics:
    """Compute descriptive statistics for *sample*.

    The input is copied before sorting; the caller's order is left alone.

    Args:
        sample: Non-negative durations in any unit.

    Returns:
        SampleStatistics.  All fields are zero for an empty sample.
    """
    if not sample:
        return SampleStatistics()

    sorted_v = sorted(sample)
    n = len(sorted_v)

    average = float(statistics.fmean(sorted_v))
    variance = float(statistics.pvariance(sorted_v, mu=average))
    sd = math.sqrt(variance)
    se = sd / math.sqrt(n)
    if average == 0:
        rse = ZERO_AVERAGE_RSE
    else:
        rse = se / average * 100

    return SampleStatistics(
        sample_size=n,
        minimum=float(sorted_v[0]),
        maximum=float(sorted_v[-1]),
        range=float(sorted_v[-1] - sorted_v[0]),
        average=average,
        median=_median(sorted_v),
        variance=variance,
        standard_deviation=sd,
        standard_error=se,
        relative_standard_error=rse,
        within_1_sigma=_count_within(sorted_v, average, sd),
        within_2_sigma=_count_within(sorted_v, average, 2 * sd),
        within_3_sigma=_count_within(sorted_v, average, 3 * sd),
    )


def _median(sorted_values: list[float]) -> float:
    """Middle element, or the mean of the two middle elements.

    Assumes sorted_values is sorted and non-empty.
    """
    n = len(sorted_values)
    mid = n // 2
    if n % 2:
        return float(sorted_values[mid])
    return (sorted_values[mid - 1] + sorted_values[mid]) / 2


def _count_within(values: list[float], center: float, radius: float) -> int:
    """Count values in the closed interval ``[center - radius, center + radius]``."""
    low = center - radius
    high = center + radius
    return sum(1 for v in values if low <= v <= high)
