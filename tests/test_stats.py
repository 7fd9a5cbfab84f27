"""Tests for exectime.stats — descriptive statistics over durations."""

from __future__ import annotations

import math
import random
import unittest

from exectime.stats import (
    NORMAL_DISTRIBUTION_PCT,
    SampleStatistics,
    calculate,
)


class TestCalculateKnownValues(unittest.TestCase):
    """Known-value tests."""

    def test_one_to_five(self) -> None:
        stats = calculate([1, 2, 3, 4, 5])
        self.assertEqual(stats.sample_size, 5)
        self.assertAlmostEqual(stats.average, 3.0)
        self.assertAlmostEqual(stats.variance, 2.0)
        self.assertAlmostEqual(stats.standard_deviation, 1.41421, places=5)
        self.assertAlmostEqual(stats.median, 3.0)
        self.assertAlmostEqual(stats.minimum, 1.0)
        self.assertAlmostEqual(stats.maximum, 5.0)
        self.assertAlmostEqual(stats.range, 4.0)

    def test_two_values(self) -> None:
        stats = calculate([2, 4])
        self.assertAlmostEqual(stats.median, 3.0)
        self.assertAlmostEqual(stats.average, 3.0)
        self.assertAlmostEqual(stats.variance, 1.0)
        self.assertAlmostEqual(stats.standard_deviation, 1.0)

    def test_population_variance(self) -> None:
        """Divisor is n, not n-1."""
        stats = calculate([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
        self.assertAlmostEqual(stats.average, 5.0)
        self.assertAlmostEqual(stats.variance, 4.0)
        self.assertAlmostEqual(stats.standard_deviation, 2.0)

    def test_standard_error(self) -> None:
        stats = calculate([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
        self.assertAlmostEqual(stats.standard_error, 2.0 / math.sqrt(8))
        self.assertAlmostEqual(stats.relative_standard_error, 2.0 / math.sqrt(8) / 5.0 * 100)

    def test_even_median(self) -> None:
        stats = calculate([10, 1, 7, 3])
        self.assertAlmostEqual(stats.median, 5.0)

    def test_single_value(self) -> None:
        stats = calculate([42])
        self.assertEqual(stats.sample_size, 1)
        self.assertAlmostEqual(stats.median, 42.0)
        self.assertAlmostEqual(stats.standard_deviation, 0.0)
        self.assertAlmostEqual(stats.standard_error, 0.0)
        self.assertEqual(stats.within_1_sigma, 1)

    def test_nanosecond_scale(self) -> None:
        sample = [1_000_000_000, 1_000_000_200, 1_000_000_400]
        stats = calculate(sample)
        self.assertAlmostEqual(stats.average, 1_000_000_200.0)
        self.assertAlmostEqual(stats.median, 1_000_000_200.0)


class TestCalculateEdgeCases(unittest.TestCase):
    """Empty samples, zero averages, caller's order."""

    def test_empty_sample_is_zeroed(self) -> None:
        stats = calculate([])
        self.assertEqual(stats, SampleStatistics())
        for value in stats.to_dict().values():
            self.assertFalse(math.isnan(value))
            self.assertEqual(value, 0)

    def test_zero_average_rse_is_100(self) -> None:
        stats = calculate([0, 0, 0])
        self.assertEqual(stats.average, 0.0)
        self.assertEqual(stats.relative_standard_error, 100.0)

    def test_input_not_mutated(self) -> None:
        sample = [5, 1, 4, 2, 3]
        calculate(sample)
        self.assertEqual(sample, [5, 1, 4, 2, 3])

    def test_unsorted_input(self) -> None:
        stats = calculate([5.0, 1.0, 3.0, 2.0, 4.0])
        self.assertAlmostEqual(stats.minimum, 1.0)
        self.assertAlmostEqual(stats.maximum, 5.0)
        self.assertAlmostEqual(stats.median, 3.0)

    def test_identical_values(self) -> None:
        stats = calculate([7, 7, 7, 7])
        self.assertAlmostEqual(stats.standard_deviation, 0.0)
        self.assertEqual(stats.within_1_sigma, 4)
        self.assertEqual(stats.within_3_sigma, 4)

    def test_ordering_invariant_random_samples(self) -> None:
        rng = random.Random(1234)
        for _ in range(200):
            n = rng.randint(1, 40)
            sample = [rng.randint(0, 10**9) for _ in range(n)]
            stats = calculate(sample)
            self.assertLessEqual(stats.minimum, stats.median)
            self.assertLessEqual(stats.median, stats.maximum)
            self.assertGreaterEqual(stats.standard_deviation, 0.0)
            self.assertLessEqual(stats.within_1_sigma, stats.within_2_sigma)
            self.assertLessEqual(stats.within_2_sigma, stats.within_3_sigma)
            self.assertLessEqual(stats.within_3_sigma, stats.sample_size)


class TestSigmaBands(unittest.TestCase):
    """Tests for sigma-band occupancy."""

    def test_counts_one_to_five(self) -> None:
        # sd = sqrt(2): 1 sigma covers 2..4, 2 sigma covers everything.
        stats = calculate([1, 2, 3, 4, 5])
        self.assertEqual(stats.within_1_sigma, 3)
        self.assertEqual(stats.within_2_sigma, 5)
        self.assertEqual(stats.within_3_sigma, 5)

    def test_outlier_outside_two_sigma(self) -> None:
        stats = calculate([10] * 20 + [100])
        self.assertEqual(stats.within_1_sigma, 20)
        self.assertEqual(stats.within_2_sigma, 20)
        self.assertEqual(stats.within_3_sigma, 20)

    def test_sigma_bands_report_expected_pct(self) -> None:
        bands = calculate([1, 2, 3, 4, 5]).sigma_bands()
        self.assertEqual([b.k for b in bands], [1, 2, 3])
        self.assertEqual([b.expected_pct for b in bands], [68.27, 95.45, 99.73])
        self.assertAlmostEqual(bands[0].observed_pct, 60.0)
        self.assertAlmostEqual(bands[1].observed_pct, 100.0)

    def test_sigma_bands_empty(self) -> None:
        bands = SampleStatistics().sigma_bands()
        self.assertEqual([b.count for b in bands], [0, 0, 0])
        self.assertEqual([b.observed_pct for b in bands], [0.0, 0.0, 0.0])

    def test_normal_distribution_constants(self) -> None:
        self.assertEqual(sorted(NORMAL_DISTRIBUTION_PCT), [1, 2, 3])


class TestSampleStatistics(unittest.TestCase):
    def test_one_sigma_interval(self) -> None:
        stats = calculate([2, 4])
        self.assertEqual(stats.one_sigma_interval, (2.0, 4.0))
        # Both values sit exactly on the band edges and are counted.
        self.assertEqual(stats.within_1_sigma, 2)

    def test_to_dict(self) -> None:
        d = calculate([1, 2, 3, 4, 5]).to_dict()
        self.assertEqual(d["sample_size"], 5)
        self.assertEqual(d["standard_deviation"], round(math.sqrt(2), 6))
        self.assertEqual(d["within_1_sigma"], 3)
        self.assertIn("relative_standard_error", d)


if __name__ == "__main__":
    unittest.main()
