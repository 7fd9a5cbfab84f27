"""Tests for exectime.display — report formatting."""

from __future__ import annotations

import unittest

from exectime.display import (
    format_comparison_failure,
    format_pct,
    format_report,
    format_time_ns,
)
from exectime.harness import ComparisonFailure
from exectime.stats import calculate


class TestFormatTime(unittest.TestCase):
    def test_nanoseconds(self) -> None:
        self.assertEqual(format_time_ns(512), "512ns")

    def test_microseconds(self) -> None:
        self.assertEqual(format_time_ns(1_500), "1.500µs")

    def test_milliseconds(self) -> None:
        self.assertEqual(format_time_ns(12_345_678), "12.346ms")

    def test_seconds(self) -> None:
        self.assertEqual(format_time_ns(2_500_000_000), "2.500s")

    def test_minutes(self) -> None:
        self.assertEqual(format_time_ns(90_000_000_000, precision=1), "1m30.0s")

    def test_nan(self) -> None:
        self.assertEqual(format_time_ns(float("nan")), "N/A")

    def test_negative_interval_bound(self) -> None:
        self.assertEqual(format_time_ns(-2_000_000), "-2.000ms")


class TestFormatPct(unittest.TestCase):
    def test_pct(self) -> None:
        self.assertEqual(format_pct(68.27), "68.27%")
        self.assertEqual(format_pct(float("nan")), "N/A")


class TestFormatReport(unittest.TestCase):
    def setUp(self) -> None:
        ms = 1_000_000
        self.stats = calculate([1 * ms, 2 * ms, 3 * ms, 4 * ms, 5 * ms])

    def test_all_fields_present(self) -> None:
        text = format_report(self.stats, command=["sleep", "0.1"])
        self.assertIn("exectime: sleep 0.1", text)
        for label in (
            "iterations",
            "range",
            "average",
            "median",
            "variance",
            "std dev",
            "within 1σ",
            "within 2σ",
            "within 3σ",
            "std error",
            "rel. error",
        ):
            self.assertIn(label, text)

    def test_values(self) -> None:
        text = format_report(self.stats, command=["x"])
        self.assertIn("1.000ms - 5.000ms (4.000ms)", text)
        self.assertIn("3.000ms", text)
        self.assertIn("2.000000ms²", text)
        self.assertIn("1.414ms (1.586ms - 4.414ms)", text)
        self.assertIn("3/5 (60.00%), normal 68.27%", text)
        self.assertIn("5/5 (100.00%), normal 95.45%", text)
        self.assertIn("632.456µs", text)
        self.assertIn("21.08%", text)

    def test_plain_output_has_no_ansi(self) -> None:
        text = format_report(self.stats, command=["x"])
        self.assertNotIn("\x1b[", text)

    def test_colorized_output(self) -> None:
        text = format_report(self.stats, command=["x"], colorize=True)
        self.assertIn("\x1b[", text)

    def test_command_quoting(self) -> None:
        text = format_report(self.stats, command=["sh", "-c", "echo hi"])
        self.assertIn("sh -c 'echo hi'", text)


class TestFormatComparisonFailure(unittest.TestCase):
    def test_both_payloads_shown(self) -> None:
        failure = ComparisonFailure(expected=b"hello\n", actual=b"goodbye\n", iteration=2)
        text = format_comparison_failure(failure)
        self.assertIn("iteration 2", text)
        self.assertIn("hello", text)
        self.assertIn("goodbye", text)
        self.assertLess(text.index("hello"), text.index("goodbye"))

    def test_invalid_utf8(self) -> None:
        failure = ComparisonFailure(expected=b"\xff", actual=b"ok", iteration=1)
        text = format_comparison_failure(failure)
        self.assertIn("�", text)


if __name__ == "__main__":
    unittest.main()
