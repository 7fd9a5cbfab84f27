"""Trial harness: timed, sequential invocations of one command.

Each iteration runs the command through :func:`exectime.process.execute`
and records the elapsed time between a monotonic timestamp taken just
before the call and one taken just after it.  Iterations never overlap.

When output comparison is active, every trial's stdout is checked
byte-for-byte against a reference (an external one, or the stdout of the
first trial).  The first mismatch stops the run; nothing after it is
executed and no statistics are produced.

Errors raised by the process runner are not caught here: one failed spawn
aborts the whole run.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from exectime.errors import ComparisonMismatch, EmptySampleError
from exectime.logging import get_logger
from exectime.process import ExecutionResult, execute
from exectime.stats import SampleStatistics, calculate

log = get_logger("harness")

DEFAULT_ITERATIONS = 1


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Trial:
    """One timed invocation of the target command."""

    elapsed_ns: int
    result: ExecutionResult


@dataclass(frozen=True)
class ComparisonFailure:
    """The first trial whose stdout differed from the reference."""

    expected: bytes
    actual: bytes
    iteration: int  # 1-based


@dataclass
class TrialProgress:
    """Progress info passed to the callback after each trial."""

    iteration: int  # 1-based
    total_iterations: int
    elapsed_ns: int
    exit_code: int


# Type alias for the progress callback.
ProgressCallback = Any  # Callable[[TrialProgress], None] | None


@dataclass
class HarnessResult:
    """Outcome of a harness run."""

    sample: list[int] = field(default_factory=list)  # elapsed ns, execution order
    trials_run: int = 0
    comparison_failure: ComparisonFailure | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def empty_sample(self) -> bool:
        """True if no durations were recorded and no comparison failed."""
        return self.comparison_failure is None and not self.sample

    @property
    def ok(self) -> bool:
        return self.comparison_failure is None and bool(self.sample)

    def statistics(self) -> SampleStatistics:
        """Compute statistics over the sample.

        Raises:
            ComparisonMismatch: If the run stopped on an output mismatch.
            EmptySampleError: If no durations were recorded.
        """
        failure = self.comparison_failure
        if failure is not None:
            raise ComparisonMismatch(failure.expected, failure.actual, failure.iteration)
        if not self.sample:
            raise EmptySampleError("no timing measurements were produced")
        return calculate(self.sample)


# ---------------------------------------------------------------------------
# Iteration count
# ---------------------------------------------------------------------------


def normalize_iterations(value: object) -> tuple[int, str | None]:
    """Validate an iteration count.

    Returns:
        ``(value, None)`` if *value* is an int >= 1, otherwise
        ``(DEFAULT_ITERATIONS, warning)``.
    """
    if isinstance(value, int) and not isinstance(value, bool) and value >= 1:
        return value, None
    return DEFAULT_ITERATIONS, (
        f"Invalid iteration count {value!r}; must be an integer >= 1. "
        f"Using {DEFAULT_ITERATIONS}."
    )


# ---------------------------------------------------------------------------
# TrialHarness
# ---------------------------------------------------------------------------


class TrialHarness:
    """Runs a command a number of times and collects its durations.

    Usage::

        harness = TrialHarness(["sleep", "0.1"], iterations=10)
        result = harness.run()
        stats = result.statistics()
    """

    def __init__(
        self,
        command: Sequence[str],
        iterations: int = DEFAULT_ITERATIONS,
        *,
        compare_outputs: bool = False,
        reference_output: bytes | None = None,
        annotate_signals: bool = False,
        progress_callback: ProgressCallback = None,
        clock: Callable[[], int] = time.perf_counter_ns,
    ) -> None:
        self.command = tuple(command)
        self.iterations = iterations
        self.compare_outputs = compare_outputs
        self.reference_output = reference_output
        self.annotate_signals = annotate_signals
        self.progress: Any = progress_callback
        self._clock = clock

    @property
    def comparison_active(self) -> bool:
        return self.compare_outputs or self.reference_output is not None

    def run(self) -> HarnessResult:
        """Execute all iterations.

        Returns:
            HarnessResult with the duration sample, or with a
            comparison failure if the run stopped early.

        Raises:
            ValueError: If the command is empty.
            SpawnError, StreamError, ExecError: Propagated from the
                process runner.
        """
        if not self.command:
            raise ValueError("command must not be empty")

        outcome = HarnessResult()
        iterations, warning = normalize_iterations(self.iterations)
        if warning is not None:
            log.warning("%s", warning)
            outcome.warnings.append(warning)

        reference = self.reference_output
        comparing = self.comparison_active

        for index in range(1, iterations + 1):
            log.debug("Iteration %d/%d", index, iterations)
            trial = self._run_trial()
            outcome.trials_run += 1
            log.debug(
                "Execution completed with code %d, took %.3fms",
                trial.result.exit_code,
                trial.elapsed_ns / 1e6,
            )

            if comparing:
                actual = trial.result.stdout
                if reference is None:
                    reference = actual
                elif actual != reference:
                    log.debug("Output of iteration %d differs from the reference", index)
                    outcome.comparison_failure = ComparisonFailure(
                        expected=reference,
                        actual=actual,
                        iteration=index,
                    )
                    break

            outcome.sample.append(trial.elapsed_ns)
            if self.progress is not None:
                self.progress(
                    TrialProgress(
                        iteration=index,
                        total_iterations=iterations,
                        elapsed_ns=trial.elapsed_ns,
                        exit_code=trial.result.exit_code,
                    )
                )

        return outcome

    def _run_trial(self) -> Trial:
        start = self._clock()
        result = execute(self.command, annotate_signals=self.annotate_signals)
        end = self._clock()
        return Trial(elapsed_ns=end - start, result=result)


def run_trials(
    command: Sequence[str],
    iterations: int = DEFAULT_ITERATIONS,
    *,
    compare_outputs: bool = False,
    reference_output: bytes | None = None,
    annotate_signals: bool = False,
    progress_callback: ProgressCallback = None,
) -> HarnessResult:
    """Convenience wrapper: build a :class:`TrialHarness` and run it."""
    return TrialHarness(
        command,
        iterations,
        compare_outputs=compare_outputs,
        reference_output=reference_output,
        annotate_signals=annotate_signals,
        progress_callback=progress_callback,
    ).run()
