"""Exception hierarchy for exectime.

Process-level failures (:class:`SpawnError`, :class:`StreamError`,
:class:`ExecError`) abort a whole run.  :class:`ComparisonMismatch` and
:class:`EmptySampleError` are terminal outcomes of the trial harness that
the CLI maps to their own exit codes.
"""

from __future__ import annotations


class ExectimeError(Exception):
    """Base class for all exectime errors."""


class ArgumentError(ExectimeError):
    """A command-line argument or profile value could not be used."""


# ---------------------------------------------------------------------------
# Process runner errors
# ---------------------------------------------------------------------------


class ProcessError(ExectimeError):
    """The target command could not be run to completion."""


class SpawnError(ProcessError):
    """The child process could not be created."""


class StreamError(ProcessError):
    """A capture pipe could not be created or read."""


class ExecError(ProcessError):
    """The child was created but the target program could not be executed.

    Attributes:
        program: The program that failed to start.
        errno: OS error number reported by the spawn primitive.
        exit_code: Sentinel outside the 0-255 range so reporters never
            confuse it with an exit code of the target program.
    """

    def __init__(self, program: str, errno: int | None, message: str, exit_code: int) -> None:
        super().__init__(f"cannot execute '{program}': {message}")
        self.program = program
        self.errno = errno
        self.exit_code = exit_code


# ---------------------------------------------------------------------------
# Harness outcomes
# ---------------------------------------------------------------------------


class ComparisonMismatch(ExectimeError):
    """Standard output of a trial differed from the reference output."""

    def __init__(self, expected: bytes, actual: bytes, iteration: int) -> None:
        super().__init__(f"output of iteration {iteration} differs from the reference output")
        self.expected = expected
        self.actual = actual
        self.iteration = iteration


class EmptySampleError(ExectimeError):
    """No timing measurements were produced."""
