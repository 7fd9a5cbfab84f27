"""Child process execution with full output capture.

Runs one command as an isolated child, captures everything it writes to
standard output and standard error, and decodes its terminal status.

Both capture pipes are drained by short-lived worker threads while the
calling thread waits for the child to exit.  Reading only after the child
has exited deadlocks as soon as the child writes more than the kernel pipe
buffer holds, because the child blocks on write and never exits.
"""

from __future__ import annotations

import errno
import os
import shlex
import signal as _signal
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import BinaryIO, Sequence

from exectime.errors import ExecError, SpawnError, StreamError
from exectime.logging import get_logger

log = get_logger("process")

# Exit code reported when the child was terminated by a signal.
ABNORMAL_EXIT_CODE = -1

# Reported on ExecError; outside the 0-255 range a program can exit with.
EXEC_FAILURE_EXIT_CODE = 256

# errno values meaning "the child exists but the program image could not
# be loaded", as opposed to failing to create the child at all.
_EXEC_ERRNOS = frozenset(
    {
        errno.ENOENT,
        errno.EACCES,
        errno.EPERM,
        errno.ENOEXEC,
        errno.ENOTDIR,
        errno.ELOOP,
        errno.ENAMETOOLONG,
    }
)


# ---------------------------------------------------------------------------
# ExecutionResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExecutionResult:
    """Exit status and captured output of one child process."""

    exit_code: int
    stdout: bytes
    stderr: bytes

    @property
    def abnormal(self) -> bool:
        """True if the child did not exit normally (e.g. killed by a signal)."""
        return self.exit_code == ABNORMAL_EXIT_CODE


# ---------------------------------------------------------------------------
# Capture pipes
# ---------------------------------------------------------------------------


class _CapturePipe:
    """A private pipe: the child writes into it, the parent reads it to EOF."""

    def __init__(self, name: str) -> None:
        self.name = name
        try:
            read_fd, write_fd = os.pipe()
        except OSError as exc:
            raise StreamError(f"cannot create {name} pipe: {exc}") from exc
        try:
            self.reader: BinaryIO = os.fdopen(read_fd, "rb")
        except OSError as exc:
            os.close(read_fd)
            os.close(write_fd)
            raise StreamError(f"cannot open {name} pipe for reading: {exc}") from exc
        self._write_fd: int | None = write_fd

    @property
    def write_fd(self) -> int:
        if self._write_fd is None:
            raise StreamError(f"{self.name} pipe write end is already closed")
        return self._write_fd

    def close_write(self) -> None:
        """Close the parent's copy of the write end.

        Must happen right after the spawn, otherwise the reader never sees
        end-of-stream.
        """
        if self._write_fd is not None:
            os.close(self._write_fd)
            self._write_fd = None

    def drain(self) -> bytes:
        """Read until end-of-stream."""
        try:
            return self.reader.read()
        except (OSError, ValueError) as exc:
            raise StreamError(f"cannot read {self.name} of child: {exc}") from exc

    def close(self) -> None:
        self.close_write()
        self.reader.close()

    def __enter__(self) -> _CapturePipe:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def execute(command: Sequence[str], *, annotate_signals: bool = False) -> ExecutionResult:
    """Run *command* to completion and capture its output.

    Args:
        command: Program followed by its arguments.  The program is
            looked up on ``PATH`` when it contains no slash.
        annotate_signals: If True and the child is killed by a signal,
            append a ``killed by signal N (NAME)`` line to the captured
            stderr.

    Returns:
        ExecutionResult with the exit code (or :data:`ABNORMAL_EXIT_CODE`)
        and the complete stdout and stderr.

    Raises:
        ValueError: If *command* is empty.
        StreamError: If a capture pipe cannot be created or read.
        SpawnError: If the child process cannot be created.
        ExecError: If the target program cannot be executed.

    There is no timeout: a child that never exits blocks this call.
    """
    argv = list(command)
    if not argv:
        raise ValueError("command must not be empty")

    with _CapturePipe("stdout") as out, _CapturePipe("stderr") as err:
        proc = _spawn(argv, out.write_fd, err.write_fd)
        out.close_write()
        err.close_write()
        log.debug("Spawned pid %d: %s", proc.pid, shlex.join(argv))

        # Popen's context exit reaps the child on every path.
        with proc:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="exectime-drain") as pool:
                stdout_future = pool.submit(out.drain)
                stderr_future = pool.submit(err.drain)
                returncode = proc.wait()
                stdout = stdout_future.result()
                stderr = stderr_future.result()

    exit_code, stderr = _decode_status(returncode, stderr, annotate_signals)
    log.debug(
        "pid %d finished: exit code %d, %d bytes stdout, %d bytes stderr",
        proc.pid,
        exit_code,
        len(stdout),
        len(stderr),
    )
    return ExecutionResult(exit_code=exit_code, stdout=stdout, stderr=stderr)


def _spawn(argv: list[str], stdout_fd: int, stderr_fd: int) -> subprocess.Popen[bytes]:
    """Start the child with its stdout/stderr redirected to the given fds."""
    try:
        return subprocess.Popen(
            argv,
            stdout=stdout_fd,
            stderr=stderr_fd,
            close_fds=True,
        )
    except OSError as exc:
        if exc.errno in _EXEC_ERRNOS:
            raise ExecError(
                argv[0],
                exc.errno,
                exc.strerror or str(exc),
                EXEC_FAILURE_EXIT_CODE,
            ) from exc
        raise SpawnError(f"cannot spawn '{argv[0]}': {exc}") from exc


def _decode_status(returncode: int, stderr: bytes, annotate: bool) -> tuple[int, bytes]:
    """Map a Popen return code to (exit_code, stderr).

    Popen reports death by signal N as ``-N``.
    """
    if returncode >= 0:
        return returncode, stderr

    signum = -returncode
    log.debug("Child killed by signal %d (%s)", signum, signal_name(signum))
    if annotate:
        note = f"killed by signal {signum} ({signal_name(signum)})\n".encode()
        if stderr:
            stderr += b"\n"
        stderr += note
    return ABNORMAL_EXIT_CODE, stderr


def signal_name(signum: int) -> str:
    """Return the symbolic name of *signum*, e.g. ``SIGKILL``."""
    try:
        return _signal.Signals(signum).name
    except ValueError:
        return f"signal {signum}"
