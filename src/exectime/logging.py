"""Logging setup for exectime.

Everything exectime logs goes through the ``exectime`` logger and its
children (``exectime.process``, ``exectime.harness``, ``exectime.config``).
Timing reports and comparison diffs are printed with ``click.echo`` and
never pass through here.

What ends up at each level:

- DEBUG: one line per iteration with its exit code and duration, the
  argv of every spawn, and how many reference bytes were loaded.  Shown
  with ``-v`` and always written to ``--log-file``.
- INFO: the default console threshold.  Nothing is logged at INFO, so a
  plain run shows the report plus any warnings.
- WARNING: ignored ``-i`` values, unknown leading options, bad profile
  values and ``--cmp-stdout`` with nothing to compare.  Still shown with
  ``-q``.
- ERROR: a profile or reference file that could not be used.  The run
  goes on without it.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "exectime"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"
# Iteration lines come from several modules; name them when they are shown.
_VERBOSE_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map the ``-v``/``-q`` flags to a console level; ``-v`` wins."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Attach exectime's handlers and return the ``exectime`` logger.

    The console handler writes to stderr so that stdout only carries the
    report.  With *log_file* every per-iteration DEBUG line is kept on disk
    regardless of ``-q``, which is the easiest way to see which iteration
    was slow.

    Calling this again replaces (and closes) the handlers from the previous
    call, so repeated ``main()`` invocations in one process do not log twice.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(console_level(verbose=verbose, quiet=quiet))
    console.setFormatter(
        logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT)
    )
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``exectime.<name>``, e.g. ``get_logger("harness")``."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
