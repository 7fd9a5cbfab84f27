"""Command-line interface for exectime.

Usage::

    exectime [OPTIONS] COMMAND [ARGS]...

Everything from the first non-option argument on is the command to
measure, passed through verbatim.

Exit codes:
    0  success
    1  no command given
    2  output differs from the reference
    3  no timing measurements were produced
    4  the command could not be run (spawn, pipe or exec failure)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from exectime import __version__
from exectime.config import (
    config_from_profile,
    load_profile,
    load_reference_output,
    parse_iterations,
    validate_config,
)
from exectime.display import format_comparison_failure, format_report
from exectime.errors import ArgumentError, ProcessError
from exectime.harness import DEFAULT_ITERATIONS, TrialHarness
from exectime.logging import setup_logging

EXIT_OK = 0
EXIT_NO_COMMAND = 1
EXIT_MISMATCH = 2
EXIT_EMPTY_SAMPLE = 3
EXIT_EXEC_FAILURE = 4


def _split_unknown_flags(args: tuple[str, ...]) -> tuple[list[str], list[str]]:
    """Separate unrecognised leading options from the command.

    Click passes unknown options through as positional arguments; any that
    appear before the program name are not part of the command.
    """
    unknown: list[str] = []
    rest = list(args)
    while rest and rest[0].startswith("-") and rest[0] != "-":
        unknown.append(rest.pop(0))
    return unknown, rest


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
@click.version_option(version=__version__, prog_name="exectime")
@click.option(
    "-i",
    "iterations_raw",
    type=str,
    multiple=True,
    metavar="N",
    help=f"Number of iterations (default: {DEFAULT_ITERATIONS}). Invalid values are ignored.",
)
@click.option(
    "--cmp-stdout",
    "cmp_stdout",
    is_flag=True,
    default=False,
    help="Fail if any iteration's stdout differs from the first one.",
)
@click.option(
    "--ref-stdout",
    "ref_stdout",
    type=click.Path(path_type=Path),
    default=None,
    help="File holding the expected stdout of every iteration.",
)
@click.option("--color", is_flag=True, default=False, help="Colorized output.")
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="YAML profile with default settings.",
)
@click.option(
    "--annotate-signals",
    is_flag=True,
    default=False,
    help="Note in captured stderr when the command is killed by a signal.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every iteration.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def main(  # noqa: PLR0913
    iterations_raw: tuple[str, ...],
    cmp_stdout: bool,
    ref_stdout: Path | None,
    color: bool,
    profile_path: Path | None,
    annotate_signals: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
    command: tuple[str, ...],
) -> None:
    """Execute COMMAND repeatedly and measure the time it takes.

    \b
    Examples:
        exectime -i 20 sleep 0.1
        exectime -i 5 --cmp-stdout python3 script.py
        exectime -i 5 --ref-stdout=expected.txt ./tool --flag
    """
    log = setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    unknown, command_args = _split_unknown_flags(command)
    for flag in unknown:
        log.warning("Ignoring unknown option %s", flag)

    profile_data: dict[str, Any] = {}
    if profile_path is not None:
        try:
            profile_data = load_profile(profile_path)
        except ArgumentError as exc:
            log.error("%s", exc)

    iterations: int | None = None
    for raw in iterations_raw:
        fallback = iterations if iterations is not None else DEFAULT_ITERATIONS
        value, warning = parse_iterations(raw, fallback)
        if warning:
            log.warning("%s", warning)
        iterations = value

    cli_overrides: dict[str, Any] = {
        "command": command_args,
        "iterations": iterations,
        "compare_outputs": cmp_stdout,
        "reference_path": ref_stdout,
        "colorize": color,
        "annotate_signals": annotate_signals,
    }
    try:
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
    except ArgumentError as exc:
        log.error("%s; ignoring profile %s", exc, profile_path)
        config = config_from_profile({}, cli_overrides=cli_overrides)
    if config.reference_path is not None:
        config.reference_output = load_reference_output(config.reference_path)

    problems = validate_config(config)
    for p in problems:
        if p.severity == "warning":
            log.warning("%s", p.message)
    fatal = [p for p in problems if p.severity == "error"]
    if fatal:
        for p in fatal:
            click.echo(f"Error: {p.message}", err=True)
        click.echo("Try 'exectime --help' for usage.", err=True)
        raise SystemExit(EXIT_NO_COMMAND)

    harness = TrialHarness(
        config.command,
        config.iterations,
        compare_outputs=config.compare_outputs,
        reference_output=config.reference_output,
        annotate_signals=config.annotate_signals,
    )
    try:
        outcome = harness.run()
    except ProcessError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(EXIT_EXEC_FAILURE) from exc
    except KeyboardInterrupt:
        click.echo("\nInterrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    if not outcome.ok:
        if outcome.comparison_failure is not None:
            click.echo(
                format_comparison_failure(outcome.comparison_failure, colorize=config.colorize)
            )
            raise SystemExit(EXIT_MISMATCH)
        click.echo("Error: no timing measurements were produced.", err=True)
        raise SystemExit(EXIT_EMPTY_SAMPLE)

    click.echo()
    click.echo(format_report(outcome.statistics(), command=config.command, colorize=config.colorize))
