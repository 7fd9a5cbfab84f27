"""Run configuration and YAML profile loading.

Handles:
- Validating the ``-i`` iteration count (bad values warn and fall back).
- Loading run profiles from YAML files.
- Merging command-line options over profile defaults.
- Reading the reference output file for ``--ref-stdout``.
- Validating the final configuration before execution.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from exectime.errors import ArgumentError
from exectime.harness import DEFAULT_ITERATIONS
from exectime.logging import get_logger

log = get_logger("config")


# ---------------------------------------------------------------------------
# RunConfig
# ---------------------------------------------------------------------------


@dataclass
class RunConfig:
    """Resolved configuration for one exectime run."""

    command: tuple[str, ...] = ()
    iterations: int = DEFAULT_ITERATIONS

    # Output consistency
    compare_outputs: bool = False
    reference_path: Path | None = None
    reference_output: bytes | None = None

    # Presentation and diagnostics
    colorize: bool = False
    annotate_signals: bool = False


# ---------------------------------------------------------------------------
# Iteration count
# ---------------------------------------------------------------------------


def parse_iterations(raw: object, fallback: int = DEFAULT_ITERATIONS) -> tuple[int, str | None]:
    """Parse an iteration count from the command line or a profile.

    Returns:
        ``(count, None)`` for an integer >= 1, otherwise
        ``(fallback, warning)``.
    """
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        try:
            value = int(raw.strip())
        except ValueError:
            value = None
    else:
        value = None

    if value is None or value < 1:
        return fallback, (
            f"Ignoring iteration count {raw!r}: expected an integer >= 1, using {fallback}."
        )
    return value, None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: RunConfig) -> list[ValidationError]:
    """Validate a run configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if not config.command:
        errors.append(ValidationError(field="command", message="No command given."))

    if config.reference_path is not None and config.reference_output is None:
        errors.append(
            ValidationError(
                field="reference_path",
                message=(
                    f"Reference output {config.reference_path} could not be read; "
                    "it will not be used."
                ),
                severity="warning",
            )
        )

    if config.compare_outputs and config.reference_output is None and config.iterations < 2:
        errors.append(
            ValidationError(
                field="compare_outputs",
                message=(
                    "--cmp-stdout with a single iteration has nothing to compare; "
                    "use -i to run more iterations."
                ),
                severity="warning",
            )
        )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a run profile from a YAML file.

    Profile format::

        command: ["python3", "-c", "print('hi')"]   # or a shell-style string
        iterations: 20
        cmp_stdout: true
        ref_stdout: expected.txt
        color: false

    Returns:
        The parsed YAML as a dict.

    Raises:
        ArgumentError: If the file cannot be read or is not a YAML mapping.
    """
    try:
        text = profile_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ArgumentError(f"Cannot read profile {profile_path}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ArgumentError(f"Invalid YAML in profile {profile_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ArgumentError(f"Profile must be a YAML mapping, got {type(data).__name__}")
    return data


def _profile_command(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        try:
            return tuple(shlex.split(value))
        except ValueError as exc:
            raise ArgumentError(f"Cannot parse profile 'command' {value!r}: {exc}") from exc
    if isinstance(value, list) and all(isinstance(v, (str, int, float)) for v in value):
        return tuple(str(v) for v in value)
    raise ArgumentError(
        f"Profile 'command' must be a string or a list of strings, got {type(value).__name__}"
    )


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> RunConfig:
    """Build a RunConfig from a parsed profile and command-line values.

    Command-line values take precedence when they are set (non-empty
    command, non-None iterations, flags that are True, a reference path).

    Args:
        profile_data: Parsed YAML profile dict (may be empty).
        cli_overrides: Dict of CLI option values.  Keys match RunConfig
            field names.

    Returns:
        RunConfig with the reference output not yet loaded.
    """
    cli = cli_overrides or {}

    command = tuple(cli.get("command") or ()) or _profile_command(profile_data.get("command"))

    iterations = DEFAULT_ITERATIONS
    if "iterations" in profile_data:
        iterations, warning = parse_iterations(profile_data["iterations"], iterations)
        if warning:
            log.warning("Profile: %s", warning)
    if cli.get("iterations") is not None:
        iterations = cli["iterations"]

    ref = cli.get("reference_path") or profile_data.get("ref_stdout")
    if ref is not None and not isinstance(ref, (str, Path)):
        raise ArgumentError(
            f"Profile 'ref_stdout' must be a file path, got {type(ref).__name__}"
        )

    return RunConfig(
        command=command,
        iterations=iterations,
        compare_outputs=bool(cli.get("compare_outputs") or profile_data.get("cmp_stdout", False)),
        reference_path=Path(ref) if ref else None,
        colorize=bool(cli.get("colorize") or profile_data.get("color", False)),
        annotate_signals=bool(
            cli.get("annotate_signals") or profile_data.get("annotate_signals", False)
        ),
    )


# ---------------------------------------------------------------------------
# Reference output
# ---------------------------------------------------------------------------


def load_reference_output(path: Path) -> bytes | None:
    """Read the expected stdout from *path*.

    Read failures are logged and return None; they never abort the run.
    """
    try:
        data = path.read_bytes()
    except OSError as exc:
        log.error("Cannot read reference output %s: %s", path, exc)
        return None
    log.debug("Loaded %d bytes of reference output from %s", len(data), path)
    return data
