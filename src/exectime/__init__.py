"""exectime — run a command repeatedly and report timing statistics."""

__version__ = "0.1.0"
