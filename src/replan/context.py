"""Process-wide settings chosen on the command line."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class RunContext:
    """Options from the global CLI callback, visible to config discovery."""

    config_path: Path | None = None  # --config
    verbosity: int = 0  # --verbose


_current = RunContext()


def get_context() -> RunContext:
    """Get the current run context."""
    return _current


def get_config_path() -> Path | None:
    """Get the config path given with --config, if any."""
    return _current.config_path


def set_config_path(path: Path | None) -> None:
    """Set the config path given with --config."""
    _current.config_path = path


def reset() -> None:
    """Restore defaults (used between tests and CLI invocations)."""
    _current.config_path = None
    _current.verbosity = 0
