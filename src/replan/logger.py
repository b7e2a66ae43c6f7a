"""Verbosity-aware logging for the reflow engine.

The engine never prints. It reports through one named logger with two
levels of its own, so the CLI's ``-v`` flag decides how much of a reflow
is narrated:

    -v 0  errors only
    -v 1  CHANGES: every date shift, duration expansion and track re-pin
    -v 2  CHECKS: every finish-to-start edge and bound the engine evaluates
    -v 3  DEBUG: traversal order, skipped features, pass counts
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

LOGGER_NAME = "replan"

CHANGES_LEVEL = 25  # Above INFO: a reflow's output, worth showing at -v 1
CHECKS_LEVEL = 15  # Below INFO: per-edge evaluations, noisy on large plans

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0
VERBOSITY_CHANGES = 1
VERBOSITY_CHECKS = 2
VERBOSITY_DEBUG = 3

_LEVEL_FOR_VERBOSITY = {
    VERBOSITY_SILENT: logging.ERROR,
    VERBOSITY_CHANGES: CHANGES_LEVEL,
    VERBOSITY_CHECKS: CHECKS_LEVEL,
    VERBOSITY_DEBUG: logging.DEBUG,
}


class ReplanLogger(logging.Logger):
    """Logger with one method per reflow narration level."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Report a value the reflow changed (a shift, an expansion, a clamp)."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Report a constraint the reflow evaluated, whether or not it held."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> ReplanLogger:
    """Get the engine's logger; configure it with setup_logger()."""
    logging.setLoggerClass(ReplanLogger)
    logger = logging.getLogger(LOGGER_NAME)
    assert isinstance(logger, ReplanLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Point the engine's logger at a stream with the given -v level.

    Safe to call repeatedly; each call replaces the previous handler.
    Values above 3 are treated as 3.

    Args:
        verbosity: 0=errors, 1=changes, 2=checks, 3=debug
        stream: Output stream, sys.stderr by default so stdout stays clean
            for reflow output and CSV export
    """
    logger = get_logger()
    logger.handlers.clear()
    level = _LEVEL_FOR_VERBOSITY[min(max(verbosity, VERBOSITY_SILENT), VERBOSITY_DEBUG)]
    logger.setLevel(level)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and return to errors-only (between CLI runs and tests)."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)


def is_silent() -> bool:
    """True when the reflow narrates nothing but errors."""
    return get_logger().level >= logging.ERROR


def changes_enabled() -> bool:
    """True when date shifts and expansions are reported (-v 1 and up)."""
    return get_logger().isEnabledFor(CHANGES_LEVEL)


def checks_enabled() -> bool:
    """True when every evaluated edge is reported (-v 2 and up)."""
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    """True when traversal details are reported (-v 3)."""
    return get_logger().isEnabledFor(logging.DEBUG)
