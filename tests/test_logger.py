"""Tests for the verbosity-aware logger."""

import io

from replan.engine import ReflowConfig, TimelineBounds, unified_reflow
from replan.logger import (
    changes_enabled,
    checks_enabled,
    debug_enabled,
    get_logger,
    is_silent,
    setup_logger,
)
from tests.conftest import day, edges, feature, snapshot


class TestVerbosityLevels:
    """Test which messages each verbosity level shows."""

    def test_silent_by_default(self) -> None:
        setup_logger(0, io.StringIO())
        assert is_silent()
        assert not changes_enabled()

    def test_changes_level(self) -> None:
        stream = io.StringIO()
        setup_logger(1, stream)

        logger = get_logger()
        logger.changes("moved")
        logger.checks("checked")

        assert changes_enabled()
        assert not checks_enabled()
        assert stream.getvalue() == "moved\n"

    def test_checks_level(self) -> None:
        stream = io.StringIO()
        setup_logger(2, stream)

        logger = get_logger()
        logger.checks("checked")
        logger.debug("detail")

        assert checks_enabled()
        assert not debug_enabled()
        assert stream.getvalue() == "checked\n"

    def test_debug_level(self) -> None:
        setup_logger(3, io.StringIO())
        assert debug_enabled()

    def test_reflow_reports_cascade(self) -> None:
        """At verbosity 1 a reflow reports every shifted feature."""
        stream = io.StringIO()
        setup_logger(1, stream)

        unified_reflow(snapshot([feature("F1", 1, 8), feature("F2", 6, 10)], edges("F1 -> F2")))

        assert "Cascade: 'F2'" in stream.getvalue()

    def test_verbosity_above_debug_is_debug(self) -> None:
        setup_logger(7, io.StringIO())
        assert debug_enabled()

    def test_reflow_reports_timeline_clamp(self) -> None:
        stream = io.StringIO()
        setup_logger(1, stream)
        config = ReflowConfig(timeline=TimelineBounds(start=day(1), end=day(40)))

        unified_reflow(snapshot([feature("F1", -4, 2)]), config=config)

        assert "Clamp: 'F1'" in stream.getvalue()
