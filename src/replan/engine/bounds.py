"""Clamping of feature dates to the global timeline window."""

from datetime import date

from .config import TimelineBounds
from .core import end_from_duration, start_from_duration


def clamp_move(start: date, duration: int, bounds: TimelineBounds) -> tuple[date, date]:
    """Clamp a moved range, preserving its duration where possible.

    A range that crosses one bound is shifted back inside by moving the
    opposite edge along with it. A range longer than the window is capped to
    the window itself.

    Args:
        start: Proposed start date
        duration: Duration in days (>= 1)
        bounds: Timeline window

    Returns:
        Tuple of (start_date, end_date) inside the window
    """
    if duration >= bounds.length_days:
        return bounds.start, bounds.end

    end = end_from_duration(start, duration)
    if start < bounds.start:
        return bounds.start, end_from_duration(bounds.start, duration)
    if end > bounds.end:
        return start_from_duration(bounds.end, duration), bounds.end
    return start, end


def clamp_resize(start: date, end: date, bounds: TimelineBounds) -> tuple[date, date]:
    """Clamp a resized range by capping whichever edge crosses a bound.

    The duration shrinks instead of the range being shifted.

    Returns:
        Tuple of (start_date, end_date) inside the window, with end >= start
    """
    clamped_start = min(max(start, bounds.start), bounds.end)
    clamped_end = min(max(end, clamped_start), bounds.end)
    return clamped_start, clamped_end
