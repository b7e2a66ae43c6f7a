"""Direct feature edits (drag moves and resizes) and their timeline clamping."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from replan.models import Feature

from .bounds import clamp_move, clamp_resize
from .config import TimelineBounds
from .core import FeatureUpdate, end_from_duration, span_days, start_from_duration


class EditKind(str, Enum):
    """Kinds of direct date edits."""

    MOVE = "move"  # Shift the whole bar, duration preserved
    RESIZE_START = "resize_start"  # Drag the left edge, end fixed
    RESIZE_END = "resize_end"  # Drag the right edge, start fixed
    SET_DATES = "set_dates"  # Explicit start and end from a form


@dataclass
class FeatureEdit:
    """A direct edit to one feature's dates."""

    kind: EditKind
    start_date: date | None = None
    end_date: date | None = None
    duration: int | None = None

    @classmethod
    def move(cls, start_date: date) -> FeatureEdit:
        return cls(EditKind.MOVE, start_date=start_date)

    @classmethod
    def resize_start(cls, start_date: date) -> FeatureEdit:
        return cls(EditKind.RESIZE_START, start_date=start_date)

    @classmethod
    def resize_end(cls, end_date: date | None = None, duration: int | None = None) -> FeatureEdit:
        return cls(EditKind.RESIZE_END, end_date=end_date, duration=duration)

    @classmethod
    def set_dates(cls, start_date: date, end_date: date) -> FeatureEdit:
        return cls(EditKind.SET_DATES, start_date=start_date, end_date=end_date)


def resolve_edit(
    feature: Feature, edit: FeatureEdit, bounds: TimelineBounds | None = None
) -> FeatureUpdate:
    """Turn an edit into the feature's new dates.

    Moves keep the duration and are shifted back inside the timeline;
    resizes are capped at the timeline bounds. A feature is never shorter
    than one day.

    Raises:
        ValueError: If the edit lacks the date or duration its kind needs
    """
    if edit.kind == EditKind.MOVE:
        if edit.start_date is not None:
            start = edit.start_date
        elif edit.end_date is not None:
            start = start_from_duration(edit.end_date, feature.duration)
        else:
            raise ValueError("Move edit requires a start or end date")
        if bounds is not None:
            start, end = clamp_move(start, feature.duration, bounds)
        else:
            end = end_from_duration(start, feature.duration)
        return _update(feature.id, start, end)

    if edit.kind == EditKind.RESIZE_START:
        if edit.start_date is None:
            raise ValueError("Resize-start edit requires a start date")
        start, end = min(edit.start_date, feature.end_date), feature.end_date
    elif edit.kind == EditKind.RESIZE_END:
        start = feature.start_date
        if edit.end_date is not None:
            end = edit.end_date
        elif edit.duration is not None:
            end = end_from_duration(start, max(1, edit.duration))
        else:
            raise ValueError("Resize-end edit requires an end date or a duration")
        end = max(end, start)
    else:
        if edit.start_date is None or edit.end_date is None:
            raise ValueError("Set-dates edit requires both a start and an end date")
        start, end = edit.start_date, max(edit.end_date, edit.start_date)

    if bounds is not None:
        start, end = clamp_resize(start, end, bounds)
    return _update(feature.id, start, end)


def _update(feature_id: str, start: date, end: date) -> FeatureUpdate:
    return FeatureUpdate(
        id=feature_id, start_date=start, end_date=end, duration=span_days(start, end)
    )
