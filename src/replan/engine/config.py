"""Configuration classes for the reflow engine."""

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_TIMELINE_START = date(2024, 1, 1)
DEFAULT_TIMELINE_END = date(2030, 12, 31)


class ReflowMode(str, Enum):
    """How the orchestrator treats features with predecessors."""

    PUSH = "push"  # Only push successors later when a constraint is violated
    TIGHT = "tight"  # Snap chained features to max(predecessor end) + 1


class TimelineBounds(BaseModel):
    """The fixed calendar window every feature must stay inside."""

    start: date = DEFAULT_TIMELINE_START
    end: date = DEFAULT_TIMELINE_END

    def model_post_init(self, __context: Any) -> None:
        """Validate configuration after initialization."""
        if self.start > self.end:
            raise ValueError(
                f"timeline.start ({self.start}) must not be after timeline.end ({self.end})"
            )

    @property
    def length_days(self) -> int:
        """Number of days in the window (inclusive)."""
        return (self.end - self.start).days + 1


class ReflowConfig(BaseModel):
    """Configuration for the reflow engine."""

    mode: ReflowMode = ReflowMode.PUSH
    timeline: TimelineBounds = TimelineBounds()
    clamp_to_timeline: bool = True
    max_passes: int = Field(default=10, ge=1)  # Upper bound for converge()
