"""Pydantic schemas for snapshot YAML data."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import (
    DEFAULT_MILESTONE_COLOR,
    DependencyEdge,
    FeaturePriority,
    FeatureStatus,
    parse_duration,
)


class MilestoneSchema(BaseModel):
    """Schema for a milestone (feature container)."""

    name: str
    color: str = DEFAULT_MILESTONE_COLOR
    start_date: date | None = None
    end_date: date | None = None


class FeatureSchema(BaseModel):
    """Schema for a feature.

    Either end_date or duration must be given. When both are given they
    must agree (duration == end_date - start_date + 1).
    """

    title: str = ""
    milestone: str | None = None
    start_date: date
    end_date: date | None = None
    duration: int | None = None
    status: FeatureStatus = FeatureStatus.NOT_STARTED
    priority: FeaturePriority = FeaturePriority.NONE
    sort_order: int = 0

    @field_validator("duration", mode="before")
    @classmethod
    def parse_duration_value(cls, v: Any) -> int | None:
        """Accept durations like 5, "5d", "2w", "1.5m"."""
        if v is None:
            return None
        return parse_duration(v)

    @model_validator(mode="after")
    def check_dates(self) -> FeatureSchema:
        """Require an end date or a duration, and make them agree."""
        if self.end_date is None and self.duration is None:
            raise ValueError("feature needs an end_date or a duration")
        if self.end_date is not None:
            if self.end_date < self.start_date:
                raise ValueError(
                    f"end_date {self.end_date} is before start_date {self.start_date}"
                )
            span = (self.end_date - self.start_date).days + 1
            if self.duration is not None and self.duration != span:
                raise ValueError(
                    f"duration {self.duration} does not match {self.start_date}..{self.end_date} "
                    f"({span} days)"
                )
        return self


class DependencySchema(BaseModel):
    """Schema for a dependency edge."""

    predecessor: str
    successor: str


class TeamTrackSchema(BaseModel):
    """Schema for a team track. Missing dates are derived from the parent feature."""

    feature: str
    team: str
    duration: int
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("duration", mode="before")
    @classmethod
    def parse_duration_value(cls, v: Any) -> int:
        """Accept durations like 5, "5d", "2w", "1.5m"."""
        return parse_duration(v)


class SnapshotSchema(BaseModel):
    """Schema for the entire snapshot YAML data."""

    project: str = "default"
    milestones: dict[str, MilestoneSchema] = Field(default_factory=dict)
    features: dict[str, FeatureSchema] = Field(default_factory=dict)
    dependencies: list[DependencySchema] = Field(default_factory=list)
    team_tracks: list[TeamTrackSchema] = Field(default_factory=list)

    @field_validator("project", mode="before")
    @classmethod
    def coerce_project_to_string(cls, v: Any) -> str:
        """Ensure project is a string."""
        return str(v)

    @field_validator("milestones", "features", mode="before")
    @classmethod
    def ensure_dict(cls, v: Any) -> Any:
        """Treat an empty section as an empty mapping."""
        return {} if v is None else v

    @field_validator("dependencies", "team_tracks", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> Any:
        """Treat an empty section as an empty list."""
        return [] if v is None else v

    @field_validator("dependencies", mode="before")
    @classmethod
    def parse_arrow_edges(cls, v: Any) -> Any:
        """Accept "a -> b" strings alongside {predecessor, successor} maps."""
        if not isinstance(v, list):
            return v
        parsed: list[Any] = []
        for item in v:  # type: ignore[misc]
            if isinstance(item, str):
                edge = DependencyEdge.parse(item)
                parsed.append({"predecessor": edge.predecessor_id, "successor": edge.successor_id})
            else:
                parsed.append(item)
        return parsed
