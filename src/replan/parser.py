"""YAML parser for Replan project snapshots."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import MissingReferenceError, ParseError, ValidationError
from .models import DependencyEdge, Feature, Milestone, ProjectSnapshot, TeamTrack
from .schemas import FeatureSchema, SnapshotSchema, TeamTrackSchema


def _feature_from_schema(feature_id: str, data: FeatureSchema) -> Feature:
    """Build a Feature, deriving whichever of end_date / duration is missing."""
    if data.end_date is not None:
        end_date = data.end_date
        duration = (end_date - data.start_date).days + 1
    elif data.duration is not None:
        duration = data.duration
        end_date = data.start_date + timedelta(days=duration - 1)
    else:
        raise ValidationError(f"Feature '{feature_id}' needs an end_date or a duration")

    return Feature(
        id=feature_id,
        milestone_id=data.milestone,
        start_date=data.start_date,
        end_date=end_date,
        duration=duration,
        title=data.title,
        status=data.status,
        priority=data.priority,
        sort_order=data.sort_order,
    )


def _track_from_schema(data: TeamTrackSchema, features: dict[str, Feature]) -> TeamTrack:
    """Build a TeamTrack, pinning missing dates to the parent feature's start."""
    parent = features.get(data.feature)
    if parent is None:
        raise MissingReferenceError(
            f"Team track '{data.team}' references unknown feature: {data.feature}"
        )
    start_date = data.start_date or parent.start_date
    end_date = data.end_date
    if end_date is None:
        end_date = start_date + timedelta(days=data.duration - 1)

    return TeamTrack(
        feature_id=data.feature,
        team_id=data.team,
        duration=data.duration,
        start_date=start_date,
        end_date=end_date,
    )


class SnapshotParser:
    """Parser for project snapshot YAML files.

    This parser only handles YAML parsing and model creation.
    For reference and cycle validation, use load_snapshot() from replan.loader.
    """

    def parse_file(self, file_path: Path | str) -> ProjectSnapshot:
        """Parse a YAML file into a ProjectSnapshot."""
        path = Path(file_path)
        if not path.exists():
            raise ParseError(f"File not found: {file_path}")

        try:
            with path.open(encoding="utf-8") as f:
                data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ParseError(f"Failed to parse YAML: {e}") from e

        if not isinstance(data, dict):
            raise ParseError("YAML must contain a dictionary at the root level")

        return self.parse_data(data)  # type: ignore[arg-type]

    def parse_data(self, data: dict[str, Any]) -> ProjectSnapshot:
        """Parse loaded YAML data into a ProjectSnapshot."""
        try:
            schema = SnapshotSchema(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid YAML structure: {e}") from e

        milestones = [
            Milestone(
                id=milestone_id,
                name=milestone.name,
                color=milestone.color,
                start_date=milestone.start_date,
                end_date=milestone.end_date,
            )
            for milestone_id, milestone in schema.milestones.items()
        ]

        features = [
            _feature_from_schema(feature_id, feature)
            for feature_id, feature in schema.features.items()
        ]
        feature_map = {feature.id: feature for feature in features}

        edges = [
            DependencyEdge(predecessor_id=dep.predecessor, successor_id=dep.successor)
            for dep in schema.dependencies
        ]

        tracks = [_track_from_schema(track, feature_map) for track in schema.team_tracks]

        return ProjectSnapshot(
            project_id=schema.project,
            features=features,
            edges=edges,
            team_tracks=tracks,
            milestones=milestones,
        )
