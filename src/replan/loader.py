"""Snapshot loading with validation and config discovery."""

from __future__ import annotations

from pathlib import Path

from . import context
from .config import CONFIG_FILENAME, ReplanConfig, load_config
from .engine.graph import DependencyGraph
from .exceptions import CircularDependencyError, MissingReferenceError, ValidationError
from .logger import get_logger
from .models import DependencyEdge, ProjectSnapshot
from .parser import SnapshotParser

logger = get_logger()


def discover_config(
    snapshot_path: Path | None = None,
    config_path: Path | None = None,
) -> ReplanConfig:
    """Discover configuration from various locations.

    Search order:
    1. Explicit config_path argument
    2. Global context (set via CLI --config)
    3. snapshot directory / replan_config.yaml
    4. Current directory / replan_config.yaml

    Returns:
        The first config found, or defaults if none exists
    """
    # 1. Explicit argument
    if config_path and config_path.exists():
        return load_config(config_path)

    # 2. Global context
    ctx_config = context.get_config_path()
    if ctx_config and ctx_config.exists():
        return load_config(ctx_config)

    # 3. Snapshot directory
    if snapshot_path is not None:
        dir_config = Path(snapshot_path).parent / CONFIG_FILENAME
        if dir_config.exists():
            return load_config(dir_config)

    # 4. Current directory
    cwd_config = Path(CONFIG_FILENAME)
    if cwd_config.exists():
        return load_config(cwd_config)

    logger.debug("No config file found, using defaults")
    return ReplanConfig()


def load_snapshot(path: Path | str) -> ProjectSnapshot:
    """Load and validate a project snapshot.

    Args:
        path: Path to the snapshot YAML file

    Returns:
        Validated ProjectSnapshot

    Raises:
        ParseError: If the file is missing or not valid YAML
        ValidationError: If the data is malformed or inconsistent
    """
    snapshot = SnapshotParser().parse_file(path)
    validate_snapshot(snapshot)
    logger.debug(
        f"Loaded '{snapshot.project_id}': {len(snapshot.features)} features, "
        f"{len(snapshot.edges)} dependencies, {len(snapshot.team_tracks)} team tracks"
    )
    return snapshot


def validate_snapshot(snapshot: ProjectSnapshot) -> None:
    """Validate the snapshot for reference integrity, duplicates, and cycles."""
    feature_ids = snapshot.get_all_ids()
    milestone_ids = {milestone.id for milestone in snapshot.milestones}

    for feature in snapshot.features:
        if feature.milestone_id is not None and feature.milestone_id not in milestone_ids:
            raise MissingReferenceError(
                f"Feature {feature.id} references unknown milestone: {feature.milestone_id}"
            )

    seen_edges: set[DependencyEdge] = set()
    for edge in snapshot.edges:
        if edge in seen_edges:
            raise ValidationError(f"Duplicate dependency: {edge}")
        seen_edges.add(edge)

    seen_tracks: set[tuple[str, str]] = set()
    for track in snapshot.team_tracks:
        if track.feature_id not in feature_ids:
            raise MissingReferenceError(
                f"Team track '{track.team_id}' references unknown feature: {track.feature_id}"
            )
        if track.key in seen_tracks:
            raise ValidationError(
                f"Duplicate team track for team '{track.team_id}' on feature '{track.feature_id}'"
            )
        seen_tracks.add(track.key)

    # Raises MissingReferenceError for edges to unknown features
    graph = DependencyGraph.build([feature.id for feature in snapshot.features], snapshot.edges)

    cycle = graph.find_cycle()
    if cycle:
        raise CircularDependencyError(f"Circular dependency detected: {' -> '.join(cycle)}")
