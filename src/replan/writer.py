"""Write reflow results back to snapshot YAML files.

Files are edited with ruamel.yaml in round-trip mode so comments, key
order and formatting survive. Only values that actually changed are
touched.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from .engine.core import FeatureUpdate, ReflowResult, TeamDateUpdate
from .exceptions import ParseError
from .logger import get_logger
from .models import DependencyEdge, ProjectSnapshot, TeamTrack, parse_duration

logger = get_logger()


def _load(path: Path) -> tuple[YAML, Any]:
    yaml_rt = YAML()
    yaml_rt.preserve_quotes = False  # type: ignore[assignment]
    # Don't set default_flow_style - let ruamel.yaml preserve original formatting

    if not path.exists():
        raise ParseError(f"File not found: {path}")
    with path.open(encoding="utf-8") as f:
        data: Any = yaml_rt.load(f)  # type: ignore[no-untyped-call]

    if not isinstance(data, dict):
        raise ParseError("YAML must contain a dictionary at the root level")
    return yaml_rt, data


def _dump(yaml_rt: YAML, data: Any, path: Path) -> None:
    with path.open("w", encoding="utf-8") as f:
        yaml_rt.dump(data, f)  # type: ignore[no-untyped-call]


def _same(current: Any, value: date | int) -> bool:
    if current is None:
        return False
    if isinstance(value, date):
        return str(current) == value.isoformat()
    if not isinstance(current, (int, float, str)):
        return False
    try:
        return parse_duration(current) == value
    except ValueError:
        return False


def _set_if_changed(entry: Any, key: str, value: date | int) -> bool:
    """Set entry[key] unless it already holds an equivalent value."""
    if _same(entry.get(key), value):
        return False
    entry[key] = value
    return True


def _write_dates(entry: Any, start_date: date, end_date: date, duration: int) -> bool:
    """Update a feature or track entry, keeping the fields the author chose to write.

    An entry written with only a duration keeps that form: end_date is only
    added when the entry already has one (or has no duration either).
    """
    changed = _set_if_changed(entry, "start_date", start_date)
    if "end_date" in entry or "duration" not in entry:
        changed |= _set_if_changed(entry, "end_date", end_date)
    if "duration" in entry:
        changed |= _set_if_changed(entry, "duration", duration)
    return changed


def _find_track(tracks: Any, feature_id: str, team_id: str) -> Any | None:
    for entry in tracks or []:
        if entry.get("feature") == feature_id and entry.get("team") == team_id:
            return entry
    return None


def _apply_feature_updates(data: Any, updates: Iterable[FeatureUpdate]) -> int:
    features = data.get("features") or {}
    updated = 0
    for update in updates:
        entry = features.get(update.id)
        if entry is None:
            logger.warning(f"Feature '{update.id}' not found in YAML, not written")
            continue
        if _write_dates(entry, update.start_date, update.end_date, update.duration):
            logger.changes(f"Write: '{update.id}' {update.start_date}..{update.end_date}")
            updated += 1
    return updated


def _apply_team_updates(data: Any, updates: Iterable[TeamDateUpdate]) -> int:
    updated = 0
    for update in updates:
        entry = _find_track(data.get("team_tracks"), update.feature_id, update.team_id)
        if entry is None:
            logger.warning(
                f"Team track '{update.feature_id}'/{update.team_id} not found in YAML, not written"
            )
            continue
        changed = _set_if_changed(entry, "start_date", update.start_date)
        changed |= _set_if_changed(entry, "end_date", update.end_date)
        changed |= _set_if_changed(entry, "duration", update.duration)
        if changed:
            logger.changes(
                f"Write: '{update.feature_id}'/{update.team_id} "
                f"{update.start_date}..{update.end_date}"
            )
            updated += 1
    return updated


def write_snapshot_updates(file_path: Path | str, result: ReflowResult) -> int:
    """Write a reflow result's feature and team date updates into a snapshot file.

    Args:
        file_path: Path to the snapshot YAML file
        result: Result of a reflow

    Returns:
        Number of entries changed in the file
    """
    path = Path(file_path)
    yaml_rt, data = _load(path)

    updated = _apply_feature_updates(data, result.feature_updates)
    updated += _apply_team_updates(data, result.team_date_updates)

    if updated:
        _dump(yaml_rt, data, path)
    return updated


def _edge_of(entry: Any) -> DependencyEdge | None:
    if isinstance(entry, str):
        return DependencyEdge.parse(entry)
    if isinstance(entry, dict) and "predecessor" in entry and "successor" in entry:
        return DependencyEdge(predecessor_id=entry["predecessor"], successor_id=entry["successor"])
    return None


def _section_list(data: Any, key: str) -> Any:
    """Get a list section, creating it when missing or empty."""
    if data.get(key) is None:
        data[key] = []
    return data[key]


def _sync_dependencies(data: Any, edges: list[DependencyEdge]) -> int:
    """Drop removed edges in place, append new ones as "a -> b" strings."""
    existing = data.get("dependencies") or []
    wanted = set(edges)
    present: set[DependencyEdge] = set()
    changed = 0

    # Walk backwards so deletions don't shift unvisited indices
    for index in reversed(range(len(existing))):
        edge = _edge_of(existing[index])
        if edge is not None and edge in wanted:
            present.add(edge)
            continue
        logger.changes(f"Write: remove dependency {edge or existing[index]}")
        del existing[index]
        changed += 1

    for edge in edges:
        if edge in present:
            continue
        logger.changes(f"Write: add dependency {edge}")
        _section_list(data, "dependencies").append(str(edge))
        present.add(edge)
        changed += 1
    return changed


def _sync_tracks(data: Any, tracks: list[TeamTrack]) -> int:
    """Drop removed tracks in place, update dates of kept ones, append new ones."""
    existing = data.get("team_tracks") or []
    wanted = {track.key: track for track in tracks}
    present: set[tuple[str, str]] = set()
    changed = 0

    for index in reversed(range(len(existing))):
        entry = existing[index]
        key = (entry.get("feature"), entry.get("team"))
        track = wanted.get(key)
        if track is None:
            logger.changes(f"Write: remove team track {key[0]}/{key[1]}")
            del existing[index]
            changed += 1
            continue
        present.add(track.key)
        entry_changed = _set_if_changed(entry, "duration", track.duration)
        entry_changed |= _set_if_changed(entry, "start_date", track.start_date)
        entry_changed |= _set_if_changed(entry, "end_date", track.end_date)
        changed += int(entry_changed)

    for track in tracks:
        if track.key in present:
            continue
        logger.changes(f"Write: add team track {track.feature_id}/{track.team_id}")
        _section_list(data, "team_tracks").append(
            {
                "feature": track.feature_id,
                "team": track.team_id,
                "duration": track.duration,
                "start_date": track.start_date,
                "end_date": track.end_date,
            }
        )
        present.add(track.key)
        changed += 1
    return changed


def write_snapshot(file_path: Path | str, snapshot: ProjectSnapshot) -> int:
    """Make a snapshot file match a snapshot: feature dates, dependencies and team tracks.

    Features missing from the file are reported and skipped; features are
    never added or removed here.

    Args:
        file_path: Path to the snapshot YAML file
        snapshot: The snapshot to write

    Returns:
        Number of entries changed in the file
    """
    path = Path(file_path)
    yaml_rt, data = _load(path)

    updates = [
        FeatureUpdate(
            id=feature.id,
            start_date=feature.start_date,
            end_date=feature.end_date,
            duration=feature.duration,
        )
        for feature in snapshot.features
    ]
    updated = _apply_feature_updates(data, updates)
    updated += _sync_dependencies(data, snapshot.edges)
    updated += _sync_tracks(data, snapshot.team_tracks)

    if updated:
        _dump(yaml_rt, data, path)
    return updated
