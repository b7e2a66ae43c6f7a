"""Command-line interface for Replan."""

from __future__ import annotations

import csv
from datetime import date
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .config import ReplanConfig
from .engine import (
    FeatureEdit,
    MutationResult,
    ReflowResult,
    TeamProjection,
    add_dependency,
    apply_team_projections,
    check_invariants,
    edit_feature,
    last_in_chain,
    project_per_team,
    remove_dependency,
    remove_team_track,
    topological_sort,
    unified_reflow,
    upsert_team_track,
)
from .exceptions import ReplanError
from .loader import discover_config, load_snapshot
from .logger import setup_logger
from .models import Feature, ProjectSnapshot, format_duration, parse_duration
from .writer import write_snapshot, write_snapshot_updates

app = typer.Typer(
    name="replan",
    help="Replan - dependency-aware date reflow for project plans",
    add_completion=False,
)

FileArgument = Annotated[Path, typer.Argument(help="Path to the project snapshot YAML file")]
ApplyOption = Annotated[
    bool, typer.Option("--apply", help="Write the result back to the snapshot file")
]


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: replan_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for replan commands."""
    setup_logger(verbose)
    context.reset()
    context.get_context().verbosity = verbose
    context.set_config_path(config)


def _load(file: Path) -> tuple[ProjectSnapshot, ReplanConfig]:
    """Load a snapshot and its config, exiting with an error message on failure."""
    try:
        snapshot = load_snapshot(file)
        config = discover_config(file)
    except (ReplanError, FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    return snapshot, config


def _parse_date_option(date_str: str | None, option_name: str) -> date | None:
    """Parse a date string from CLI option.

    Args:
        date_str: Date string in YYYY-MM-DD format or None
        option_name: Name of the option for error messages

    Returns:
        Parsed date object or None if date_str is None
    """
    if date_str is None:
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        typer.echo(
            f"Error: Invalid date format '{date_str}' for --{option_name}. Use YYYY-MM-DD format.",
            err=True,
        )
        raise typer.Exit(1) from None


def _fmt_duration(days: int, config: ReplanConfig) -> str:
    return format_duration(days) if config.display.human_durations else f"{days}d"


def _display_reflow(
    snapshot: ProjectSnapshot, result: ReflowResult, config: ReplanConfig
) -> None:
    """Display a reflow result in human-readable format."""
    if result.is_empty:
        typer.echo("No changes: the plan already satisfies every constraint.")
        return

    features = snapshot.feature_map()
    if result.feature_updates:
        typer.echo(f"Feature updates ({len(result.feature_updates)}):")
        for update in result.feature_updates:
            before = features[update.id]
            typer.echo(
                f"  {update.id}: {before.start_date}..{before.end_date} -> "
                f"{update.start_date}..{update.end_date} "
                f"({_fmt_duration(update.duration, config)})"
            )

    if result.duration_expansions:
        typer.echo(f"Duration expansions ({len(result.duration_expansions)}):")
        for expansion in result.duration_expansions:
            typer.echo(
                f"  {expansion.id}: {_fmt_duration(expansion.old_duration, config)} -> "
                f"{_fmt_duration(expansion.new_duration, config)}"
            )

    if result.team_date_updates:
        typer.echo(f"Team track updates ({len(result.team_date_updates)}):")
        for team_update in result.team_date_updates:
            typer.echo(
                f"  {team_update.feature_id}/{team_update.team_id}: "
                f"{team_update.start_date}..{team_update.end_date}"
            )


def _display_projections(projections: list[TeamProjection]) -> None:
    if not projections:
        typer.echo("No team tracks.")
        return
    for projection in projections:
        if not projection.updates:
            typer.echo(f"{projection.team_id}: up to date")
            continue
        typer.echo(f"{projection.team_id}:")
        for update in projection.updates:
            typer.echo(f"  {update.feature_id}: {update.start_date}..{update.end_date}")


def _export_reflow_csv(
    snapshot: ProjectSnapshot, result: ReflowResult, output_path: Path
) -> None:
    """Export feature updates to CSV for review."""
    features = snapshot.feature_map()
    with output_path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(
            ["feature_id", "title", "old_start", "old_end", "new_start", "new_end", "duration"]
        )
        for update in result.feature_updates:
            before = features[update.id]
            writer.writerow(
                [
                    update.id,
                    before.title,
                    before.start_date.isoformat(),
                    before.end_date.isoformat(),
                    update.start_date.isoformat(),
                    update.end_date.isoformat(),
                    update.duration,
                ]
            )


def _finish_mutation(
    file: Path,
    before: ProjectSnapshot,
    result: MutationResult,
    config: ReplanConfig,
    apply: bool,
) -> None:
    """Display a mutation's cascade and optionally persist the new snapshot."""
    if result.direct_update is not None:
        update = result.direct_update
        typer.echo(f"{update.id}: {update.start_date}..{update.end_date}")
    _display_reflow(before, result.reflow, config)
    if result.team_projections:
        typer.echo("Per-team projections:")
        _display_projections(result.team_projections)

    if apply:
        changed = write_snapshot(file, result.snapshot)
        typer.echo(f"Wrote {changed} change(s) to {file}")


@app.command()
def reflow(
    file: FileArgument,
    apply: ApplyOption = False,
    output_csv: Annotated[
        Path | None,
        typer.Option("--output-csv", help="Export feature updates to a CSV file"),
    ] = None,
) -> None:
    """Restore every scheduling constraint and show (or write) the updates."""
    snapshot, config = _load(file)

    try:
        result = unified_reflow(snapshot, config=config.reflow)
    except ReplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if output_csv:
        _export_reflow_csv(snapshot, result, output_csv)
        typer.echo(f"Updates exported to {output_csv}")
    else:
        _display_reflow(snapshot, result, config)

    if apply and not result.is_empty:
        changed = write_snapshot_updates(file, result)
        typer.echo(f"Wrote {changed} change(s) to {file}")


@app.command()
def teams(file: FileArgument, apply: ApplyOption = False) -> None:
    """Project each team's own timeline over the shared dependency graph."""
    snapshot, config = _load(file)

    try:
        projections = project_per_team(snapshot, config=config.reflow)
    except ReplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    _display_projections(projections)

    if apply and any(projection.updates for projection in projections):
        changed = write_snapshot(file, apply_team_projections(snapshot, projections))
        typer.echo(f"Wrote {changed} change(s) to {file}")


def _sorted_features(snapshot: ProjectSnapshot, sort_by: str) -> list[Feature]:
    if sort_by == "sort_order":
        return sorted(snapshot.features, key=lambda f: (f.sort_order, f.id))
    if sort_by == "start":
        return sorted(snapshot.features, key=lambda f: (f.start_date, f.id))
    return topological_sort(snapshot.features, snapshot.edges)


@app.command()
def order(
    file: FileArgument,
    sort_by: Annotated[
        str | None,
        typer.Option(
            "--sort-by",
            help="Ordering: topological, sort_order or start (default from config)",
        ),
    ] = None,
) -> None:
    """List features in dependency order with their dates."""
    snapshot, config = _load(file)
    sort_key = sort_by or config.display.default_sort
    if sort_key not in {"topological", "sort_order", "start"}:
        typer.echo(f"Error: Invalid --sort-by '{sort_key}'", err=True)
        raise typer.Exit(1)

    tail = last_in_chain(snapshot.features, snapshot.edges)
    for feature in _sorted_features(snapshot, sort_key):
        marker = "  <- chain end" if tail is not None and feature.id == tail.id else ""
        title = f" {feature.title}" if feature.title else ""
        typer.echo(
            f"{feature.id}{title}: {feature.start_date}..{feature.end_date} "
            f"({_fmt_duration(feature.duration, config)}){marker}"
        )


@app.command()
def check(file: FileArgument) -> None:
    """Check that the snapshot satisfies every scheduling invariant."""
    snapshot, config = _load(file)

    try:
        violations = check_invariants(snapshot, config.reflow)
    except ReplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if violations:
        typer.echo(f"{len(violations)} violation(s):")
        for violation in violations:
            typer.echo(f"  - {violation}")
        raise typer.Exit(1)
    typer.echo("OK: all constraints satisfied")


@app.command()
def link(
    file: FileArgument,
    predecessor: Annotated[str, typer.Argument(help="Feature that must finish first")],
    successor: Annotated[str, typer.Argument(help="Feature that starts after it")],
    apply: ApplyOption = False,
) -> None:
    """Add a finish-to-start dependency and cascade."""
    snapshot, config = _load(file)
    try:
        result = add_dependency(snapshot, predecessor, successor, config.reflow)
    except ReplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    _finish_mutation(file, snapshot, result, config, apply)


@app.command()
def unlink(
    file: FileArgument,
    predecessor: Annotated[str, typer.Argument(help="Predecessor feature")],
    successor: Annotated[str, typer.Argument(help="Successor feature")],
    apply: ApplyOption = False,
) -> None:
    """Remove a dependency."""
    snapshot, config = _load(file)
    try:
        result = remove_dependency(snapshot, predecessor, successor, config.reflow)
    except ReplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    _finish_mutation(file, snapshot, result, config, apply)


@app.command()
def track(
    file: FileArgument,
    feature: Annotated[str, typer.Argument(help="Feature ID")],
    team: Annotated[str, typer.Argument(help="Team ID")],
    duration: Annotated[str, typer.Argument(help="Duration, e.g. 5, 5d, 2w, 1.5m")],
    apply: ApplyOption = False,
) -> None:
    """Create or update a team's track on a feature."""
    try:
        days = parse_duration(duration)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    snapshot, config = _load(file)
    try:
        result = upsert_team_track(snapshot, feature, team, days, config.reflow)
    except ReplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    _finish_mutation(file, snapshot, result, config, apply)


@app.command()
def untrack(
    file: FileArgument,
    feature: Annotated[str, typer.Argument(help="Feature ID")],
    team: Annotated[str, typer.Argument(help="Team ID")],
    apply: ApplyOption = False,
) -> None:
    """Remove a team's track from a feature."""
    snapshot, config = _load(file)
    try:
        result = remove_team_track(snapshot, feature, team, config.reflow)
    except ReplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    _finish_mutation(file, snapshot, result, config, apply)


def _build_edit(
    start: date | None, end: date | None, duration: str | None, keep_end: bool
) -> FeatureEdit:
    """Map move options to an edit."""
    if duration is not None:
        if start is not None or end is not None:
            raise ValueError("--duration cannot be combined with --start or --end")
        return FeatureEdit.resize_end(duration=parse_duration(duration))
    if start is not None and end is not None:
        return FeatureEdit.set_dates(start, end)
    if start is not None:
        return FeatureEdit.resize_start(start) if keep_end else FeatureEdit.move(start)
    if end is not None:
        return FeatureEdit.resize_end(end_date=end)
    raise ValueError("Specify --start, --end or --duration")


@app.command()
def move(  # noqa: PLR0913 - CLI command needs multiple options
    file: FileArgument,
    feature: Annotated[str, typer.Argument(help="Feature ID")],
    start: Annotated[
        str | None, typer.Option("--start", help="New start date (YYYY-MM-DD)")
    ] = None,
    end: Annotated[str | None, typer.Option("--end", help="New end date (YYYY-MM-DD)")] = None,
    duration: Annotated[
        str | None, typer.Option("--duration", help="New duration, keeping the start")
    ] = None,
    keep_end: Annotated[
        bool,
        typer.Option("--keep-end", help="With --start only: resize from the left edge"),
    ] = False,
    apply: ApplyOption = False,
) -> None:
    """Move or resize a feature and cascade to its successors."""
    parsed_start = _parse_date_option(start, "start")
    parsed_end = _parse_date_option(end, "end")
    try:
        edit = _build_edit(parsed_start, parsed_end, duration, keep_end)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    snapshot, config = _load(file)
    try:
        result = edit_feature(snapshot, feature, edit, config.reflow)
    except ReplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    _finish_mutation(file, snapshot, result, config, apply)


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
