"""Reflow engine - keeps derived dates and durations consistent.

This package provides pure functions over a ProjectSnapshot:
- Graph building and topological ordering with a sort-order tie-break
- Cascade propagation of end-date extensions through finish-to-start edges
- Duration reconciliation against per-team tracks
- The unified reflow orchestrator and an alternate per-team projector
- Mutations (edit, link, unlink, track, untrack) built on top of them

Main entry points:
- unified_reflow: Restore every invariant after a change
- project_per_team: Team-specific timelines over the same graph
- edit_feature / add_dependency / upsert_team_track: Edit-then-reflow
"""

from .bounds import clamp_move, clamp_resize
from .cascade import CascadePropagator, cascade
from .config import ReflowConfig, ReflowMode, TimelineBounds
from .core import (
    DurationExpansion,
    FeatureOverride,
    FeatureUpdate,
    ReflowResult,
    TeamDateUpdate,
    TeamProjection,
)
from .durations import derive_track_dates, reconcile_duration
from .edits import EditKind, FeatureEdit, resolve_edit
from .graph import DependencyGraph
from .merge import apply_reflow, apply_team_projections
from .mutations import (
    MutationResult,
    add_dependency,
    edit_feature,
    preview_edit,
    remove_dependency,
    remove_team_track,
    upsert_team_track,
)
from .per_team import PerTeamProjector, project_per_team
from .topo import last_in_chain, topological_sort
from .unified import UnifiedReflow, converge, unified_reflow
from .validator import check_invariants

__all__ = [
    # Results
    "FeatureUpdate",
    "DurationExpansion",
    "TeamDateUpdate",
    "TeamProjection",
    "ReflowResult",
    "FeatureOverride",
    # Configuration
    "ReflowConfig",
    "ReflowMode",
    "TimelineBounds",
    # Graph and ordering
    "DependencyGraph",
    "topological_sort",
    "last_in_chain",
    # Algorithms
    "CascadePropagator",
    "cascade",
    "reconcile_duration",
    "derive_track_dates",
    "UnifiedReflow",
    "unified_reflow",
    "converge",
    "PerTeamProjector",
    "project_per_team",
    "clamp_move",
    "clamp_resize",
    # Edits and mutations
    "EditKind",
    "FeatureEdit",
    "resolve_edit",
    "MutationResult",
    "edit_feature",
    "preview_edit",
    "add_dependency",
    "remove_dependency",
    "upsert_team_track",
    "remove_team_track",
    # Merging and checks
    "apply_reflow",
    "apply_team_projections",
    "check_invariants",
]
