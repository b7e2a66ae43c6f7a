"""Configuration loader for Replan.

A single configuration file (replan_config.yaml) holds the reflow engine
settings and display preferences for the CLI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from .engine.config import ReflowConfig

CONFIG_FILENAME = "replan_config.yaml"

VALID_SORTS = {"topological", "sort_order", "start"}


class DisplayConfig(BaseModel):
    """Configuration for CLI output."""

    default_sort: str = "topological"  # "topological", "sort_order", "start"
    human_durations: bool = True  # "2 wks" instead of "14d"

    def model_post_init(self, __context: Any) -> None:
        """Validate configuration after initialization."""
        if self.default_sort not in VALID_SORTS:
            raise ValueError(
                f"Invalid display.default_sort: '{self.default_sort}'. "
                f"Valid values: {', '.join(sorted(VALID_SORTS))}"
            )


class ReplanConfig(BaseModel):
    """Top-level configuration."""

    reflow: ReflowConfig = ReflowConfig()
    display: DisplayConfig = DisplayConfig()


def load_config(config_path: Path | str) -> ReplanConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to replan_config.yaml

    Returns:
        ReplanConfig with defaults filled in for missing sections

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is empty or invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        try:
            data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if not data:
        raise ValueError("Empty configuration file")
    if not isinstance(data, dict):
        raise ValueError("Configuration must be a mapping at the root level")

    unknown = set(data) - {"reflow", "display"}  # type: ignore[arg-type]
    if unknown:
        raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

    # Pydantic's ValidationError subclasses ValueError
    reflow_config = ReflowConfig()
    if data.get("reflow") is not None:
        reflow_config = ReflowConfig.model_validate(data["reflow"])

    display_config = DisplayConfig()
    if data.get("display") is not None:
        display_config = DisplayConfig.model_validate(data["display"])

    return ReplanConfig(reflow=reflow_config, display=display_config)
