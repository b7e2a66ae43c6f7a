"""Replan - dependency-aware date reflow for project plans."""

__version__ = "0.1.0"
