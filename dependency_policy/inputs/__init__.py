"""Loaders for the graph and advisory documents."""
from __future__ import annotations

from dependency_policy.inputs.advisories import load_advisory_index
from dependency_policy.inputs.graph import load_graph

__all__ = ["load_advisory_index", "load_graph"]
