"""Dependency graph document loading."""
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from dependency_policy.config.loader import format_validation_errors
from dependency_policy.exceptions import GraphError
from dependency_policy.models.graph import DependencyGraph

logger = logging.getLogger(__name__)


def load_graph(path: Path) -> DependencyGraph:
    """Load a dependency graph from a JSON document.

    The document is an object with ``packages``, ``edges`` and an optional
    ``roots`` list.

    Args:
        path: Path to the graph document.

    Returns:
        A DependencyGraph that passed its integrity check.

    Raises:
        GraphError: If the file cannot be read or parsed, fails validation,
            or describes an inconsistent graph.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise GraphError(f"Cannot read graph file '{path}': {e}") from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise GraphError(f"Invalid JSON in graph file '{path}': {e}") from e

    if not isinstance(data, dict):
        raise GraphError(
            f"Invalid graph in '{path}': "
            f"expected an object at root level, got {type(data).__name__}"
        )

    try:
        graph = DependencyGraph.model_validate(data)
    except ValidationError as e:
        raise GraphError(
            f"Invalid graph in '{path}': {format_validation_errors(e)}"
        ) from e

    graph.check_integrity()
    logger.debug(
        "Loaded graph from '%s': %d packages, %d edges",
        path,
        len(graph.packages),
        len(graph.edges),
    )
    return graph
