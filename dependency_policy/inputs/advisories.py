"""Advisory index loading.

The index is produced by an external fetcher and handed over as JSON.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from dependency_policy.config.loader import format_validation_errors
from dependency_policy.exceptions import AdvisoryFetchError
from dependency_policy.models.advisory import AdvisoryIndex

logger = logging.getLogger(__name__)


def load_advisory_index(path: Path) -> AdvisoryIndex:
    """Load an advisory index from a JSON document.

    Args:
        path: Path to a JSON object with an ``advisories`` list.

    Returns:
        Validated AdvisoryIndex.

    Raises:
        AdvisoryFetchError: If the file is missing, unreadable or malformed.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise AdvisoryFetchError(f"Cannot read advisory index '{path}': {e}") from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise AdvisoryFetchError(f"Invalid JSON in advisory index '{path}': {e}") from e

    if not isinstance(data, dict):
        raise AdvisoryFetchError(
            f"Invalid advisory index in '{path}': "
            f"expected an object at root level, got {type(data).__name__}"
        )

    try:
        index = AdvisoryIndex.model_validate(data)
    except ValidationError as e:
        raise AdvisoryFetchError(
            f"Invalid advisory index in '{path}': {format_validation_errors(e)}"
        ) from e

    logger.debug("Loaded %d advisories from '%s'", len(index.advisories), path)
    return index
