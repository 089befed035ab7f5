"""Policy file discovery and loading for dependency-policy.

Policies are read from TOML (``deny.toml``) or YAML files; both map onto
the same kebab-case document.
"""
from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from dependency_policy.config.defaults import DEFAULT_POLICY_NAMES, get_default_policy
from dependency_policy.exceptions import ConfigurationError
from dependency_policy.models.policy import PolicyConfig

logger = logging.getLogger(__name__)


def find_policy_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a policy file in the specified directory.

    Searches for ``deny.toml``, then ``.dependency-policy.yaml``, then
    ``.dependency-policy.yml``.

    Args:
        start_dir: Directory to search. Defaults to current working directory.

    Returns:
        Path to the policy file if found, None otherwise.
    """
    search_dir = start_dir or Path.cwd()
    for name in DEFAULT_POLICY_NAMES:
        policy_path = search_dir / name
        if policy_path.exists():
            return policy_path
    return None


def _parse(path: Path, content: str) -> Any:
    if path.suffix.lower() == ".toml":
        try:
            return tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in '{path}': {e}") from e
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in '{path}': {e}") from e


def load_policy_file(path: Path) -> PolicyConfig:
    """Load and validate a policy from a TOML or YAML file.

    Args:
        path: Path to the policy file. Files ending in ``.toml`` are read
            as TOML, anything else as YAML.

    Returns:
        Validated PolicyConfig instance.

    Raises:
        ConfigurationError: If the file cannot be read, has invalid syntax,
            fails Pydantic validation or contains contradictory rules.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read policy file '{path}': {e}") from e

    if not content.strip():
        logger.debug("Policy file '%s' is empty, using defaults", path)
        return get_default_policy()

    data = _parse(path, content)

    # YAML made of comments only
    if data is None:
        return get_default_policy()

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid policy in '{path}': "
            f"expected a mapping at root level, got {type(data).__name__}"
        )

    try:
        policy = PolicyConfig.model_validate(data)
    except ValidationError as e:
        error_messages = format_validation_errors(e)
        raise ConfigurationError(f"Invalid policy in '{path}': {error_messages}") from e

    try:
        policy.check_consistency()
    except ConfigurationError as e:
        raise ConfigurationError(f"Invalid policy in '{path}': {e}") from e

    logger.debug("Loaded policy from '%s'", path)
    return policy


def format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors into a readable string.

    Args:
        error: The Pydantic ValidationError.

    Returns:
        Formatted error message string.
    """
    messages: list[str] = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "root"
        messages.append(f"{loc}: {err['msg']}")
    return "; ".join(messages)


def load_policy(policy_path: Optional[str] = None) -> PolicyConfig:
    """Load the policy from a file or use defaults.

    If a policy_path is provided, loads from that file. Otherwise searches
    the current directory for a policy file, falling back to the default
    policy when none is found.

    Args:
        policy_path: Optional path to the policy file.

    Returns:
        PolicyConfig with loaded or default values.

    Raises:
        ConfigurationError: If the selected policy file is invalid.
    """
    if policy_path is not None:
        return load_policy_file(Path(policy_path))

    discovered = find_policy_file()
    if discovered is not None:
        return load_policy_file(discovered)

    logger.debug("No policy file found, using defaults")
    return get_default_policy()
