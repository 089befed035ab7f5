"""Default policy values for dependency-policy."""

from __future__ import annotations

from dependency_policy.models.policy import PolicyConfig

# Policy file names searched for, in order
DEFAULT_POLICY_NAMES = ["deny.toml", ".dependency-policy.yaml", ".dependency-policy.yml"]


def get_default_policy() -> PolicyConfig:
    """Get the default policy.

    Returns:
        PolicyConfig with every section at its defaults.
    """
    return PolicyConfig()
