"""Custom exceptions for dependency-policy."""


class DependencyPolicyError(Exception):
    """Base exception for all dependency-policy errors."""

    pass


class ConfigurationError(DependencyPolicyError):
    """Exception raised when the policy document is malformed or contradictory."""

    pass


class GraphError(DependencyPolicyError):
    """Exception raised when the dependency graph cannot be evaluated."""

    pass


class AdvisoryFetchError(DependencyPolicyError):
    """Exception raised when the advisory index is unavailable."""

    pass
