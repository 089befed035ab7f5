"""Pydantic data models for dependency-policy."""

from dependency_policy.models.advisory import Advisory, AdvisoryCategory, AdvisoryIndex
from dependency_policy.models.finding import (
    Finding,
    Report,
    RuleCategory,
    Severity,
    Verdict,
)
from dependency_policy.models.graph import (
    DependencyEdge,
    DependencyGraph,
    GraphWalk,
    Package,
    PackageRef,
    SourceKind,
)
from dependency_policy.models.policy import (
    Action,
    AdvisoryPolicy,
    BanPolicy,
    BannedPackage,
    HighlightStrategy,
    LicensePolicy,
    OsiFsfPolicy,
    PackageSpec,
    PolicyConfig,
    SourcePolicy,
)

__all__ = [
    "Action",
    "Advisory",
    "AdvisoryCategory",
    "AdvisoryIndex",
    "AdvisoryPolicy",
    "BanPolicy",
    "BannedPackage",
    "DependencyEdge",
    "DependencyGraph",
    "Finding",
    "GraphWalk",
    "HighlightStrategy",
    "LicensePolicy",
    "OsiFsfPolicy",
    "Package",
    "PackageRef",
    "PackageSpec",
    "PolicyConfig",
    "Report",
    "RuleCategory",
    "Severity",
    "SourceKind",
    "SourcePolicy",
    "Verdict",
]
