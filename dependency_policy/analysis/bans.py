"""Banned and duplicate package detection."""
from __future__ import annotations

from typing import Optional

from dependency_policy.models.finding import Finding, RuleCategory, Severity, severity_for
from dependency_policy.models.graph import DependencyGraph, GraphWalk, Package
from dependency_policy.models.policy import BanPolicy, BannedPackage, HighlightStrategy
from dependency_policy.versions import SemanticVersion


class BanChecker:
    """Applies the ban policy to the reachable part of a graph.

    Explicit deny entries are checked first so a banned package is reported
    even when it is the only version present. ``skip`` only affects the
    duplicate-version check.
    """

    def __init__(self, policy: BanPolicy) -> None:
        """Initialize the checker.

        Args:
            policy: The ``bans`` section of the policy.
        """
        self._policy = policy

    def check(
        self, graph: DependencyGraph, walk: Optional[GraphWalk] = None
    ) -> list[Finding]:
        """Check the graph for banned and duplicated packages.

        Args:
            graph: Dependency graph.
            walk: Precomputed walk limiting the check to reached packages.
                Walks the whole graph from its roots when omitted.

        Returns:
            Findings for explicit bans, then allow-list misses, then
            duplicate versions.
        """
        if walk is None:
            walk = graph.walk()
        reached = [graph.get_package(ref) for ref in walk.order]

        findings: list[Finding] = []
        for entry in self._policy.deny:
            for package in reached:
                if entry.matches(package.name, package.version):
                    findings.append(self._banned(package, entry, graph, walk))

        if self._policy.allow:
            for package in reached:
                if not self._is_allowed(package):
                    findings.append(
                        Finding(
                            category=RuleCategory.BAN,
                            severity=Severity.DENY,
                            package=package.ref,
                            code="not-allowed",
                            message=(
                                f"Package '{package.name}' {package.version} "
                                "is not in bans.allow"
                            ),
                            hint=(
                                f"Add it to bans.allow or remove it "
                                f"({_introduced_via(package, graph, walk)})"
                            ),
                        )
                    )

        findings.extend(self._duplicates(reached, graph, walk))
        return findings

    def _banned(
        self,
        package: Package,
        entry: BannedPackage,
        graph: DependencyGraph,
        walk: GraphWalk,
    ) -> Finding:
        message = (
            f"Package '{package.name}' {package.version} "
            f"is banned by '{entry.display()}'"
        )
        if entry.reason:
            message += f": {entry.reason}"
        return Finding(
            category=RuleCategory.BAN,
            severity=Severity.DENY,
            package=package.ref,
            code="banned",
            message=message,
            hint=(
                f"Remove or replace '{package.name}' "
                f"({_introduced_via(package, graph, walk)})"
            ),
        )

    def _is_allowed(self, package: Package) -> bool:
        return any(
            spec.matches(package.name, package.version) for spec in self._policy.allow
        )

    def _is_skipped(self, package: Package) -> bool:
        return any(
            spec.matches(package.name, package.version) for spec in self._policy.skip
        )

    def _duplicates(
        self,
        reached: list[Package],
        graph: DependencyGraph,
        walk: GraphWalk,
    ) -> list[Finding]:
        severity = severity_for(self._policy.multiple_versions)
        if severity is None:
            return []

        groups: dict[str, list[Package]] = {}
        for package in reached:
            if not self._is_skipped(package):
                groups.setdefault(package.name, []).append(package)

        findings: list[Finding] = []
        for name, packages in groups.items():
            # First package reached for each distinct version, and its shortest depth
            representatives: dict[SemanticVersion, Package] = {}
            depths: dict[SemanticVersion, int] = {}
            for package in packages:
                version = package.parsed_version
                depth = walk.depths[package.ref]
                if version not in representatives:
                    representatives[version] = package
                    depths[version] = depth
                else:
                    depths[version] = min(depths[version], depth)

            if len(representatives) < 2:
                continue

            ordered = sorted(representatives)
            kept = ordered[-1]
            duplicates = ordered[:-1]
            for version in self._highlight(duplicates, depths):
                package = representatives[version]
                listing = ", ".join(representatives[v].version for v in ordered)
                findings.append(
                    Finding(
                        category=RuleCategory.BAN,
                        severity=severity,
                        package=package.ref,
                        code="duplicate",
                        message=(
                            f"Found {len(ordered)} versions of '{name}' ({listing}); "
                            f"{package.version} duplicates {representatives[kept].version}"
                        ),
                        hint=(
                            f"Align dependents on {name} {representatives[kept].version} "
                            f"({_introduced_via(package, graph, walk)})"
                        ),
                    )
                )
        return findings

    def _highlight(
        self, duplicates: list[SemanticVersion], depths: dict[SemanticVersion, int]
    ) -> list[SemanticVersion]:
        strategy = self._policy.highlight
        if strategy == HighlightStrategy.LOWEST_VERSION:
            return [duplicates[0]]
        if strategy == HighlightStrategy.SIMPLEST_PATH:
            # Shortest edge count from a root; lower version wins ties
            return [min(duplicates, key=lambda version: (depths[version], version))]
        return list(duplicates)


def _introduced_via(package: Package, graph: DependencyGraph, walk: GraphWalk) -> str:
    path = walk.path_to(package.ref)
    if len(path) <= 1:
        return "a root package"
    return f"introduced via {graph.format_path(path)}"
