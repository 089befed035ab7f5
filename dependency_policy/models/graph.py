"""Dependency graph models for dependency-policy.

The graph is produced by an external resolver and is read-only here.
Packages are identified by (name, version, source); edges may be limited to
specific target platforms. Cycles are tolerated by every traversal.
"""
from __future__ import annotations

from collections import deque
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from dependency_policy.exceptions import GraphError
from dependency_policy.versions import SemanticVersion, parse_version


class SourceKind(Enum):
    """Where a package comes from."""

    REGISTRY = "registry"
    GIT = "git"
    LOCAL = "local"


_REGISTRY_PREFIXES = ("registry+", "sparse+")


def parse_source(source: Optional[str]) -> tuple[SourceKind, Optional[str]]:
    """Split a source origin string into its kind and URL.

    Args:
        source: Origin such as "registry+https://..." or "git+https://...".

    Returns:
        Tuple of SourceKind and the URL (None for local packages).
    """
    if source is None or not source.strip() or source.startswith("path+"):
        return SourceKind.LOCAL, None
    source = source.strip()
    if source.startswith("git+"):
        return SourceKind.GIT, source[len("git+"):]
    for prefix in _REGISTRY_PREFIXES:
        if source.startswith(prefix):
            return SourceKind.REGISTRY, source[len(prefix):]
    return SourceKind.REGISTRY, source


class PackageRef(BaseModel):
    """Identity of a package within a graph."""

    model_config = {"extra": "forbid", "frozen": True}

    name: str = Field(description="Package name")
    version: str = Field(description="Package version")
    source: Optional[str] = Field(default=None, description="Source origin")

    def display(self) -> str:
        """Format as ``name@version``."""
        return f"{self.name}@{self.version}"

    def __str__(self) -> str:
        return self.display()


class Package(BaseModel):
    """A resolved package (graph node)."""

    model_config = {"extra": "forbid", "frozen": True}

    name: str = Field(min_length=1, description="Package name")
    version: str = Field(description="Semantic version")
    license: Optional[str] = Field(
        default=None,
        description="SPDX license expression",
    )
    license_confidence: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Confidence reported by license detection",
    )
    source: Optional[str] = Field(
        default=None,
        description="Registry or git origin; None for local packages",
    )
    private: bool = Field(default=False, description="Package is not published")

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        parse_version(value)
        return value

    @property
    def ref(self) -> PackageRef:
        """Identity of this package."""
        return PackageRef(name=self.name, version=self.version, source=self.source)

    @property
    def parsed_version(self) -> SemanticVersion:
        """Version parsed for ordering and range checks."""
        return parse_version(self.version)

    @property
    def source_kind(self) -> SourceKind:
        """Kind of origin this package comes from."""
        return parse_source(self.source)[0]

    @property
    def source_url(self) -> Optional[str]:
        """Origin URL without its kind prefix."""
        return parse_source(self.source)[1]


class DependencyEdge(BaseModel):
    """A parent depends on a child, optionally only on some targets."""

    model_config = {"extra": "forbid", "frozen": True}

    parent: PackageRef = Field(description="Depending package")
    child: PackageRef = Field(description="Dependency")
    targets: list[str] = Field(
        default_factory=list,
        description="Target triples the edge applies to (empty = all)",
    )

    def applies_to(self, targets: set[str]) -> bool:
        """Check if the edge is active for any of the given targets.

        An edge without targets always applies, as does any edge when no
        targets are configured.
        """
        if not self.targets or not targets:
            return True
        return not targets.isdisjoint(self.targets)


class GraphWalk(NamedTuple):
    """Result of a breadth-first walk over the graph.

    Attributes:
        order: Reached packages in discovery order.
        depths: Edge count of the shortest path from a root.
        parents: Predecessor on a shortest path (None for roots).
    """

    order: list[PackageRef]
    depths: dict[PackageRef, int]
    parents: dict[PackageRef, Optional[PackageRef]]

    def path_to(self, ref: PackageRef) -> list[PackageRef]:
        """Get a shortest path from a root to the package.

        Returns:
            List of refs from root to target, empty if the package was not reached.
        """
        if ref not in self.parents:
            return []
        path: list[PackageRef] = []
        current: Optional[PackageRef] = ref
        while current is not None:
            path.append(current)
            current = self.parents[current]
        path.reverse()
        return path


class DependencyGraph(BaseModel):
    """Container for the resolved dependency graph.

    Provides lookup and traversal helpers; dependents (back references) are
    derived from the edges.
    """

    model_config = {"extra": "forbid"}

    packages: list[Package] = Field(default_factory=list)
    edges: list[DependencyEdge] = Field(default_factory=list)
    roots: Optional[list[PackageRef]] = Field(
        default=None,
        description="Entry points; derived from the edges when absent",
    )

    _by_ref: dict[PackageRef, Package] = PrivateAttr(default_factory=dict)
    _duplicates: list[PackageRef] = PrivateAttr(default_factory=list)
    _outgoing: dict[PackageRef, list[DependencyEdge]] = PrivateAttr(default_factory=dict)
    _incoming: dict[PackageRef, list[PackageRef]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        """Build lookup indexes."""
        for package in self.packages:
            ref = package.ref
            if ref in self._by_ref:
                self._duplicates.append(ref)
            else:
                self._by_ref[ref] = package
        for edge in self.edges:
            self._outgoing.setdefault(edge.parent, []).append(edge)
            self._incoming.setdefault(edge.child, []).append(edge.parent)

    def check_integrity(self) -> None:
        """Verify that the graph can be evaluated.

        Raises:
            GraphError: On duplicate package identities or edges and roots
                referring to packages missing from the graph.
        """
        if self._duplicates:
            duplicates = ", ".join(sorted({ref.display() for ref in self._duplicates}))
            raise GraphError(f"Duplicate packages in graph: {duplicates}")
        for edge in self.edges:
            for end in (edge.parent, edge.child):
                if end not in self._by_ref:
                    raise GraphError(
                        f"Edge {edge.parent.display()} -> {edge.child.display()} "
                        f"refers to unknown package {end.display()}"
                    )
        for root in self.roots or []:
            if root not in self._by_ref:
                raise GraphError(f"Root {root.display()} is not in the graph")

    def get_package(self, ref: PackageRef) -> Package:
        """Look up a package by identity.

        Raises:
            GraphError: If the package is not in the graph.
        """
        try:
            return self._by_ref[ref]
        except KeyError:
            raise GraphError(f"Package {ref.display()} is not in the graph") from None

    def children(
        self, ref: PackageRef, targets: Optional[set[str]] = None
    ) -> list[PackageRef]:
        """Direct dependencies of a package active for the given targets."""
        active = targets or set()
        return [
            edge.child
            for edge in self._outgoing.get(ref, [])
            if edge.applies_to(active)
        ]

    def dependents(self, ref: PackageRef) -> list[PackageRef]:
        """Packages that depend directly on the given package."""
        return list(self._incoming.get(ref, []))

    def root_refs(self) -> list[PackageRef]:
        """Entry points of the graph.

        Declared roots win; otherwise packages without dependents. A graph
        made only of cycles starts from its first package.
        """
        if self.roots is not None:
            return list(self.roots)
        roots = [pkg.ref for pkg in self.packages if pkg.ref not in self._incoming]
        if not roots and self.packages:
            return [self.packages[0].ref]
        return roots

    def walk(self, targets: Optional[set[str]] = None) -> GraphWalk:
        """Breadth-first walk from the roots, visiting each package once.

        Without declared roots, cycles that no root reaches are walked as
        well, each starting from its first package in graph order. Packages
        only reached through edges for other targets are still skipped.

        Args:
            targets: Target triples used to filter platform-specific edges.

        Returns:
            GraphWalk with discovery order, depths and shortest-path parents.
        """
        walk = GraphWalk(order=[], depths={}, parents={})
        seeds = self.root_refs()
        self._visit(walk, seeds, targets)

        if self.roots is None:
            connected = self._reachable(seeds)
            for package in self.packages:
                ref = package.ref
                if ref in connected:
                    continue
                self._visit(walk, [ref], targets)
                connected |= self._reachable([ref])

        return walk

    def _visit(
        self,
        walk: GraphWalk,
        seeds: list[PackageRef],
        targets: Optional[set[str]],
    ) -> None:
        queue: deque[PackageRef] = deque()
        for seed in seeds:
            if seed not in walk.depths:
                walk.depths[seed] = 0
                walk.parents[seed] = None
                queue.append(seed)

        while queue:
            current = queue.popleft()
            walk.order.append(current)
            for child in self.children(current, targets):
                # Already visited covers shared sub-dependencies and cycles
                if child in walk.depths:
                    continue
                walk.depths[child] = walk.depths[current] + 1
                walk.parents[child] = current
                queue.append(child)

    def _reachable(self, seeds: list[PackageRef]) -> set[PackageRef]:
        """Packages reachable from the seeds over every edge, targets ignored."""
        seen = set(seeds)
        queue = deque(seeds)
        while queue:
            for child in self.children(queue.popleft()):
                if child not in seen:
                    seen.add(child)
                    queue.append(child)
        return seen

    @staticmethod
    def format_path(path: list[PackageRef]) -> str:
        """Format a path like "app@1.0.0 → serde@1.0.0"."""
        return " → ".join(ref.display() for ref in path)
