"""Tests for dependency graph models."""

import pytest
from pydantic import ValidationError

from dependency_policy.exceptions import GraphError
from dependency_policy.models.graph import (
    DependencyEdge,
    DependencyGraph,
    Package,
    PackageRef,
    SourceKind,
    parse_source,
)
from tests.factories import make_graph, make_package


class TestParseSource:
    """Tests for parse_source function."""

    @pytest.mark.parametrize(
        ("source", "kind", "url"),
        [
            (None, SourceKind.LOCAL, None),
            ("", SourceKind.LOCAL, None),
            ("path+file:///work/app", SourceKind.LOCAL, None),
            ("registry+https://example.com/index", SourceKind.REGISTRY, "https://example.com/index"),
            ("sparse+https://example.com/index/", SourceKind.REGISTRY, "https://example.com/index/"),
            ("git+https://github.com/org/repo", SourceKind.GIT, "https://github.com/org/repo"),
            ("https://example.com/index", SourceKind.REGISTRY, "https://example.com/index"),
        ],
    )
    def test_kinds(self, source: str | None, kind: SourceKind, url: str | None) -> None:
        """Test splitting origins into kind and URL."""
        assert parse_source(source) == (kind, url)


class TestPackage:
    """Tests for Package model."""

    def test_ref_identity(self) -> None:
        """Test that the ref carries name, version and source."""
        package = make_package("serde", "1.0.200")
        assert package.ref == PackageRef(
            name="serde", version="1.0.200", source=package.source
        )
        assert str(package.ref) == "serde@1.0.200"

    def test_invalid_version_rejected(self) -> None:
        """Test that unparseable versions fail validation."""
        with pytest.raises(ValidationError):
            Package(name="serde", version="one")

    def test_confidence_bounds(self) -> None:
        """Test that license confidence must be within [0, 1]."""
        with pytest.raises(ValidationError):
            Package(name="serde", version="1.0.0", license_confidence=1.2)

    def test_source_helpers(self) -> None:
        """Test source kind and URL properties."""
        package = make_package("dep", source="git+https://github.com/org/dep")
        assert package.source_kind == SourceKind.GIT
        assert package.source_url == "https://github.com/org/dep"


class TestDependencyEdge:
    """Tests for DependencyEdge.applies_to."""

    def test_untargeted_edge_always_applies(self) -> None:
        """Test that edges without targets are always active."""
        a, b = make_package("a"), make_package("b")
        edge = DependencyEdge(parent=a.ref, child=b.ref)
        assert edge.applies_to({"x86_64-pc-windows-msvc"})
        assert edge.applies_to(set())

    def test_targeted_edge(self) -> None:
        """Test that targeted edges only apply to their targets."""
        a, b = make_package("a"), make_package("b")
        edge = DependencyEdge(parent=a.ref, child=b.ref, targets=["x86_64-pc-windows-msvc"])
        assert edge.applies_to({"x86_64-pc-windows-msvc"})
        assert not edge.applies_to({"x86_64-unknown-linux-gnu"})
        assert edge.applies_to(set())


class TestDependencyGraph:
    """Tests for DependencyGraph lookup and traversal."""

    def test_get_package(self) -> None:
        """Test looking up packages by ref."""
        app = make_package("app")
        graph = make_graph([app])
        assert graph.get_package(app.ref) is app

    def test_get_missing_package(self) -> None:
        """Test that unknown refs raise GraphError."""
        graph = make_graph([make_package("app")])
        with pytest.raises(GraphError, match="ghost@1.0.0"):
            graph.get_package(PackageRef(name="ghost", version="1.0.0"))

    def test_integrity_duplicate_packages(self) -> None:
        """Test that duplicate identities are rejected."""
        graph = DependencyGraph(packages=[make_package("a"), make_package("a")])
        with pytest.raises(GraphError, match="Duplicate"):
            graph.check_integrity()

    def test_integrity_dangling_edge(self) -> None:
        """Test that edges must refer to known packages."""
        a, b = make_package("a"), make_package("b")
        graph = make_graph([a], edges=[(a, b)])
        with pytest.raises(GraphError, match="unknown package"):
            graph.check_integrity()

    def test_integrity_unknown_root(self) -> None:
        """Test that declared roots must exist."""
        a, b = make_package("a"), make_package("b")
        graph = make_graph([a], roots=[b])
        with pytest.raises(GraphError, match="Root"):
            graph.check_integrity()

    def test_children_and_dependents(self) -> None:
        """Test direct dependency lookups in both directions."""
        app, lib = make_package("app"), make_package("lib")
        graph = make_graph([app, lib], edges=[(app, lib)])
        assert graph.children(app.ref) == [lib.ref]
        assert graph.dependents(lib.ref) == [app.ref]
        assert graph.dependents(app.ref) == []

    def test_root_refs_derived(self) -> None:
        """Test that packages without dependents are roots."""
        app, lib = make_package("app"), make_package("lib")
        graph = make_graph([app, lib], edges=[(app, lib)])
        assert graph.root_refs() == [app.ref]

    def test_root_refs_of_pure_cycle(self) -> None:
        """Test that a cycle without entry starts at its first package."""
        a, b = make_package("a"), make_package("b")
        graph = make_graph([a, b], edges=[(a, b), (b, a)])
        assert graph.root_refs() == [a.ref]

    def test_walk_breadth_first(self) -> None:
        """Test discovery order, depths and parents."""
        app, x, y, z = (make_package(n) for n in ("app", "x", "y", "z"))
        graph = make_graph([app, x, y, z], edges=[(app, x), (app, y), (x, z), (y, z)])
        walk = graph.walk()
        assert walk.order == [app.ref, x.ref, y.ref, z.ref]
        assert walk.depths[z.ref] == 2
        assert walk.path_to(z.ref) == [app.ref, x.ref, z.ref]

    def test_walk_terminates_on_cycles(self) -> None:
        """Test that cycles visit each package once."""
        app, a, b = make_package("app"), make_package("a"), make_package("b")
        graph = make_graph([app, a, b], edges=[(app, a), (a, b), (b, a)])
        assert graph.walk().order == [app.ref, a.ref, b.ref]

    def test_walk_visits_cycle_detached_from_roots(self) -> None:
        """Test that a cycle no root reaches is still walked."""
        app, a, b = make_package("app"), make_package("a"), make_package("b")
        graph = make_graph([app, a, b], edges=[(a, b), (b, a)])
        walk = graph.walk()
        assert walk.order == [app.ref, a.ref, b.ref]
        assert walk.depths[a.ref] == 0
        assert walk.path_to(b.ref) == [a.ref, b.ref]

    def test_walk_detached_cycle_respects_targets(self) -> None:
        """Test that a cycle behind another platform's edge stays unvisited."""
        app, a, b = make_package("app"), make_package("a"), make_package("b")
        graph = make_graph(
            [app, a, b],
            edges=[(app, a), (a, b), (b, a)],
            edge_targets={("app", "a"): ["x86_64-pc-windows-msvc"]},
        )
        assert graph.walk({"x86_64-unknown-linux-gnu"}).order == [app.ref]

    def test_walk_skips_unreachable(self) -> None:
        """Test that only packages reachable from declared roots are visited."""
        app, orphan = make_package("app"), make_package("orphan")
        graph = make_graph([app, orphan], roots=[app])
        walk = graph.walk()
        assert walk.order == [app.ref]
        assert walk.path_to(orphan.ref) == []

    def test_walk_filters_targets(self) -> None:
        """Test that edges for other platforms are not followed."""
        app, winapi = make_package("app"), make_package("winapi")
        graph = make_graph(
            [app, winapi],
            edges=[(app, winapi)],
            edge_targets={("app", "winapi"): ["x86_64-pc-windows-msvc"]},
        )
        assert graph.walk({"x86_64-unknown-linux-gnu"}).order == [app.ref]
        assert graph.walk({"x86_64-pc-windows-msvc"}).order == [app.ref, winapi.ref]
        assert graph.walk().order == [app.ref, winapi.ref]

    def test_format_path(self) -> None:
        """Test path formatting."""
        a, b = make_package("a"), make_package("b", "2.0.0")
        assert DependencyGraph.format_path([a.ref, b.ref]) == "a@1.0.0 → b@2.0.0"
