"""Policy evaluation over a dependency graph.

The evaluator walks the graph breadth-first from its roots and runs the
enabled checkers against every reached package. Findings are reported in
discovery order whether checks run sequentially or on a thread pool.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Iterable, Optional

from dependency_policy.analysis.advisories import AdvisoryChecker
from dependency_policy.analysis.bans import BanChecker
from dependency_policy.analysis.licenses import LicenseResolver
from dependency_policy.analysis.sources import SourceChecker
from dependency_policy.exceptions import AdvisoryFetchError, DependencyPolicyError
from dependency_policy.models.advisory import AdvisoryIndex
from dependency_policy.models.finding import CATEGORY_ORDER, Finding, Report, RuleCategory
from dependency_policy.models.graph import DependencyGraph, PackageRef
from dependency_policy.models.policy import PolicyConfig

logger = logging.getLogger(__name__)

ALL_CHECKS: frozenset[RuleCategory] = frozenset(RuleCategory)


class EvaluationState(Enum):
    """Lifecycle of an evaluation run."""

    IDLE = "idle"
    LOADING = "loading"
    CHECKING = "checking"
    AGGREGATED = "aggregated"
    PASS = "pass"
    FAIL = "fail"


class _FindingSink:
    """Collects findings from concurrent workers.

    Each batch is tagged with (node index, checker index, position) so the
    final list can be restored to discovery order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: list[tuple[tuple[int, int, int], Finding]] = []

    def extend(
        self, node_index: int, category: RuleCategory, findings: Iterable[Finding]
    ) -> None:
        checker_index = CATEGORY_ORDER[category]
        with self._lock:
            for position, finding in enumerate(findings):
                self._items.append(((node_index, checker_index, position), finding))

    def ordered(self) -> list[Finding]:
        with self._lock:
            return [finding for _, finding in sorted(self._items, key=lambda item: item[0])]


class Evaluator:
    """Evaluates a dependency graph against a policy.

    Attributes:
        state: Current lifecycle state; ends in PASS or FAIL after a
            successful run and returns to IDLE when a run aborts.
    """

    def __init__(
        self,
        policy: PolicyConfig,
        checks: Optional[Iterable[RuleCategory]] = None,
        jobs: int = 1,
    ) -> None:
        """Initialize the evaluator.

        Args:
            policy: Validated policy document.
            checks: Dimensions to run. All of them when omitted.
            jobs: Number of worker threads for per-package checks.

        Raises:
            ValueError: If jobs is less than 1.
        """
        if jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {jobs}")
        self.policy = policy
        self.checks = frozenset(checks) if checks is not None else ALL_CHECKS
        self.jobs = jobs
        self.state = EvaluationState.IDLE

        self._advisory_checker = AdvisoryChecker(policy.advisories)
        self._license_resolver = LicenseResolver(policy.licenses)
        self._ban_checker = BanChecker(policy.bans)
        self._source_checker = SourceChecker(policy.sources)

    def evaluate(
        self,
        graph: DependencyGraph,
        advisories: Optional[AdvisoryIndex] = None,
    ) -> Report:
        """Run every enabled check over the reachable part of the graph.

        Args:
            graph: Resolved dependency graph.
            advisories: Advisory index. Required for the advisory dimension;
                when it is missing that dimension is reported as failed and
                the other dimensions still run.

        Returns:
            Report with findings in discovery order.

        Raises:
            ConfigurationError: If the policy contradicts itself.
            GraphError: If the graph is inconsistent.
        """
        self.state = EvaluationState.LOADING
        try:
            self.policy.check_consistency()
            graph.check_integrity()
        except DependencyPolicyError:
            self.state = EvaluationState.IDLE
            raise

        self.state = EvaluationState.CHECKING
        walk = graph.walk(self.policy.target_triples)
        logger.debug(
            "Checking %d of %d packages (%s)",
            len(walk.order),
            len(graph.packages),
            ", ".join(sorted(c.value for c in self.checks)),
        )

        advisory_error: Optional[str] = None
        index: Optional[AdvisoryIndex] = None
        if RuleCategory.ADVISORY in self.checks:
            try:
                index = self._advisory_checker.require_index(advisories)
            except AdvisoryFetchError as e:
                advisory_error = str(e)
                logger.warning("Advisory check could not run: %s", e)

        ban_findings: dict[PackageRef, list[Finding]] = {}
        if RuleCategory.BAN in self.checks:
            for finding in self._ban_checker.check(graph, walk):
                ban_findings.setdefault(finding.package, []).append(finding)

        sink = _FindingSink()

        def check_node(node_index: int, ref: PackageRef) -> None:
            package = graph.get_package(ref)
            if index is not None:
                sink.extend(
                    node_index,
                    RuleCategory.ADVISORY,
                    self._advisory_checker.check(package, index),
                )
            if RuleCategory.LICENSE in self.checks:
                sink.extend(
                    node_index, RuleCategory.LICENSE, self._license_resolver.check(package)
                )
            if RuleCategory.BAN in self.checks:
                sink.extend(node_index, RuleCategory.BAN, ban_findings.get(ref, []))
            if RuleCategory.SOURCE in self.checks:
                finding = self._source_checker.check(package)
                if finding is not None:
                    sink.extend(node_index, RuleCategory.SOURCE, [finding])

        try:
            if self.jobs > 1 and len(walk.order) > 1:
                with ThreadPoolExecutor(max_workers=self.jobs) as pool:
                    futures = [
                        pool.submit(check_node, node_index, ref)
                        for node_index, ref in enumerate(walk.order)
                    ]
                    for future in futures:
                        future.result()
            else:
                for node_index, ref in enumerate(walk.order):
                    check_node(node_index, ref)
        except Exception:
            self.state = EvaluationState.IDLE
            raise

        self.state = EvaluationState.AGGREGATED
        report = Report(
            findings=sink.ordered(),
            packages_checked=len(walk.order),
            advisory_error=advisory_error,
        )
        self.state = EvaluationState.PASS if report.passed else EvaluationState.FAIL
        logger.info(
            "Evaluated %d packages: %d findings, verdict %s",
            report.packages_checked,
            len(report.findings),
            report.verdict.value,
        )
        return report


def evaluate(
    policy: PolicyConfig,
    graph: DependencyGraph,
    advisories: Optional[AdvisoryIndex] = None,
    checks: Optional[Iterable[RuleCategory]] = None,
    jobs: int = 1,
) -> Report:
    """Evaluate a graph against a policy with a one-off Evaluator."""
    return Evaluator(policy, checks=checks, jobs=jobs).evaluate(graph, advisories)
