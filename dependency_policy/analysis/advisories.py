"""Advisory matching against the advisory policy."""
from __future__ import annotations

from typing import Optional

from dependency_policy.exceptions import AdvisoryFetchError
from dependency_policy.models.advisory import Advisory, AdvisoryCategory, AdvisoryIndex
from dependency_policy.models.finding import Finding, RuleCategory, Severity, severity_for
from dependency_policy.models.graph import Package
from dependency_policy.models.policy import Action, AdvisoryPolicy


class AdvisoryChecker:
    """Matches packages against advisories and applies the advisory policy.

    Every matching advisory yields exactly one Finding: ignored advisories
    and advisories whose category is allowed are reported as notes.
    """

    def __init__(self, policy: AdvisoryPolicy) -> None:
        """Initialize the checker.

        Args:
            policy: The ``advisories`` section of the policy.
        """
        self._policy = policy
        self._ignored = frozenset(policy.ignore)

    def action_for(self, category: AdvisoryCategory) -> Action:
        """Get the configured action for an advisory category."""
        if category == AdvisoryCategory.VULNERABILITY:
            return self._policy.vulnerability
        if category == AdvisoryCategory.UNMAINTAINED:
            return self._policy.unmaintained
        return self._policy.notice

    @staticmethod
    def require_index(index: Optional[AdvisoryIndex]) -> AdvisoryIndex:
        """Return the index, failing if it is missing.

        Raises:
            AdvisoryFetchError: If no advisory index is available.
        """
        if index is None:
            raise AdvisoryFetchError("No advisory index available")
        return index

    def check(self, package: Package, index: Optional[AdvisoryIndex]) -> list[Finding]:
        """Find advisories affecting a package.

        Args:
            package: Package to check.
            index: Advisory index supplied by the caller.

        Returns:
            One Finding per matching advisory, in index order.

        Raises:
            AdvisoryFetchError: If no advisory index is available.
        """
        index = self.require_index(index)
        findings: list[Finding] = []
        for advisory in index.matching(package.name, package.version):
            findings.append(self._finding_for(package, advisory))
        return findings

    def _finding_for(self, package: Package, advisory: Advisory) -> Finding:
        label = f"{advisory.id}: {advisory.title}" if advisory.title else advisory.id
        hint = _remediation(advisory)

        if advisory.id in self._ignored:
            return Finding(
                category=RuleCategory.ADVISORY,
                severity=Severity.NOTE,
                package=package.ref,
                code="advisory-ignored",
                message=f"Ignored {advisory.category.value} advisory {label}",
                hint=hint,
                advisory_id=advisory.id,
            )

        severity = severity_for(self.action_for(advisory.category)) or Severity.NOTE
        return Finding(
            category=RuleCategory.ADVISORY,
            severity=severity,
            package=package.ref,
            code=advisory.category.value,
            message=f"{advisory.category.value.capitalize()} advisory {label}",
            hint=hint,
            advisory_id=advisory.id,
        )


def _remediation(advisory: Advisory) -> Optional[str]:
    parts: list[str] = []
    if advisory.patched:
        parts.append("Upgrade to a version matching " + " or ".join(advisory.patched))
    elif advisory.category == AdvisoryCategory.UNMAINTAINED:
        parts.append("Consider replacing the package with a maintained alternative")
    if advisory.url:
        parts.append(f"See {advisory.url}")
    return ". ".join(parts) if parts else None
