"""Finding and report models for dependency-policy."""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from dependency_policy.models.graph import PackageRef
from dependency_policy.models.policy import Action
from dependency_policy.versions import SemanticVersion, parse_version


class Severity(str, Enum):
    """How a finding affects the outcome of a run."""

    DENY = "deny"
    WARN = "warn"
    NOTE = "note"


class RuleCategory(str, Enum):
    """Policy dimension a finding belongs to."""

    ADVISORY = "advisory"
    LICENSE = "license"
    BAN = "ban"
    SOURCE = "source"


# Reporting order of categories
CATEGORY_ORDER: dict[RuleCategory, int] = {
    RuleCategory.ADVISORY: 0,
    RuleCategory.LICENSE: 1,
    RuleCategory.BAN: 2,
    RuleCategory.SOURCE: 3,
}


class Verdict(str, Enum):
    """Overall outcome of an evaluation."""

    PASS = "pass"
    FAIL = "fail"


def severity_for(action: Action) -> Optional[Severity]:
    """Map a policy action to a finding severity.

    Returns:
        DENY or WARN for the matching actions, None for ALLOW.
    """
    if action == Action.DENY:
        return Severity.DENY
    if action == Action.WARN:
        return Severity.WARN
    return None


class Finding(BaseModel):
    """A single rule match recorded during evaluation."""

    model_config = {"extra": "forbid", "frozen": True}

    category: RuleCategory = Field(description="Policy dimension")
    severity: Severity = Field(description="Effect on the verdict")
    package: PackageRef = Field(description="Affected package")
    code: str = Field(description="Machine-readable rule code, e.g. 'unlicensed'")
    message: str = Field(description="Human-readable explanation")
    hint: Optional[str] = Field(default=None, description="How to fix it")
    advisory_id: Optional[str] = Field(
        default=None,
        description="Advisory identifier for advisory findings",
    )

    def sort_key(self) -> tuple[str, SemanticVersion, int, str]:
        """Key ordering findings by package name, version, then category."""
        return (
            self.package.name.lower(),
            parse_version(self.package.version),
            CATEGORY_ORDER[self.category],
            self.code,
        )


class Report(BaseModel):
    """Outcome of evaluating a graph against a policy."""

    model_config = {"extra": "forbid"}

    findings: list[Finding] = Field(
        default_factory=list,
        description="Findings in discovery order",
    )
    packages_checked: int = Field(default=0, ge=0)
    advisory_error: Optional[str] = Field(
        default=None,
        description="Why the advisory dimension could not run",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def verdict(self) -> Verdict:
        """FAIL if any finding denies or the advisory check could not run."""
        if self.advisory_error is not None or self.has_denials:
            return Verdict.FAIL
        return Verdict.PASS

    @property
    def has_denials(self) -> bool:
        """True if at least one finding has deny severity."""
        return any(f.severity == Severity.DENY for f in self.findings)

    @property
    def passed(self) -> bool:
        """True if the verdict is PASS."""
        return self.verdict == Verdict.PASS

    def count(self, severity: Severity) -> int:
        """Number of findings with the given severity."""
        return sum(1 for f in self.findings if f.severity == severity)

    def by_category(self, category: RuleCategory) -> list[Finding]:
        """Findings of one policy dimension, in discovery order."""
        return [f for f in self.findings if f.category == category]

    def sorted_findings(self) -> list[Finding]:
        """Findings ordered by package name, version and category."""
        return sorted(self.findings, key=lambda f: f.sort_key())
