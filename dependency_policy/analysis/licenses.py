"""License policy resolution.

Each package's license expression is parsed with license-expression; every leaf
identifier is classified against the license policy, and the tree is folded
with AND taking the strictest and OR the most lenient outcome.
"""
from __future__ import annotations

from functools import lru_cache
from typing import NamedTuple, Optional

from license_expression import LicenseExpression
from pydantic import BaseModel, Field

from dependency_policy.analysis.classification import (
    get_license_category,
    is_copyleft,
    is_fsf_free,
    is_known_license,
    is_osi_approved,
    normalize_license_id,
)
from dependency_policy.analysis.expression import (
    AND,
    OR,
    LicenseExpressionError,
    LicenseSymbol,
    LicenseWithExceptionSymbol,
    parse_expression,
)
from dependency_policy.models.finding import Finding, RuleCategory, severity_for
from dependency_policy.models.graph import Package, PackageRef
from dependency_policy.models.policy import Action, LicensePolicy, OsiFsfPolicy


class LeafVerdict(NamedTuple):
    """Outcome for a single license identifier."""

    license_id: str
    action: Action
    reason: str


class LicenseVerdict(BaseModel):
    """Outcome of the license check for one package."""

    model_config = {"extra": "forbid", "frozen": True}

    package: PackageRef = Field(description="Checked package")
    expression: Optional[str] = Field(default=None, description="Declared expression")
    action: Action = Field(description="Resulting action (allow = pass)")
    code: str = Field(description="Rule code")
    reasons: list[str] = Field(default_factory=list)
    skipped: bool = Field(default=False, description="Checks skipped (private package)")

    @property
    def passed(self) -> bool:
        """True if the license is accepted without findings."""
        return self.action == Action.ALLOW

    def to_finding(self) -> Optional[Finding]:
        """Convert to a Finding, or None if the license passed."""
        severity = severity_for(self.action)
        if severity is None:
            return None
        detail = "; ".join(self.reasons)
        if self.code == "unlicensed":
            message = f"No usable license: {detail}"
            hint = "Declare a license for the package or add a licenses.exceptions entry"
        else:
            message = f"License '{self.expression}' is not accepted: {detail}"
            hint = "Add the license to licenses.allow or to a licenses.exceptions entry"
        return Finding(
            category=RuleCategory.LICENSE,
            severity=severity,
            package=self.package,
            code=self.code,
            message=message,
            hint=hint,
        )


def _strictest(verdicts: list[Action]) -> Action:
    return max(verdicts, key=lambda action: action.rank)


def _most_lenient(verdicts: list[Action]) -> Action:
    return min(verdicts, key=lambda action: action.rank)


class LicenseResolver:
    """Decides whether a package's license satisfies the license policy."""

    def __init__(self, policy: LicensePolicy) -> None:
        """Initialize the resolver.

        Args:
            policy: The ``licenses`` section of the policy.
        """
        self._policy = policy
        self._allowed = frozenset(normalize_license_id(lic) for lic in policy.allow)
        self._denied = frozenset(normalize_license_id(lic) for lic in policy.deny)
        # Leaf verdicts only depend on the identifier, so they are shared
        self._classify = lru_cache(maxsize=None)(self._classify_license)

    def resolve(self, package: Package) -> LicenseVerdict:
        """Evaluate a package's declared license.

        Args:
            package: Package to check.

        Returns:
            LicenseVerdict describing the outcome.
        """
        ref = package.ref
        if self._policy.private.ignore and package.private:
            return LicenseVerdict(
                package=ref,
                expression=package.license,
                action=Action.ALLOW,
                code="private",
                reasons=["private package"],
                skipped=True,
            )

        expression = (package.license or "").strip()
        if not expression:
            return self._unlicensed(package, "no license declared")

        threshold = self._policy.confidence_threshold
        confidence = package.license_confidence
        if confidence is not None and confidence < threshold:
            return self._unlicensed(
                package,
                f"license '{expression}' detected with confidence "
                f"{confidence:.2f}, below threshold {threshold:.2f}",
            )

        try:
            tree = parse_expression(expression)
        except LicenseExpressionError as e:
            return self._unlicensed(package, str(e))

        exception_ids = self._exception_licenses(package)
        leaves: list[LeafVerdict] = []
        action = self._evaluate(tree, exception_ids, leaves)

        reasons: list[str] = []
        if action != Action.ALLOW:
            for leaf in leaves:
                if leaf.action == action and leaf.reason not in reasons:
                    reasons.append(leaf.reason)

        return LicenseVerdict(
            package=ref,
            expression=expression,
            action=action,
            code="license-not-accepted" if action != Action.ALLOW else "license-accepted",
            reasons=reasons,
        )

    def check(self, package: Package) -> list[Finding]:
        """Check a package and return its findings (at most one)."""
        finding = self.resolve(package).to_finding()
        return [finding] if finding is not None else []

    def _unlicensed(self, package: Package, reason: str) -> LicenseVerdict:
        return LicenseVerdict(
            package=package.ref,
            expression=package.license,
            action=self._policy.unlicensed,
            code="unlicensed",
            reasons=[reason],
        )

    def _exception_licenses(self, package: Package) -> frozenset[str]:
        allowed: set[str] = set()
        for exception in self._policy.exceptions:
            if exception.applies_to(package.name, package.version):
                allowed.update(normalize_license_id(lic) for lic in exception.allow)
        return frozenset(allowed)

    def _evaluate(
        self,
        node: LicenseExpression,
        exception_ids: frozenset[str],
        leaves: list[LeafVerdict],
    ) -> Action:
        if isinstance(node, LicenseWithExceptionSymbol):
            # Classification follows the license operand
            return self._evaluate(node.license_symbol, exception_ids, leaves)
        if isinstance(node, LicenseSymbol):
            leaf = self._resolve_leaf(node.key, exception_ids)
            leaves.append(leaf)
            return leaf.action
        actions = [self._evaluate(arg, exception_ids, leaves) for arg in node.args]
        if isinstance(node, AND):
            return _strictest(actions)
        if isinstance(node, OR):
            return _most_lenient(actions)
        raise TypeError(f"Unexpected license node: {node!r}")

    def _resolve_leaf(self, license_id: str, exception_ids: frozenset[str]) -> LeafVerdict:
        normalized = normalize_license_id(license_id)
        if normalized in exception_ids:
            return LeafVerdict(normalized, Action.ALLOW, f"'{normalized}' allowed by exception")
        return self._classify(normalized)

    def _classify_license(self, license_id: str) -> LeafVerdict:
        if license_id in self._denied:
            return LeafVerdict(license_id, Action.DENY, f"'{license_id}' is explicitly denied")
        if license_id in self._allowed:
            return LeafVerdict(license_id, Action.ALLOW, f"'{license_id}' is allowed")

        if is_copyleft(license_id):
            category = get_license_category(license_id).value.replace("_", " ")
            return LeafVerdict(
                license_id,
                self._policy.copyleft,
                f"'{license_id}' is a {category} license",
            )

        if self._implicitly_allowed(license_id):
            return LeafVerdict(
                license_id,
                Action.ALLOW,
                f"'{license_id}' is OSI/FSF approved",
            )

        if not is_known_license(license_id):
            reason = f"'{license_id}' is not a recognized SPDX license"
        else:
            reason = f"'{license_id}' is not explicitly allowed"
        return LeafVerdict(license_id, self._policy.default, reason)

    def _implicitly_allowed(self, license_id: str) -> bool:
        osi = is_osi_approved(license_id)
        fsf = is_fsf_free(license_id)
        mode = self._policy.allow_osi_fsf_free
        if mode == OsiFsfPolicy.BOTH:
            return osi and fsf
        if mode == OsiFsfPolicy.EITHER:
            return osi or fsf
        if mode == OsiFsfPolicy.OSI_ONLY:
            return osi and not fsf
        if mode == OsiFsfPolicy.FSF_ONLY:
            return fsf and not osi
        return False
