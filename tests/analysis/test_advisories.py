"""Tests for the advisory checker."""
from __future__ import annotations

from typing import Any

import pytest

from dependency_policy.analysis.advisories import AdvisoryChecker
from dependency_policy.exceptions import AdvisoryFetchError
from dependency_policy.models.advisory import Advisory, AdvisoryCategory, AdvisoryIndex
from dependency_policy.models.finding import RuleCategory, Severity
from dependency_policy.models.policy import AdvisoryPolicy
from tests.factories import make_package


def _checker(**settings: Any) -> AdvisoryChecker:
    return AdvisoryChecker(AdvisoryPolicy.model_validate(settings))


@pytest.fixture
def index() -> AdvisoryIndex:
    """Index with one vulnerability and one unmaintained advisory."""
    return AdvisoryIndex(
        advisories=[
            Advisory(
                id="RUSTSEC-2023-0001",
                package="foo",
                title="Out-of-bounds read",
                affected="<1.2.0",
                patched=[">=1.2.0"],
                url="https://rustsec.org/advisories/RUSTSEC-2023-0001",
            ),
            Advisory(
                id="RUSTSEC-2023-0002",
                package="bar",
                category=AdvisoryCategory.UNMAINTAINED,
                title="bar is unmaintained",
            ),
        ]
    )


class TestAdvisoryChecker:
    """Tests for AdvisoryChecker.check."""

    def test_vulnerability_denied(self, index: AdvisoryIndex) -> None:
        """Test that affected versions produce a deny finding."""
        findings = _checker().check(make_package("foo", "1.1.0"), index)
        assert len(findings) == 1
        finding = findings[0]
        assert finding.category == RuleCategory.ADVISORY
        assert finding.severity == Severity.DENY
        assert finding.code == "vulnerability"
        assert finding.advisory_id == "RUSTSEC-2023-0001"
        assert "Out-of-bounds read" in finding.message
        assert finding.hint is not None
        assert ">=1.2.0" in finding.hint

    def test_patched_version_clean(self, index: AdvisoryIndex) -> None:
        """Test that patched versions produce no finding."""
        assert _checker().check(make_package("foo", "1.2.0"), index) == []

    def test_unmaintained_warns_by_default(self, index: AdvisoryIndex) -> None:
        """Test the default unmaintained action."""
        findings = _checker().check(make_package("bar"), index)
        assert [f.severity for f in findings] == [Severity.WARN]
        assert findings[0].code == "unmaintained"

    def test_ignored_advisory_is_note(self, index: AdvisoryIndex) -> None:
        """Test that ignored advisories are reported as notes."""
        findings = _checker(ignore=["RUSTSEC-2023-0001"]).check(
            make_package("foo", "1.0.0"), index
        )
        assert len(findings) == 1
        assert findings[0].severity == Severity.NOTE
        assert findings[0].code == "advisory-ignored"

    def test_allowed_category_is_note(self, index: AdvisoryIndex) -> None:
        """Test that an allow action still records the match."""
        findings = _checker(vulnerability="allow").check(make_package("foo", "1.0.0"), index)
        assert [f.severity for f in findings] == [Severity.NOTE]

    def test_multiple_advisories(self) -> None:
        """Test that each matching advisory yields its own finding."""
        index = AdvisoryIndex(
            advisories=[
                Advisory(id="A-1", package="foo"),
                Advisory(id="A-2", package="foo", category=AdvisoryCategory.NOTICE),
            ]
        )
        findings = _checker().check(make_package("foo"), index)
        assert [(f.advisory_id, f.severity) for f in findings] == [
            ("A-1", Severity.DENY),
            ("A-2", Severity.WARN),
        ]

    def test_missing_index_raises(self) -> None:
        """Test that checking without an index raises AdvisoryFetchError."""
        with pytest.raises(AdvisoryFetchError):
            _checker().check(make_package("foo"), None)
