"""Tests for the JSON report formatter."""
from __future__ import annotations

import json

from dependency_policy import __version__
from dependency_policy.models.finding import Finding, Report, RuleCategory, Severity
from dependency_policy.models.graph import PackageRef
from dependency_policy.output.report_json import ReportJsonFormatter


class TestReportJsonFormatter:
    """Tests for ReportJsonFormatter.format_report."""

    def test_structure(self) -> None:
        """Test the top-level sections and summary values."""
        report = Report(
            packages_checked=4,
            findings=[
                Finding(
                    category=RuleCategory.ADVISORY,
                    severity=Severity.DENY,
                    package=PackageRef(name="foo", version="1.0.0"),
                    code="vulnerability",
                    message="Vulnerability advisory RUSTSEC-2023-0001",
                    advisory_id="RUSTSEC-2023-0001",
                )
            ],
        )

        data = json.loads(ReportJsonFormatter().format_report(report))
        assert data["metadata"]["tool_version"] == __version__
        assert data["summary"]["verdict"] == "fail"
        assert data["summary"]["packages_checked"] == 4
        assert data["summary"]["severities"] == {"deny": 1, "warn": 0, "note": 0}
        assert data["summary"]["categories"]["advisory"] == 1
        finding = data["findings"][0]
        assert finding["category"] == "advisory"
        assert finding["severity"] == "deny"
        assert finding["package"] == {"name": "foo", "version": "1.0.0", "source": None}
        assert finding["advisory_id"] == "RUSTSEC-2023-0001"

    def test_empty_report(self) -> None:
        """Test a passing report without findings."""
        data = json.loads(ReportJsonFormatter().format_report(Report()))
        assert data["summary"]["verdict"] == "pass"
        assert data["summary"]["advisory_error"] is None
        assert data["findings"] == []
