"""JSON output formatter for evaluation reports."""
import json
from datetime import datetime, timezone
from typing import Any

from dependency_policy import __version__
from dependency_policy.models.finding import Report, RuleCategory, Severity


class ReportJsonFormatter:
    """Format evaluation reports as JSON for CI/CD integration."""

    def format_report(self, report: Report) -> str:
        """Format a report as a JSON string.

        Args:
            report: The report to format.

        Returns:
            JSON string representation of the report.
        """
        return json.dumps(self._build_output(report), indent=2)

    def _build_output(self, report: Report) -> dict[str, Any]:
        return {
            "metadata": self._build_metadata(),
            "summary": self._build_summary(report),
            "findings": [
                finding.model_dump(mode="json") for finding in report.findings
            ],
        }

    def _build_metadata(self) -> dict[str, Any]:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        return {
            "generated_at": timestamp,
            "tool_version": __version__,
        }

    def _build_summary(self, report: Report) -> dict[str, Any]:
        """Build summary section.

        Args:
            report: The report.

        Returns:
            Dictionary with verdict and counts per severity and category.
        """
        return {
            "verdict": report.verdict.value,
            "packages_checked": report.packages_checked,
            "advisory_error": report.advisory_error,
            "severities": {
                severity.value: report.count(severity) for severity in Severity
            },
            "categories": {
                category.value: len(report.by_category(category))
                for category in RuleCategory
            },
        }
