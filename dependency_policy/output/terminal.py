"""Terminal output formatter using Rich."""
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dependency_policy.models.finding import Finding, Report, RuleCategory, Severity

_SEVERITY_STYLES = {
    Severity.DENY: "red",
    Severity.WARN: "yellow",
    Severity.NOTE: "blue",
}


class Verbosity(Enum):
    """Output verbosity levels."""

    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"


class TerminalFormatter:
    """Format evaluation reports for terminal display using Rich.

    Findings are shown per policy dimension in discovery order, colored by
    severity.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> None:
        """Initialize the formatter with a Rich console.

        Args:
            console: Optional Rich Console instance. If not provided,
                a new Console will be created.
            verbosity: Output verbosity level.
        """
        self._console = console if console is not None else Console()
        self._verbosity = verbosity

    def format_report(self, report: Report) -> None:
        """Display an evaluation report.

        Args:
            report: The report to display.
        """
        if self._verbosity == Verbosity.QUIET:
            self._print_quiet_output(report)
            return

        self._print_summary(report)

        if report.advisory_error is not None:
            self._console.print(
                f"[red]Advisory check failed:[/red] {escape(report.advisory_error)}"
            )
            self._console.print("")

        if not report.findings:
            self._console.print("[green]No findings[/green]")
            return

        for category in RuleCategory:
            findings = report.by_category(category)
            if findings:
                self._console.print(self._build_table(category, findings))

    def _build_table(self, category: RuleCategory, findings: list[Finding]) -> Table:
        table = Table(title=f"{category.value.capitalize()} findings ({len(findings)})")
        table.add_column("Severity", no_wrap=True)
        table.add_column("Package", style="cyan", no_wrap=True)
        table.add_column("Code", style="magenta")
        table.add_column("Message")
        if self._verbosity == Verbosity.VERBOSE:
            table.add_column("Hint", style="dim")

        for finding in findings:
            style = _SEVERITY_STYLES[finding.severity]
            row = [
                f"[{style}]{finding.severity.value}[/{style}]",
                finding.package.display(),
                finding.code,
                escape(finding.message),
            ]
            if self._verbosity == Verbosity.VERBOSE:
                row.append(escape(finding.hint or ""))
            table.add_row(*row)
        return table

    def _print_quiet_output(self, report: Report) -> None:
        """Print the status line and denials only.

        Args:
            report: The report to display.
        """
        if report.passed:
            self._console.print(
                f"[green]PASS[/green] - {report.packages_checked} packages checked"
            )
            return

        denials = report.count(Severity.DENY)
        self._console.print(f"[red]FAIL[/red] - {denials} denial(s)")
        if report.advisory_error is not None:
            self._console.print(f"  - advisories: [red]{escape(report.advisory_error)}[/red]")
        for finding in report.findings:
            if finding.severity == Severity.DENY:
                self._console.print(
                    f"  - {finding.package.display()}: [red]{escape(finding.message)}[/red]"
                )

    def _print_summary(self, report: Report) -> None:
        """Print the summary panel.

        Args:
            report: The report to summarize.
        """
        if report.passed:
            status, status_color = "PASS", "green"
        else:
            status, status_color = "FAIL", "red"

        summary_lines = [
            f"Packages Checked: {report.packages_checked}",
            f"Denied: {report.count(Severity.DENY)}",
            f"Warnings: {report.count(Severity.WARN)}",
            f"Notes: {report.count(Severity.NOTE)}",
            "",
            f"Status: [{status_color}]{status}[/{status_color}]",
        ]
        panel = Panel(
            "\n".join(summary_lines),
            title="[bold]DEPENDENCY POLICY[/bold]",
            border_style=status_color,
        )
        self._console.print(panel)
        self._console.print("")
