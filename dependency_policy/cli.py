"""CLI entry point for dependency-policy."""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from dependency_policy import __version__
from dependency_policy.config import load_policy
from dependency_policy.constants import EXIT_ERROR, EXIT_SUCCESS, EXIT_VIOLATIONS
from dependency_policy.evaluator import Evaluator
from dependency_policy.exceptions import (
    AdvisoryFetchError,
    ConfigurationError,
    DependencyPolicyError,
)
from dependency_policy.inputs import load_advisory_index, load_graph
from dependency_policy.models.advisory import AdvisoryIndex
from dependency_policy.models.finding import Report, RuleCategory
from dependency_policy.output.report_json import ReportJsonFormatter
from dependency_policy.output.terminal import TerminalFormatter, Verbosity

logger = logging.getLogger(__name__)

# Module-level console for consistent output
_console = Console()
# Separate console for error output (writes to stderr)
_error_console = Console(stderr=True)

# Names accepted by --check, as used in deny.toml sections
_DIMENSIONS = {
    "advisories": RuleCategory.ADVISORY,
    "licenses": RuleCategory.LICENSE,
    "bans": RuleCategory.BAN,
    "sources": RuleCategory.SOURCE,
}


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Dependency Policy - Check a dependency graph against an organization policy.

    Evaluates security advisories, licenses, banned or duplicated packages
    and package sources, and fails when any rule denies.

    \b
    Examples:
        dependency-policy check --graph graph.json
        dependency-policy check --graph graph.json --advisories advisories.json
        dependency-policy check --graph graph.json --check licenses --format json
        dependency-policy validate --policy deny.toml
    """
    pass


@main.command()
@click.option(
    "--graph",
    "-g",
    "graph_path",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="Path to the dependency graph JSON document.",
)
@click.option(
    "--policy",
    "-p",
    "policy_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to the policy file (default: discovered in the current directory).",
)
@click.option(
    "--advisories",
    "-a",
    "advisories_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the advisory index JSON document.",
)
@click.option(
    "--check",
    "checks",
    type=click.Choice(sorted(_DIMENSIONS), case_sensitive=False),
    multiple=True,
    help="Policy dimension to check; repeat for several (default: all).",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=1,
    help="Number of worker threads (default: 1).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["terminal", "json"], case_sensitive=False),
    default="terminal",
    help="Output format for the report (default: terminal).",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write report to file instead of stdout.",
)
@click.option(
    "--verbose",
    "-v",
    "verbose_flag",
    is_flag=True,
    default=False,
    help="Show hints and debug logging.",
)
@click.option(
    "--quiet",
    "-q",
    "quiet_flag",
    is_flag=True,
    default=False,
    help="Show only the status line and denials.",
)
def check(
    graph_path: str,
    policy_path: Optional[str],
    advisories_path: Optional[str],
    checks: tuple[str, ...],
    jobs: int,
    output_format: str,
    output_path: Optional[str],
    verbose_flag: bool,
    quiet_flag: bool,
) -> None:
    """Check a dependency graph against the policy.

    Exits with 0 when the graph passes, 1 when a rule denies and 2 when
    the policy, graph or advisory index cannot be used.

    \b
    Examples:
        dependency-policy check --graph graph.json
        dependency-policy check -g graph.json -a advisories.json --jobs 4
        dependency-policy check -g graph.json --check bans --check sources
        dependency-policy check -g graph.json --format json -o report.json
    """
    if verbose_flag and quiet_flag:
        raise click.UsageError("--verbose and --quiet are mutually exclusive.")

    if quiet_flag:
        verbosity = Verbosity.QUIET
    elif verbose_flag:
        verbosity = Verbosity.VERBOSE
    else:
        verbosity = Verbosity.NORMAL
    _configure_logging(verbose_flag)

    format_value = output_format.lower()
    selected = {_DIMENSIONS[name.lower()] for name in checks} or None

    try:
        policy = load_policy(policy_path)
        graph = load_graph(Path(graph_path))

        advisories: Optional[AdvisoryIndex] = None
        if selected is None or RuleCategory.ADVISORY in selected:
            advisories = _load_advisories(advisories_path)

        report = Evaluator(policy, checks=selected, jobs=jobs).evaluate(graph, advisories)
        _display_report(report, format_value, verbosity, output_path)

        if report.advisory_error is not None:
            sys.exit(EXIT_ERROR)
        if not report.passed:
            sys.exit(EXIT_VIOLATIONS)
        sys.exit(EXIT_SUCCESS)

    except DependencyPolicyError as e:
        _display_error(e, format_value)
        sys.exit(EXIT_ERROR)


@main.command()
@click.option(
    "--policy",
    "-p",
    "policy_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to the policy file (default: discovered in the current directory).",
)
def validate(policy_path: Optional[str]) -> None:
    """Validate a policy file without evaluating a graph.

    \b
    Examples:
        dependency-policy validate
        dependency-policy validate --policy deny.toml
    """
    _configure_logging(False)
    try:
        policy = load_policy(policy_path)
    except DependencyPolicyError as e:
        _display_error(e, "terminal")
        sys.exit(EXIT_ERROR)

    source = policy_path or "defaults"
    _console.print(f"[green]Policy is valid[/green] ({escape(source)})")
    if policy.targets:
        _console.print(f"Targets: {', '.join(sorted(policy.target_triples))}")
    sys.exit(EXIT_SUCCESS)


def _configure_logging(verbose: bool) -> None:
    """Route package logging to stderr through Rich.

    Args:
        verbose: Log at DEBUG when True, WARNING otherwise.
    """
    package_logger = logging.getLogger("dependency_policy")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _load_advisories(path: Optional[str]) -> Optional[AdvisoryIndex]:
    """Load the advisory index, leaving the advisory dimension to fail on errors.

    Args:
        path: Path to the advisory index, if any.

    Returns:
        The index, or None if it is missing or unusable.
    """
    if path is None:
        logger.warning("No advisory index given (--advisories)")
        return None
    try:
        return load_advisory_index(Path(path))
    except AdvisoryFetchError as e:
        logger.warning("%s", e)
        return None


def _write_output_to_file(content: str, path: str) -> None:
    """Write report content to file.

    Args:
        content: The report content to write.
        path: The file path to write to.

    Raises:
        ConfigurationError: If file cannot be written.
    """
    file_path = Path(path)

    try:
        if file_path.exists():
            _console.print(
                f"[yellow]Warning: Overwriting existing file: {path}[/yellow]"
            )
        file_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot write to file '{path}': {e}") from e

    _console.print(f"[green]Report written to {path}[/green]")


def _display_report(
    report: Report,
    format_type: str,
    verbosity: Verbosity,
    output_path: Optional[str] = None,
) -> None:
    """Display a report in the specified format.

    Args:
        report: The report to display.
        format_type: Output format (terminal or json).
        verbosity: Output verbosity level.
        output_path: Optional file path to write output to.
    """
    if format_type == "json":
        content = ReportJsonFormatter().format_report(report)
    elif output_path:
        # Plain text rendering of the terminal view
        buffer = io.StringIO()
        console = Console(file=buffer, no_color=True, width=120)
        TerminalFormatter(console=console, verbosity=verbosity).format_report(report)
        content = buffer.getvalue()
    else:
        TerminalFormatter(console=_console, verbosity=verbosity).format_report(report)
        return

    if output_path:
        _write_output_to_file(content, output_path)
    else:
        click.echo(content)


def _display_error(error: DependencyPolicyError, format_type: str) -> None:
    """Display error message to user.

    All errors are written to stderr for consistent CI/CD behavior.

    Args:
        error: The exception that occurred.
        format_type: Output format type for styling.
    """
    message = f"Error: {type(error).__name__}: {error}"

    if format_type == "terminal":
        _error_console.print(f"[red bold]{escape(message)}[/red bold]")
    else:
        click.echo(message, err=True)


if __name__ == "__main__":
    main()
