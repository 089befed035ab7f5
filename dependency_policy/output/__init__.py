"""Output formatters for dependency-policy reports."""
from dependency_policy.output.report_json import ReportJsonFormatter
from dependency_policy.output.terminal import TerminalFormatter, Verbosity

__all__ = [
    "ReportJsonFormatter",
    "TerminalFormatter",
    "Verbosity",
]
