"""CLI behavior tests for dependency-policy."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from dependency_policy import __version__
from dependency_policy.cli import main
from dependency_policy.constants import EXIT_ERROR, EXIT_SUCCESS, EXIT_VIOLATIONS

CRATES_IO = "registry+https://github.com/rust-lang/crates.io-index"


def _ref(name: str, version: str) -> dict[str, str]:
    return {"name": name, "version": version, "source": CRATES_IO}


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep policy discovery away from the repository checkout."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def graph_file(tmp_path: Path) -> Path:
    """Graph where app depends on serde and a GPL library."""
    graph = {
        "packages": [
            {"name": "app", "version": "0.1.0", "license": "MIT", "source": CRATES_IO},
            {"name": "serde", "version": "1.0.200", "license": "MIT OR Apache-2.0", "source": CRATES_IO},
            {"name": "gpl-lib", "version": "2.0.0", "license": "GPL-3.0-only", "source": CRATES_IO},
        ],
        "edges": [
            {"parent": _ref("app", "0.1.0"), "child": _ref("serde", "1.0.200")},
            {"parent": _ref("app", "0.1.0"), "child": _ref("gpl-lib", "2.0.0")},
        ],
    }
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(graph))
    return path


@pytest.fixture
def advisories_file(tmp_path: Path) -> Path:
    """Empty advisory index."""
    path = tmp_path / "advisories.json"
    path.write_text(json.dumps({"advisories": []}))
    return path


def _policy_file(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "deny.toml"
    path.write_text(content)
    return path


def test_cli_help(cli_runner: CliRunner) -> None:
    """Test that --help outputs usage information."""
    result = cli_runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    assert "check" in result.output
    assert "validate" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    """Test that --version outputs correct version."""
    result = cli_runner.invoke(main, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_passing_graph(
        self, cli_runner: CliRunner, tmp_path: Path, graph_file: Path, advisories_file: Path
    ) -> None:
        """Test that a compliant graph exits with success."""
        policy = _policy_file(
            tmp_path, '[licenses]\nallow = ["MIT", "Apache-2.0"]\ncopyleft = "allow"\ndefault = "deny"\n'
        )
        result = cli_runner.invoke(
            main,
            ["check", "-g", str(graph_file), "-p", str(policy), "-a", str(advisories_file)],
        )

        assert result.exit_code == EXIT_SUCCESS
        assert "PASS" in result.output

    def test_denied_license(
        self, cli_runner: CliRunner, tmp_path: Path, graph_file: Path, advisories_file: Path
    ) -> None:
        """Test that a deny finding exits with the violations code."""
        policy = _policy_file(tmp_path, '[licenses]\nallow = ["MIT"]\ncopyleft = "deny"\n')
        result = cli_runner.invoke(
            main,
            [
                "check", "-g", str(graph_file), "-p", str(policy),
                "-a", str(advisories_file), "--format", "json",
            ],
        )

        assert result.exit_code == EXIT_VIOLATIONS
        data = json.loads(result.stdout)
        assert data["summary"]["verdict"] == "fail"
        assert [f["package"]["name"] for f in data["findings"]] == ["gpl-lib"]

    def test_missing_advisories_is_error(
        self, cli_runner: CliRunner, tmp_path: Path, graph_file: Path
    ) -> None:
        """Test that running the advisory check without an index exits with an error."""
        policy = _policy_file(tmp_path, '[licenses]\nallow = ["MIT"]\ncopyleft = "allow"\n')
        result = cli_runner.invoke(
            main, ["check", "-g", str(graph_file), "-p", str(policy), "--quiet"]
        )

        assert result.exit_code == EXIT_ERROR

    def test_unreadable_advisories_is_error(
        self, cli_runner: CliRunner, tmp_path: Path, graph_file: Path
    ) -> None:
        """Test that a broken advisory index exits with an error."""
        broken = tmp_path / "advisories.json"
        broken.write_text("{")
        result = cli_runner.invoke(
            main, ["check", "-g", str(graph_file), "-a", str(broken), "--format", "json"]
        )

        assert result.exit_code == EXIT_ERROR
        data = json.loads(result.stdout)
        assert data["summary"]["advisory_error"] is not None

    def test_check_selection_skips_advisories(
        self, cli_runner: CliRunner, tmp_path: Path, graph_file: Path
    ) -> None:
        """Test that selected dimensions run without an advisory index."""
        result = cli_runner.invoke(
            main,
            ["check", "-g", str(graph_file), "--check", "bans", "--check", "sources"],
        )

        assert result.exit_code == EXIT_SUCCESS

    def test_invalid_policy(
        self, cli_runner: CliRunner, tmp_path: Path, graph_file: Path
    ) -> None:
        """Test that an invalid policy exits with an error message."""
        policy = _policy_file(tmp_path, '[bans]\nmultiple-versions = "sometimes"\n')
        result = cli_runner.invoke(
            main, ["check", "-g", str(graph_file), "-p", str(policy), "--format", "json"]
        )

        assert result.exit_code == EXIT_ERROR
        assert "Error: ConfigurationError" in result.stderr

    def test_invalid_graph(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test that a malformed graph exits with an error message."""
        graph = tmp_path / "graph.json"
        graph.write_text("[]")
        result = cli_runner.invoke(main, ["check", "-g", str(graph), "--format", "json"])

        assert result.exit_code == EXIT_ERROR
        assert "Error: GraphError" in result.stderr

    def test_output_file(
        self, cli_runner: CliRunner, tmp_path: Path, graph_file: Path, advisories_file: Path
    ) -> None:
        """Test writing the JSON report to a file."""
        output = tmp_path / "report.json"
        result = cli_runner.invoke(
            main,
            [
                "check", "-g", str(graph_file), "-a", str(advisories_file),
                "--format", "json", "-o", str(output),
            ],
        )

        assert result.exit_code in (EXIT_SUCCESS, EXIT_VIOLATIONS)
        assert json.loads(output.read_text())["summary"]["packages_checked"] == 3

    def test_terminal_output_file(
        self, cli_runner: CliRunner, tmp_path: Path, graph_file: Path, advisories_file: Path
    ) -> None:
        """Test writing the terminal view as plain text."""
        output = tmp_path / "report.txt"
        result = cli_runner.invoke(
            main,
            ["check", "-g", str(graph_file), "-a", str(advisories_file), "-o", str(output)],
        )

        assert result.exit_code in (EXIT_SUCCESS, EXIT_VIOLATIONS)
        assert "DEPENDENCY POLICY" in output.read_text()

    def test_parallel_jobs(
        self, cli_runner: CliRunner, graph_file: Path, advisories_file: Path
    ) -> None:
        """Test that --jobs produces the same report."""
        args = ["check", "-g", str(graph_file), "-a", str(advisories_file), "--format", "json"]
        sequential = json.loads(cli_runner.invoke(main, args).stdout)
        parallel = json.loads(cli_runner.invoke(main, [*args, "--jobs", "4"]).stdout)

        assert parallel["findings"] == sequential["findings"]

    def test_verbose_and_quiet_exclusive(self, cli_runner: CliRunner, graph_file: Path) -> None:
        """Test that --verbose and --quiet cannot be combined."""
        result = cli_runner.invoke(main, ["check", "-g", str(graph_file), "-v", "-q"])

        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_graph_required(self, cli_runner: CliRunner) -> None:
        """Test that --graph is mandatory."""
        result = cli_runner.invoke(main, ["check"])

        assert result.exit_code == 2
        assert "--graph" in result.output


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_policy(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test that a valid policy is accepted."""
        policy = _policy_file(tmp_path, 'targets = ["x86_64-unknown-linux-gnu"]\n')
        result = cli_runner.invoke(main, ["validate", "-p", str(policy)])

        assert result.exit_code == EXIT_SUCCESS
        assert "Policy is valid" in result.output
        assert "x86_64-unknown-linux-gnu" in result.output

    def test_invalid_policy(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test that an invalid policy exits with an error."""
        policy = _policy_file(tmp_path, '[licenses]\nallow = ["MIT"]\ndeny = ["MIT"]\n')
        result = cli_runner.invoke(main, ["validate", "-p", str(policy)])

        assert result.exit_code == EXIT_ERROR
        assert "ConfigurationError" in result.output

    def test_defaults_without_file(self, cli_runner: CliRunner) -> None:
        """Test that validation falls back to the default policy."""
        result = cli_runner.invoke(main, ["validate"])

        assert result.exit_code == EXIT_SUCCESS
        assert "defaults" in result.output
