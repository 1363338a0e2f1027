"""Tests for cvp report command."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from coverplane.cli.main import cli
from tests.cli.conftest import if_then_document

runner = CliRunner()

EXPECTED_CONDITIONS = [
    {
        "condition": ["if", 1, 1, 0, 1, 15],
        "branches": [["then", 2, 1, 10, 1, 11, 1], ["else", 3, 1, 0, 1, 15, 0]],
    }
]


class TestReportCommand:
    """Tests for report command."""

    def test_report_json_by_default(self, tree_file: Path, counters_file: Path) -> None:
        """Default output is the JSON payload on stdout."""
        result = runner.invoke(cli, ["report", str(tree_file), "--counters", str(counters_file)])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload == {
            "files": [{"path": "lib/example.rb", "conditions": EXPECTED_CONDITIONS}]
        }

    def test_report_yaml_with_summary(self, tree_file: Path, counters_file: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "report",
                str(tree_file),
                "--counters",
                str(counters_file),
                "--format",
                "yaml",
                "--summary",
            ],
        )

        assert result.exit_code == 0, result.output
        payload = yaml.safe_load(result.output)
        assert payload["files"][0]["conditions"] == EXPECTED_CONDITIONS
        assert payload["summary"]["total_branches"] == 2
        assert payload["summary"]["branch_coverage_percent"] == 50.0

    def test_report_multiple_trees_share_counters(
        self, workdir: Path, tree_file: Path, counters_file: Path
    ) -> None:
        other = workdir / "other.tree.yaml"
        other.write_text(yaml.safe_dump(if_then_document("lib/other.rb")))

        result = runner.invoke(
            cli, ["report", str(tree_file), str(other), "--counters", str(counters_file)]
        )

        assert result.exit_code == 0, result.output
        files = json.loads(result.output)["files"]
        assert [entry["path"] for entry in files] == ["lib/example.rb", "lib/other.rb"]
        assert files[0]["conditions"] == files[1]["conditions"]

    def test_report_writes_output_file(
        self, workdir: Path, tree_file: Path, counters_file: Path
    ) -> None:
        target = workdir / "out" / "branches.json"

        result = runner.invoke(
            cli,
            ["report", str(tree_file), "--counters", str(counters_file), "-o", str(target)],
        )

        assert result.exit_code == 0, result.output
        assert "Wrote 1 report(s)" in result.output
        assert "Branch coverage: 50.0% (1/2 branches)" in result.output
        assert json.loads(target.read_text())["files"][0]["path"] == "lib/example.rb"

    def test_report_uses_repo_config_defaults(
        self, workdir: Path, tree_file: Path, counters_file: Path
    ) -> None:
        """Unset options fall back to .coverplane/config.yaml."""
        config_dir = workdir / ".coverplane"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("report:\n  format: yaml\n")

        result = runner.invoke(cli, ["report", str(tree_file), "--counters", str(counters_file)])

        assert result.exit_code == 0, result.output
        assert result.output.startswith("files:")

    def test_report_inconsistent_counters_fails(self, workdir: Path, tree_file: Path) -> None:
        """Truthy hits above the condition's completions cannot be derived."""
        counters = workdir / "bad.json"
        counters.write_text(json.dumps({"t0": 1, "t1": 2}))

        result = runner.invoke(cli, ["report", str(tree_file), "--counters", str(counters)])

        assert result.exit_code == 1
        assert "negative" in result.output
        assert str(tree_file) in result.output

    def test_report_malformed_counters_fails(self, workdir: Path, tree_file: Path) -> None:
        counters = workdir / "bad.json"
        counters.write_text(json.dumps({"t0": -1}))

        result = runner.invoke(cli, ["report", str(tree_file), "--counters", str(counters)])

        assert result.exit_code == 1
        assert "non-negative integer" in result.output

    def test_report_requires_counters(self, tree_file: Path) -> None:
        result = runner.invoke(cli, ["report", str(tree_file)])

        assert result.exit_code == 2
        assert "--counters" in result.output

    def test_report_requires_existing_tree(self, workdir: Path, counters_file: Path) -> None:
        result = runner.invoke(
            cli, ["report", str(workdir / "missing.json"), "--counters", str(counters_file)]
        )

        assert result.exit_code == 2

    def test_report_undecodable_tree_fails(self, workdir: Path, counters_file: Path) -> None:
        tree = workdir / "broken.json"
        tree.write_bytes(b"\xff\xfe")

        result = runner.invoke(cli, ["report", str(tree), "--counters", str(counters_file)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "cannot parse" in result.output

    def test_report_undecodable_counters_fails(self, workdir: Path, tree_file: Path) -> None:
        counters = workdir / "hits.yaml"
        counters.write_bytes(b"\xff\xfe")

        result = runner.invoke(cli, ["report", str(tree_file), "--counters", str(counters)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Failed to read counter snapshot" in result.output

    def test_report_duplicate_unit_path_fails(
        self, workdir: Path, tree_file: Path, counters_file: Path
    ) -> None:
        """Two trees for the same unit would collapse into one report entry."""
        twin = workdir / "twin.tree.yaml"
        twin.write_text(yaml.safe_dump(if_then_document()))

        result = runner.invoke(
            cli, ["report", str(tree_file), str(twin), "--counters", str(counters_file)]
        )

        assert result.exit_code == 1
        assert "lib/example.rb" in result.output
        assert "already given" in result.output


class TestGroup:
    """Tests for the cvp group itself."""

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "cvp, version 0.1.0" in result.output

    def test_invalid_config_reported(
        self, workdir: Path, tree_file: Path, counters_file: Path
    ) -> None:
        config_dir = workdir / ".coverplane"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("report:\n  indent: -3\n")

        result = runner.invoke(cli, ["report", str(tree_file), "--counters", str(counters_file)])

        assert result.exit_code == 1
        assert "report.indent" in result.output
