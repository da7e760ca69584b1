"""Tests for the monocov CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
import yaml
from click.testing import CliRunner

from monocov.cli import _config_to_dict, cli
from monocov.config import load_config
from monocov.errors import ExitCode
from tests.conftest import write_file

if TYPE_CHECKING:
    from pathlib import Path


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "merge" in result.output


# ── monocov merge ────────────────────────────────────────────────


class TestMerge:
    def test_merges_monorepo(self, monorepo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge", "--root", str(monorepo)])

        assert result.exit_code == 0, result.output
        assert "Merged Coverage" in result.output
        assert "75.0%" in result.output

        summary = json.loads((monorepo / "coverage" / "coverage-summary.json").read_text())
        assert summary["total"]["lines"] == {"total": 20, "covered": 15, "skipped": 0, "pct": 75.0}
        lcov = (monorepo / "coverage" / "lcov.info").read_text(encoding="utf-8")
        assert "SF:packages/a/src/index.ts" in lcov
        assert "SF:packages/b/src/main.ts" in lcov

    def test_root_defaults_to_cwd(self, monorepo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge"])

        assert result.exit_code == 0, result.output
        assert (monorepo / "coverage" / "coverage-summary.json").is_file()

    def test_custom_directories(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        write_file(tmp_path, "libs/x/out/lcov.info", "SF:src/x.ts\n")
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(
            cli, ["merge", "--root", str(tmp_path), "--packages", "libs", "--coverage", "out"]
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "out" / "lcov.info").read_text(encoding="utf-8") == "SF:libs/x/src/x.ts\n"

    def test_flags_override_config_file(
        self, monorepo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (monorepo / ".monocov.yml").write_text(
            yaml.dump({"merge": {"packages_dir": "elsewhere"}}), encoding="utf-8"
        )
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["--ci", "merge", "--packages", "packages"])

        assert result.exit_code == 0, result.output
        assert len(json.loads(result.stdout)["summary"]["inputs"]) == 2

    def test_config_file_sets_directories(
        self, monorepo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (monorepo / ".monocov.yml").write_text(
            yaml.dump({"merge": {"packages_dir": "elsewhere"}}), encoding="utf-8"
        )
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["--ci", "merge"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["summary"]["inputs"] == []

    def test_json_output(self, monorepo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge", "--json-output"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["success"] is True
        assert payload["total"]["lines"]["pct"] == 75.0
        assert payload["lcov"]["blocks"] == 2
        assert payload["summary"]["file_scopes"] == 2
        assert payload["threshold_failures"] == []

    def test_empty_monorepo_succeeds(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge"])

        assert result.exit_code == 0, result.output
        assert "No per-package reports found" in result.output
        assert (tmp_path / "coverage" / "lcov.info").read_text(encoding="utf-8") == ""


class TestMergeExitCodes:
    def test_fail_on_empty(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge", "--fail-on-empty"])

        assert result.exit_code == ExitCode.NO_INPUTS
        assert (tmp_path / "coverage" / "coverage-summary.json").is_file()

    def test_fail_on_empty_with_inputs(
        self, monorepo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge", "--fail-on-empty"])
        assert result.exit_code == 0, result.output

    def test_parse_error(self, monorepo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        write_file(monorepo, "packages/c/coverage/coverage-summary.json", "{broken")
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge"])

        assert result.exit_code == ExitCode.PARSE_ERROR
        assert "Failed to parse coverage summary" in result.output

    def test_parse_error_json(self, monorepo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        write_file(monorepo, "packages/c/coverage/coverage-summary.json", "{broken")
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["--ci", "merge"])

        assert result.exit_code == ExitCode.PARSE_ERROR
        payload = json.loads(result.stdout)
        assert payload["success"] is False
        assert payload["exit_code"] == int(ExitCode.PARSE_ERROR)

    def test_io_error(self, monorepo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (monorepo / "packages" / "c" / "coverage" / "lcov.info").mkdir(parents=True)
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge"])

        assert result.exit_code == ExitCode.IO_ERROR

    def test_invalid_directory_name(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge", "--packages", "a/b"])

        assert result.exit_code == ExitCode.USAGE
        assert "merge.packages_dir" in result.output
        assert not (tmp_path / "coverage").exists()

    def test_invalid_config_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".monocov.yml").write_text("merge: [unclosed\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge"])

        assert result.exit_code == ExitCode.USAGE


class TestMergeCheck:
    def _write_thresholds(self, root: Path, **thresholds: float) -> None:
        (root / ".monocov.yml").write_text(
            yaml.dump({"coverage": thresholds}), encoding="utf-8"
        )

    def test_below_threshold_fails(self, monorepo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        self._write_thresholds(monorepo, line_threshold=80.0)
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge", "--check"])

        assert result.exit_code == ExitCode.THRESHOLD_NOT_MET
        assert "below the 80.0% threshold" in result.output

    def test_above_threshold_passes(self, monorepo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        self._write_thresholds(monorepo, line_threshold=70.0)
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge", "--check"])

        assert result.exit_code == 0, result.output

    def test_thresholds_ignored_without_check(
        self, monorepo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        self._write_thresholds(monorepo, line_threshold=99.0)
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["merge"])

        assert result.exit_code == 0, result.output

    def test_json_reports_failures(self, monorepo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        self._write_thresholds(monorepo, branch_threshold=50.0)
        monkeypatch.chdir(monorepo)
        runner = CliRunner()
        result = runner.invoke(cli, ["--ci", "merge", "--check"])

        assert result.exit_code == ExitCode.THRESHOLD_NOT_MET
        payload = json.loads(result.stdout)
        assert payload["success"] is False
        assert payload["threshold_failures"] == [
            {"axis": "branches", "actual": 25.0, "threshold": 50.0}
        ]


# ── monocov config ───────────────────────────────────────────────


class TestConfigCommands:
    def test_show_json(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show", "--root", str(tmp_path), "--json-output"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["merge"]["packages_dir"] == "packages"
        assert "raw" not in payload

    def test_show_yaml(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show", "--root", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "coverage_dir: coverage" in result.output

    def test_validate_ok(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", "--root", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Configuration is valid" in result.output

    def test_validate_errors(self, tmp_path: Path) -> None:
        (tmp_path / ".monocov.yml").write_text(
            yaml.dump({"coverage": {"line_threshold": 150}}), encoding="utf-8"
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", "--root", str(tmp_path)])

        assert result.exit_code == ExitCode.USAGE
        assert "coverage.line_threshold" in result.output


def test_config_to_dict_drops_raw(tmp_path: Path) -> None:
    config = load_config(tmp_path)
    config.raw = {"anything": 1}
    assert "raw" not in _config_to_dict(config)
