"""Tests for the command-line interface."""

import json
from pathlib import Path

from typer.testing import CliRunner

from wealthpilot import __version__
from wealthpilot.cli import app

runner = CliRunner()


class TestCLI:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_analyze(self, profile_dir: Path) -> None:
        result = runner.invoke(app, ["analyze", "u1", "--profiles", str(profile_dir)])
        assert result.exit_code == 0, result.output
        assert "Analysis Summary" in result.output
        assert "Increase life cover" in result.output

    def test_analyze_json_output(self, profile_dir: Path, tmp_path: Path) -> None:
        out = tmp_path / "analysis.json"
        result = runner.invoke(app, ["analyze", "u1", "-p", str(profile_dir), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text(encoding="utf-8"))["summary"]["total_recommendations"] == 5

    def test_plan_markdown(self, profile_dir: Path, tmp_path: Path) -> None:
        out = tmp_path / "plan.md"
        result = runner.invoke(app, ["plan", "u1", "-p", str(profile_dir), "--output", str(out)])
        assert result.exit_code == 0, result.output
        assert "Plan saved to" in result.output
        assert out.read_text(encoding="utf-8").startswith("# 🧭 WealthPilot Holistic Plan — User u1")

    def test_plan_json(self, profile_dir: Path, tmp_path: Path) -> None:
        out = tmp_path / "plan.json"
        result = runner.invoke(app, ["plan", "u1", "-p", str(profile_dir), "--output", str(out)])
        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text(encoding="utf-8"))["user_id"] == "u1"

    def test_unknown_user(self, profile_dir: Path) -> None:
        result = runner.invoke(app, ["analyze", "ghost", "-p", str(profile_dir)])
        assert result.exit_code == 1
        assert "No financial profile found" in result.output

    def test_scenario(self, profile_dir: Path) -> None:
        result = runner.invoke(app, ["scenario", "u1", "-p", str(profile_dir), "--surplus", "1000"])
        assert result.exit_code == 0, result.output
        assert "£1,000.00" in result.output

    def test_scenario_requires_a_parameter(self, profile_dir: Path) -> None:
        result = runner.invoke(app, ["scenario", "u1", "-p", str(profile_dir)])
        assert result.exit_code == 1
        assert "--surplus" in result.output
