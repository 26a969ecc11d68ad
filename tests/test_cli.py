# Copyright (c) Syntropy Systems
"""Tests for speedrank CLI commands."""

import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from speedrank.cli.main import app
from speedrank.models.result import ProbeOutcome, ProbeStatus
from speedrank.prober import Prober

runner = CliRunner()

CANNED = {"a.com": 120.0, "c.com": 45.0}


def fake_measure(self: Prober, domain: str) -> ProbeOutcome:
    """Stand-in for Prober.measure: canned latencies, everything else times out."""
    if domain in CANNED:
        return ProbeOutcome(
            domain=domain,
            status=ProbeStatus.SUCCESS,
            elapsed_ms=CANNED[domain],
            status_code=200,
        )
    return ProbeOutcome(domain=domain, status=ProbeStatus.TIMEOUT, elapsed_ms=self.timeout_ms)


@pytest.fixture
def offline(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace network probes with canned outcomes."""
    monkeypatch.setattr(Prober, "measure", fake_measure)


@pytest.fixture
def initialized_project(temp_dir: Path):
    """Project created through `speedrank init`."""
    original = Path.cwd()
    os.chdir(temp_dir)
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    yield temp_dir
    os.chdir(original)


class TestInitCommand:
    """Tests for speedrank init command."""

    def test_init_creates_directory(self, initialized_project: Path) -> None:
        """Test that init creates .speedrank directory."""
        assert (initialized_project / ".speedrank").exists()
        assert (initialized_project / ".speedrank" / "speedrank.db").exists()
        assert (initialized_project / ".speedrank" / "config.yaml").exists()

    def test_init_already_initialized(self, speedrank_project: Path) -> None:
        """Test init when already initialized."""
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert "Already initialized" in result.stdout


class TestRunCommand:
    """Tests for speedrank run command."""

    def test_run_domains(self, speedrank_project: Path, offline: None) -> None:
        """Test ranking domains given as arguments."""
        result = runner.invoke(app, ["run", "a.com", "b.com", "c.com"])

        assert result.exit_code == 0
        assert "unreachable" in result.stdout
        assert "2/3 reachable" in result.stdout
        assert result.stdout.index("c.com") < result.stdout.index("a.com")

    def test_run_from_file(self, speedrank_project: Path, offline: None) -> None:
        """Test reading domains from a file."""
        domain_file = speedrank_project / "mirrors.txt"
        domain_file.write_text("# mirrors\na.com\n\nc.com  # closest\n")

        result = runner.invoke(app, ["run", "--file", str(domain_file)])

        assert result.exit_code == 0
        assert "2/2 reachable" in result.stdout

    def test_run_config_domains(self, initialized_project: Path, offline: None) -> None:
        """Test falling back to domains from config.yaml."""
        config_path = initialized_project / ".speedrank" / "config.yaml"
        config_path.write_text("domains:\n  - c.com\n  - x.com\n")

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 0
        assert "1/2 reachable" in result.stdout

    def test_run_no_domains(self, speedrank_project: Path) -> None:
        """Test run without any domains fails."""
        result = runner.invoke(app, ["run"])

        assert result.exit_code == 1
        assert "No domains provided" in result.stdout

    def test_run_rejects_zero_concurrency(self, speedrank_project: Path) -> None:
        """Test the concurrency option is validated."""
        result = runner.invoke(app, ["run", "--concurrency", "0", "a.com"])

        assert result.exit_code != 0

    def test_run_outside_project(self, temp_dir: Path) -> None:
        """Test run outside a project fails."""
        original = Path.cwd()
        os.chdir(temp_dir)
        try:
            result = runner.invoke(app, ["run", "a.com"])
        finally:
            os.chdir(original)

        assert result.exit_code == 1
        assert "No .speedrank directory found" in result.stdout


class TestShowCommand:
    """Tests for speedrank show and clear."""

    def test_show_after_run(self, speedrank_project: Path, offline: None) -> None:
        """Test the stored ranking is shown without probing."""
        _ = runner.invoke(app, ["run", "a.com", "b.com", "c.com"])

        result = runner.invoke(app, ["show"])

        assert result.exit_code == 0
        assert "c.com" in result.stdout
        assert "45.0 ms" in result.stdout

    def test_show_fastest(self, speedrank_project: Path, offline: None) -> None:
        """Test --fastest prints only the best domain."""
        _ = runner.invoke(app, ["run", "a.com", "c.com"])

        result = runner.invoke(app, ["show", "--fastest"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "c.com"

    def test_show_json(self, speedrank_project: Path, offline: None) -> None:
        """Test --json prints the stored snapshot."""
        _ = runner.invoke(app, ["run", "a.com", "b.com", "c.com"])

        result = runner.invoke(app, ["show", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {"domain": "c.com", "time": 45.0},
            {"domain": "a.com", "time": 120.0},
            {"domain": "b.com", "time": 30000.0},
        ]

    def test_show_empty(self, speedrank_project: Path) -> None:
        """Test show with nothing stored."""
        result = runner.invoke(app, ["show"])

        assert result.exit_code == 0
        assert "No speed test results" in result.stdout

    def test_fastest_empty(self, speedrank_project: Path) -> None:
        """Test --fastest with nothing stored fails."""
        result = runner.invoke(app, ["show", "--fastest"])

        assert result.exit_code == 1

    def test_clear(self, speedrank_project: Path, offline: None) -> None:
        """Test clear erases the stored ranking."""
        _ = runner.invoke(app, ["run", "a.com"])

        result = runner.invoke(app, ["clear"])
        assert result.exit_code == 0
        assert "Cleared" in result.stdout

        result = runner.invoke(app, ["show"])
        assert "No speed test results" in result.stdout


class TestDoctorCommand:
    """Tests for speedrank doctor."""

    def test_doctor_healthy(self, initialized_project: Path) -> None:
        """Test a fresh project passes all checks."""
        result = runner.invoke(app, ["doctor"])

        assert result.exit_code == 0
        assert "WAL mode enabled" in result.stdout
        assert "All checks passed" in result.stdout

    def test_doctor_corrupt_snapshot(self, initialized_project: Path) -> None:
        """Test a corrupt snapshot is reported as a warning."""
        from speedrank.db import SQLiteKeyValueStore

        db_path = initialized_project / ".speedrank" / "speedrank.db"
        SQLiteKeyValueStore(db_path).write("speed_test_results", "not json")

        result = runner.invoke(app, ["doctor"])

        assert result.exit_code == 0
        assert "Corrupt snapshot" in result.stdout

    def test_doctor_no_project(self, temp_dir: Path) -> None:
        """Test doctor outside a project."""
        original = Path.cwd()
        os.chdir(temp_dir)
        try:
            result = runner.invoke(app, ["doctor"])
        finally:
            os.chdir(original)

        assert "No .speedrank directory found" in result.stdout


class TestMalformedConfig:
    """Tests for commands run against an unparsable config.yaml."""

    @pytest.mark.parametrize("args", [["run", "a.com"], ["show"], ["clear"]])
    def test_reports_error(
        self,
        initialized_project: Path,
        offline: None,
        args: list[str],
    ) -> None:
        """Test a broken config.yaml is reported instead of crashing."""
        config_path = initialized_project / ".speedrank" / "config.yaml"
        config_path.write_text("domains: [a.com\n  timeout_ms: : :\n")

        result = runner.invoke(app, args)

        assert result.exit_code == 1
        assert "Error:" in result.stdout
