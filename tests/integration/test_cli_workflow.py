# tests/integration/test_cli_workflow.py
"""Integration tests for the CLI workflow."""

import pytest
from typer.testing import CliRunner

from deferlru.cli.main import app


@pytest.fixture
def runner():
    return CliRunner()


def _row_keys(section: str) -> list[str]:
    """Extract the Key column from the body rows of a rendered rich table."""
    keys = []
    for line in section.splitlines():
        cells = [c.strip() for c in line.replace("|", "│").split("│")]
        # body rows render as: "", "#", "Key", "Value", ""
        if len(cells) == 5 and cells[1].isdigit():
            keys.append(cells[2])
    return keys


class TestCLIWorkflow:
    """Test the complete CLI workflow."""

    def test_version(self, runner):
        from deferlru import __version__

        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_simulate_reports_evictions_in_order(self, runner):
        result = runner.invoke(app, ["simulate", "A", "B", "C", "D", "E", "--size", "3"])
        assert result.exit_code == 0
        out = result.stdout
        entries = out[out.index("Entries"):out.index("Evictions")]
        evictions = out[out.index("Evictions"):]
        assert _row_keys(entries) == ["E", "D", "C"]
        assert _row_keys(evictions) == ["A", "B"]
        assert "Hits: 0  Misses: 0" in out

    def test_simulate_lookups_and_values(self, runner):
        result = runner.invoke(
            app, ["simulate", "a=1", "b=2", "?a", "?zz", "c=3", "--size", "2"]
        )
        assert result.exit_code == 0
        assert "get a -> 1" in result.stdout
        assert "get zz -> miss" in result.stdout
        assert "Hits: 1  Misses: 1" in result.stdout

    def test_simulate_without_evictions(self, runner):
        result = runner.invoke(app, ["simulate", "x", "--size", "4"])
        assert result.exit_code == 0
        assert "No evictions." in result.stdout

    def test_simulate_suspended_purges_at_end(self, runner):
        result = runner.invoke(
            app, ["simulate", "a", "b", "c", "--size", "1", "--suspend"]
        )
        assert result.exit_code == 0
        assert "Purged on demand: 2" in result.stdout

    def test_simulate_invalid_size(self, runner):
        result = runner.invoke(app, ["simulate", "a", "--size", "0"])
        assert result.exit_code == 1
        assert "Invalid cache size" in result.stdout

    def test_simulate_default_size_from_env(self, runner, monkeypatch):
        from deferlru.config.settings import get_settings

        monkeypatch.setenv("DEFERLRU_DEFAULT_SIZE", "1")
        get_settings.cache_clear()
        result = runner.invoke(app, ["simulate", "a", "b"])
        assert result.exit_code == 0
        assert "Capacity: 1" in result.stdout

    def test_config_show_and_init(self, runner, tmp_path, monkeypatch):
        from deferlru.config import settings as settings_module

        config_dir = tmp_path / "cfg"
        monkeypatch.setattr(settings_module, "USER_CONFIG_DIR", config_dir)
        monkeypatch.setattr(settings_module, "USER_CONFIG_FILE", config_dir / "config.yaml")

        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "update_batch_size" in result.stdout

        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 0
        assert (config_dir / "config.yaml").exists()

    def test_log_level_option(self, runner):
        result = runner.invoke(app, ["--log-level", "DEBUG", "simulate", "a", "b", "--size", "1"])
        assert result.exit_code == 0
