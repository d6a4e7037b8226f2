"""Tests for CLI commands."""

import pytest
from typer.testing import CliRunner

from lapse.cli.app import app


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("""
[reminders]
intervals = [7, 1]

[scheduler]
enabled = false

[expiries]
"vitalik.eth" = "2099-01-01T00:00:00+00:00"
""")
    return path


class TestConfigCommand:
    """Tests for 'lapse config' command."""

    def test_config_show_displays_settings(self, cli_runner, config_file):
        result = cli_runner.invoke(app, ["config", "show", "--path", str(config_file)])
        assert result.exit_code == 0
        assert "7d, 1d" in result.stdout
        assert "daily-reminder-check" in result.stdout

    def test_config_show_missing_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            app, ["config", "show", "--path", str(tmp_path / "missing.toml")]
        )
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_config_validate_success(self, cli_runner, config_file):
        result = cli_runner.invoke(
            app, ["config", "validate", "--path", str(config_file)]
        )
        assert result.exit_code == 0
        assert "valid" in result.stdout.lower()

    def test_config_validate_invalid_toml(self, cli_runner, tmp_path):
        invalid_file = tmp_path / "invalid.toml"
        invalid_file.write_text("not valid toml [[[")

        result = cli_runner.invoke(
            app, ["config", "validate", "--path", str(invalid_file)]
        )
        assert result.exit_code == 1
        assert "Invalid TOML" in result.stdout

    def test_config_validate_invalid_config(self, cli_runner, tmp_path):
        invalid_config = tmp_path / "bad_config.toml"
        invalid_config.write_text("""
[delivery]
backend = "webhook"
""")
        result = cli_runner.invoke(
            app, ["config", "validate", "--path", str(invalid_config)]
        )
        assert result.exit_code == 1
        assert "validation failed" in result.stdout.lower()

    def test_config_unknown_action(self, cli_runner):
        result = cli_runner.invoke(app, ["config", "unknown"])
        assert result.exit_code == 1
        assert "Unknown action" in result.stdout


class TestStatusCommand:
    def test_status_known_name(self, cli_runner, config_file):
        result = cli_runner.invoke(
            app, ["status", "vitalik.eth", "--config", str(config_file)]
        )
        assert result.exit_code == 0
        assert "Name info: vitalik.eth" in result.stdout

    def test_status_unknown_name(self, cli_runner, config_file):
        result = cli_runner.invoke(
            app, ["status", "nobody.eth", "--config", str(config_file)]
        )
        assert result.exit_code == 0
        assert "couldn't find expiry information" in result.stdout
