"""Tests for the wayfarer command-line interface."""

from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from wayfarer import __version__
from wayfarer.cli import cli


def make_settings(**overrides) -> MagicMock:
    settings = MagicMock()
    settings.database_url = "sqlite+aiosqlite:///./data/wayfarer.db"
    settings.host = "0.0.0.0"
    settings.port = 8000
    settings.workers = 1
    settings.log_level = "INFO"
    settings.log_format = "console"
    settings.environment = "development"
    settings.is_production = False
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_serve_rejects_sqlite_with_workers():
    """Verify serve fails when --workers > 1 is used with SQLite."""
    with patch("wayfarer.cli.get_settings", return_value=make_settings()):
        result = CliRunner().invoke(cli, ["serve", "--workers", "2"])

    assert result.exit_code == 1
    assert "SQLite does not support multiple worker processes" in result.output


def test_serve_starts_uvicorn():
    with (
        patch("wayfarer.cli.get_settings", return_value=make_settings()),
        patch("wayfarer.cli.configure_logging"),
        patch("uvicorn.run") as mock_run,
    ):
        result = CliRunner().invoke(cli, ["serve", "--port", "9000"])

    assert result.exit_code == 0
    mock_run.assert_called_once()
    assert mock_run.call_args.args[0] == "wayfarer.infrastructure.api.app:app"
    assert mock_run.call_args.kwargs["port"] == 9000


def test_init_db_refused_in_production():
    with (
        patch("wayfarer.cli.get_settings", return_value=make_settings(is_production=True)),
        patch("wayfarer.cli.configure_logging"),
    ):
        result = CliRunner().invoke(cli, ["init-db"])

    assert result.exit_code == 1
    assert "production" in result.output
