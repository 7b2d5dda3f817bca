"""
Tests unitaires pour la CLI d'administration.

Tests couvrant:
- version et info
- workflow: tables des transitions et des capacites
- init-db: initialisation via le container
"""

from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from src.config import Settings
from src.main import app

runner = CliRunner()


@pytest.fixture
def cli_settings(tmp_path) -> Settings:
    return Settings(_env_file=None, database_url=f"sqlite:///{tmp_path}/cli.db", log_file=tmp_path / "cli.log")


@pytest.fixture(autouse=True)
def quiet_cli(cli_settings):
    """Isole la CLI de la configuration reelle et du fichier de log."""
    with patch("src.main.configure_logging") as configure, patch("src.main.get_config", return_value=cli_settings):
        yield configure


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "Gestimmo v0.1.0" in result.stdout


def test_info_shows_configuration(cli_settings):
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert cli_settings.database_url in result.stdout
    assert "Workflow des interventions : base" in result.stdout


def test_verbose_switches_to_debug(quiet_cli):
    runner.invoke(app, ["--verbose", "version"])
    assert quiet_cli.call_args.kwargs["log_level"] == "DEBUG"


def test_workflow_uses_configured_model():
    result = runner.invoke(app, ["workflow"])
    assert result.exit_code == 0
    assert "Transitions (base)" in result.stdout
    assert "terminal" in result.stdout


def test_workflow_extended_model():
    result = runner.invoke(app, ["workflow", "--model", "extended"])
    assert result.exit_code == 0
    assert "Transitions (extended)" in result.stdout
    assert "scheduling" in result.stdout


def test_workflow_rejects_unknown_model():
    result = runner.invoke(app, ["workflow", "--model", "kanban"])
    assert result.exit_code != 0


def test_init_db_uses_container():
    with patch("src.main.container") as container:
        container.database.init = MagicMock()
        result = runner.invoke(app, ["init-db"])
    assert result.exit_code == 0
    container.database.init.assert_called_once()
