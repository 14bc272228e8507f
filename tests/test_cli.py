"""Tests for the command line interface."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from writeoff.cli import main as cli
from writeoff.db import crud
from writeoff.db.database import make_session_factory

runner = CliRunner()


@pytest.fixture
def cli_db(engine):
    with patch.object(cli.database, "SessionLocal", make_session_factory(engine)):
        yield


def test_parse_command():
    result = runner.invoke(cli.app, ["parse", "Yes, conference ticket, 75%"])
    assert result.exit_code == 0
    assert "Conference ticket" in result.output
    assert "0.75" in result.output


def test_stats_command(cli_db, stored_transactions):
    result = runner.invoke(cli.app, ["stats", "user-1"])
    assert result.exit_code == 0
    assert "Total Deductions" in result.output
    assert "$42.50" in result.output
    assert "Office Supplies" in result.output


def test_export_command(cli_db, stored_transactions, tmp_path):
    path = tmp_path / "out.csv"
    result = runner.invoke(cli.app, ["export", "user-1", str(path)])
    assert result.exit_code == 0
    assert path.read_text().startswith("trans_id,")


def test_profile_import_and_show(cli_db, db, tmp_path):
    config = tmp_path / "profile.yaml"
    config.write_text("full_name: Jo Park\nprofession: Photographer\nincome: 64000\n")

    result = runner.invoke(cli.app, ["profile", "import", "user-8", str(config)])
    assert result.exit_code == 0
    assert crud.get_user(db, "user-8").profession == "Photographer"

    config.write_text("state: OR\nfavourite_color: teal\n")
    result = runner.invoke(cli.app, ["profile", "import", "user-8", str(config)])
    assert "Ignoring unknown fields: favourite_color" in result.output

    shown = runner.invoke(cli.app, ["profile", "show", "user-8"])
    assert "Photographer" in shown.output
    assert "OR" in shown.output


def test_profile_show_missing_user(cli_db):
    result = runner.invoke(cli.app, ["profile", "show", "nobody"])
    assert result.exit_code == 1
    assert "User not found" in result.output


def test_analyze_without_api_key(cli_db, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    result = runner.invoke(cli.app, ["analyze", "user-1"])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output
