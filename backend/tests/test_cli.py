"""Tests for ShipRADAR CLI commands."""
from __future__ import annotations

import csv
import json
from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from shipradar import cli
from shipradar.cli import app, _parse_entry
from shipradar.modules.custom_fields import create_custom_field


runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Render tables wide enough that cell text is never wrapped."""
    monkeypatch.setattr(cli, "console", Console(width=250))


@pytest.fixture
def cli_db(db):
    """Point the CLI at the in-memory test session."""
    with patch("shipradar.database.SessionLocal", return_value=db), \
            patch("shipradar.database.init_db"):
        yield db


@pytest.fixture
def upstream(tracked_payload):
    with patch("shipradar.modules.tracked_vessels.TrackedVesselFeed.fetch", return_value=tracked_payload) as m:
        yield m


# ---------------------------------------------------------------------------
# vessels
# ---------------------------------------------------------------------------


def test_vessels_table_first_page(upstream):
    result = runner.invoke(app, ["vessels", "--page-size", "2"])
    assert result.exit_code == 0
    assert "M/V EXAMPLE" in result.output
    assert "BLUE TERN" in result.output
    assert "NORDIC STAR" not in result.output
    assert "Page 1 of 2" in result.output


def test_vessels_empty_state():
    with patch("shipradar.modules.tracked_vessels.TrackedVesselFeed.fetch", return_value=[]):
        result = runner.invoke(app, ["vessels"])
    assert result.exit_code == 0
    assert "No vessels data to display" in result.output


def test_vessels_base_url_option_injected():
    with patch("shipradar.modules.tracked_vessels.TrackedVesselFeed") as mock_feed:
        mock_feed.return_value.load_rows.return_value = []
        runner.invoke(app, ["vessels", "--base-url", "http://other:9000"])
    mock_feed.assert_called_once_with(base_url="http://other:9000")


def test_vessels_export(upstream, tmp_path):
    out = tmp_path / "rows.csv"
    result = runner.invoke(app, ["vessels", "--export", str(out)])
    assert result.exit_code == 0
    assert "Exported 4 rows" in result.output
    rows = list(csv.DictReader(out.open(encoding="utf-8")))
    assert [r["GeofenceType"] for r in rows] == ["Berth", "Terminal", "Anchorage", "Unmapped"]


def test_vessels_select_shows_details(upstream, cli_db, tmp_path):
    create_custom_field(cli_db, {
        "header": "Berth Window",
        "headertype": "text",
        "customData": [{"imoNumber": "9074729", "data": "06:00-14:00"}],
    })
    vessels_file = tmp_path / "vessels.json"
    vessels_file.write_text(json.dumps([{"name": " M/V EXAMPLE ", "flag": "PA"}]))

    result = runner.invoke(app, ["vessels", "--select", "1", "--vessels-file", str(vessels_file)])
    assert result.exit_code == 0
    assert "flag: PA" in result.output
    assert "View Vessel Details: M/V EXAMPLE" in result.output
    assert "Berth Window:" in result.output
    assert "06:00-14:00" in result.output


def test_vessels_select_miss_is_reported(upstream, tmp_path):
    vessels_file = tmp_path / "vessels.json"
    vessels_file.write_text(json.dumps([{"name": "SOMEONE ELSE"}]))
    result = runner.invoke(app, ["vessels", "--select", "2", "--vessels-file", str(vessels_file)])
    assert result.exit_code == 0
    assert "No vessel details for BLUE TERN" in result.output


def test_vessels_select_out_of_range(upstream, tmp_path):
    vessels_file = tmp_path / "vessels.json"
    vessels_file.write_text("[]")
    result = runner.invoke(app, ["vessels", "--select", "9", "--vessels-file", str(vessels_file)])
    assert result.exit_code == 1


def test_vessels_select_requires_file(upstream):
    result = runner.invoke(app, ["vessels", "--select", "1"])
    assert result.exit_code == 1
    assert "--vessels-file" in result.output


def test_vessels_file_must_be_list(upstream, tmp_path):
    vessels_file = tmp_path / "vessels.json"
    vessels_file.write_text('{"name": "X"}')
    result = runner.invoke(app, ["vessels", "--select", "1", "--vessels-file", str(vessels_file)])
    assert result.exit_code == 1


# ---------------------------------------------------------------------------
# custom-field
# ---------------------------------------------------------------------------


def test_custom_field_add(cli_db):
    result = runner.invoke(app, ["custom-field", "add", "Pilot", "text", "-e", "9074729=Booked", "-e", "9155555=Required"])
    assert result.exit_code == 0
    assert "Created custom field" in result.output
    assert "2 entries" in result.output


def test_custom_field_add_rejects_bad_entry(cli_db):
    result = runner.invoke(app, ["custom-field", "add", "Pilot", "text", "-e", "9074729"])
    assert result.exit_code == 1
    assert "IMO=VALUE" in result.output


def test_custom_field_add_reports_violations(cli_db):
    result = runner.invoke(app, ["custom-field", "add", "Pilot", "text", "-e", "9074729="])
    assert result.exit_code == 1
    assert "customData.0.data" in result.output


def test_custom_field_list(cli_db):
    create_custom_field(cli_db, {"header": "Pilot", "headertype": "text", "customData": []})
    result = runner.invoke(app, ["custom-field", "list"])
    assert result.exit_code == 0
    assert "Custom Fields (1)" in result.output
    assert "Pilot" in result.output


def test_custom_field_list_empty(cli_db):
    result = runner.invoke(app, ["custom-field", "list"])
    assert result.exit_code == 0
    assert "No custom fields" in result.output


# ---------------------------------------------------------------------------
# init-db / serve
# ---------------------------------------------------------------------------


@patch("shipradar.database.init_db")
def test_init_db(mock_init):
    result = runner.invoke(app, ["init-db"])
    assert result.exit_code == 0
    mock_init.assert_called_once()


def test_serve_runs_uvicorn():
    with patch("uvicorn.run") as mock_run:
        result = runner.invoke(app, ["serve", "--port", "8123"])
    assert result.exit_code == 0
    mock_run.assert_called_once_with("shipradar.main:app", host="127.0.0.1", port=8123)


def test_parse_entry():
    assert _parse_entry(" 9074729 = Booked ") == {"imoNumber": "9074729", "data": "Booked"}
    assert _parse_entry("9074729=a=b") == {"imoNumber": "9074729", "data": "a=b"}
    with pytest.raises(ValueError):
        _parse_entry("no-separator")
