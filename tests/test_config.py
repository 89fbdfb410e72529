"""Tests for configuration loading."""

import json

import pytest

from tasktracker.config.loader import camel_to_snake, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("TASKTRACKER_OWNER_JID", raising=False)


def test_defaults_when_file_missing(tmp_path):
    config = load_config(tmp_path / "missing.json")
    assert config.gateway.port == 8080
    assert config.session.path == "session.db"


def test_camel_case_file_is_loaded(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "ownerJid": "918712157587@s.whatsapp.net",
        "airtable": {"baseId": "appBASE", "tableId": "tblTABLE", "apiKey": "pat"},
        "whatsapp": {"bridgeUrl": "ws://bridge:3001"},
        "session": {"path": "/data/session.db"},
    }))

    config = load_config(path)

    assert config.owner_jid == "918712157587@s.whatsapp.net"
    assert config.airtable.records_url == "https://api.airtable.com/v0/appBASE/tblTABLE"
    assert config.whatsapp.bridge_url == "ws://bridge:3001"
    assert str(config.session_path) == "/data/session.db"


def test_invalid_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken")
    assert load_config(path).owner_jid == ""


def test_port_env_overrides_gateway_port(tmp_path, monkeypatch):
    monkeypatch.setenv("PORT", "9090")
    assert load_config(tmp_path / "missing.json").gateway.port == 9090


def test_invalid_port_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("PORT", "http")
    assert load_config(tmp_path / "missing.json").gateway.port == 8080


def test_env_prefix(tmp_path, monkeypatch):
    monkeypatch.setenv("TASKTRACKER_OWNER_JID", "15550001111@s.whatsapp.net")
    assert load_config(tmp_path / "missing.json").owner_jid == "15550001111@s.whatsapp.net"


def test_camel_to_snake():
    assert camel_to_snake("bridgeUrl") == "bridge_url"
    assert camel_to_snake("ownerJid") == "owner_jid"
