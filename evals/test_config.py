"""
Tests for credential resolution: env > .env > config file.
"""

import json
import os
import stat

import pytest

from defitools.config import (
    config_path,
    read_config,
    redact_value,
    resolve_all_keys,
    resolve_keys,
    write_config,
)


def _by_name(resolved):
    return {r.name: r for r in resolved}


def test_nothing_configured():
    resolved = resolve_all_keys()
    assert [r.name for r in resolved] == ["COINMARKETCAL_API_KEY", "FIREWORKS_API_KEY", "PINATA_JWT"]
    assert all(r.value is None and r.source is None for r in resolved)


def test_env_wins_over_dotenv_and_config(monkeypatch, tmp_path):
    write_config({"version": 1, "keys": {"COINMARKETCAL_API_KEY": "from-config", "PINATA_JWT": "jwt-config"}})
    (tmp_path / "work" / ".env").write_text("COINMARKETCAL_API_KEY=from-dotenv\nFIREWORKS_API_KEY=fw-dotenv\n")
    monkeypatch.setenv("COINMARKETCAL_API_KEY", "from-env")

    keys = _by_name(resolve_all_keys())

    assert (keys["COINMARKETCAL_API_KEY"].value, keys["COINMARKETCAL_API_KEY"].source) == ("from-env", "env")
    assert (keys["FIREWORKS_API_KEY"].value, keys["FIREWORKS_API_KEY"].source) == ("fw-dotenv", "dotenv")
    assert (keys["PINATA_JWT"].value, keys["PINATA_JWT"].source) == ("jwt-config", "config")


def test_empty_env_value_falls_through(monkeypatch):
    write_config({"version": 1, "keys": {"PINATA_JWT": "jwt-config"}})
    monkeypatch.setenv("PINATA_JWT", "")

    assert resolve_keys()["PINATA_JWT"] == "jwt-config"


def test_write_config_creates_private_file(isolated_config):
    write_config({"version": 1, "keys": {"PINATA_JWT": "secret"}})

    path = config_path()
    assert path.parent == isolated_config
    assert json.loads(path.read_text()) == {"version": 1, "keys": {"PINATA_JWT": "secret"}}
    if os.name == "posix":
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert read_config()["keys"]["PINATA_JWT"] == "secret"


@pytest.mark.parametrize("content", ["not json", "[]", '{"version": "x", "keys": 5}'])
def test_malformed_config_reads_as_default(isolated_config, content):
    isolated_config.mkdir(parents=True, exist_ok=True)
    (isolated_config / "config.json").write_text(content)

    assert read_config() == {"version": 1, "keys": {}}


def test_redact_value():
    assert redact_value("short") == "****"
    assert redact_value("12345678") == "****"
    assert redact_value("sk-live-abcdef123456") == "sk-l...3456"
