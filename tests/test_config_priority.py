from __future__ import annotations

import pytest

from aims_client.config import ENV_VARS, load_settings
from aims_client.errors import ConfigError


@pytest.fixture(autouse=True)
def clear_aims_env(monkeypatch):
    for name in ENV_VARS.values():
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_sources():
    loaded = load_settings(config_path=None, cli_overrides={})

    assert loaded.sources_used == []
    assert loaded.settings.base_url is None
    assert loaded.settings.api_version == "v1"
    assert loaded.settings.timeout_seconds == 20.0


def test_priority_cli_over_env_over_config(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "\n".join([
            'base_url: "https://cfg.local"',
            'api_version: "v1"',
            'auth_token: "cfg_token"',
            "timeout_seconds: 5",
            'log_level: "DEBUG"',
        ]),
        encoding="utf-8",
    )

    monkeypatch.setenv("AIMS_BASE_URL", "https://env.local")
    monkeypatch.setenv("AIMS_AUTH_TOKEN", "env_token")
    monkeypatch.setenv("AIMS_TLS_SKIP_VERIFY", "yes")

    loaded = load_settings(
        config_path=str(cfg),
        cli_overrides={"base_url": "https://cli.local", "auth_token": None, "timeout_seconds": None},
    )

    s = loaded.settings
    assert s.base_url == "https://cli.local"
    assert s.auth_token == "env_token"
    assert s.timeout_seconds == 5.0
    assert s.log_level == "DEBUG"
    assert s.tls_skip_verify is True
    assert loaded.sources_used == ["config", "env", "cli"]


def test_unknown_config_keys_are_ignored(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text('base_url: "https://cfg.local"\nsomething_else: 1\n', encoding="utf-8")

    loaded = load_settings(config_path=str(cfg), cli_overrides={})

    assert loaded.settings.base_url == "https://cfg.local"


def test_invalid_bool_env_raises(monkeypatch):
    monkeypatch.setenv("AIMS_TLS_SKIP_VERIFY", "maybe")

    with pytest.raises(ConfigError):
        load_settings(config_path=None, cli_overrides={})


def test_invalid_timeout_env_raises(monkeypatch):
    monkeypatch.setenv("AIMS_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ConfigError):
        load_settings(config_path=None, cli_overrides={})


def test_config_string_values_are_parsed_like_env(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text('tls_skip_verify: "false"\ntimeout_seconds: "7.5"\n', encoding="utf-8")

    loaded = load_settings(config_path=str(cfg), cli_overrides={})

    assert loaded.settings.tls_skip_verify is False
    assert loaded.settings.timeout_seconds == 7.5


def test_invalid_timeout_in_config_raises(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("timeout_seconds: fast\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(config_path=str(cfg), cli_overrides={})


@pytest.mark.parametrize(
    "line",
    ["tls_skip_verify: [true]", "tls_skip_verify: 1", "timeout_seconds: true", "timeout_seconds: {a: 1}"],
)
def test_wrong_type_in_config_raises(tmp_path, line):
    cfg = tmp_path / "config.yml"
    cfg.write_text(line + "\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(config_path=str(cfg), cli_overrides={})
