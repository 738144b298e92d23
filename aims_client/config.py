from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
import os
from typing import Any
import yaml

from aims_client.errors import ConfigError


@dataclass(frozen=True)
class Settings:
    # API
    base_url: str | None = None
    api_version: str = "v1"
    auth_token: str | None = None
    timeout_seconds: float = 20.0

    # TLS
    tls_skip_verify: bool = False
    ca_file: str | None = None

    # Logging
    log_dir: str = "./logs"
    log_level: str = "INFO"


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


ENV_VARS: dict[str, str] = {
    "base_url": "AIMS_BASE_URL",
    "api_version": "AIMS_API_VERSION",
    "auth_token": "AIMS_AUTH_TOKEN",
    "timeout_seconds": "AIMS_TIMEOUT_SECONDS",
    "tls_skip_verify": "AIMS_TLS_SKIP_VERIFY",
    "ca_file": "AIMS_CA_FILE",
    "log_dir": "AIMS_LOG_DIR",
    "log_level": "AIMS_LOG_LEVEL",
}


def _read_yaml_config(path: Path) -> dict:
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config: {path}", details={"path": str(path)}) from exc
    if not isinstance(data, dict):
        return {}
    known = {f.name for f in fields(Settings)}
    return {k: v for k, v in data.items() if k in known}


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _parse_bool(v: str) -> bool:
    vv = v.lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ConfigError(f"Invalid boolean value: {v}")


def _parse_float(name: str, v: str) -> float:
    try:
        return float(v)
    except ValueError as exc:
        raise ConfigError(f"Invalid number for {name}: {v}") from exc


def _coerce_config_value(key: str, value: Any) -> Any:
    """
    Назначение:
        Приводит значение из YAML к типу поля Settings.
    Контракт:
        - Строки проходят те же проверки, что и ENV (_parse_bool/_parse_float).
        - tls_skip_verify: bool; timeout_seconds: int/float (не bool).
        - Иной тип -> ConfigError.
    """
    if key == "tls_skip_verify":
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return _parse_bool(value)
        raise ConfigError(f"Invalid boolean config value for {key}: {value!r}")
    if key == "timeout_seconds":
        if isinstance(value, str):
            return _parse_float(key, value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise ConfigError(f"Invalid number for {key}: {value!r}")
    return value


def load_settings(config_path: str | None, cli_overrides: dict) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()
    merged: dict = {f.name: getattr(defaults, f.name) for f in fields(Settings)}

    # 1) config file
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")
            for key, value in cfg.items():
                merged[key] = _coerce_config_value(key, value)

    # 2) env
    env = {key: _env_get(name) for key, name in ENV_VARS.items()}
    if any(v is not None for v in env.values()):
        sources.append("env")
    for key, value in env.items():
        if value is None:
            continue
        if key == "tls_skip_verify":
            merged[key] = _parse_bool(value)
        elif key == "timeout_seconds":
            merged[key] = _parse_float(ENV_VARS[key], value)
        else:
            merged[key] = value

    # 3) CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")
    for k, v in cli_overrides.items():
        if v is None:
            continue
        merged[k] = v

    settings = Settings(
        base_url=merged["base_url"],
        api_version=str(merged["api_version"]),
        auth_token=merged["auth_token"],
        timeout_seconds=float(merged["timeout_seconds"]),
        tls_skip_verify=merged["tls_skip_verify"],
        ca_file=merged["ca_file"],
        log_dir=str(merged["log_dir"]),
        log_level=str(merged["log_level"]),
    )
    return LoadedSettings(settings=settings, sources_used=sources)


__all__ = ["ENV_VARS", "LoadedSettings", "Settings", "load_settings"]
