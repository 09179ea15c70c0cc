from __future__ import annotations

import os
import sys
import tomllib
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_ENV_FILE = Path(".env")
DEFAULT_CONFIG_FILE = Path.home() / ".config" / "exa_search" / "config.toml"
DEFAULT_BASE_URL = "https://api.exa.ai"
ENV_FILE_ENV_VAR = "EXA_SEARCH_ENV_FILE"
CONFIG_FILE_ENV_VAR = "EXA_SEARCH_CONFIG_FILE"

_PATH_TO_ENV_KEY: dict[tuple[str, str], str] = {
    ("exa", "api_key"): "EXA_API_KEY",
    ("exa", "base_url"): "EXA_BASE_URL",
}
_ENV_KEY_TO_PATH = {env_name: path for path, env_name in _PATH_TO_ENV_KEY.items()}
_OPTIONAL_DEFAULTS: dict[tuple[str, str], str] = {
    ("exa", "base_url"): DEFAULT_BASE_URL,
}

_SECTION_FIELDS: dict[str, set[str]] = {}
for section, field in _PATH_TO_ENV_KEY:
    _SECTION_FIELDS.setdefault(section, set()).add(field)


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be loaded."""


@dataclass(frozen=True)
class ExaConfig:
    api_key: str
    base_url: str = DEFAULT_BASE_URL


@dataclass(frozen=True)
class AppConfig:
    exa: ExaConfig


_CONFIG_CACHE: AppConfig | None = None


def get_config() -> AppConfig:
    """Return a cached configuration using the default sources."""
    global _CONFIG_CACHE
    if _CONFIG_CACHE is None:
        _CONFIG_CACHE = load_config()
    return _CONFIG_CACHE


def load_config(
    *,
    env_file: Path | str | None = None,
    config_file: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load a configuration from `.env`, the personal config file, and environment variables."""
    env_path = _resolve_env_file(env_file)
    config_path = _resolve_config_file(config_file)

    merged: dict[str, Any] = {}
    _deep_merge(merged, _env_mapping_to_nested(_parse_env_file(env_path)))
    _deep_merge(merged, _filter_known_sections(_read_config_file(config_path)))
    runtime_values = environ if environ is not None else os.environ
    _deep_merge(merged, _env_mapping_to_nested(runtime_values))
    return _build_app_config(merged)


def doctor(*, env_file: Path | str | None = None, config_file: Path | str | None = None) -> bool:
    """Validate configuration sources and print a diagnostic summary."""
    try:
        config = load_config(env_file=env_file, config_file=config_file)
    except ConfigError as exc:
        print("Configuration invalid:", file=sys.stderr)
        print(f"  {exc}", file=sys.stderr)
        return False

    print("Configuration looks good.", file=sys.stdout)
    print(f"  Exa API key: {mask_secret(config.exa.api_key)}", file=sys.stdout)
    print(f"  Exa base URL: {config.exa.base_url}", file=sys.stdout)
    return True


def mask_secret(value: str) -> str:
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-4:]}"


def _build_app_config(data: Mapping[str, Any]) -> AppConfig:
    values: dict[tuple[str, str], str] = {}
    missing: list[str] = []
    for path, env_name in _PATH_TO_ENV_KEY.items():
        section_name, key = path
        section = data.get(section_name)
        raw_value = section.get(key) if isinstance(section, Mapping) else None
        if raw_value is None or str(raw_value).strip() == "":
            if path in _OPTIONAL_DEFAULTS:
                values[path] = _OPTIONAL_DEFAULTS[path]
                continue
            missing.append(env_name)
            continue
        values[path] = str(raw_value).strip()

    if missing:
        missing.sort()
        raise ConfigError("Missing required values for " + ", ".join(missing))

    return AppConfig(
        exa=ExaConfig(
            api_key=values[("exa", "api_key")],
            base_url=values[("exa", "base_url")],
        ),
    )


def _resolve_env_file(explicit: Path | str | None) -> Path:
    if explicit is not None:
        return Path(explicit)
    override = os.environ.get(ENV_FILE_ENV_VAR)
    if override:
        return Path(override)
    return DEFAULT_ENV_FILE


def _resolve_config_file(explicit: Path | str | None) -> Path:
    if explicit is not None:
        return Path(explicit)
    override = os.environ.get(CONFIG_FILE_ENV_VAR)
    if override:
        return Path(override)
    return DEFAULT_CONFIG_FILE


def _parse_env_file(path: Path) -> dict[str, str]:
    try:
        contents = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise ConfigError(f"Failed to read env file {path}: {exc}") from exc

    values: dict[str, str] = {}
    for raw_line in contents.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :]
        if "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        values[key.strip()] = _strip_quotes(raw_value.strip())
    return values


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and ((value[0] == value[-1]) and value.startswith(("'", '"'))):
        return value[1:-1]
    return value


def _read_config_file(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError:
        return {}
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid TOML: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc


def _filter_known_sections(raw: Mapping[str, Any]) -> dict[str, Any]:
    filtered: dict[str, Any] = {}
    for section, allowed_fields in _SECTION_FIELDS.items():
        raw_section = raw.get(section)
        if isinstance(raw_section, Mapping):
            filtered_section = {
                field: str(raw_section[field]) for field in allowed_fields if field in raw_section
            }
            if filtered_section:
                filtered[section] = filtered_section
    return filtered


def _env_mapping_to_nested(mapping: Mapping[str, Any]) -> dict[str, Any]:
    nested: dict[str, Any] = {}
    for key, value in mapping.items():
        path = _ENV_KEY_TO_PATH.get(key)
        if not path:
            continue
        _assign_path(nested, path, value)
    return nested


def _assign_path(target: MutableMapping[str, Any], path: tuple[str, ...], value: Any) -> None:
    current: MutableMapping[str, Any] = target
    for component in path[:-1]:
        next_value = current.get(component)
        if not isinstance(next_value, MutableMapping):
            next_value = {}
            current[component] = next_value
        current = next_value
    current[path[-1]] = value


def _deep_merge(target: MutableMapping[str, Any], data: Mapping[str, Any]) -> None:
    for key, value in data.items():
        if isinstance(value, Mapping):
            child = target.get(key)
            if not isinstance(child, MutableMapping):
                child = {}
                target[key] = child
            _deep_merge(child, value)
        elif value is not None and str(value).strip() != "":
            target[key] = value


__all__ = [
    "AppConfig",
    "ConfigError",
    "ExaConfig",
    "doctor",
    "get_config",
    "load_config",
    "mask_secret",
]
