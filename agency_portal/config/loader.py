from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from agency_portal.models.config_models import (
    DatabaseConfig,
    PortalConfig,
    SessionConfig,
    TableConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/portal.yml
- Validate against config_schema.json (shipped next to this module)
- Apply defaults for every optional section
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/portal.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or unreadable, or the
            config data fails validation (wrong types, unknown keys, bad
            table identifiers).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> PortalConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    tables_raw = data.get("tables") or {}
    session_raw = data.get("session") or {}

    defaults = PortalConfig()
    return PortalConfig(
        database=DatabaseConfig(
            host=db_raw.get("host"),
            port=db_raw.get("port"),
            user=db_raw.get("user"),
            password=db_raw.get("password"),
            database=db_raw.get("database"),
            dsn=db_raw.get("dsn"),
        ),
        tables=TableConfig(**tables_raw),
        session=SessionConfig(
            idle_timeout_seconds=float(
                session_raw.get("idle_timeout_seconds", defaults.session.idle_timeout_seconds)
            ),
            login_route=session_raw.get("login_route", defaults.session.login_route),
        ),
        logs_directory=Path(data.get("logs_directory", defaults.logs_directory)),
        settings_path=Path(data.get("settings_path", defaults.settings_path)),
    )
