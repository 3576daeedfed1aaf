# File: crudgen/config.py
"""
crudgen - Configuration Loading
===============================
Builds a validated ``GenerationConfig`` from three layers, lowest first:

    1. an optional YAML or JSON config file;
    2. the ``CRUDGEN_CONN`` environment variable (connection string only);
    3. command-line overrides.

Example ``crudgen.yaml``::

    driver: mysql
    conn: "root:secret@tcp(127.0.0.1:3306)/shop?charset=utf8"
    tables: [users, orders]
    level: 4
    app_path: ./shop
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from crudgen.exceptions import ConfigurationError
from crudgen.models import GenerationConfig

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.config")

CONN_ENV_VAR: str = "CRUDGEN_CONN"

# Short names accepted in config files.
_KEY_ALIASES: Dict[str, str] = {
    "conn": "connection",
    "dsn": "connection",
    "app": "app_path",
    "package": "package_path",
}

# ---------------------------------------------------------------------------
# File loading
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc


def _load_yaml_file(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a config file (``.yaml``/``.yml`` or ``.json``).

    Unknown extensions are parsed as YAML, which also accepts JSON.

    Raises:
        ConfigurationError: missing file, parse error, or a top level that
            is not a mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    data: Any
    if path.suffix.lower() == ".json":
        data = _load_json_file(path)
    else:
        data = _load_yaml_file(path)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping at top level of {path}, got {type(data).__name__}."
        )
    logger.info("Loaded config file %s.", path)
    return data


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def _normalise_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in data.items():
        name: str = str(key).strip().replace("-", "_")
        out[_KEY_ALIASES.get(name, name)] = value
    return out


def build_config(
    file_data: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GenerationConfig:
    """
    Merge file values, environment and CLI overrides into a config.

    ``None`` override values are ignored so unset CLI flags never clobber
    file values.
    """
    merged: Dict[str, Any] = _normalise_keys(file_data or {})

    env: Mapping[str, str] = os.environ if environ is None else environ
    if not merged.get("connection") and env.get(CONN_ENV_VAR):
        merged["connection"] = env[CONN_ENV_VAR]
        logger.debug("Connection string taken from %s.", CONN_ENV_VAR)

    for key, value in _normalise_keys(overrides or {}).items():
        if value is not None:
            merged[key] = value

    if "driver" not in merged:
        merged["driver"] = "mysql"

    try:
        return GenerationConfig(**merged)
    except ValidationError as exc:
        problems: List[str] = [
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ConfigurationError("Invalid configuration: " + "; ".join(problems)) from exc


__all__: List[str] = [
    "CONN_ENV_VAR",
    "load_config_file",
    "build_config",
]

logger.debug("crudgen.config loaded.")
