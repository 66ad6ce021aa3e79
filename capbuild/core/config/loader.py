"""
Configuration loader — assembles build options from their sources.

Sources, lowest precedence first:
    declared defaults  <  capacitor-build.yml  <  environment  <  explicit overrides

Also reads the two pieces of Ionic/Capacitor project metadata the build
needs: the app name from ``ionic.config.json`` and the bundle id from
``capacitor.config.json``.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from capbuild.core.errors import ConfigError
from capbuild.core.models.options import OPTIONS, BuildOptions, build_options, get_option

logger = logging.getLogger(__name__)

# Default config filename
BUILD_CONFIG_FILE = "capacitor-build.yml"
IONIC_CONFIG_FILE = "ionic.config.json"
CAPACITOR_CONFIG_FILE = "capacitor.config.json"

__all__ = [
    "BUILD_CONFIG_FILE",
    "ConfigError",
    "find_config_file",
    "load_config_file",
    "load_options",
    "options_from_env",
    "read_app_identifier",
    "read_app_name",
]


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for capacitor-build.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / BUILD_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """Read option values from a YAML config file.

    The file may be flat or wrap its options under a ``build:`` key.

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    if "build" in data:
        data = data["build"] or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Expected 'build' to be a mapping in {path}")

    return dict(data)


def options_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect option values bound to environment variables."""
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for spec in OPTIONS:
        for env_name in (spec.env_name, *spec.env_fallbacks):
            raw = env.get(env_name)
            if raw is not None:
                values[spec.name] = spec.from_env(raw)
                break
    return values


def load_options(
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> BuildOptions:
    """Merge every option source and validate the result.

    Args:
        config_path: Optional YAML config file.
        overrides: Explicit values (CLI flags, API callers). ``None``
            values are ignored so unset flags don't mask other sources.
        environ: Environment mapping (default: ``os.environ``).

    Raises:
        ConfigError: If the config file is invalid.
        OptionValidationError: If any option value is invalid.
    """
    merged: dict[str, Any] = {}
    if config_path is not None:
        file_values = load_config_file(config_path)
        for name in file_values:
            get_option(name)
        merged.update(file_values)

    merged.update(options_from_env(environ))
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    options = build_options(merged)
    logger.debug("Resolved options: %s", options.to_dict())
    return options


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}")
    return data


def read_app_name(project_root: Path) -> str:
    """App name from ionic.config.json.

    Raises:
        ConfigError: If the file is missing or has no ``name``.
    """
    path = project_root / IONIC_CONFIG_FILE
    if not path.is_file():
        raise ConfigError(f"No {IONIC_CONFIG_FILE} found in {project_root}")
    name = _read_json(path).get("name")
    if not name or not isinstance(name, str):
        raise ConfigError(f"Missing 'name' in {path}")
    return name


def read_app_identifier(project_root: Path) -> str | None:
    """Bundle identifier (``appId``) from capacitor.config.json, if present."""
    path = project_root / CAPACITOR_CONFIG_FILE
    if not path.is_file():
        return None
    try:
        app_id = _read_json(path).get("appId")
    except ConfigError as e:
        logger.warning("%s", e)
        return None
    return app_id if isinstance(app_id, str) else None
