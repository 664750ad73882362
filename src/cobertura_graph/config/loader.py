"""
cobertura-graph — coverage option loader.

File: src/cobertura_graph/config/loader.py

Purpose
- Load the coverage options of one project from defaults, the project's
  ``cobertura.toml``, ``COBERTURA_`` environment variables and explicit
  overrides.

What should be included in this file
- Precedence logic: explicit overrides > env (COBERTURA_) > file > defaults.
- TOML loading via ``tomllib``.
- Deterministic environment variable mapping and coercion by option type.

Functional requirements
- Reject invalid option payloads via schema validation.
- Relative paths resolve against the project directory, not the working directory.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final, Literal

from cobertura_graph.config.schema import (
    DEFAULT_CONFIG,
    CoverageExtension,
    assert_valid_config,
    default_config,
)
from cobertura_graph.errors import CoberturaGraphError

DEFAULT_CONFIG_FILE: Final[str] = "cobertura.toml"
ENV_PREFIX: Final[str] = "COBERTURA_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

_ValueKind = Literal["str", "optional-str", "bool", "list"]


class ConfigLoadError(CoberturaGraphError, ValueError):
    """Raised when options cannot be read or an override cannot be coerced."""


def load_config(
    project_dir: str | Path,
    *,
    config_path: str | Path | None = None,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return validated options with precedence: overrides > env > file > defaults."""

    base_dir = Path(project_dir).expanduser().resolve()
    explicit_path = config_path is not None
    resolved_path = (
        Path(config_path).expanduser().resolve() if explicit_path else base_dir / DEFAULT_CONFIG_FILE
    )
    env_map = dict(os.environ if environ is None else environ)

    merged = default_config()
    merged.update(_load_toml_file(resolved_path, required=explicit_path))
    merged = assert_valid_config(merged)

    merged.update(_collect_env_overrides(env_map))
    merged.update(dict(overrides or {}))
    return assert_valid_config(merged)


def load_coverage_config(
    project_dir: str | Path,
    *,
    config_path: str | Path | None = None,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> CoverageExtension:
    """Load options for ``project_dir`` and turn them into a ``CoverageExtension``."""

    options = load_config(
        project_dir, config_path=config_path, overrides=overrides, environ=environ
    )
    return CoverageExtension.for_project(Path(project_dir).expanduser().resolve(), options)


def env_name_for(option: str) -> str:
    return ENV_PREFIX + option.upper()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    # Options may sit at the top level or under a [cobertura] table.
    table = parsed.get("cobertura", parsed)
    if not isinstance(table, dict):
        raise ConfigLoadError(f"[cobertura] must be a table: {path}")
    return dict(table)


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for option in sorted(DEFAULT_CONFIG):
        env_name = env_name_for(option)
        raw = environ.get(env_name)
        if raw is None:
            continue
        overrides[option] = _coerce_env(raw, _kind_for_default(DEFAULT_CONFIG[option]), env_name)
    return overrides


def _kind_for_default(value: object) -> _ValueKind:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, list):
        return "list"
    if value is None:
        return "optional-str"
    return "str"


def _coerce_env(raw: str, kind: _ValueKind, env_name: str) -> object:
    value = raw.strip()
    if kind == "str":
        return value
    if kind == "optional-str":
        return value or None
    if kind == "list":
        return [item.strip() for item in value.split(",") if item.strip()]

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(f"{env_name} must be a boolean (true/false/1/0/yes/no/on/off)")


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "env_name_for",
    "load_config",
    "load_coverage_config",
]
