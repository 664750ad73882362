"""
cobertura-graph — coverage extension schema and validation.

File: src/cobertura_graph/config/schema.py

Purpose
- Define the coverage option defaults, their validation rules, and the
  ``CoverageExtension`` value object attached to each applying project.

Functional requirements
- Validate option payloads and return structured issues (field + message).
- The extension stays mutable for user overrides until the execution plan is
  final; after ``freeze()`` every assignment fails.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from cobertura_graph.constants import (
    DEFAULT_DATAFILE,
    DEFAULT_REPORT_DIR,
    DEFAULT_SOURCE_DIR,
    DEFAULT_TOOL_VERSION,
    TOOL_GROUP_ARTIFACT,
)
from cobertura_graph.errors import CoberturaGraphError

REPORT_FORMATS: Final[frozenset[str]] = frozenset({"html", "xml"})

# Options holding filesystem paths, normalized relative to the project directory.
PATH_FIELDS: Final[tuple[str, ...]] = ("coverage_datafile", "coverage_report_dir")
PATH_LIST_FIELDS: Final[tuple[str, ...]] = ("coverage_source_dirs",)
REGEX_LIST_FIELDS: Final[tuple[str, ...]] = (
    "coverage_includes",
    "coverage_excludes",
    "coverage_ignores",
)

DEFAULT_CONFIG: Final[dict[str, Any]] = {
    "tool_version": DEFAULT_TOOL_VERSION,
    "coverage_datafile": DEFAULT_DATAFILE.as_posix(),
    "coverage_report_dir": DEFAULT_REPORT_DIR.as_posix(),
    "coverage_formats": ["html"],
    "coverage_source_dirs": [DEFAULT_SOURCE_DIR.as_posix()],
    "coverage_encoding": None,
    "coverage_includes": [],
    "coverage_excludes": [],
    "coverage_ignores": [],
    "ignore_trivial": False,
    "extra_options": [],
}

_VERSION_PATTERN = re.compile(r"^[0-9]+(\.[0-9A-Za-z_-]+)*$")


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    path: str
    message: str

    def render(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return not self.issues


class ConfigValidationError(CoberturaGraphError, ValueError):
    """Raised when coverage options fail validation."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        details = "; ".join(issue.render() for issue in self.issues)
        super().__init__(f"invalid coverage configuration: {details}")


class ExtensionFrozenError(CoberturaGraphError, AttributeError):
    """Raised when coverage options change after the execution plan is final."""


def default_config() -> dict[str, Any]:
    return {
        key: list(value) if isinstance(value, list) else value
        for key, value in DEFAULT_CONFIG.items()
    }


def validate_config(config: Mapping[str, object]) -> ConfigValidationResult:
    issues: list[ConfigValidationIssue] = []

    for key in sorted(config):
        if key not in DEFAULT_CONFIG:
            issues.append(ConfigValidationIssue(key, "unknown option"))

    version = config.get("tool_version")
    if not isinstance(version, str) or not _VERSION_PATTERN.match(version):
        issues.append(ConfigValidationIssue("tool_version", "must be a dotted version string"))

    for key in PATH_FIELDS:
        value = config.get(key)
        if not isinstance(value, (str, Path)) or not str(value).strip():
            issues.append(ConfigValidationIssue(key, "must be a non-empty path"))

    encoding = config.get("coverage_encoding")
    if encoding is not None and (not isinstance(encoding, str) or not encoding.strip()):
        issues.append(
            ConfigValidationIssue("coverage_encoding", "must be a non-empty string or null")
        )

    if not isinstance(config.get("ignore_trivial"), bool):
        issues.append(ConfigValidationIssue("ignore_trivial", "must be a boolean"))

    formats = config.get("coverage_formats")
    if not _is_string_list(formats) or not formats:
        issues.append(
            ConfigValidationIssue("coverage_formats", "must be a non-empty list of strings")
        )
    else:
        for fmt in formats:
            if fmt not in REPORT_FORMATS:
                allowed = ", ".join(sorted(REPORT_FORMATS))
                message = f"unsupported format {fmt!r} (allowed: {allowed})"
                issues.append(ConfigValidationIssue("coverage_formats", message))

    for key in (*PATH_LIST_FIELDS, "extra_options"):
        value = config.get(key)
        if not _is_string_list(value, allow_paths=key in PATH_LIST_FIELDS):
            issues.append(ConfigValidationIssue(key, "must be a list of strings"))

    for key in REGEX_LIST_FIELDS:
        value = config.get(key)
        if not _is_string_list(value):
            issues.append(ConfigValidationIssue(key, "must be a list of regular expressions"))
            continue
        for index, pattern in enumerate(value):
            try:
                re.compile(pattern)
            except re.error as exc:
                issues.append(
                    ConfigValidationIssue(f"{key}[{index}]", f"invalid regular expression: {exc}")
                )

    return ConfigValidationResult(issues=tuple(issues))


def assert_valid_config(config: Mapping[str, object]) -> dict[str, Any]:
    result = validate_config(config)
    if not result.is_valid:
        raise ConfigValidationError(result.issues)
    return dict(config)


def _is_string_list(value: object, *, allow_paths: bool = False) -> bool:
    if not isinstance(value, (list, tuple)):
        return False
    accepted = (str, Path) if allow_paths else (str,)
    return all(isinstance(item, accepted) for item in value)


@dataclass(slots=True)
class CoverageExtension:
    """Coverage options of one applying project."""

    coverage_datafile: Path
    coverage_report_dir: Path
    tool_version: str = DEFAULT_TOOL_VERSION
    coverage_formats: Sequence[str] = field(default_factory=lambda: ["html"])
    coverage_source_dirs: Sequence[Path] = field(default_factory=list)
    coverage_encoding: str | None = None
    coverage_includes: Sequence[str] = field(default_factory=list)
    coverage_excludes: Sequence[str] = field(default_factory=list)
    coverage_ignores: Sequence[str] = field(default_factory=list)
    ignore_trivial: bool = False
    extra_options: Sequence[str] = field(default_factory=list)
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: object) -> None:
        if getattr(self, "_frozen", False):
            raise ExtensionFrozenError(
                f"coverage option {name!r} cannot change once the execution plan is final"
            )
        object.__setattr__(self, name, value)

    @classmethod
    def for_project(
        cls, project_dir: Path, config: Mapping[str, Any] | None = None
    ) -> CoverageExtension:
        """Build an extension from validated options, resolving paths against ``project_dir``."""
        merged = default_config()
        if config is not None:
            merged.update(config)
        merged = assert_valid_config(merged)

        return cls(
            tool_version=merged["tool_version"],
            coverage_datafile=_resolve(project_dir, merged["coverage_datafile"]),
            coverage_report_dir=_resolve(project_dir, merged["coverage_report_dir"]),
            coverage_formats=list(merged["coverage_formats"]),
            coverage_source_dirs=[
                _resolve(project_dir, entry) for entry in merged["coverage_source_dirs"]
            ],
            coverage_encoding=merged["coverage_encoding"],
            coverage_includes=list(merged["coverage_includes"]),
            coverage_excludes=list(merged["coverage_excludes"]),
            coverage_ignores=list(merged["coverage_ignores"]),
            ignore_trivial=merged["ignore_trivial"],
            extra_options=list(merged["extra_options"]),
        )

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def tool_coordinate(self) -> str:
        return f"{TOOL_GROUP_ARTIFACT}:{self.tool_version}"

    def freeze(self) -> None:
        """Make the options read-only; list options become tuples."""
        if self._frozen:
            return
        for name in (
            "coverage_formats",
            "coverage_source_dirs",
            "coverage_includes",
            "coverage_excludes",
            "coverage_ignores",
            "extra_options",
        ):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "_frozen", True)

    def to_dict(self) -> dict[str, object]:
        return {
            "tool_version": self.tool_version,
            "coverage_datafile": self.coverage_datafile.as_posix(),
            "coverage_report_dir": self.coverage_report_dir.as_posix(),
            "coverage_formats": list(self.coverage_formats),
            "coverage_source_dirs": [path.as_posix() for path in self.coverage_source_dirs],
            "coverage_encoding": self.coverage_encoding,
            "coverage_includes": list(self.coverage_includes),
            "coverage_excludes": list(self.coverage_excludes),
            "coverage_ignores": list(self.coverage_ignores),
            "ignore_trivial": self.ignore_trivial,
            "extra_options": list(self.extra_options),
        }


def _resolve(base: Path, raw: str | Path) -> Path:
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute():
        candidate = base / candidate
    return candidate


__all__ = [
    "DEFAULT_CONFIG",
    "PATH_FIELDS",
    "PATH_LIST_FIELDS",
    "REPORT_FORMATS",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "CoverageExtension",
    "ExtensionFrozenError",
    "assert_valid_config",
    "default_config",
    "validate_config",
]
