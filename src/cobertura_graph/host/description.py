"""
cobertura-graph — YAML build description loader.

File: src/cobertura_graph/host/description.py

Purpose
- Materialize a multi-project build (projects, directories, tasks, edges) from a
  YAML document, so the graph augmentation can be dry-run without a real host.

Document shape
- ``root``: project mapping with ``name``, optional ``dir`` (relative to the
  document), ``java`` (apply java conventions), ``cobertura`` (``true`` or a
  mapping of coverage options, applied later by the caller), ``tasks`` (list of
  ``{name, kind, depends_on, classpath}``) and ``children`` (same shape).
- ``depends_on`` entries are task names of the same project or absolute task
  paths such as ``:core:classes``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import yaml

from cobertura_graph.errors import CoberturaGraphError
from cobertura_graph.host.build import Build
from cobertura_graph.host.java import apply_java_conventions
from cobertura_graph.host.model import Project, Task, TaskKind

_PROJECT_KEYS: Final[frozenset[str]] = frozenset(
    {"name", "dir", "java", "cobertura", "tasks", "children"}
)
_TASK_KEYS: Final[frozenset[str]] = frozenset({"name", "kind", "depends_on", "classpath", "description"})


class BuildDescriptionError(CoberturaGraphError, ValueError):
    """Raised when a build description cannot be read or is malformed."""


@dataclass(frozen=True, slots=True)
class CoverageRequest:
    """A project that asked for the coverage plugin, with its option overrides."""

    project: Project
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LoadedBuild:
    build: Build
    coverage_requests: tuple[CoverageRequest, ...]


@dataclass(slots=True)
class _PendingEdge:
    task: Task
    target: str
    location: str


def load_build(path: str | Path, *, start_dir: str | Path | None = None) -> LoadedBuild:
    """Read ``path`` and build the project tree it describes.

    ``start_dir`` is the invocation directory; relative values are taken from
    the document's directory, and the root project's directory is the default.
    """
    document_path = Path(path).expanduser().resolve()
    try:
        raw = yaml.safe_load(document_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise BuildDescriptionError(f"invalid YAML in {document_path}: {exc}") from exc
    except OSError as exc:
        raise BuildDescriptionError(f"unable to read build description {document_path}: {exc}") from exc

    return build_from_mapping(raw, base_dir=document_path.parent, start_dir=start_dir)


def build_from_mapping(
    payload: object,
    *,
    base_dir: Path,
    start_dir: str | Path | None = None,
) -> LoadedBuild:
    if not isinstance(payload, Mapping) or "root" not in payload:
        raise BuildDescriptionError("build description must be a mapping with a 'root' project")

    requests: list[CoverageRequest] = []
    edges: list[_PendingEdge] = []
    root = _create_project(payload["root"], None, base_dir, "root", requests, edges)

    resolved_start: Path | None = None
    if start_dir is not None:
        candidate = Path(start_dir).expanduser()
        resolved_start = candidate if candidate.is_absolute() else base_dir / candidate

    build = Build(root, start_dir=resolved_start)
    for edge in edges:
        edge.task.depends_on(_resolve_task(root, edge.task.project, edge.target, edge.location))
    return LoadedBuild(build=build, coverage_requests=tuple(requests))


def _create_project(
    raw: object,
    parent: Project | None,
    base_dir: Path,
    location: str,
    requests: list[CoverageRequest],
    edges: list[_PendingEdge],
) -> Project:
    spec = _mapping(raw, location)
    _reject_unknown(spec, _PROJECT_KEYS, location)

    name = _string(spec.get("name"), f"{location}.name")
    raw_dir = spec.get("dir")
    if raw_dir is None:
        directory = base_dir if parent is None else parent.dir / name
    else:
        relative_to = base_dir if parent is None else parent.dir
        candidate = Path(_string(raw_dir, f"{location}.dir")).expanduser()
        directory = candidate if candidate.is_absolute() else relative_to / candidate

    project = Project(name, directory) if parent is None else parent.add_child(name, directory)

    if _boolean(spec.get("java", False), f"{location}.java"):
        apply_java_conventions(project)

    for index, raw_task in enumerate(_sequence(spec.get("tasks", ()), f"{location}.tasks")):
        _create_task(project, raw_task, f"{location}.tasks[{index}]", edges)

    coverage = spec.get("cobertura", False)
    if coverage is True:
        requests.append(CoverageRequest(project))
    elif isinstance(coverage, Mapping):
        requests.append(CoverageRequest(project, dict(coverage)))
    elif coverage is not False and coverage is not None:
        raise BuildDescriptionError(f"{location}.cobertura must be a boolean or a mapping")

    for index, raw_child in enumerate(_sequence(spec.get("children", ()), f"{location}.children")):
        _create_project(raw_child, project, base_dir, f"{location}.children[{index}]", requests, edges)
    return project


def _create_task(project: Project, raw: object, location: str, edges: list[_PendingEdge]) -> None:
    spec = _mapping(raw, location)
    _reject_unknown(spec, _TASK_KEYS, location)

    name = _string(spec.get("name"), f"{location}.name")
    raw_kind = spec.get("kind", TaskKind.PLAIN.value)
    try:
        kind = TaskKind(raw_kind)
    except ValueError as exc:
        allowed = ", ".join(kind.value for kind in TaskKind)
        raise BuildDescriptionError(f"{location}.kind must be one of: {allowed}") from exc

    description = _string(spec.get("description", ""), f"{location}.description", allow_empty=True)
    existing = project.tasks.find(name)
    if existing is not None:
        if existing.kind is not kind:
            raise BuildDescriptionError(
                f"{location}: task {existing.path} already exists with kind {existing.kind.value!r}"
            )
        task = existing
    else:
        task = project.tasks.create(name, kind, description=description)

    for index, entry in enumerate(_sequence(spec.get("classpath", ()), f"{location}.classpath")):
        candidate = Path(_string(entry, f"{location}.classpath[{index}]")).expanduser()
        task.add_to_classpath([candidate if candidate.is_absolute() else project.dir / candidate])

    for index, target in enumerate(_sequence(spec.get("depends_on", ()), f"{location}.depends_on")):
        edges.append(_PendingEdge(task, _string(target, f"{location}.depends_on[{index}]"), location))


def _resolve_task(root: Project, owner: Project, target: str, location: str) -> Task:
    if not target.startswith(":"):
        task = owner.tasks.find(target)
        if task is None:
            raise BuildDescriptionError(f"{location}: unknown task {target!r} in project {owner.path!r}")
        return task

    project_path, _, name = target.rpartition(":")
    project_path = project_path or ":"
    for project in root.all_projects():
        if project.path == project_path:
            task = project.tasks.find(name)
            if task is not None:
                return task
    raise BuildDescriptionError(f"{location}: unknown task path {target!r}")


def _mapping(value: object, location: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise BuildDescriptionError(f"{location} must be a mapping")
    return value


def _sequence(value: object, location: str) -> Sequence[object]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise BuildDescriptionError(f"{location} must be a list")
    return value


def _string(value: object, location: str, *, allow_empty: bool = False) -> str:
    if not isinstance(value, str) or (not allow_empty and not value.strip()):
        raise BuildDescriptionError(f"{location} must be a non-empty string")
    return value.strip()


def _boolean(value: object, location: str) -> bool:
    if not isinstance(value, bool):
        raise BuildDescriptionError(f"{location} must be a boolean")
    return value


def _reject_unknown(spec: Mapping[str, Any], allowed: frozenset[str], location: str) -> None:
    unknown = sorted(str(key) for key in spec if key not in allowed)
    if unknown:
        raise BuildDescriptionError(f"{location}: unknown key(s) {', '.join(unknown)}")


__all__ = [
    "BuildDescriptionError",
    "CoverageRequest",
    "LoadedBuild",
    "build_from_mapping",
    "load_build",
]
