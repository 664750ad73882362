"""Project and task model of the host build.

The model is deliberately small: projects form a tree, each owns a task
container, a configuration container and an extension container. Tasks carry
an explicit kind tag instead of a type hierarchy; ``is_test_like`` is the one
predicate the coverage plugin needs.

A project owns its children and its tasks; the parent pointer and the task's
project pointer are weak references. The root project keeps the build it is
attached to alive.
"""

from __future__ import annotations

import weakref
from collections.abc import Callable, Iterator, Sequence
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from cobertura_graph.constants import BUILD_DIR
from cobertura_graph.errors import (
    CoberturaGraphError,
    DuplicateTaskError,
    UnknownConfigurationError,
    UnknownExtensionError,
    UnknownTaskError,
)

if TYPE_CHECKING:
    from cobertura_graph.host.build import Build

TaskAction = Callable[["Task"], None]
TaskListener = Callable[["Task"], None]


class TaskKind(StrEnum):
    PLAIN = "plain"
    TEST = "test"
    INSTRUMENT = "instrument"
    GENERATE_REPORT = "generate-report"
    REPORT_REQUEST = "report-request"
    RUN_ALL = "run-all"


def is_test_like(task: Task) -> bool:
    """True for tasks that execute tests on a runtime classpath."""
    return task.kind is TaskKind.TEST


class Task:
    """A named unit of build work owned by exactly one project."""

    __slots__ = (
        "_dependencies",
        "_finalizers",
        "_project_ref",
        "actions",
        "classpath",
        "description",
        "enabled",
        "kind",
        "name",
        "system_properties",
    )

    def __init__(
        self,
        name: str,
        project: Project,
        kind: TaskKind = TaskKind.PLAIN,
        *,
        description: str = "",
    ) -> None:
        if not name or ":" in name:
            raise ValueError(f"invalid task name {name!r}")
        self.name = name
        self.kind = TaskKind(kind)
        self.description = description
        self.enabled = True
        self.classpath: list[Path] = []
        self.system_properties: dict[str, str] = {}
        self.actions: list[TaskAction] = []
        self._project_ref: weakref.ReferenceType[Project] = weakref.ref(project)
        self._dependencies: dict[str, Task] = {}
        self._finalizers: dict[str, Task] = {}

    def __repr__(self) -> str:
        return f"Task({self.path!r}, kind={self.kind.value!r})"

    @property
    def project(self) -> Project:
        project = self._project_ref()
        if project is None:
            raise CoberturaGraphError(f"owning project of task {self.name!r} no longer exists")
        return project

    @property
    def path(self) -> str:
        return self.project.task_path(self.name)

    @property
    def dependencies(self) -> tuple[Task, ...]:
        """Tasks that must complete before this one, in the order they were added."""
        return tuple(self._dependencies.values())

    @property
    def finalizers(self) -> tuple[Task, ...]:
        """Tasks that run after this one, even when it fails."""
        return tuple(self._finalizers.values())

    def depends_on(self, *tasks: Task) -> bool:
        """Add runs-after edges. Returns ``True`` if at least one edge is new."""
        return _add_edges(self, self._dependencies, tasks)

    def finalized_by(self, *tasks: Task) -> bool:
        """Add finalizer edges. Returns ``True`` if at least one edge is new."""
        return _add_edges(self, self._finalizers, tasks)

    def do_last(self, action: TaskAction) -> None:
        self.actions.append(action)

    def add_to_classpath(self, entries: Sequence[Path]) -> None:
        for entry in entries:
            if entry not in self.classpath:
                self.classpath.append(entry)


def _add_edges(owner: Task, edges: dict[str, Task], targets: Sequence[Task]) -> bool:
    added = False
    for target in targets:
        if target is owner:
            raise CoberturaGraphError(f"task {owner.path} cannot depend on itself")
        key = target.path
        existing = edges.get(key)
        if existing is target:
            continue
        edges[key] = target
        added = True
    return added


class TaskContainer:
    """Tasks of one project plus the listeners notified of every new task."""

    def __init__(self, project: Project) -> None:
        self._project_ref = weakref.ref(project)
        self._tasks: dict[str, Task] = {}
        self._listeners: list[TaskListener] = []

    def __iter__(self) -> Iterator[Task]:
        return iter(tuple(self._tasks.values()))

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __getitem__(self, name: str) -> Task:
        return self.get(name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._tasks)

    def create(
        self,
        name: str,
        kind: TaskKind = TaskKind.PLAIN,
        *,
        description: str = "",
        configure: Callable[[Task], None] | None = None,
    ) -> Task:
        """Create and register a task, then notify every creation listener."""
        project = self._project()
        if name in self._tasks:
            raise DuplicateTaskError(project.path, name)

        task = Task(name, project, kind, description=description)
        if configure is not None:
            configure(task)
        self._tasks[name] = task

        for listener in tuple(self._listeners):
            listener(task)
        return task

    def get(self, name: str) -> Task:
        task = self._tasks.get(name)
        if task is None:
            raise UnknownTaskError(self._project().path, name)
        return task

    def find(self, name: str) -> Task | None:
        return self._tasks.get(name)

    def when_task_added(self, listener: TaskListener) -> None:
        """Call ``listener`` for every task created from now on."""
        self._listeners.append(listener)

    def _project(self) -> Project:
        project = self._project_ref()
        if project is None:
            raise CoberturaGraphError("task container outlived its project")
        return project


class Configuration:
    """Named bucket of dependency notations and their resolved files."""

    __slots__ = ("_extends_from", "dependencies", "files", "name")

    def __init__(self, name: str, extends_from: Sequence[Configuration] = ()) -> None:
        self.name = name
        self.dependencies: list[str] = []
        self.files: list[Path] = []
        self._extends_from: list[Configuration] = list(extends_from)

    def __repr__(self) -> str:
        return f"Configuration({self.name!r})"

    @property
    def extends_from(self) -> tuple[Configuration, ...]:
        return tuple(self._extends_from)

    def extend(self, parent: Configuration) -> None:
        if parent is self:
            raise CoberturaGraphError(f"configuration {self.name!r} cannot extend itself")
        if parent not in self._extends_from:
            self._extends_from.append(parent)

    def add_dependency(self, notation: str) -> None:
        if notation not in self.dependencies:
            self.dependencies.append(notation)

    def resolved_files(self) -> tuple[Path, ...]:
        """Files of this configuration followed by those it inherits, de-duplicated."""
        return tuple(_collect(self, lambda config: config.files))


def _collect(root: Configuration, pick: Callable[[Configuration], Sequence[object]]) -> list:
    seen_configs: set[int] = set()
    values: list = []
    pending = [root]
    while pending:
        config = pending.pop(0)
        if id(config) in seen_configs:
            continue
        seen_configs.add(id(config))
        for value in pick(config):
            if value not in values:
                values.append(value)
        pending.extend(config.extends_from)
    return values


class ConfigurationContainer:
    def __init__(self, project_path: str) -> None:
        self._project_path = project_path
        self._items: dict[str, Configuration] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __getitem__(self, name: str) -> Configuration:
        config = self._items.get(name)
        if config is None:
            raise UnknownConfigurationError(self._project_path, name)
        return config

    def __iter__(self) -> Iterator[Configuration]:
        return iter(tuple(self._items.values()))

    def create(self, name: str, *, extends_from: Sequence[Configuration] = ()) -> Configuration:
        if name in self._items:
            raise CoberturaGraphError(
                f"configuration {name!r} already exists in project {self._project_path!r}"
            )
        config = Configuration(name, extends_from)
        self._items[name] = config
        return config

    def maybe_create(self, name: str) -> Configuration:
        existing = self._items.get(name)
        if existing is not None:
            return existing
        return self.create(name)


class ExtensionContainer:
    """Named per-project objects contributed by plugins."""

    def __init__(self, project_path: str) -> None:
        self._project_path = project_path
        self._items: dict[str, object] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def add(self, name: str, extension: object) -> None:
        if name in self._items:
            raise CoberturaGraphError(
                f"extension {name!r} already registered on project {self._project_path!r}"
            )
        self._items[name] = extension

    def get(self, name: str) -> object:
        if name not in self._items:
            raise UnknownExtensionError(self._project_path, name)
        return self._items[name]

    def find(self, name: str) -> object | None:
        return self._items.get(name)


class Project:
    """A node of the build tree."""

    def __init__(self, name: str, directory: Path | str, *, parent: Project | None = None) -> None:
        if not name or ":" in name:
            raise ValueError(f"invalid project name {name!r}")
        self.name = name
        self.dir = Path(directory).resolve()
        self._parent_ref: weakref.ReferenceType[Project] | None = (
            weakref.ref(parent) if parent is not None else None
        )
        self._build: Build | None = None
        self._children: list[Project] = []
        self.plugins: set[str] = set()
        self.tasks = TaskContainer(self)
        self.configurations = ConfigurationContainer(self.path)
        self.extensions = ExtensionContainer(self.path)

    def __repr__(self) -> str:
        return f"Project({self.path!r}, dir={str(self.dir)!r})"

    @property
    def parent(self) -> Project | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def children(self) -> tuple[Project, ...]:
        return tuple(self._children)

    @property
    def root_project(self) -> Project:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def path(self) -> str:
        parent = self.parent
        if parent is None:
            return ":"
        prefix = parent.path
        return f"{prefix}{self.name}" if prefix == ":" else f"{prefix}:{self.name}"

    @property
    def build_dir(self) -> Path:
        return self.dir / BUILD_DIR

    @property
    def build(self) -> Build:
        root = self.root_project
        build = root._build
        if build is None:
            raise CoberturaGraphError(f"project {self.path!r} is not attached to a build")
        return build

    def task_path(self, task_name: str) -> str:
        path = self.path
        return f":{task_name}" if path == ":" else f"{path}:{task_name}"

    def add_child(self, name: str, directory: Path | str | None = None) -> Project:
        if any(child.name == name for child in self._children):
            raise CoberturaGraphError(f"project {self.path!r} already has a child named {name!r}")
        child = Project(name, directory if directory is not None else self.dir / name, parent=self)
        self._children.append(child)
        return child

    def all_projects(self) -> tuple[Project, ...]:
        """This project followed by every descendant, depth first in declaration order."""
        ordered: list[Project] = []
        pending: list[Project] = [self]
        while pending:
            project = pending.pop()
            ordered.append(project)
            pending.extend(reversed(project._children))
        return tuple(ordered)

    def _attach(self, build: Build) -> None:
        if self.parent is not None:
            raise CoberturaGraphError("only the root project can be attached to a build")
        self._build = build


__all__ = [
    "Configuration",
    "ConfigurationContainer",
    "ExtensionContainer",
    "Project",
    "Task",
    "TaskAction",
    "TaskContainer",
    "TaskKind",
    "TaskListener",
    "is_test_like",
]
