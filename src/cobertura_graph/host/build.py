"""
cobertura-graph — build invocation, execution plan and executor.

File: src/cobertura_graph/host/build.py

Purpose
- Tie a project tree to one build invocation (start directory, build-scoped
  extra properties).
- Select requested tasks, finalize the execution plan exactly once and notify
  plan-ready listeners.
- Execute the plan sequentially: disabled tasks are no-ops, finalizers run even
  after a failure.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

import structlog

from cobertura_graph.errors import (
    CoberturaGraphError,
    PlanAlreadyFinalizedError,
    TaskExecutionError,
    TaskSelectionError,
)
from cobertura_graph.host.model import Project, Task
from cobertura_graph.host.task_graph import TaskGraph

PlanListener = Callable[["ExecutionGraph"], None]

logger = structlog.get_logger(__name__)


class TaskState(StrEnum):
    EXECUTED = "executed"
    SKIPPED = "skipped"
    FAILED = "failed"
    NOT_RUN = "not-run"


@dataclass(frozen=True, slots=True)
class TaskOutcome:
    path: str
    state: TaskState
    error: str | None = None


@dataclass(frozen=True, slots=True)
class BuildResult:
    outcomes: tuple[TaskOutcome, ...]
    failure: TaskExecutionError | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    def state_of(self, path: str) -> TaskState:
        for outcome in self.outcomes:
            if outcome.path == path:
                return outcome.state
        raise KeyError(path)


class ExecutionGraph:
    """The finalized set of tasks a build will invoke."""

    def __init__(self) -> None:
        self._listeners: list[PlanListener] = []
        self._plan: tuple[Task, ...] | None = None
        self._graph: TaskGraph | None = None

    @property
    def is_ready(self) -> bool:
        return self._plan is not None

    @property
    def all_tasks(self) -> tuple[Task, ...]:
        """Planned tasks in execution order; empty until the plan is finalized."""
        return self._plan or ()

    @property
    def ordering(self) -> TaskGraph:
        if self._graph is None:
            raise CoberturaGraphError("execution plan has not been computed yet")
        return self._graph

    def when_ready(self, listener: PlanListener) -> None:
        """Call ``listener`` once, right after the plan is finalized."""
        self._listeners.append(listener)

    def populate(self, requested: Iterable[Task]) -> tuple[Task, ...]:
        """Close ``requested`` over dependencies and finalizers, order it, fire listeners."""
        if self._plan is not None:
            raise PlanAlreadyFinalizedError("execution plan is already finalized for this build")

        graph = TaskGraph()
        by_path: dict[str, Task] = {}
        pending: list[Task] = list(requested)
        while pending:
            task = pending.pop(0)
            path = task.path
            if path in by_path:
                continue
            by_path[path] = task
            graph.add_node(path)
            for dependency in task.dependencies:
                graph.add_edge(dependency.path, path)
                pending.append(dependency)
            for finalizer in task.finalizers:
                graph.add_edge(path, finalizer.path)
                pending.append(finalizer)

        order = graph.topological_sort()
        self._graph = graph
        self._plan = tuple(by_path[path] for path in order)
        logger.debug("execution_plan_ready", tasks=list(order))

        for listener in tuple(self._listeners):
            listener(self)
        return self._plan


class Build:
    """One invocation of the build over a project tree."""

    def __init__(self, root_project: Project, *, start_dir: Path | str | None = None) -> None:
        self.root_project = root_project
        self.start_dir = Path(start_dir).resolve() if start_dir is not None else root_project.dir
        self.extra_properties: dict[str, object] = {}
        self.task_graph = ExecutionGraph()
        root_project._attach(self)

    def all_projects(self) -> tuple[Project, ...]:
        return self.root_project.all_projects()

    def start_project(self) -> Project:
        for project in self.all_projects():
            if project.dir == self.start_dir:
                return project
        raise TaskSelectionError(f"no project found in start directory {self.start_dir}")

    def select_tasks(self, requests: Sequence[str]) -> list[Task]:
        """Resolve command-line task requests.

        ``:a:b:name`` selects one task by absolute path. A bare name selects that
        task in the start project and in every project below it.
        """
        selected: list[Task] = []
        for request in requests:
            matches = self._select(request)
            if not matches:
                start = self.start_project().path
                raise TaskSelectionError(
                    f"task {request!r} not found in {start!r} or its subprojects"
                )
            for task in matches:
                if not any(existing is task for existing in selected):
                    selected.append(task)
        return selected

    def plan(self, requests: Sequence[str]) -> tuple[Task, ...]:
        return self.task_graph.populate(self.select_tasks(requests))

    def run(self, requests: Sequence[str]) -> BuildResult:
        return execute(self.plan(requests))

    def _select(self, request: str) -> list[Task]:
        if request.startswith(":"):
            project_path, _, name = request.rpartition(":")
            project_path = project_path or ":"
            for project in self.all_projects():
                if project.path == project_path:
                    task = project.tasks.find(name)
                    return [task] if task is not None else []
            return []
        matches: list[Task] = []
        for project in self.start_project().all_projects():
            task = project.tasks.find(request)
            if task is not None:
                matches.append(task)
        return matches


def execute(plan: Sequence[Task]) -> BuildResult:
    """Run planned tasks in order.

    After the first failure no further task starts, except finalizers of tasks
    that already ran.
    """
    outcomes: list[TaskOutcome] = []
    ran: set[str] = set()
    failure: TaskExecutionError | None = None

    for task in plan:
        path = task.path
        if failure is not None and not _finalizes_ran_task(task, plan, ran):
            outcomes.append(TaskOutcome(path, TaskState.NOT_RUN))
            continue
        if not task.enabled:
            logger.info("task_skipped", task=path, reason="disabled")
            outcomes.append(TaskOutcome(path, TaskState.SKIPPED))
            continue

        ran.add(path)
        try:
            for action in task.actions:
                action(task)
        except Exception as exc:
            logger.error("task_failed", task=path, error=str(exc))
            outcomes.append(TaskOutcome(path, TaskState.FAILED, error=str(exc)))
            if failure is None:
                failure = TaskExecutionError(path, exc)
                failure.__cause__ = exc
            continue
        outcomes.append(TaskOutcome(path, TaskState.EXECUTED))

    return BuildResult(outcomes=tuple(outcomes), failure=failure)


def _finalizes_ran_task(task: Task, plan: Sequence[Task], ran: set[str]) -> bool:
    return any(
        owner.path in ran and any(finalizer is task for finalizer in owner.finalizers)
        for owner in plan
    )


__all__ = [
    "Build",
    "BuildResult",
    "ExecutionGraph",
    "PlanListener",
    "TaskOutcome",
    "TaskState",
    "execute",
]
