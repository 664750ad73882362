"""Unit tests for task selection, plan finalization and plan execution."""

from __future__ import annotations

from pathlib import Path

import pytest

from cobertura_graph.errors import (
    CoberturaGraphError,
    PlanAlreadyFinalizedError,
    TaskExecutionError,
    TaskSelectionError,
)
from cobertura_graph.host.build import Build, ExecutionGraph, TaskState, execute
from cobertura_graph.host.model import Project, Task, TaskKind
from cobertura_graph.host.task_graph import CycleError


def _tree(tmp_path: Path) -> tuple[Build, Project, Project]:
    root = Project("root", tmp_path)
    child = root.add_child("child")
    for project in (root, child):
        classes = project.tasks.create("classes")
        project.tasks.create("test", TaskKind.TEST).depends_on(classes)
    return Build(root), root, child


def _recorder(log: list[str], *, fail: bool = False):
    def _action(task: Task) -> None:
        log.append(task.path)
        if fail:
            raise RuntimeError(f"{task.name} exploded")

    return _action


def test_bare_name_selects_start_project_and_descendants(tmp_path: Path) -> None:
    build, root, child = _tree(tmp_path)

    assert [task.path for task in build.select_tasks(["test"])] == [":test", ":child:test"]

    from_child = Build(root, start_dir=child.dir)
    assert [task.path for task in from_child.select_tasks(["test"])] == [":child:test"]


def test_absolute_path_selects_one_task(tmp_path: Path) -> None:
    build, _, _ = _tree(tmp_path)

    assert [task.path for task in build.select_tasks([":child:test", ":test"])] == [
        ":child:test",
        ":test",
    ]
    assert [task.path for task in build.select_tasks([":test", "test"])] == [
        ":test",
        ":child:test",
    ]


@pytest.mark.parametrize("request_name", ["deploy", ":child:deploy", ":missing:test"])
def test_unknown_requests_fail_selection(tmp_path: Path, request_name: str) -> None:
    build, _, _ = _tree(tmp_path)
    with pytest.raises(TaskSelectionError):
        build.select_tasks([request_name])


def test_start_dir_without_project_fails_selection(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    build = Build(root, start_dir=tmp_path / "elsewhere")
    with pytest.raises(TaskSelectionError):
        build.start_project()


def test_plan_closes_over_dependencies_and_finalizers(tmp_path: Path) -> None:
    build, root, _ = _tree(tmp_path)
    report = root.tasks.create("report")
    root.tasks.get("test").finalized_by(report)

    plan = build.plan([":test"])

    assert [task.path for task in plan] == [":classes", ":test", ":report"]
    assert build.task_graph.is_ready
    assert report in build.task_graph.all_tasks
    assert build.task_graph.ordering.predecessors(":report") == (":test",)


def test_plan_listeners_fire_once_and_plan_is_final(tmp_path: Path) -> None:
    build, _, _ = _tree(tmp_path)
    seen: list[int] = []
    build.task_graph.when_ready(lambda graph: seen.append(len(graph.all_tasks)))

    build.plan(["test"])

    assert seen == [4]
    with pytest.raises(PlanAlreadyFinalizedError):
        build.plan(["test"])
    assert seen == [4]


def test_ordering_is_unavailable_before_planning() -> None:
    graph = ExecutionGraph()
    assert graph.all_tasks == ()
    with pytest.raises(CoberturaGraphError):
        _ = graph.ordering


def test_cyclic_plan_raises(tmp_path: Path) -> None:
    build, root, _ = _tree(tmp_path)
    root.tasks.get("classes").depends_on(root.tasks.get("test"))

    with pytest.raises(CycleError):
        build.plan([":test"])


def test_execute_skips_disabled_tasks(tmp_path: Path) -> None:
    build, root, _ = _tree(tmp_path)
    log: list[str] = []
    for task in root.tasks:
        task.do_last(_recorder(log))
    root.tasks.get("classes").enabled = False

    result = execute(build.plan([":test"]))

    assert result.succeeded
    assert log == [":test"]
    assert result.state_of(":classes") is TaskState.SKIPPED
    assert result.state_of(":test") is TaskState.EXECUTED
    with pytest.raises(KeyError):
        result.state_of(":nope")


def test_finalizer_runs_after_failure_and_other_tasks_do_not(tmp_path: Path) -> None:
    build, root, child = _tree(tmp_path)
    log: list[str] = []
    report = root.tasks.create("report")
    root.tasks.get("test").finalized_by(report)
    root.tasks.get("test").do_last(_recorder(log, fail=True))
    report.do_last(_recorder(log))
    child.tasks.get("test").do_last(_recorder(log))

    result = build.run(["test"])

    assert not result.succeeded
    assert isinstance(result.failure, TaskExecutionError)
    assert result.failure.task_path == ":test"
    assert isinstance(result.failure.__cause__, RuntimeError)
    assert log == [":test", ":report"]
    assert result.state_of(":test") is TaskState.FAILED
    assert result.state_of(":report") is TaskState.EXECUTED
    assert result.state_of(":child:test") is TaskState.NOT_RUN
