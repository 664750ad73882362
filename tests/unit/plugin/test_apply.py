"""Unit tests for applying the coverage plugin to a project tree."""

from __future__ import annotations

from pathlib import Path

import pytest
from structlog.testing import capture_logs

from cobertura_graph.config.schema import CoverageExtension
from cobertura_graph.errors import (
    BaseProjectNotFoundError,
    PlanAlreadyFinalizedError,
    PluginAlreadyAppliedError,
)
from cobertura_graph.host.build import Build, TaskState
from cobertura_graph.host.java import apply_java_conventions, main_classes_dir
from cobertura_graph.host.model import Project, TaskKind
from cobertura_graph.plugin.apply import apply_plugin
from cobertura_graph.plugin.runner import CoberturaRunner, CommandExecutionResult


class RecordingCommandRunner:
    def __init__(self) -> None:
        self.commands: list[tuple[str, ...]] = []

    def run(self, command, *, cwd, timeout_seconds) -> CommandExecutionResult:
        self.commands.append(tuple(command))
        return CommandExecutionResult(tuple(command), cwd, 0, "", "")


def test_apply_creates_tasks_configurations_and_extension(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    build = Build(root)

    with capture_logs() as logs:
        plugin = apply_plugin(root, environ={})

    assert plugin.base_project is root
    assert {"cobertura", "java"} <= root.plugins
    assert root.extensions.get("cobertura") is plugin.extension
    assert [task.name for task in plugin.tasks] == [
        "instrument",
        "generateCoverageReport",
        "coberturaReport",
        "cobertura",
    ]
    assert [task.kind for task in plugin.tasks] == [
        TaskKind.INSTRUMENT,
        TaskKind.GENERATE_REPORT,
        TaskKind.REPORT_REQUEST,
        TaskKind.RUN_ALL,
    ]
    assert all(task.description for task in plugin.tasks)

    tool = root.configurations["cobertura"]
    assert tool.extends_from == (root.configurations["testCompile"],)
    assert tool.dependencies == ["net.sourceforge.cobertura:cobertura:2.1.1"]
    assert "net.sourceforge.cobertura:cobertura:2.1.1" in root.configurations["testRuntime"].dependencies
    assert build.extra_properties["coberturaPluginListenerRegistered"] is True

    events = [entry["event"] for entry in logs]
    assert events[0] == "cobertura_plugin_applying"
    assert events[-1] == "cobertura_plugin_applied"


def test_apply_works_when_build_is_not_kept(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    Build(root)

    plugin = apply_plugin(root, environ={})

    assert plugin.base_project is root
    assert root.build.root_project is root
    assert root.build.plan(["cobertura"])


def test_explicit_extension_and_options(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    child = root.add_child("child")
    _build = Build(root)
    extension = CoverageExtension.for_project(tmp_path, {"tool_version": "1.9.4"})

    explicit = apply_plugin(root, extension=extension)
    from_options = apply_plugin(child, options={"coverage_formats": ["xml"]}, environ={})

    assert explicit.extension is extension
    assert root.configurations["cobertura"].dependencies == ["net.sourceforge.cobertura:cobertura:1.9.4"]
    assert list(from_options.extension.coverage_formats) == ["xml"]
    assert from_options.extension.coverage_datafile == child.dir / "build" / "cobertura" / "cobertura.ser"


def test_reapplying_fails_fast_without_touching_the_project(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    _build = Build(root)
    apply_plugin(root, environ={})
    names_before = root.tasks.names

    with pytest.raises(PluginAlreadyAppliedError):
        apply_plugin(root, environ={})

    assert root.tasks.names == names_before


def test_missing_base_project_fails_before_mutation(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    _build = Build(root, start_dir=tmp_path / "not-a-project")

    with pytest.raises(BaseProjectNotFoundError):
        apply_plugin(root, environ={})

    assert root.plugins == set()
    assert len(root.tasks) == 0
    assert "cobertura" not in root.extensions


def test_apply_after_plan_is_final_is_rejected(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    apply_java_conventions(root)
    build = Build(root)
    build.plan(["test"])

    with pytest.raises(PlanAlreadyFinalizedError):
        apply_plugin(root, environ={})


def test_child_as_base_project_scopes_run_all_to_child_subtree(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    child = root.add_child("child")
    grandchild = child.add_child("grandchild")
    for project in (root, child):
        apply_java_conventions(project)
    build = Build(root, start_dir=child.dir)

    plugin = apply_plugin(grandchild, environ={})

    assert plugin.base_project is child
    run_all_deps = {task.path for task in plugin.tasks.run_all.dependencies}
    assert run_all_deps == {":child:test", ":child:grandchild:test", ":child:grandchild:coberturaReport"}
    assert ":test" not in run_all_deps

    plan = build.plan(["cobertura"])
    assert ":test" not in {task.path for task in plan}


def test_multi_project_plugins_share_one_plan_listener(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    child = root.add_child("child")
    build = Build(root)

    root_plugin = apply_plugin(root, environ={})
    child_plugin = apply_plugin(child, environ={})

    calls: list[int] = []
    build.task_graph.when_ready(lambda graph: calls.append(len(graph.all_tasks)))
    build.plan(["test"])

    assert len(calls) == 1
    for plugin in (root_plugin, child_plugin):
        assert not plugin.tasks.instrument.enabled
        assert not plugin.tasks.generate_report.enabled
        assert plugin.extension.frozen
    # Root's run-all task also picks up the child's test task.
    assert child.tasks.get("test") in root_plugin.tasks.run_all.dependencies


def test_running_cobertura_instruments_tests_and_reports(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    build = Build(root)
    commands = RecordingCommandRunner()
    plugin = apply_plugin(root, environ={}, runner=CoberturaRunner(commands))
    main_classes_dir(root).mkdir(parents=True)
    plugin.extension.coverage_datafile.parent.mkdir(parents=True)
    plugin.extension.coverage_datafile.write_bytes(b"\x00")

    result = build.run(["cobertura"])

    assert result.succeeded
    assert result.state_of(":instrument") is TaskState.EXECUTED
    assert result.state_of(":generateCoverageReport") is TaskState.EXECUTED
    main_classes = [command[-1] for command in commands.commands if "--destination" in command]
    assert [command[1] for command in commands.commands] == [
        "net.sourceforge.cobertura.instrument.InstrumentMain",
        "net.sourceforge.cobertura.reporting.ReportMain",
    ]
    assert main_classes[0] == str(main_classes_dir(root))


def test_plain_test_run_skips_coverage_work(tmp_path: Path) -> None:
    root = Project("root", tmp_path)
    build = Build(root)
    commands = RecordingCommandRunner()
    apply_plugin(root, environ={}, runner=CoberturaRunner(commands))
    main_classes_dir(root).mkdir(parents=True)

    result = build.run(["test"])

    assert result.succeeded
    assert result.state_of(":instrument") is TaskState.SKIPPED
    assert result.state_of(":generateCoverageReport") is TaskState.SKIPPED
    assert commands.commands == []
