"""
cobertura-graph — plugin entry point.

File: src/cobertura_graph/plugin/apply.py

Purpose
- Apply coverage to one project: register the ``cobertura`` extension and
  configuration, create the four coordination tasks, wire task edges from the
  invocation project down, and register the build-wide plan-ready gate.

Tasks created here
- ``instrument``: internal; instruments the main classes. Every test task of the
  applying project depends on it, so instrumentation happens once, and only
  when the plan asks for coverage.
- ``generateCoverageReport``: internal; finalizes every test task of the
  applying project and writes the reports.
- ``coberturaReport``: users add it next to their own test tasks to get reports
  after those tests run. It runs no tests by itself.
- ``cobertura``: users run it instead of ``test``. It runs every ``test`` task
  from the invocation directory down, every test task of the applying project,
  and asks for reports.

Most of the work happens later: when tasks are added, and when the plan is final.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from cobertura_graph.config.loader import load_coverage_config
from cobertura_graph.config.schema import CoverageExtension
from cobertura_graph.constants import (
    COBERTURA_CONFIGURATION,
    COBERTURA_EXTENSION,
    COBERTURA_PLUGIN_ID,
    GENERATE_REPORT_TASK_NAME,
    INSTRUMENT_TASK_NAME,
    REPORT_REQUEST_TASK_NAME,
    RUN_ALL_TASK_NAME,
    TEST_COMPILE_CONFIGURATION,
    TEST_RUNTIME_CONFIGURATION,
)
from cobertura_graph.errors import PlanAlreadyFinalizedError, PluginAlreadyAppliedError
from cobertura_graph.host.java import apply_java_conventions
from cobertura_graph.host.model import Project, Task, TaskKind
from cobertura_graph.plugin.augmentation import CoordinationTasks, install_rules
from cobertura_graph.plugin.gate import register_task_fixup_listener
from cobertura_graph.plugin.resolver import find_base_project
from cobertura_graph.plugin.runner import CoberturaRunner

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CoberturaPlugin:
    """Handle on one application of the plugin."""

    project: Project
    base_project: Project
    extension: CoverageExtension
    tasks: CoordinationTasks
    runner: CoberturaRunner


def apply_plugin(
    project: Project,
    *,
    extension: CoverageExtension | None = None,
    options: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
    runner: CoberturaRunner | None = None,
) -> CoberturaPlugin:
    """Apply coverage to ``project``.

    ``extension`` is used as-is when given; otherwise options load from the
    project's ``cobertura.toml`` and the environment, with ``options`` on top.

    Raises ``PluginAlreadyAppliedError`` on a second application to the same
    project and ``BaseProjectNotFoundError`` when no project matches the build's
    start directory. Both are raised before the project is modified.
    """
    logger.info("cobertura_plugin_applying", project=project.path)
    if COBERTURA_PLUGIN_ID in project.plugins or COBERTURA_EXTENSION in project.extensions:
        raise PluginAlreadyAppliedError(project.path)

    build = project.build
    if build.task_graph.is_ready:
        raise PlanAlreadyFinalizedError(
            f"cannot apply coverage to {project.path!r} after the execution plan is final"
        )
    base_project = find_base_project(build.root_project, build.start_dir)
    if extension is None:
        extension = load_coverage_config(project.dir, overrides=options, environ=environ)
    runner = runner if runner is not None else CoberturaRunner()

    project.plugins.add(COBERTURA_PLUGIN_ID)
    # Coverage works on compiled classes, so the java conventions come first.
    apply_java_conventions(project)
    project.extensions.add(COBERTURA_EXTENSION, extension)
    _register_configurations(project, extension)

    tasks = _create_tasks(project, extension, runner)
    install_rules(base_project.all_projects(), tasks, project)
    register_task_fixup_listener(build)

    logger.info(
        "cobertura_plugin_applied",
        project=project.path,
        base_project=base_project.path,
        tool_version=extension.tool_version,
    )
    return CoberturaPlugin(
        project=project,
        base_project=base_project,
        extension=extension,
        tasks=tasks,
        runner=runner,
    )


def _register_configurations(project: Project, extension: CoverageExtension) -> None:
    configurations = project.configurations
    if COBERTURA_CONFIGURATION not in configurations:
        tool = configurations.create(
            COBERTURA_CONFIGURATION,
            extends_from=[configurations[TEST_COMPILE_CONFIGURATION]],
        )
        tool.add_dependency(extension.tool_coordinate)
    configurations[TEST_RUNTIME_CONFIGURATION].add_dependency(extension.tool_coordinate)


def _create_tasks(
    project: Project, extension: CoverageExtension, runner: CoberturaRunner
) -> CoordinationTasks:
    def _instrument(task: Task) -> None:
        runner.instrument(task.project, extension)

    def _generate_report(task: Task) -> None:
        runner.generate_report(task.project, extension)

    instrument = project.tasks.create(
        INSTRUMENT_TASK_NAME,
        TaskKind.INSTRUMENT,
        description="Instrument code for Cobertura coverage reports",
    )
    instrument.do_last(_instrument)

    generate_report = project.tasks.create(
        GENERATE_REPORT_TASK_NAME,
        TaskKind.GENERATE_REPORT,
        description="Helper task that does the actual Cobertura report generation",
    )
    generate_report.do_last(_generate_report)

    report_request = project.tasks.create(
        REPORT_REQUEST_TASK_NAME,
        TaskKind.REPORT_REQUEST,
        description="Generate Cobertura reports after tests finish.",
    )
    run_all = project.tasks.create(
        RUN_ALL_TASK_NAME,
        TaskKind.RUN_ALL,
        description="Run tests and generate Cobertura coverage reports.",
    )
    return CoordinationTasks(
        instrument=instrument,
        generate_report=generate_report,
        report_request=report_request,
        run_all=run_all,
    )


__all__ = ["CoberturaPlugin", "apply_plugin"]
