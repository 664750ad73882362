"""
cobertura-graph — execution-plan gate.

File: src/cobertura_graph/plugin/gate.py

Purpose
- Decide, once the execution plan is final, whether this build runs with
  coverage.

Coverage is active when the plan contains a report-request task; the run-all
task pulls one in through its dependencies. Active: every test task in the plan
gets the data file property, the tool classpath and the instrumented classes.
Inactive: every instrument and report-generation task in the plan is disabled,
so builds that never asked for coverage pay nothing for it.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import partial
from typing import Final

import structlog

from cobertura_graph.config.schema import CoverageExtension
from cobertura_graph.constants import (
    COBERTURA_CONFIGURATION,
    COBERTURA_EXTENSION,
    DATAFILE_SYSTEM_PROPERTY,
    LISTENER_REGISTERED_PROPERTY,
)
from cobertura_graph.errors import CoberturaGraphError, UnknownConfigurationError
from cobertura_graph.host.build import Build, ExecutionGraph
from cobertura_graph.host.model import Task, TaskKind, is_test_like
from cobertura_graph.plugin.classpath import fix_test_classpath

logger = structlog.get_logger(__name__)

_REQUEST_KINDS: Final[frozenset[TaskKind]] = frozenset({TaskKind.REPORT_REQUEST, TaskKind.RUN_ALL})
_COORDINATOR_KINDS: Final[frozenset[TaskKind]] = frozenset(
    {TaskKind.INSTRUMENT, TaskKind.GENERATE_REPORT}
)


def register_task_fixup_listener(build: Build) -> bool:
    """Register the plan-ready callback unless another project already did.

    The plan-ready hook is build-wide, while the plugin is applied per project,
    so the flag lives on the build. Returns ``True`` when this call registered.
    """
    if build.extra_properties.get(LISTENER_REGISTERED_PROPERTY):
        return False
    build.extra_properties[LISTENER_REGISTERED_PROPERTY] = True
    build.task_graph.when_ready(partial(on_plan_ready, build))
    logger.debug("cobertura_plan_listener_registered")
    return True


def coverage_requested(plan: Sequence[Task]) -> bool:
    return any(task.kind in _REQUEST_KINDS for task in plan)


def on_plan_ready(build: Build, graph: ExecutionGraph) -> None:
    plan = graph.all_tasks
    if coverage_requested(plan):
        logger.info("cobertura_coverage_active", planned_tasks=len(plan))
        for task in plan:
            if not is_test_like(task):
                continue
            try:
                prepare_test_task(task)
            except UnknownConfigurationError as exc:
                # Multi-project build where this project does not apply coverage.
                logger.info("cobertura_test_task_not_covered", task=task.path, reason=str(exc))
    else:
        logger.info("cobertura_coverage_inactive", planned_tasks=len(plan))
        for task in plan:
            if task.kind in _COORDINATOR_KINDS:
                task.enabled = False
                logger.debug("cobertura_task_disabled", task=task.path)

    for project in build.all_projects():
        extension = project.extensions.find(COBERTURA_EXTENSION)
        if isinstance(extension, CoverageExtension):
            extension.freeze()


def prepare_test_task(task: Task) -> None:
    """Point one test task at the instrumented classes and the coverage data file."""
    project = task.project
    configuration = project.configurations[COBERTURA_CONFIGURATION]
    extension = project.extensions.get(COBERTURA_EXTENSION)
    if not isinstance(extension, CoverageExtension):
        raise CoberturaGraphError(
            f"extension {COBERTURA_EXTENSION!r} of project {project.path!r} is not a CoverageExtension"
        )

    task.system_properties[DATAFILE_SYSTEM_PROPERTY] = str(extension.coverage_datafile)
    task.add_to_classpath(configuration.resolved_files())
    fix_test_classpath(task)
    logger.info("cobertura_test_task_fixed", task=task.path)


__all__ = [
    "coverage_requested",
    "on_plan_ready",
    "prepare_test_task",
    "register_task_fixup_listener",
]
