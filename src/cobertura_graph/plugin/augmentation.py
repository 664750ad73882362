"""
cobertura-graph — graph augmentation rules.

File: src/cobertura_graph/plugin/augmentation.py

Purpose
- Connect test, ``test`` and ``classes`` tasks to the coordination tasks of one
  applying project, for every task that exists now and every task created later
  under the scoped projects.

Edges only establish order and membership; whether the instrument and report
tasks do any work is decided later, once the execution plan is known.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import structlog

from cobertura_graph.constants import CLASSES_TASK_NAME, TEST_TASK_NAME
from cobertura_graph.host.model import Project, Task, is_test_like

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CoordinationTasks:
    """The synthetic tasks created once per applying project."""

    instrument: Task
    generate_report: Task
    report_request: Task
    run_all: Task

    def __iter__(self) -> Iterator[Task]:
        return iter((self.instrument, self.generate_report, self.report_request, self.run_all))


def fix_task_dependency(task: Task, applying_project: Project, tasks: CoordinationTasks) -> None:
    """Add the edges ``task`` needs. Safe to call any number of times for one task.

    - Test tasks of the applying project run after ``instrument``, are
      finalized by the report generation, and belong to the run-all task.
    - Any task named ``test`` belongs to the run-all task, whichever project
      owns it, so that the run-all task runs what ``test`` would from the
      invocation directory.
    - ``instrument`` runs after the applying project's ``classes`` task.
    """
    owned = task.project is applying_project

    if owned and is_test_like(task):
        changed = task.depends_on(tasks.instrument)
        changed = task.finalized_by(tasks.generate_report) or changed
        changed = tasks.run_all.depends_on(task) or changed
        if changed:
            logger.info("cobertura_test_task_wired", task=task.path)

    if task.name == TEST_TASK_NAME and tasks.run_all.depends_on(task):
        logger.info("cobertura_run_all_depends_on", task=task.path)

    if owned and task.name == CLASSES_TASK_NAME and tasks.instrument.depends_on(task):
        logger.info("cobertura_instrument_depends_on", task=task.path)


def install_rules(
    scope_projects: Iterable[Project],
    tasks: CoordinationTasks,
    applying_project: Project,
) -> None:
    """Apply ``fix_task_dependency`` to existing tasks and subscribe to new ones."""

    # Asking for the run-all task always means asking for a report.
    tasks.run_all.depends_on(tasks.report_request)

    def _on_task_added(task: Task) -> None:
        logger.debug("cobertura_task_added", task=task.path, applying_project=applying_project.path)
        fix_task_dependency(task, applying_project, tasks)

    for project in scope_projects:
        for task in project.tasks:
            logger.debug("cobertura_fixing_task", task=task.path, applying_project=applying_project.path)
            fix_task_dependency(task, applying_project, tasks)
        project.tasks.when_task_added(_on_task_added)


__all__ = ["CoordinationTasks", "fix_task_dependency", "install_rules"]
