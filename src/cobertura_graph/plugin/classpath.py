"""Runtime classpath rewriting for test tasks that run with coverage."""

from __future__ import annotations

from pathlib import Path

import structlog

from cobertura_graph.constants import INSTRUMENTED_CLASSES_DIR
from cobertura_graph.host.java import main_classes_dir
from cobertura_graph.host.model import Project, Task

logger = structlog.get_logger(__name__)


def instrumented_classes_dir(project: Project) -> Path:
    return project.build_dir / INSTRUMENTED_CLASSES_DIR


def fix_test_classpath(task: Task) -> None:
    """Swap the raw main classes directory for the instrumented one.

    The raw entry is dropped only when it is a directory on disk; anything else
    stays where it is. The instrumented directory always ends up first, exactly
    once.
    """
    project = task.project
    raw_dir = main_classes_dir(project)
    if raw_dir.is_dir():
        task.classpath = [entry for entry in task.classpath if entry != raw_dir]
    else:
        logger.debug("cobertura_classpath_entry_kept", task=task.path, entry=str(raw_dir))

    instrumented = instrumented_classes_dir(project)
    task.classpath = [instrumented, *(entry for entry in task.classpath if entry != instrumented)]
    logger.debug(
        "cobertura_classpath_fixed", task=task.path, classpath=[str(p) for p in task.classpath]
    )


__all__ = ["fix_test_classpath", "instrumented_classes_dir"]
