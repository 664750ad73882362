"""Java project conventions: compile/classes/test tasks and test configurations."""

from __future__ import annotations

from pathlib import Path

from cobertura_graph.constants import (
    CLASSES_TASK_NAME,
    COMPILE_TASK_NAME,
    JAVA_PLUGIN_ID,
    MAIN_CLASSES_DIR,
    MAIN_RESOURCES_DIR,
    TEST_COMPILE_CONFIGURATION,
    TEST_RUNTIME_CONFIGURATION,
    TEST_TASK_NAME,
)
from cobertura_graph.host.model import Project, TaskKind


def main_classes_dir(project: Project) -> Path:
    return project.build_dir / MAIN_CLASSES_DIR


def main_resources_dir(project: Project) -> Path:
    return project.build_dir / MAIN_RESOURCES_DIR


def default_test_classpath(project: Project) -> list[Path]:
    return [main_classes_dir(project), main_resources_dir(project)]


def apply_java_conventions(project: Project) -> None:
    """Add the java tasks and configurations. Applying twice is a no-op."""
    if JAVA_PLUGIN_ID in project.plugins:
        return
    project.plugins.add(JAVA_PLUGIN_ID)

    test_compile = project.configurations.maybe_create(TEST_COMPILE_CONFIGURATION)
    project.configurations.maybe_create(TEST_RUNTIME_CONFIGURATION).extend(test_compile)

    compile_task = project.tasks.find(COMPILE_TASK_NAME) or project.tasks.create(
        COMPILE_TASK_NAME, description="Compiles main Java source."
    )
    classes_task = project.tasks.find(CLASSES_TASK_NAME) or project.tasks.create(
        CLASSES_TASK_NAME, description="Assembles main classes."
    )
    classes_task.depends_on(compile_task)

    test_task = project.tasks.find(TEST_TASK_NAME) or project.tasks.create(
        TEST_TASK_NAME, TaskKind.TEST, description="Runs the unit tests."
    )
    if test_task.kind is TaskKind.TEST:
        test_task.depends_on(classes_task)
        test_task.add_to_classpath(default_test_classpath(project))


__all__ = [
    "apply_java_conventions",
    "default_test_classpath",
    "main_classes_dir",
    "main_resources_dir",
]
