"""Minimal host build model: projects, tasks, configurations and the execution plan."""

from cobertura_graph.host.build import (
    Build,
    BuildResult,
    ExecutionGraph,
    TaskOutcome,
    TaskState,
    execute,
)
from cobertura_graph.host.java import (
    apply_java_conventions,
    default_test_classpath,
    main_classes_dir,
    main_resources_dir,
)
from cobertura_graph.host.model import (
    Configuration,
    Project,
    Task,
    TaskKind,
    is_test_like,
)
from cobertura_graph.host.task_graph import CycleError, TaskGraph

__all__ = [
    "Build",
    "BuildResult",
    "Configuration",
    "CycleError",
    "ExecutionGraph",
    "Project",
    "Task",
    "TaskGraph",
    "TaskKind",
    "TaskOutcome",
    "TaskState",
    "apply_java_conventions",
    "default_test_classpath",
    "execute",
    "is_test_like",
    "main_classes_dir",
    "main_resources_dir",
]
