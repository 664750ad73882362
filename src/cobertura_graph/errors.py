"""Exception hierarchy shared by the host model and the coverage plugin.

Structural errors abort configuration of the build. ``UnknownConfigurationError``
is the one benign, per-task miss: the plan-ready gate swallows it for the single
test task whose project does not apply coverage.
"""

from __future__ import annotations

from pathlib import Path


class CoberturaGraphError(Exception):
    """Base class for every error raised by this package."""


class BaseProjectNotFoundError(CoberturaGraphError):
    """No project in the tree lives in the directory the build was invoked from."""

    def __init__(self, invocation_dir: Path | str) -> None:
        self.invocation_dir = Path(invocation_dir)
        super().__init__(
            f"no base project found: no project in the build tree has directory {self.invocation_dir}"
        )


class PluginAlreadyAppliedError(CoberturaGraphError):
    """The coverage plugin was applied twice to the same project."""

    def __init__(self, project_path: str) -> None:
        self.project_path = project_path
        super().__init__(
            f"cobertura plugin already applied to project {project_path!r}; "
            "coordination tasks must be created exactly once"
        )


class DuplicateTaskError(CoberturaGraphError):
    """A task with the same name already exists in the project."""

    def __init__(self, project_path: str, task_name: str) -> None:
        self.project_path = project_path
        self.task_name = task_name
        super().__init__(f"cannot add task {task_name!r} to project {project_path!r}: name already taken")


class UnknownTaskError(CoberturaGraphError, KeyError):
    """Task lookup by name failed."""

    def __init__(self, project_path: str, task_name: str) -> None:
        self.project_path = project_path
        self.task_name = task_name
        super().__init__(f"task {task_name!r} not found in project {project_path!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownConfigurationError(CoberturaGraphError, KeyError):
    """Configuration lookup by name failed."""

    def __init__(self, project_path: str, name: str) -> None:
        self.project_path = project_path
        self.name = name
        super().__init__(f"configuration {name!r} not found in project {project_path!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownExtensionError(CoberturaGraphError, KeyError):
    """Extension lookup by name failed."""

    def __init__(self, project_path: str, name: str) -> None:
        self.project_path = project_path
        self.name = name
        super().__init__(f"extension {name!r} not found in project {project_path!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class TaskSelectionError(CoberturaGraphError):
    """A requested task name matched nothing from the invocation project down."""


class PlanAlreadyFinalizedError(CoberturaGraphError):
    """The execution plan can be computed only once per build."""


class TaskExecutionError(CoberturaGraphError):
    """A task action failed while executing the plan."""

    def __init__(self, task_path: str, cause: BaseException) -> None:
        self.task_path = task_path
        super().__init__(f"execution failed for task {task_path}: {cause}")


__all__ = [
    "BaseProjectNotFoundError",
    "CoberturaGraphError",
    "DuplicateTaskError",
    "PlanAlreadyFinalizedError",
    "PluginAlreadyAppliedError",
    "TaskExecutionError",
    "TaskSelectionError",
    "UnknownConfigurationError",
    "UnknownExtensionError",
    "UnknownTaskError",
]
