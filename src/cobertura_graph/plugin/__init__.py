"""Coverage plugin: base project resolution, graph augmentation, plan gate, classpath rewriting."""

from cobertura_graph.plugin.apply import CoberturaPlugin, apply_plugin
from cobertura_graph.plugin.augmentation import CoordinationTasks, fix_task_dependency, install_rules
from cobertura_graph.plugin.classpath import fix_test_classpath, instrumented_classes_dir
from cobertura_graph.plugin.gate import (
    coverage_requested,
    on_plan_ready,
    prepare_test_task,
    register_task_fixup_listener,
)
from cobertura_graph.plugin.resolver import find_base_project
from cobertura_graph.plugin.runner import (
    CoberturaRunner,
    CommandExecutionResult,
    CommandRunner,
    SubprocessCommandRunner,
    ToolExecutionError,
)

__all__ = [
    "CoberturaPlugin",
    "CoberturaRunner",
    "CommandExecutionResult",
    "CommandRunner",
    "CoordinationTasks",
    "SubprocessCommandRunner",
    "ToolExecutionError",
    "apply_plugin",
    "coverage_requested",
    "find_base_project",
    "fix_task_dependency",
    "fix_test_classpath",
    "install_rules",
    "instrumented_classes_dir",
    "on_plan_ready",
    "prepare_test_task",
    "register_task_fixup_listener",
]
