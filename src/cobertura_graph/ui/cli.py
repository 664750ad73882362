"""Command-line interface router for cobertura-graph.

Every command loads a YAML build description, applies coverage to the projects
that ask for it, and then inspects, plans or runs the resulting task graph.
"""

from __future__ import annotations

import argparse
import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Final

from cobertura_graph.config.schema import CoverageExtension
from cobertura_graph.constants import COBERTURA_CONFIGURATION, COBERTURA_EXTENSION
from cobertura_graph.host.build import Build, TaskState
from cobertura_graph.host.description import BuildDescriptionError, LoadedBuild, load_build
from cobertura_graph.host.model import Project, Task, is_test_like
from cobertura_graph.main import ExitCode, exit_code_for
from cobertura_graph.observability.logging import build_context, configure_logging
from cobertura_graph.plugin.apply import apply_plugin
from cobertura_graph.plugin.gate import coverage_requested
from cobertura_graph.ui.render import CLIRenderer, create_renderer

# Build-description key naming resolved tool jars; not a coverage option.
TOOL_CLASSPATH_KEY: Final[str] = "tool_classpath"


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cobertura-graph",
        description=(
            "cobertura-graph — coverage instrumentation wired around the tests a build runs.\n\n"
            "Common workflows:\n"
            "  cobertura-graph tasks build.yaml              List projects, tasks and edges\n"
            "  cobertura-graph plan build.yaml cobertura     Show the plan for 'cobertura'\n"
            "  cobertura-graph plan build.yaml test          Show the plan without coverage\n"
            "  cobertura-graph run build.yaml cobertura      Execute the plan\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("build_file", help="YAML build description.")
    common.add_argument(
        "--from",
        dest="start_dir",
        default=None,
        help="Directory the build is invoked from (default: the root project directory).",
    )
    common.add_argument(
        "--log-level",
        default="WARNING",
        help="Minimum log level for diagnostics on stderr (default: WARNING).",
    )
    common.add_argument(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit diagnostics as JSON lines.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    tasks_parser = subparsers.add_parser(
        "tasks", parents=[common], help="List projects, tasks and their edges."
    )
    tasks_parser.set_defaults(handler=_cmd_tasks)

    plan_parser = subparsers.add_parser(
        "plan", parents=[common], help="Compute the execution plan without running it."
    )
    plan_parser.add_argument("tasks", nargs="+", help="Task names or absolute task paths.")
    plan_parser.add_argument("--json", action="store_true", default=False, help="Emit JSON.")
    plan_parser.set_defaults(handler=_cmd_plan)

    run_parser = subparsers.add_parser("run", parents=[common], help="Execute the plan.")
    run_parser.add_argument("tasks", nargs="+", help="Task names or absolute task paths.")
    run_parser.set_defaults(handler=_cmd_run)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, json_output=args.log_json)
    with build_context(build_file=str(args.build_file)):
        return int(args.handler(args, create_renderer()))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_tasks(args: argparse.Namespace, renderer: CLIRenderer) -> ExitCode:
    build = _prepare_build(args.build_file, args.start_dir)
    for project in build.all_projects():
        renderer.section(f"Project {project.path} ({project.dir})")
        rows = [
            [
                task.name,
                task.kind.value,
                ", ".join(dep.path for dep in task.dependencies) or "-",
                ", ".join(fin.path for fin in task.finalizers) or "-",
            ]
            for task in project.tasks
        ]
        if rows:
            renderer.table(["task", "kind", "depends on", "finalized by"], rows)
        else:
            renderer.text("  (no tasks)")
    return ExitCode.SUCCESS


def _cmd_plan(args: argparse.Namespace, renderer: CLIRenderer) -> ExitCode:
    build = _prepare_build(args.build_file, args.start_dir)
    plan = build.plan(args.tasks)

    if args.json:
        renderer.text(json.dumps(_plan_payload(build, plan), indent=2, sort_keys=True))
        return ExitCode.SUCCESS

    renderer.heading(f"Plan for {' '.join(args.tasks)}")
    renderer.kv("coverage", "active" if coverage_requested(plan) else "inactive")
    renderer.table(
        ["#", "task", "kind", "enabled"],
        [
            [str(index), task.path, task.kind.value, "yes" if task.enabled else "no"]
            for index, task in enumerate(plan, start=1)
        ],
        title="Execution plan:",
    )
    for task in plan:
        if not is_test_like(task):
            continue
        renderer.section(f"{task.path} classpath:")
        renderer.items([str(entry) for entry in task.classpath] or ["(empty)"])
        for key, value in sorted(task.system_properties.items()):
            renderer.kv(f"  -D{key}", value)
    return ExitCode.SUCCESS


def _cmd_run(args: argparse.Namespace, renderer: CLIRenderer) -> ExitCode:
    build = _prepare_build(args.build_file, args.start_dir)
    result = build.run(args.tasks)
    renderer.table(
        ["task", "outcome"],
        [[outcome.path, outcome.state.value] for outcome in result.outcomes],
        title="Task outcomes:",
    )
    if result.failure is not None:
        renderer.section(f"BUILD FAILED: {result.failure}")
        return exit_code_for(result.failure)
    executed = sum(1 for outcome in result.outcomes if outcome.state is TaskState.EXECUTED)
    renderer.section(f"BUILD SUCCESSFUL ({executed} task(s) executed)")
    return ExitCode.SUCCESS


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _prepare_build(build_file: str, start_dir: str | None) -> Build:
    loaded = load_build(build_file, start_dir=start_dir)
    _apply_coverage(loaded)
    return loaded.build


def _apply_coverage(loaded: LoadedBuild) -> None:
    for request in loaded.coverage_requests:
        options = dict(request.options)
        tool_classpath = options.pop(TOOL_CLASSPATH_KEY, ())
        apply_plugin(request.project, options=options)
        _set_tool_classpath(request.project, tool_classpath)


def _set_tool_classpath(project: Project, raw: object) -> None:
    if isinstance(raw, str) or not isinstance(raw, Sequence):
        raise BuildDescriptionError(
            f"{project.path}: {TOOL_CLASSPATH_KEY} must be a list of paths"
        )
    files = project.configurations[COBERTURA_CONFIGURATION].files
    for entry in raw:
        if not isinstance(entry, str):
            raise BuildDescriptionError(
                f"{project.path}: {TOOL_CLASSPATH_KEY} entries must be strings"
            )
        candidate = Path(entry).expanduser()
        resolved = candidate if candidate.is_absolute() else project.dir / candidate
        if resolved not in files:
            files.append(resolved)


def _plan_payload(build: Build, plan: Sequence[Task]) -> Mapping[str, object]:
    options: dict[str, object] = {}
    for project in build.all_projects():
        extension = project.extensions.find(COBERTURA_EXTENSION)
        if isinstance(extension, CoverageExtension):
            options[project.path] = extension.to_dict()
    return {
        "coverage": coverage_requested(plan),
        "coverage_options": options,
        "graph": build.task_graph.ordering.serialize(),
        "tasks": [
            {
                "path": task.path,
                "kind": task.kind.value,
                "enabled": task.enabled,
                "depends_on": [dep.path for dep in task.dependencies],
                "finalized_by": [fin.path for fin in task.finalizers],
                "classpath": [str(entry) for entry in task.classpath],
                "system_properties": dict(sorted(task.system_properties.items())),
            }
            for task in plan
        ],
    }


__all__ = ["build_parser", "run_cli"]
