"""Executable CLI entrypoint for ``cobertura_graph``.

Exit codes are decided in one place: ``exit_code_for`` maps a failure (a
raised exception or the failure recorded on a build result) onto ``ExitCode``
by looking through its whole cause chain, most specific category first.
"""

from __future__ import annotations

import sys
import traceback
from collections.abc import Iterator, Sequence
from enum import IntEnum
from typing import Final

from cobertura_graph.errors import CoberturaGraphError, TaskExecutionError
from cobertura_graph.host.task_graph import CycleError
from cobertura_graph.plugin.runner import ToolExecutionError


class ExitCode(IntEnum):
    """Deterministic process exit-code contract."""

    SUCCESS = 0
    BUILD_FAILED = 1
    CONFIG_ERROR = 2
    TOOL_ERROR = 3
    INTERNAL_ERROR = 4


# Checked in order against every exception in the chain; first hit wins.
_EXIT_ROUTES: Final[tuple[tuple[tuple[type[BaseException], ...], ExitCode], ...]] = (
    ((ToolExecutionError,), ExitCode.TOOL_ERROR),
    ((CycleError, TaskExecutionError), ExitCode.BUILD_FAILED),
    (
        (CoberturaGraphError, FileNotFoundError, NotADirectoryError, PermissionError, ValueError),
        ExitCode.CONFIG_ERROR,
    ),
)


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    """Entrypoint used by ``python -m cobertura_graph`` and script shims."""

    from cobertura_graph.ui.cli import run_cli

    try:
        return int(run_cli(argv))
    except SystemExit as exc:
        # argparse exits with 0 for --help and 2 for usage errors.
        return ExitCode.SUCCESS if exc.code in (None, 0) else ExitCode.CONFIG_ERROR
    except Exception as exc:  # noqa: BLE001 - CLI boundary.
        exit_code = exit_code_for(exc)
        if exit_code is ExitCode.INTERNAL_ERROR:
            traceback.print_exception(exc, file=sys.stderr)
        else:
            print(str(exc).strip() or type(exc).__name__, file=sys.stderr)
        return int(exit_code)


def exit_code_for(exc: BaseException) -> ExitCode:
    """Classify a failure, preferring a tool failure anywhere in its chain."""

    chain = list(_causes(exc))
    for types, code in _EXIT_ROUTES:
        if any(isinstance(item, types) for item in chain):
            return code
    return ExitCode.INTERNAL_ERROR


def _causes(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


__all__ = ["ExitCode", "cli_entrypoint", "exit_code_for"]
