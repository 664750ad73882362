"""Exit-code routing at the process boundary."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from cobertura_graph.errors import CoberturaGraphError, TaskExecutionError
from cobertura_graph.host.task_graph import CycleError
from cobertura_graph.main import ExitCode, cli_entrypoint, exit_code_for
from cobertura_graph.observability.logging import reset_logging
from cobertura_graph.plugin.runner import ToolExecutionError


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    yield
    reset_logging()


def _failed_task(cause: BaseException) -> TaskExecutionError:
    failure = TaskExecutionError(":instrument", cause)
    failure.__cause__ = cause
    return failure


def test_tool_failure_behind_a_task_failure_is_a_tool_error() -> None:
    tool_failure = ToolExecutionError(("java", "Instrument"), 1, "boom\n")

    assert exit_code_for(_failed_task(tool_failure)) is ExitCode.TOOL_ERROR


def test_task_failure_from_an_action_is_a_build_failure() -> None:
    assert exit_code_for(_failed_task(RuntimeError("action broke"))) is ExitCode.BUILD_FAILED
    assert exit_code_for(CycleError([[":a", ":b", ":a"]])) is ExitCode.BUILD_FAILED


def test_configuration_problems_are_config_errors() -> None:
    assert exit_code_for(CoberturaGraphError("bad option")) is ExitCode.CONFIG_ERROR
    assert exit_code_for(FileNotFoundError("build.yaml")) is ExitCode.CONFIG_ERROR


def test_implicit_context_is_followed_unless_suppressed() -> None:
    try:
        try:
            raise ValueError("bad number")
        except ValueError:
            raise RuntimeError("while loading") from None
    except RuntimeError as suppressed:
        assert exit_code_for(suppressed) is ExitCode.INTERNAL_ERROR

    try:
        try:
            raise ValueError("bad number")
        except ValueError:
            raise RuntimeError("while loading")
    except RuntimeError as chained:
        assert exit_code_for(chained) is ExitCode.CONFIG_ERROR


def test_self_referencing_chain_terminates() -> None:
    error = RuntimeError("loop")
    error.__cause__ = error

    assert exit_code_for(error) is ExitCode.INTERNAL_ERROR


def test_help_and_usage_errors_map_to_exit_codes(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint(["--help"]) == ExitCode.SUCCESS
    assert cli_entrypoint(["explode"]) == ExitCode.CONFIG_ERROR
    assert "invalid choice" in capsys.readouterr().err
