"""
cobertura-graph — external instrumentation and report tool runner.

File: src/cobertura_graph/plugin/runner.py

Purpose
- Build the command lines of the Cobertura instrumentation and report tools and
  run them through an injectable command runner.

The tools are opaque JVM processes. Nothing here resolves their classpath: the
``cobertura`` configuration of the project supplies the resolved files.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Protocol

import structlog

from cobertura_graph.config.schema import CoverageExtension
from cobertura_graph.constants import COBERTURA_CONFIGURATION
from cobertura_graph.errors import CoberturaGraphError
from cobertura_graph.host.java import main_classes_dir
from cobertura_graph.host.model import Project
from cobertura_graph.plugin.classpath import instrumented_classes_dir

INSTRUMENT_MAIN_CLASS: Final[str] = "net.sourceforge.cobertura.instrument.InstrumentMain"
REPORT_MAIN_CLASS: Final[str] = "net.sourceforge.cobertura.reporting.ReportMain"
DEFAULT_TIMEOUT_SECONDS: Final[float] = 1800.0

logger = structlog.get_logger(__name__)


class ToolExecutionError(CoberturaGraphError):
    """An external coverage tool exited unsuccessfully."""

    def __init__(self, command: Sequence[str], returncode: int | None, stderr: str) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr
        status = "timed out" if returncode is None else f"exited with {returncode}"
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(f"command {' '.join(self.command)!r} {status}: {detail}")


@dataclass(frozen=True, slots=True)
class CommandExecutionResult:
    command: tuple[str, ...]
    cwd: Path
    returncode: int
    stdout: str
    stderr: str


class CommandRunner(Protocol):
    """Injectable command runner used for deterministic/offline testing."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path,
        timeout_seconds: float,
    ) -> CommandExecutionResult: ...


class SubprocessCommandRunner:
    """Default command runner backed by ``subprocess.run``."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path,
        timeout_seconds: float,
    ) -> CommandExecutionResult:
        try:
            completed = subprocess.run(
                list(command),
                cwd=cwd,
                check=False,
                capture_output=True,
                text=True,
                timeout=timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            stderr = exc.stderr if isinstance(exc.stderr, str) else ""
            raise ToolExecutionError(command, None, stderr) from exc

        return CommandExecutionResult(
            command=tuple(command),
            cwd=cwd,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


class CoberturaRunner:
    """Runs instrumentation and report generation for one project at a time."""

    def __init__(
        self,
        command_runner: CommandRunner | None = None,
        *,
        java_executable: str = "java",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._command_runner = (
            command_runner if command_runner is not None else SubprocessCommandRunner()
        )
        self._java = java_executable
        self._timeout_seconds = timeout_seconds

    def instrument_command(
        self,
        *,
        tool_classpath: Sequence[Path],
        extension: CoverageExtension,
        destination: Path,
        classes_dirs: Sequence[Path],
    ) -> list[str]:
        command = [*self._java_prefix(tool_classpath), INSTRUMENT_MAIN_CLASS]
        command += ["--datafile", str(extension.coverage_datafile), "--destination", str(destination)]
        for pattern in extension.coverage_includes:
            command += ["--includeClasses", pattern]
        for pattern in extension.coverage_excludes:
            command += ["--excludeClasses", pattern]
        for pattern in extension.coverage_ignores:
            command += ["--ignore", pattern]
        if extension.ignore_trivial:
            command.append("--ignoreTrivial")
        command += list(extension.extra_options)
        command += [str(path) for path in classes_dirs]
        return command

    def report_command(
        self,
        *,
        tool_classpath: Sequence[Path],
        extension: CoverageExtension,
        report_format: str,
    ) -> list[str]:
        command = [*self._java_prefix(tool_classpath), REPORT_MAIN_CLASS]
        command += ["--format", report_format]
        command += ["--datafile", str(extension.coverage_datafile)]
        command += ["--destination", str(extension.coverage_report_dir / report_format)]
        if extension.coverage_encoding:
            command += ["--encoding", extension.coverage_encoding]
        command += [str(path) for path in extension.coverage_source_dirs]
        return command

    def instrument(
        self, project: Project, extension: CoverageExtension
    ) -> CommandExecutionResult | None:
        """Instrument the main classes of ``project``; ``None`` when nothing is compiled yet."""
        classes_dirs = [path for path in (main_classes_dir(project),) if path.is_dir()]
        if not classes_dirs:
            logger.info("cobertura_instrument_skipped", project=project.path, reason="no classes")
            return None

        destination = instrumented_classes_dir(project)
        destination.mkdir(parents=True, exist_ok=True)
        extension.coverage_datafile.parent.mkdir(parents=True, exist_ok=True)
        command = self.instrument_command(
            tool_classpath=_tool_classpath(project),
            extension=extension,
            destination=destination,
            classes_dirs=classes_dirs,
        )
        return self._run(command, cwd=project.dir)

    def generate_report(
        self, project: Project, extension: CoverageExtension
    ) -> list[CommandExecutionResult]:
        """Write one report per configured format; nothing when no data file exists."""
        if not extension.coverage_datafile.is_file():
            logger.info(
                "cobertura_report_skipped",
                project=project.path,
                reason="no data file",
                datafile=str(extension.coverage_datafile),
            )
            return []

        tool_classpath = _tool_classpath(project)
        results: list[CommandExecutionResult] = []
        for report_format in extension.coverage_formats:
            (extension.coverage_report_dir / report_format).mkdir(parents=True, exist_ok=True)
            command = self.report_command(
                tool_classpath=tool_classpath, extension=extension, report_format=report_format
            )
            results.append(self._run(command, cwd=project.dir))
        return results

    def _java_prefix(self, tool_classpath: Sequence[Path]) -> list[str]:
        prefix = [self._java]
        if tool_classpath:
            prefix += ["-cp", _join_classpath(tool_classpath)]
        return prefix

    def _run(self, command: Sequence[str], *, cwd: Path) -> CommandExecutionResult:
        logger.info("cobertura_tool_started", command=list(command), cwd=str(cwd))
        result = self._command_runner.run(command, cwd=cwd, timeout_seconds=self._timeout_seconds)
        if result.returncode != 0:
            raise ToolExecutionError(result.command, result.returncode, result.stderr)
        logger.info("cobertura_tool_finished", command=list(command), returncode=result.returncode)
        return result


def _tool_classpath(project: Project) -> tuple[Path, ...]:
    return project.configurations[COBERTURA_CONFIGURATION].resolved_files()


def _join_classpath(entries: Sequence[Path]) -> str:
    return os.pathsep.join(str(entry) for entry in entries)


__all__ = [
    "INSTRUMENT_MAIN_CLASS",
    "REPORT_MAIN_CLASS",
    "CoberturaRunner",
    "CommandExecutionResult",
    "CommandRunner",
    "SubprocessCommandRunner",
    "ToolExecutionError",
]
