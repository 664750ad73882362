"""Plain-text rendering for cobertura-graph CLI output.

Output is deterministic and uncoloured so plans can be diffed between runs.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence


class CLIRenderer:
    """Thin CLI output renderer writing to ``stream`` (stdout by default)."""

    def __init__(self, *, stream: TextIO | None = None) -> None:
        self._stream = stream

    def _write(self, line: str = "") -> None:
        print(line, file=self._stream if self._stream is not None else sys.stdout)

    def heading(self, text: str) -> None:
        self._write(text)

    def kv(self, key: str, value: object) -> None:
        self._write(f"{key}: {value}")

    def text(self, line: str) -> None:
        self._write(line)

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""
        self._write()
        self._write(title)

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            self._write(f"  {prefix}{entry}")

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        title: str | None = None,
    ) -> None:
        """Print a column-aligned table; nothing at all when ``rows`` is empty."""
        if not rows:
            return

        widths = [len(header) for header in headers]
        for row in rows:
            for index, cell in enumerate(row[: len(headers)]):
                widths[index] = max(widths[index], len(cell))

        def _pad(cells: Sequence[str]) -> str:
            padded = [
                (cells[index] if index < len(cells) else "").ljust(width)
                for index, width in enumerate(widths)
            ]
            return "  ".join(padded).rstrip()

        if title:
            self.section(title)
        self._write(f"  {_pad(headers)}")
        self._write(f"  {'  '.join('-' * width for width in widths)}")
        for row in rows:
            self._write(f"  {_pad(row)}")


def create_renderer(*, stream: TextIO | None = None) -> CLIRenderer:
    return CLIRenderer(stream=stream)


__all__ = ["CLIRenderer", "create_renderer"]
