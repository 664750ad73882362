"""Module entrypoint for ``python -m cobertura_graph``."""

from __future__ import annotations

from cobertura_graph.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
