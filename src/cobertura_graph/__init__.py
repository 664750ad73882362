"""
cobertura-graph — package root

File: src/cobertura_graph/__init__.py

Purpose
- Coverage instrumentation wired transparently around whatever test tasks a
  build actually runs, by augmenting the build's task graph.

Import boundary rules
- Must not have side effects at import time (no config loading, no logging init).
- Only the plugin entry point and error types are re-exported here.
"""

from cobertura_graph.errors import CoberturaGraphError
from cobertura_graph.plugin import CoberturaPlugin, apply_plugin

__version__ = "0.1.0"

__all__ = ["CoberturaGraphError", "CoberturaPlugin", "__version__", "apply_plugin"]
