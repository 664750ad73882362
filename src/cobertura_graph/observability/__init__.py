"""Public observability primitives: structlog configuration and correlation scopes."""

from cobertura_graph.observability.logging import build_context, configure_logging, reset_logging

__all__ = ["build_context", "configure_logging", "reset_logging"]
