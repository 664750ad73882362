"""Command-line surface of cobertura-graph."""
