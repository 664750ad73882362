"""Locate the project the build was invoked from."""

from __future__ import annotations

from pathlib import Path

import structlog

from cobertura_graph.errors import BaseProjectNotFoundError
from cobertura_graph.host.model import Project

logger = structlog.get_logger(__name__)


def find_base_project(root_project: Project, invocation_dir: Path | str) -> Project:
    """Return the project whose directory is ``invocation_dir``.

    This is not necessarily the root project, nor the project applying the
    plugin. With ``root -> child -> grandchild``, coverage applied to the
    grandchild and the build started from the child directory, the base project
    is the child: the run-all task has to pick up the same ``test`` tasks that
    running ``test`` from that directory would.
    """
    target = Path(invocation_dir).expanduser().resolve()
    for candidate in root_project.all_projects():
        if candidate.dir == target:
            logger.info("cobertura_base_project_found", project=candidate.path)
            return candidate
    raise BaseProjectNotFoundError(target)


__all__ = ["find_base_project"]
