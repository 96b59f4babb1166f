# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Creation pipeline step: refuse to overwrite an existing container."""

from __future__ import annotations

import logging

from ...errors import AlreadyExistsError
from ..contexts import CreateContext
from . import create_pipeline

logger = logging.getLogger(__name__)


@create_pipeline.step(order=-500)
def validate_not_exists(ctx: CreateContext) -> None:
    """Check that a container with this name doesn't already exist."""
    logger.debug("Checking if container %s already exists", ctx.name)
    if ctx.podman.container_exists(ctx.name):
        raise AlreadyExistsError(
            f"container {ctx.name} already exists",
            hint=f"Enter with: {ctx.enter_command}\nRun 'toolbox --help' for usage.",
        )
