# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Creation pipeline step: call podman to create the container."""

from __future__ import annotations

import logging

from ...errors import PodmanError
from ...output import out
from ..contexts import CreateContext
from . import create_pipeline

logger = logging.getLogger(__name__)


@create_pipeline.step(order=0)
def create_instance(ctx: CreateContext) -> None:
    """Create the container with ``podman create``.

    By this point ``ctx.create_args`` has been populated by earlier
    pipeline steps.
    """
    logger.debug("Creating container %s", ctx.name)
    logger.debug("%s", ctx.create_args)

    with out.status(f"Creating container {ctx.name}: "):
        try:
            ctx.container_id = ctx.podman.create(ctx.create_args)
        except PodmanError as e:
            raise type(e)(
                f"failed to create container {ctx.name}", e.exit_code, e.stderr,
            ) from e
