# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Creation pipeline steps: make the image available and name it fully."""

from __future__ import annotations

from ..contexts import CreateContext
from ..images import ensure_image, get_fully_qualified_image_name
from . import create_pipeline


@create_pipeline.step(order=-400)
def pull_image(ctx: CreateContext) -> None:
    """Pull the base image unless it is already present."""
    ctx.pulled = ensure_image(
        ctx.podman,
        ctx.identity.image,
        ctx.identity.release,
        assume_yes=ctx.settings.assume_yes,
        confirm=ctx.confirm,
    )


@create_pipeline.step(order=-300)
def resolve_image_name(ctx: CreateContext) -> None:
    ctx.image_full = get_fully_qualified_image_name(ctx.podman, ctx.identity.image)
