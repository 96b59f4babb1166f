# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Creation pipeline steps: gather host inputs and build the podman arguments."""

from __future__ import annotations

import grp
import logging

from ...errors import EnvironmentUnresolvedError, InternalError
from ..constants import (
    CONTAINER_HOSTNAME,
    SUDO_GROUPS,
    TOOLBOX_LABEL,
    TOOLBOX_LABEL_LEGACY,
    ULIMIT_HOST_MIN_VERSION,
)
from ..contexts import CreateContext
from ..topology import MountTopology, build_topology
from . import create_pipeline

logger = logging.getLogger(__name__)


def get_group_for_sudo() -> str:
    """Name of the group that grants sudo.

    Some distributions call it ``sudo`` (e.g. Ubuntu) and some ``wheel``
    (e.g. Fedora).
    """
    for group in SUDO_GROUPS:
        try:
            grp.getgrnam(group)
        except KeyError:
            continue
        return group
    raise EnvironmentUnresolvedError("group for sudo not found")


def build_entry_point(ctx: CreateContext, topology: MountTopology) -> list[str]:
    """Command that runs init-container inside the new container."""
    return [
        "toolbox", "--log-level", "debug",
        "init-container",
        "--home", ctx.host.home,
        *topology.link_flags(),
        "--monitor-host",
        "--shell", ctx.host.shell,
        "--uid", str(ctx.host.uid),
        "--user", ctx.host.username,
    ]


@create_pipeline.step(order=-200)
def find_sudo_group(ctx: CreateContext) -> None:
    logger.debug("Looking for group for sudo")
    ctx.sudo_group = get_group_for_sudo()
    logger.debug("Group for sudo is %s", ctx.sudo_group)


@create_pipeline.step(order=-200)
def check_ulimit_host(ctx: CreateContext) -> None:
    """Pass ``--ulimit host`` when podman supports it."""
    logger.debug("Checking if 'podman create' supports '--ulimit host'")
    if ctx.podman.check_version(ULIMIT_HOST_MIN_VERSION):
        logger.debug("'podman create' supports '--ulimit host'")
        ctx.ulimit_args = ["--ulimit", "host"]


@create_pipeline.step(order=-100)
def build_mounts(ctx: CreateContext) -> None:
    ctx.topology = build_topology(ctx.host, ctx.bus, ctx.toolbox_path)


@create_pipeline.step(order=-50)
def build_create_args(ctx: CreateContext) -> None:
    """Assemble the full ``podman create`` argument list."""
    if ctx.image_full is None or ctx.topology is None or ctx.sudo_group is None:
        raise InternalError("create arguments built before their inputs")

    ctx.create_args = [
        "--dns", "none",
        "--env", f"TOOLBOX_PATH={ctx.toolbox_path}",
        "--group-add", ctx.sudo_group,
        "--hostname", CONTAINER_HOSTNAME,
        "--ipc", "host",
        "--label", f"{TOOLBOX_LABEL}=true",
        "--label", f"{TOOLBOX_LABEL_LEGACY}=true",
        "--name", ctx.name,
        "--network", "host",
        "--no-hosts",
        "--pid", "host",
        "--privileged",
        "--security-opt", "label=disable",
        *ctx.ulimit_args,
        "--userns=keep-id",
        "--user", "root:root",
        *ctx.topology.volume_args(),
        ctx.image_full,
        *build_entry_point(ctx, ctx.topology),
    ]
