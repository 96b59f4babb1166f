# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""State shared by the root command and its sub-commands."""

from __future__ import annotations

from dataclasses import dataclass, field

import typer

from ..config import Settings, load_config
from ..container import ContainerService
from ..context import HostContext
from ..errors import InternalError
from ..host_bus import HostBus
from ..naming import NameResolver, get_host_version_id
from ..podman import PodmanClient


@dataclass
class AppState:
    """Built once by the root callback and stored in ``ctx.obj``."""

    settings: Settings
    host: HostContext
    podman: PodmanClient
    bus: HostBus
    # Arguments after the program name, re-used when forwarding to the host
    argv: list[str] = field(default_factory=list)

    def resolver(self) -> NameResolver:
        config = load_config(self.host.home)
        return NameResolver(config, get_host_version_id())

    def containers(self, resolver: NameResolver | None = None) -> ContainerService:
        return ContainerService(
            self.podman,
            self.host,
            self.settings,
            resolver=resolver,
            bus=self.bus,
        )


def get_state(ctx: typer.Context) -> AppState:
    """Return the :class:`AppState` the root callback stored for *ctx*."""
    state = ctx.find_object(AppState)
    if state is None:
        raise InternalError("the command line state was not initialized")
    return state
