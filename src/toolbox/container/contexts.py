# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Context dataclass passed through the creation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..config import Settings
from ..context import HostContext
from ..host_bus import HostBus
from ..naming import ContainerIdentity
from ..podman import PodmanClient
from .images import Confirm, ask_for_confirmation
from .topology import MountTopology


@dataclass
class CreateContext:
    """Context passed through the container creation pipeline.

    Early steps check preconditions and fill in ``image_full``,
    ``sudo_group``, ``ulimit_args`` and ``topology``; the creation step
    turns them into ``create_args`` and calls podman.
    """

    identity: ContainerIdentity
    host: HostContext
    settings: Settings
    podman: PodmanClient
    bus: HostBus
    enter_command: str
    toolbox_path: str
    confirm: Confirm = ask_for_confirmation

    # Built up by pipeline steps
    pulled: bool = False
    image_full: str | None = None
    sudo_group: str | None = None
    ulimit_args: list[str] = field(default_factory=lambda: list[str]())
    topology: MountTopology | None = None
    create_args: list[str] = field(default_factory=lambda: list[str]())
    container_id: str | None = None

    @property
    def name(self) -> str:
        return self.identity.name
