# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Container lifecycle operations.

Container creation is structured as a pipeline of step functions.  Each
step receives a :class:`CreateContext`, checks its own preconditions and
performs one concern; decorate a function with the pipeline's ``step``
decorator to register a new one.
"""

from __future__ import annotations

import logging

from ..config import Settings
from ..context import HostContext
from ..errors import InternalError, NotFoundError, PodmanError, ToolboxError
from ..host_bus import HostBus
from ..models import ContainerSummary
from ..naming import ContainerIdentity, NameResolver
from ..output import out
from ..podman import PodmanClient
from .constants import (
    COMPONENT_LABEL,
    COMPONENT_LABEL_VALUE,
    TOOLBOX_LABEL,
    TOOLBOX_LABEL_LEGACY,
)
from .contexts import CreateContext
from .create import create_pipeline
from .images import Confirm, ask_for_confirmation

logger = logging.getLogger(__name__)

# `podman ps` filters that together select every toolbox container
TOOLBOX_CONTAINER_FILTERS = (
    f"label={COMPONENT_LABEL}={COMPONENT_LABEL_VALUE}",
    f"label={TOOLBOX_LABEL_LEGACY}=true",
)


def is_toolbox_labelled(labels: dict[str, str]) -> bool:
    return (
        labels.get(COMPONENT_LABEL) == COMPONENT_LABEL_VALUE
        or labels.get(TOOLBOX_LABEL) == "true"
        or labels.get(TOOLBOX_LABEL_LEGACY) == "true"
    )


def join_by_id(*groups: list[ContainerSummary]) -> list[ContainerSummary]:
    """Concatenate container lists, keeping the first entry for each ID."""
    seen: set[str] = set()
    joined: list[ContainerSummary] = []
    for group in groups:
        for container in group:
            if container.id in seen:
                continue
            seen.add(container.id)
            joined.append(container)
    return joined


class ContainerService:
    """Creates, finds and removes toolbox containers."""

    def __init__(
        self,
        podman: PodmanClient,
        host: HostContext,
        settings: Settings,
        resolver: NameResolver | None = None,
        bus: HostBus | None = None,
        confirm: Confirm = ask_for_confirmation,
    ):
        """Initialize the container service.

        Args:
            podman: Podman client
            host: Detected host context
            settings: Command line settings
            resolver: Resolver used for enter hints; built-in defaults if omitted
            bus: D-Bus queries; a :class:`HostBus` if omitted
            confirm: Yes/no prompt used before pulling an image
        """
        self._podman = podman
        self._host = host
        self._settings = settings
        self._resolver = resolver or NameResolver()
        self._bus = bus or HostBus()
        self._confirm = confirm

    def enter_command(self, identity: ContainerIdentity) -> str:
        return self._resolver.enter_command(identity, self._host.executable_base)

    # -------------------------------------------------------------------------
    # Container Lifecycle Operations
    # -------------------------------------------------------------------------

    def create_container(self, identity: ContainerIdentity) -> CreateContext:
        """Create a new toolbox container and tell the user how to enter it.

        Args:
            identity: Resolved container name, image and release.

        Returns:
            The finished pipeline context.
        """
        if not identity.name:
            raise InternalError("container not specified")
        if not identity.image:
            raise InternalError("image not specified")
        if not identity.release:
            raise InternalError("release not specified")

        ctx = CreateContext(
            identity=identity,
            host=self._host,
            settings=self._settings,
            podman=self._podman,
            bus=self._bus,
            enter_command=self.enter_command(identity),
            toolbox_path=self._host.toolbox_path(),
            confirm=self._confirm,
        )
        create_pipeline.run(ctx)

        out.info(f"Created container: {identity.name}")
        out.info(f"Enter with: {ctx.enter_command}")
        return ctx

    def ensure_exists(self, identity: ContainerIdentity) -> None:
        """Fail unless the container named by *identity* exists."""
        logger.debug("Checking if container %s exists", identity.name)
        if not self._podman.container_exists(identity.name):
            create_command = self.enter_command(identity).replace(" enter", " create", 1)
            raise NotFoundError(
                f"container {identity.name} not found",
                hint=f"Use the 'create' command to create a toolbox container:\n{create_command}",
            )

    def remove_containers(
        self,
        names: list[str],
        remove_all: bool = False,
        force: bool = False,
    ) -> list[str]:
        """Remove toolbox containers.

        Args:
            names: Containers to remove; ignored when *remove_all* is set.
            remove_all: Remove every toolbox container.
            force: Remove running and paused containers too.

        Returns:
            Names or IDs of the removed containers.
        """
        if remove_all:
            targets = [c.id for c in self.list_toolbox_containers()]
        else:
            if not names:
                raise ToolboxError(
                    'missing argument for "rm"',
                    hint="Run 'toolbox --help' for usage.",
                )
            for name in names:
                self._check_is_toolbox(name)
            targets = list(names)

        removed: list[str] = []
        for target in targets:
            logger.debug("Removing container %s", target)
            self._podman.remove_container(target, force=force)
            removed.append(target)
        return removed

    def list_toolbox_containers(self) -> list[ContainerSummary]:
        groups: list[list[ContainerSummary]] = []
        for container_filter in TOOLBOX_CONTAINER_FILTERS:
            logger.debug("Fetching containers with %s", container_filter)
            try:
                groups.append(
                    self._podman.list_containers("--all", "--filter", container_filter)
                )
            except PodmanError as e:
                raise type(e)(
                    f"failed to list containers with {container_filter}",
                    e.exit_code,
                    e.stderr,
                ) from e
        return join_by_id(*groups)

    def _check_is_toolbox(self, container: str) -> None:
        if not self._podman.container_exists(container):
            raise NotFoundError(f"container {container} does not exist")

        logger.debug("Inspecting container %s", container)
        info = self._podman.inspect_container(container)

        logger.debug("Checking if the container is a toolbox container")
        if not is_toolbox_labelled(info.config.labels):
            raise ToolboxError(f"{container} is not a toolbox container")
