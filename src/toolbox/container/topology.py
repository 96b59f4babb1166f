# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Work out which host paths a new toolbox container gets.

The result is a :class:`MountTopology`: an ordered list of bind mounts
plus three flags for ``/home``, ``/media`` and ``/mnt``.  On image-based
hosts those directories are symlinks into ``/var`` or ``/run``; the
container's init-container step recreates the symlink rather than getting
the same storage mounted twice under two names.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..context import HostContext
from ..errors import EnvironmentUnresolvedError, ToolboxError
from ..host_bus import HostBus
from ..mountinfo import MOUNTINFO_PATH, mount_for_path
from .constants import (
    DBUS_SYSTEM_BUS_ADDRESS_DEFAULT,
    HOME_LINK_TARGET,
    MEDIA_LINK_TARGET,
    MNT_LINK_TARGET,
    MONITOR_CONTAINER_PATH,
    TOOLBOX_CONTAINER_PATH,
    TOOLBOX_SH_MOUNTS,
    USR_CONTAINER_PATH,
    BindMount,
)

logger = logging.getLogger(__name__)

# Host directories every container sees
_HOST_DIRS = (
    BindMount("/etc", "/run/host/etc"),
    BindMount("/dev", "/dev", propagation="rslave"),
    BindMount("/run", "/run/host/run", propagation="rslave"),
    BindMount("/tmp", "/run/host/tmp", propagation="rslave"),
    BindMount("/var", "/run/host/var", propagation="rslave"),
)


@dataclass
class MountTopology:
    mounts: list[BindMount] = field(default_factory=list)
    home_link: bool = False
    media_link: bool = False
    mnt_link: bool = False

    def add(self, mount: BindMount) -> None:
        """Append *mount* unless its target is already taken."""
        for existing in self.mounts:
            if existing.target == mount.target:
                logger.debug(
                    "Skipping %s, %s is already mounted from %s",
                    mount.source, mount.target, existing.source,
                )
                return
        self.mounts.append(mount)

    def volume_args(self) -> list[str]:
        args: list[str] = []
        for mount in self.mounts:
            args.extend(["--volume", mount.to_volume()])
        return args

    def link_flags(self) -> list[str]:
        """init-container flags for the directories that are symlinks."""
        flags: list[str] = []
        if self.home_link:
            flags.append("--home-link")
        if self.media_link:
            flags.append("--media-link")
        if self.mnt_link:
            flags.append("--mnt-link")
        return flags


def _canonicalize(path: str) -> str:
    return os.path.realpath(path)


def _path_exists(path: str) -> bool:
    return os.path.exists(path)


def get_dbus_system_socket(environ: Mapping[str, str] | None = None) -> str:
    """Resolve the path of the D-Bus system socket.

    The address must have the form ``unix:path=<path>``.
    """
    logger.debug("Resolving path to the D-Bus system socket")
    env = os.environ if environ is None else environ

    address = env.get("DBUS_SYSTEM_BUS_ADDRESS") or DBUS_SYSTEM_BUS_ADDRESS_DEFAULT
    parts = address.split("=")
    if len(parts) != 2 or parts[0] != "unix:path" or not parts[1]:
        raise EnvironmentUnresolvedError(
            "failed to get the path to the D-Bus system socket"
        )

    try:
        return os.path.realpath(parts[1], strict=True)
    except OSError as e:
        raise EnvironmentUnresolvedError(
            "failed to resolve the path to the D-Bus system socket"
        ) from e


def is_usr_read_write(mountinfo_path: str = MOUNTINFO_PATH) -> bool:
    logger.debug("Checking if /usr is mounted read-only or read-write")
    try:
        entry = mount_for_path("/usr", mountinfo_path)
    except (OSError, LookupError) as e:
        raise EnvironmentUnresolvedError("failed to get the mount-point of /usr") from e

    logger.debug("Mount-point of /usr is %s", entry.mount_point)
    logger.debug("Mount flags of /usr on the host are %s", ",".join(entry.options))
    return not entry.read_only


def canonical_home(host: HostContext) -> str:
    try:
        home = os.path.realpath(host.home, strict=True)
    except OSError as e:
        raise EnvironmentUnresolvedError(f"failed to canonicalize {host.home}") from e
    logger.debug("%s canonicalized to %s", host.home, home)
    return home


def _add_symlinked_dir(
    topology: MountTopology, path: str, link_target: str, flag: str
) -> None:
    """Mount *path* live, or set *flag* when it is a symlink to *link_target*."""
    logger.debug("Checking if %s is a symbolic link to %s", path, link_target)
    if _canonicalize(path) == link_target:
        logger.debug("%s is a symbolic link to %s", path, link_target)
        setattr(topology, flag, True)
    elif _path_exists(path):
        topology.add(BindMount(path, path, propagation="rslave"))


def build_topology(
    host: HostContext,
    bus: HostBus,
    toolbox_path: str,
    environ: Mapping[str, str] | None = None,
) -> MountTopology:
    """Compute the mounts and link flags for a new container.

    Optional resources (``/media``, ``/run/media``, the KCM socket,
    ``toolbox.sh``) are left out when absent.

    Raises:
        EnvironmentUnresolvedError: A required resource (D-Bus system
            socket, home directory, runtime directory, monitor path) could
            not be found.
    """
    env = os.environ if environ is None else environ
    topology = MountTopology()

    for mount in _HOST_DIRS:
        topology.add(mount)

    dbus_socket = get_dbus_system_socket(env)
    topology.add(BindMount(dbus_socket, dbus_socket))

    monitor = bus.request_session_monitor()
    topology.add(BindMount(monitor, MONITOR_CONTAINER_PATH))

    _add_symlinked_dir(topology, "/home", HOME_LINK_TARGET, "home_link")

    home = canonical_home(host)
    topology.add(BindMount(home, home, propagation="rslave"))

    topology.add(BindMount(toolbox_path, TOOLBOX_CONTAINER_PATH, mode="ro"))

    usr_mode = "rw" if is_usr_read_write() else "ro"
    topology.add(BindMount("/usr", USR_CONTAINER_PATH, mode=usr_mode, propagation="rslave"))

    runtime_dir = env.get("XDG_RUNTIME_DIR", "")
    if not runtime_dir:
        raise EnvironmentUnresolvedError("failed to get XDG_RUNTIME_DIR")
    topology.add(BindMount(runtime_dir, runtime_dir))

    try:
        kcm_socket = bus.get_kcm_socket()
    except ToolboxError as e:
        logger.debug("%s", e)
    else:
        topology.add(BindMount(kcm_socket, kcm_socket))

    if _path_exists("/media"):
        _add_symlinked_dir(topology, "/media", MEDIA_LINK_TARGET, "media_link")

    _add_symlinked_dir(topology, "/mnt", MNT_LINK_TARGET, "mnt_link")

    if _path_exists("/run/media"):
        topology.add(BindMount("/run/media", "/run/media", propagation="rslave"))

    logger.debug("Looking for toolbox.sh")
    for source, target in TOOLBOX_SH_MOUNTS:
        if _path_exists(source):
            logger.debug("Found %s", source)
            topology.add(BindMount(source, target, mode="ro"))
            break

    return topology
