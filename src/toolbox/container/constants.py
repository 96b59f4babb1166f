# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Constants shared across the container package."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

# Labels that mark a container as a toolbox container
TOOLBOX_LABEL = "com.github.containers.toolbox"
TOOLBOX_LABEL_LEGACY = "com.github.debarshiray.toolbox"
COMPONENT_LABEL = "com.redhat.component"
COMPONENT_LABEL_VALUE = "fedora-toolbox"

CONTAINER_HOSTNAME = "toolbox"
SUDO_GROUPS = ("sudo", "wheel")

# First podman release that accepts `--ulimit host`
ULIMIT_HOST_MIN_VERSION = "1.5.0"

DBUS_SYSTEM_BUS_ADDRESS_DEFAULT = "unix:path=/var/run/dbus/system_bus_socket"

# Where toolbox's own executable appears inside the container
TOOLBOX_CONTAINER_PATH = "/usr/bin/toolbox"
MONITOR_CONTAINER_PATH = "/run/host/monitor"
USR_CONTAINER_PATH = "/run/host/usr"

# (source on the host, path in the container); first existing source wins
TOOLBOX_SH_MOUNTS = (
    ("/etc/profile.d/toolbox.sh", "/etc/profile.d/toolbox.sh"),
    ("/usr/share/profile.d/toolbox.sh", "/etc/profile.d/toolbox.sh"),
)

# On image-based hosts these directories are symlinks into /var or /run;
# init-container recreates the link instead of getting a second mount.
HOME_LINK_TARGET = "/var/home"
MEDIA_LINK_TARGET = "/run/media"
MNT_LINK_TARGET = "/var/mnt"

Propagation = Literal["private", "rslave"]
Mode = Literal["ro", "rw"]


@dataclass(frozen=True)
class BindMount:
    source: str
    target: str
    mode: Mode = "rw"
    propagation: Propagation = "private"

    def to_volume(self) -> str:
        """Render as the value of ``podman create --volume``."""
        options: list[str] = []
        if self.mode == "ro":
            options.append("ro")
        if self.propagation == "rslave":
            options.append("rslave")
        volume = f"{self.source}:{self.target}"
        if options:
            volume += ":" + ",".join(options)
        return volume
