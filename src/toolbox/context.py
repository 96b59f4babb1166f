# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Where is toolbox running, and as whom.

:meth:`HostContext.detect` probes the filesystem and environment once at
start-up.  Commands that only make sense on the host use
:func:`forward_to_host` to re-run the same command line there when
toolbox is invoked from inside a toolbox container or a Flatpak sandbox.
"""

from __future__ import annotations

import logging
import os
import pwd
import shutil
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .errors import (
    EnvironmentUnresolvedError,
    HostEscapeUnavailableError,
    NotToolboxContainerError,
    ToolboxError,
)
from .mountinfo import MOUNTINFO_PATH, find_mount, read_mountinfo

logger = logging.getLogger(__name__)

# Written by podman into every container it creates
CONTAINER_ENV_PATH = "/run/.containerenv"
# Written by toolbox's init-container into its own containers
TOOLBOX_ENV_PATH = "/run/.toolboxenv"
# Present inside every Flatpak sandbox
FLATPAK_INFO_PATH = "/.flatpak-info"

CGROUP_PATH = "/sys/fs/cgroup"
CGROUP2_FS_TYPE = "cgroup2"

FLATPAK_SPAWN = "flatpak-spawn"

# Console script installed for the package
PROGRAM_NAME = "toolbox"

# Variables that survive the trip to the host
PRESERVED_ENVIRONMENT_VARIABLES = (
    "COLORTERM",
    "DBUS_SESSION_BUS_ADDRESS",
    "DBUS_SYSTEM_BUS_ADDRESS",
    "DESKTOP_SESSION",
    "DISPLAY",
    "LANG",
    "SHELL",
    "SSH_AUTH_SOCK",
    "TERM",
    "TOOLBOX_PATH",
    "VTE_VERSION",
    "WAYLAND_DISPLAY",
    "XDG_CURRENT_DESKTOP",
    "XDG_DATA_DIRS",
    "XDG_MENU_PREFIX",
    "XDG_RUNTIME_DIR",
    "XDG_SEAT",
    "XDG_SESSION_DESKTOP",
    "XDG_SESSION_ID",
    "XDG_SESSION_TYPE",
    "XDG_VTNR",
)


def get_cgroups_version(mountinfo_path: str = MOUNTINFO_PATH) -> int:
    """Return the cgroups version of the host.

    The filesystem mounted at ``/sys/fs/cgroup`` is ``cgroup2`` on a
    unified-hierarchy host; anything else (usually a tmpfs holding v1
    controllers) means version 1.
    """
    entry = find_mount(CGROUP_PATH, read_mountinfo(mountinfo_path))
    if entry.fs_type == CGROUP2_FS_TYPE:
        return 2
    return 1


def _resolve_executable(argv0: str) -> str:
    if os.path.basename(argv0) == "__main__.py":
        # `python -m toolbox`
        argv0 = PROGRAM_NAME
    found = shutil.which(argv0) if os.sep not in argv0 else argv0
    if not found:
        raise EnvironmentUnresolvedError("failed to get the path to the executable")
    try:
        return os.path.realpath(found, strict=True)
    except OSError as e:
        raise EnvironmentUnresolvedError(
            "failed to resolve absolute path to the executable"
        ) from e


@dataclass(frozen=True)
class HostContext:
    """Facts about the invoking process, gathered once."""

    on_host: bool
    in_toolbox: bool
    in_sandbox: bool
    cgroups_version: int | None
    uid: int
    username: str
    home: str
    shell: str
    executable: str
    working_directory: str

    @property
    def needs_forward(self) -> bool:
        """Whether host-only commands have to be re-run on the host."""
        return self.in_toolbox or self.in_sandbox

    @property
    def in_foreign_container(self) -> bool:
        return not self.on_host and not self.in_toolbox

    @property
    def executable_base(self) -> str:
        return os.path.basename(self.executable)

    @classmethod
    def detect(
        cls,
        environ: Mapping[str, str] | None = None,
        argv0: str | None = None,
    ) -> "HostContext":
        """Probe the current process.

        Raises:
            EnvironmentUnresolvedError: A required fact could not be found.
        """
        env = os.environ if environ is None else environ

        on_host = not os.path.exists(CONTAINER_ENV_PATH)
        in_toolbox = not on_host and os.path.exists(TOOLBOX_ENV_PATH)
        in_sandbox = os.path.exists(FLATPAK_INFO_PATH)

        cgroups_version = None
        if on_host:
            try:
                cgroups_version = get_cgroups_version()
            except (OSError, LookupError) as e:
                raise EnvironmentUnresolvedError(
                    "failed to get the cgroups version"
                ) from e

        try:
            user = pwd.getpwuid(os.getuid())
        except KeyError as e:
            raise EnvironmentUnresolvedError("failed to get the current user") from e

        shell = env.get("SHELL", "")
        if not shell:
            raise EnvironmentUnresolvedError(
                "failed to get the current user's default shell"
            )

        executable = _resolve_executable(argv0 or sys.argv[0])

        try:
            working_directory = os.getcwd()
        except OSError as e:
            raise EnvironmentUnresolvedError("failed to get the working directory") from e

        return cls(
            on_host=on_host,
            in_toolbox=in_toolbox,
            in_sandbox=in_sandbox,
            cgroups_version=cgroups_version,
            uid=user.pw_uid,
            username=user.pw_name,
            home=user.pw_dir,
            shell=shell,
            executable=executable,
            working_directory=working_directory,
        )

    def toolbox_path(self, environ: Mapping[str, str] | None = None) -> str:
        """Path of the toolbox executable as seen from the host.

        Inside a container the executable is a bind mount, so the host
        path is taken from ``TOOLBOX_PATH`` when it is set.
        """
        env = os.environ if environ is None else environ
        return env.get("TOOLBOX_PATH") or self.executable


def ensure_not_foreign_container(host: HostContext) -> None:
    if host.in_foreign_container:
        raise NotToolboxContainerError("this is not a toolbox container")


def get_env_options_for_preserved_variables(
    environ: Mapping[str, str] | None = None,
) -> list[str]:
    env = os.environ if environ is None else environ
    return [
        f"--env={name}={env[name]}"
        for name in PRESERVED_ENVIRONMENT_VARIABLES
        if name in env
    ]


def forward_to_host(
    host: HostContext,
    argv: Sequence[str],
    verbose: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Run toolbox with the same arguments on the host.

    Args:
        host: The detected context.
        argv: Arguments after the program name.
        verbose: Connect the forwarded process' stderr to ours.
        environ: Environment to take preserved variables from.

    Returns:
        Exit code of the forwarded process.

    Raises:
        HostEscapeUnavailableError: flatpak-spawn(1) is missing.
    """
    spawn_args = [
        FLATPAK_SPAWN,
        *get_env_options_for_preserved_variables(environ),
        "--host",
        host.toolbox_path(environ),
        *argv,
    ]

    logger.debug("Forwarding to host:")
    logger.debug("%s", spawn_args)

    # stdin and stdout are inherited
    try:
        result = subprocess.run(
            spawn_args,
            stderr=None if verbose else subprocess.DEVNULL,
        )
    except FileNotFoundError as e:
        raise HostEscapeUnavailableError(f"{FLATPAK_SPAWN}(1) not found") from e
    return result.returncode


def show_manual(manual: str) -> None:
    """Replace the current process with man(1) showing *manual*."""
    man = shutil.which("man")
    if man is None:
        raise ToolboxError("man(1) not found")

    try:
        os.execv(man, ["man", manual])
    except OSError as e:
        raise ToolboxError("failed to invoke man(1)") from e
