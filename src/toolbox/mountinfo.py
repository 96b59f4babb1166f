# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Read the mount table of the current process from ``/proc/self/mountinfo``."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

MOUNTINFO_PATH = "/proc/self/mountinfo"

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def _unescape(field: str) -> str:
    # The kernel escapes space, tab, newline and backslash as \ooo
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


@dataclass(frozen=True)
class MountEntry:
    mount_point: str
    options: tuple[str, ...]
    fs_type: str
    source: str
    super_options: tuple[str, ...]

    @property
    def read_only(self) -> bool:
        return "ro" in self.options or "ro" in self.super_options


def parse_mountinfo(text: str) -> list[MountEntry]:
    """Parse the contents of a mountinfo file.

    See proc(5) for the format; lines that do not have the separator
    between optional fields and the filesystem type are skipped.
    """
    entries: list[MountEntry] = []
    for line in text.splitlines():
        fields = line.split()
        try:
            separator = fields.index("-", 6)
        except ValueError:
            continue
        if len(fields) < separator + 3:
            continue
        entries.append(MountEntry(
            mount_point=_unescape(fields[4]),
            options=tuple(fields[5].split(",")),
            fs_type=fields[separator + 1],
            source=_unescape(fields[separator + 2]),
            super_options=tuple(fields[separator + 3].split(","))
            if len(fields) > separator + 3 else (),
        ))
    return entries


def read_mountinfo(path: str = MOUNTINFO_PATH) -> list[MountEntry]:
    with open(path, encoding="utf-8") as f:
        return parse_mountinfo(f.read())


def _is_under(path: str, mount_point: str) -> bool:
    if mount_point == "/":
        return True
    return path == mount_point or path.startswith(mount_point.rstrip("/") + "/")


def find_mount(path: str, entries: list[MountEntry]) -> MountEntry:
    """Return the mount that *path* lives on.

    The deepest mount point wins; for stacked mounts on the same point the
    one listed last is the visible one.

    Raises:
        LookupError: No mount covers *path*.
    """
    best: MountEntry | None = None
    for entry in entries:
        if not _is_under(path, entry.mount_point):
            continue
        if best is None or len(entry.mount_point) >= len(best.mount_point):
            best = entry
    if best is None:
        raise LookupError(f"no mount found for {path}")
    return best


def mount_for_path(path: str, mountinfo_path: str = MOUNTINFO_PATH) -> MountEntry:
    """Find the mount of the canonical form of *path* on this system."""
    return find_mount(os.path.realpath(path), read_mountinfo(mountinfo_path))
