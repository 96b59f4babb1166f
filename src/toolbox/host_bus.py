# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Queries toolbox makes over D-Bus while preparing a container.

Uses dbus-fast.  Each query opens its own connection, makes one call and
disconnects; nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from dbus_fast import BusType, Message, MessageType, Variant
from dbus_fast.aio import MessageBus
from dbus_fast.errors import AuthError, DBusError, InvalidAddressError

from .errors import EnvironmentUnresolvedError

logger = logging.getLogger(__name__)

FLATPAK_SESSION_HELPER_NAME = "org.freedesktop.Flatpak"
FLATPAK_SESSION_HELPER_PATH = "/org/freedesktop/Flatpak/SessionHelper"
FLATPAK_SESSION_HELPER_INTERFACE = "org.freedesktop.Flatpak.SessionHelper"

SYSTEMD_NAME = "org.freedesktop.systemd1"
SYSTEMD_UNIT_PATH_PREFIX = "/org/freedesktop/systemd1/unit/"
SYSTEMD_SOCKET_INTERFACE = "org.freedesktop.systemd1.Socket"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

KCM_SOCKET_UNIT = "sssd-kcm.socket"

_BUS_ERRORS = (OSError, AuthError, DBusError, InvalidAddressError)


def unit_object_path(unit: str) -> str:
    """Return the systemd object path of *unit*.

    Every byte that is not an ASCII letter or digit is escaped as ``_xx``,
    e.g. ``sssd-kcm.socket`` becomes ``sssd_2dkcm_2esocket``.
    """
    escaped = "".join(
        c if c.isascii() and c.isalnum() else f"_{b:02x}"
        for c in unit
        for b in c.encode()
    )
    return SYSTEMD_UNIT_PATH_PREFIX + escaped


def parse_session_reply(body: list[Any]) -> str:
    """Extract the monitor path from a ``RequestSession`` reply body.

    The reply is an ``a{sv}`` dictionary whose ``path`` entry must be a
    string variant.
    """
    if not body or not isinstance(body[0], dict):
        raise EnvironmentUnresolvedError(
            f"unknown reply from {FLATPAK_SESSION_HELPER_INTERFACE}.RequestSession"
        )
    variant = body[0].get("path")
    if not isinstance(variant, Variant) or variant.signature != "s":
        raise EnvironmentUnresolvedError(
            f"unknown reply from {FLATPAK_SESSION_HELPER_INTERFACE}.RequestSession"
        )
    return variant.value


def select_stream_socket(listen: list[Any]) -> str:
    """Pick the KCM socket out of a unit's ``Listen`` property.

    ``Listen`` is an ``a(ss)`` list of (type, address) pairs.  The first
    ``Stream`` socket with an absolute path that resolves is returned in
    canonical form.
    """
    for socket_type, address in listen:
        if socket_type != "Stream":
            continue
        if not address.startswith("/"):
            continue
        try:
            return str(Path(address).resolve(strict=True))
        except OSError:
            logger.debug("Failed to resolve %s", address)
            continue

    raise EnvironmentUnresolvedError(
        f"failed to find a SOCK_STREAM socket for {KCM_SOCKET_UNIT}"
    )


class HostBus:
    """D-Bus queries against the host's session and system buses."""

    @staticmethod
    async def _call(bus_type: BusType, message: Message) -> Message:
        bus = await MessageBus(bus_type=bus_type).connect()
        try:
            return await bus.call(message)
        finally:
            bus.disconnect()

    def _call_sync(self, bus_type: BusType, message: Message, failure: str) -> Message:
        bus_name = "system" if bus_type == BusType.SYSTEM else "session"
        try:
            reply = asyncio.run(self._call(bus_type, message))
        except _BUS_ERRORS as e:
            logger.debug("D-Bus %s bus call failed: %s", bus_name, e)
            raise EnvironmentUnresolvedError(failure) from e

        if reply.message_type == MessageType.ERROR:
            logger.debug("D-Bus error %s: %s", reply.error_name, reply.body)
            raise EnvironmentUnresolvedError(failure)
        return reply

    def request_session_monitor(self) -> str:
        """Ask the Flatpak session helper for its monitor directory.

        Returns:
            Path whose contents mirror the host's resolv.conf, hosts and
            localtime.
        """
        logger.debug("Calling %s.RequestSession", FLATPAK_SESSION_HELPER_INTERFACE)
        reply = self._call_sync(
            BusType.SESSION,
            Message(
                destination=FLATPAK_SESSION_HELPER_NAME,
                path=FLATPAK_SESSION_HELPER_PATH,
                interface=FLATPAK_SESSION_HELPER_INTERFACE,
                member="RequestSession",
            ),
            f"failed to call {FLATPAK_SESSION_HELPER_INTERFACE}.RequestSession",
        )
        return parse_session_reply(reply.body)

    def get_kcm_socket(self) -> str:
        """Find the socket of the SSSD Kerberos credential cache manager."""
        logger.debug("Resolving path to the KCM socket")
        reply = self._call_sync(
            BusType.SYSTEM,
            Message(
                destination=SYSTEMD_NAME,
                path=unit_object_path(KCM_SOCKET_UNIT),
                interface=PROPERTIES_INTERFACE,
                member="Get",
                signature="ss",
                body=[SYSTEMD_SOCKET_INTERFACE, "Listen"],
            ),
            f"failed to get the properties of {KCM_SOCKET_UNIT}",
        )

        if not reply.body or not isinstance(reply.body[0], Variant):
            raise EnvironmentUnresolvedError(
                f"failed to find the Listen property of {KCM_SOCKET_UNIT}"
            )
        return select_stream_socket(reply.body[0].value)
