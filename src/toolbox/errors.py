# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Error types raised by toolbox.

Everything deriving from :class:`ToolboxError` is reported to the user as
a single ``Error: <message>`` line (plus an optional hint) and exit code 1.
:class:`InternalError` is not: it marks a broken invariant and is left to
propagate as a traceback.
"""

from __future__ import annotations


class ToolboxError(Exception):
    """Error that is reported to the user."""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.hint = hint


class InvalidNameError(ToolboxError):
    """A container name does not match the naming pattern."""


class InvalidReleaseError(ToolboxError):
    """A release argument is not a valid release."""


class NotFoundError(ToolboxError):
    """The requested container or image does not exist."""


class AlreadyExistsError(ToolboxError):
    """The container to be created already exists."""


class ContainerRunningError(ToolboxError):
    """The container is running or paused and removal was not forced."""


class NotToolboxContainerError(ToolboxError):
    """Running inside a container that toolbox does not manage."""


class HostEscapeUnavailableError(ToolboxError):
    """flatpak-spawn(1) is not available to forward a command to the host."""


class UserCancelledError(ToolboxError):
    """The user declined a confirmation prompt."""


class EnvironmentUnresolvedError(ToolboxError):
    """A required host resource could not be located."""


class ConfigError(ToolboxError):
    """A configuration file could not be used."""


class UnsupportedOperationError(ToolboxError):
    """The requested operation is not provided by this build."""


class PodmanError(ToolboxError):
    """Error from a podman invocation."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        stderr: str = "",
        hint: str | None = None,
    ):
        super().__init__(message, hint)
        self.exit_code = exit_code
        self.stderr = stderr


class PodmanInternalError(PodmanError):
    """Podman exited with 125."""


class CommandInvocationError(PodmanError):
    """The contained command could not be invoked (126) or found (127)."""


class MalformedEngineResponseError(PodmanError):
    """Podman printed output that does not have the expected shape."""


class PullError(PodmanError):
    """Pulling an image failed."""


class RegistryUnavailableError(PullError):
    """The registry answered with HTTP 503."""


class RegistryConnectionRefusedError(PullError):
    """The registry could not be reached."""


class UnknownManifestError(PullError):
    """The image or tag does not exist in the registry."""


class InternalError(Exception):
    """An internal invariant was broken.

    Not a :class:`ToolboxError` on purpose: these are programming errors
    and must not be reworded into user-facing messages.
    """
