# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Synchronous client for the podman command line.

Every call runs ``podman --log-level <level> <subcommand> ...`` as a child
process, waits for it, and turns the exit status into an exception.
Structured queries ask for JSON and are decoded into the models from
:mod:`toolbox.models`.
"""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
import sys
from typing import TypeVar

from pydantic import TypeAdapter, ValidationError

from .errors import (
    CommandInvocationError,
    ContainerRunningError,
    MalformedEngineResponseError,
    NotFoundError,
    PodmanError,
    PodmanInternalError,
    PullError,
    RegistryConnectionRefusedError,
    RegistryUnavailableError,
    UnknownManifestError,
)
from .models import (
    ContainerInspect,
    ContainerSummary,
    ImageInspect,
    ImageSummary,
    InfoReport,
    VersionReport,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

# Exit statuses documented by podman(1)
EXIT_NON_EXISTENT = 1
EXIT_RUNNING = 2
EXIT_INTERNAL = 125
EXIT_CANNOT_INVOKE = 126
EXIT_NOT_FOUND = 127

_RELAY_LEVELS = frozenset({"debug", "trace"})

# Substrings of `podman pull` stderr and the error they signal
_PULL_FAILURES: tuple[tuple[tuple[str, ...], type[PullError], str], ...] = (
    (
        (
            "invalid status code from registry 503 (Service Unavailable)",
            "received unexpected HTTP status: 503 Service Temporarily Unavailable",
        ),
        RegistryUnavailableError,
        "the registry is unavailable",
    ),
    (
        ("read: connection refused",),
        RegistryConnectionRefusedError,
        "the connection to the registry was refused",
    ),
    (
        ("manifest unknown: manifest unknown",),
        UnknownManifestError,
        "the image does not exist in the registry",
    ),
)


def normalize_version(version: str) -> tuple[int, ...]:
    """Turn a version string like ``2.0.0-dev`` into ``(2, 0, 0)``.

    Leading ``v`` and any pre-release or build suffix are dropped; missing
    components count as zero when compared.
    """
    match = re.match(r"v?(\d+(?:\.\d+)*)", version.strip())
    if match is None:
        raise ValueError(f"invalid version: {version!r}")
    parts = [int(p) for p in match.group(1).split(".")]
    while len(parts) < 3:
        parts.append(0)
    return tuple(parts)


class PodmanClient:
    """Runs podman sub-commands on behalf of toolbox."""

    def __init__(
        self,
        log_level: str = "error",
        relay_stderr: bool = False,
        binary: str = "podman",
    ):
        """Initialize the client.

        Args:
            log_level: Value passed to podman's ``--log-level``.
            relay_stderr: Copy podman's captured stderr to ours.
            binary: Name or path of the podman executable.
        """
        self._log_level = log_level
        self._relay_stderr = relay_stderr
        self._binary = binary
        self._version: str | None = None

    @classmethod
    def from_settings(cls, log_level: str, log_podman: bool) -> "PodmanClient":
        """Build a client from the command line's logging settings."""
        return cls(
            log_level=log_level if log_podman else "error",
            relay_stderr=log_level in _RELAY_LEVELS,
        )

    # -------------------------------------------------------------------------
    # Process plumbing
    # -------------------------------------------------------------------------

    def _command(self, *args: str) -> list[str]:
        return [self._binary, "--log-level", self._log_level, *args]

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        cmd = self._command(*args)
        logger.debug("Running %s", shlex.join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise PodmanError(f"{self._binary}(1) not found") from e

        if self._relay_stderr and result.stderr:
            sys.stderr.write(result.stderr)
        return result

    @staticmethod
    def _raise_for_status(
        result: subprocess.CompletedProcess[str], message: str
    ) -> None:
        """Raise the error matching podman's exit status, if any."""
        code = result.returncode
        if code == 0:
            return
        if code == EXIT_INTERNAL:
            raise PodmanInternalError(message, code, result.stderr)
        if code in (EXIT_CANNOT_INVOKE, EXIT_NOT_FOUND):
            raise CommandInvocationError(message, code, result.stderr)
        raise PodmanError(message, code, result.stderr)

    def _output(self, message: str, *args: str) -> str:
        result = self._run(*args)
        self._raise_for_status(result, message)
        return result.stdout

    @staticmethod
    def _decode(adapter: TypeAdapter[_T], output: str, what: str) -> _T:
        try:
            return adapter.validate_json(output)
        except ValidationError as e:
            logger.debug("Failed to decode %s: %s", what, e)
            raise MalformedEngineResponseError(
                f"failed to parse the output of {what}"
            ) from e

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_version(self) -> str:
        """Return the version of podman."""
        if self._version is None:
            output = self._output(
                "failed to get the podman version", "version", "--format", "json",
            )
            report = self._decode(TypeAdapter(VersionReport), output, "podman version")
            if report.version is None:
                raise MalformedEngineResponseError(
                    "failed to find the version in the output of podman version"
                )
            self._version = report.version
        return self._version

    def check_version(self, required: str) -> bool:
        """Check whether podman is at least version *required*.

        A failing ``podman version`` or an unparsable version string counts
        as too old; a report without a version is an error.
        """
        try:
            current = self.get_version()
            return normalize_version(current) >= normalize_version(required)
        except MalformedEngineResponseError:
            raise
        except (PodmanError, ValueError) as e:
            logger.debug("Failed to compare podman version: %s", e)
            return False

    def info(self) -> InfoReport:
        """Wrapper around ``podman info``."""
        output = self._output("failed to get podman info", "info", "--format", "json")
        return self._decode(TypeAdapter(InfoReport), output, "podman info")

    def inspect_container(self, container: str) -> ContainerInspect:
        """Inspect a single container."""
        return self._inspect("container", container, ContainerInspect)

    def inspect_image(self, image: str) -> ImageInspect:
        """Inspect a single image."""
        return self._inspect("image", image, ImageInspect)

    def _inspect(self, kind: str, target: str, model: type[_T]) -> _T:
        output = self._output(
            f"failed to inspect {kind} {target}",
            "inspect", "--format", "json", "--type", kind, target,
        )
        items = self._decode(TypeAdapter(list[model]), output, "podman inspect")
        if not items:
            raise MalformedEngineResponseError(
                f"podman inspect returned nothing for {kind} {target}"
            )
        return items[0]

    def list_containers(self, *args: str) -> list[ContainerSummary]:
        """Wrapper around ``podman ps``.

        Args:
            args: Extra arguments, e.g. ``("--all", "--filter", "label=x")``.
        """
        output = self._output(
            "failed to list containers", "ps", "--format", "json", *args,
        )
        return self._decode(TypeAdapter(list[ContainerSummary]), output, "podman ps")

    def list_images(self, *args: str) -> list[ImageSummary]:
        """Wrapper around ``podman images``."""
        output = self._output(
            "failed to list images", "images", "--format", "json", *args,
        )
        return self._decode(TypeAdapter(list[ImageSummary]), output, "podman images")

    def image_exists(self, image: str) -> bool:
        """Check whether an image with the given name or ID exists locally."""
        return self._exists("image", image)

    def container_exists(self, container: str) -> bool:
        """Check whether a container with the given name or ID exists."""
        return self._exists("container", container)

    def _exists(self, kind: str, target: str) -> bool:
        result = self._run(kind, "exists", target)
        if result.returncode == EXIT_NON_EXISTENT:
            return False
        self._raise_for_status(result, f"failed to check if {kind} {target} exists")
        return True

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def pull(self, image: str) -> None:
        """Pull *image* from its registry.

        Raises:
            RegistryUnavailableError, RegistryConnectionRefusedError,
            UnknownManifestError: for the failures podman reports in a
                recognizable way.
            PullError: for any other failure.
        """
        result = self._run("pull", image)
        if result.returncode == 0:
            return

        for needles, error_cls, reason in _PULL_FAILURES:
            if any(needle in result.stderr for needle in needles):
                raise error_cls(
                    f"failed to pull image {image}: {reason}",
                    result.returncode,
                    result.stderr,
                )
        raise PullError(f"failed to pull image {image}", result.returncode, result.stderr)

    def create(self, args: list[str]) -> str:
        """Wrapper around ``podman create``.

        Returns:
            ID of the new container.
        """
        output = self._output("failed to create container", "create", *args)
        return output.strip()

    def remove_container(self, container: str, force: bool = False) -> None:
        """Remove a container.

        Raises:
            NotFoundError: The container does not exist.
            ContainerRunningError: The container is running or paused and
                *force* is not set.
        """
        args = ["rm"]
        if force:
            args.append("--force")
        args.append(container)

        result = self._run(*args)
        if result.returncode == EXIT_NON_EXISTENT:
            raise NotFoundError(f"container {container} does not exist")
        if result.returncode == EXIT_RUNNING:
            raise ContainerRunningError(
                f"container {container} is running",
                hint="Use --force to remove it anyway.",
            )
        self._raise_for_status(result, f"failed to remove container {container}")
