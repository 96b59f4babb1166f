# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Container names, image references and releases."""

from __future__ import annotations

import logging
import platform
import re
from dataclasses import dataclass

from .config import ToolboxConfig
from .errors import EnvironmentUnresolvedError, InvalidNameError, InvalidReleaseError

logger = logging.getLogger(__name__)

CONTAINER_NAME_PREFIX = "fedora-toolbox"
CONTAINER_NAME_DEFAULT = CONTAINER_NAME_PREFIX
IMAGE_NAME_BASE = "fedora-toolbox"
CONTAINER_NAME_REGEXP = "[a-zA-Z0-9][a-zA-Z0-9_.-]*"

# Where unqualified images are looked for
LOCAL_DOMAIN = "localhost"
REGISTRY_IMAGE_TEMPLATE = "registry.fedoraproject.org/f{release}/{image}"

_CONTAINER_NAME_RE = re.compile(CONTAINER_NAME_REGEXP)
_IMAGE_ID_RE = re.compile("[a-f0-9]{6,64}")
_RELEASE_RE = re.compile("[fF]?([0-9]+)")


def is_container_name_valid(name: str) -> bool:
    return _CONTAINER_NAME_RE.fullmatch(name) is not None


def validate_container_name(name: str, source: str = "CONTAINER") -> None:
    if not is_container_name_valid(name):
        raise InvalidNameError(
            f"invalid argument for '{source}'",
            hint=(
                f"Container names must match '{CONTAINER_NAME_REGEXP}'\n"
                "Run 'toolbox --help' for usage."
            ),
        )


def parse_release(value: str) -> str:
    """Normalize a release given as ``N`` or ``fN`` to ``N``."""
    match = _RELEASE_RE.fullmatch(value.strip())
    if match is None or int(match.group(1)) <= 0:
        raise InvalidReleaseError(
            "invalid argument for '--release'",
            hint="The release must be a positive integer.",
        )
    return str(int(match.group(1)))


def get_host_version_id() -> str | None:
    """Return VERSION_ID from os-release(5), e.g. ``35`` on Fedora 35."""
    try:
        os_release = platform.freedesktop_os_release()
    except OSError as e:
        logger.debug("Failed to read os-release: %s", e)
        return None
    return os_release.get("VERSION_ID") or None


def image_reference_can_be_id(image: str) -> bool:
    """Whether *image* could be a (possibly truncated) image ID."""
    return _IMAGE_ID_RE.fullmatch(image) is not None


def image_reference_get_domain(image: str) -> str:
    """Return the registry domain of *image*, or ``""`` when it has none.

    As with the Docker reference grammar, the first path component is a
    domain only if the reference has more than one component and the
    first contains a ``.`` or ``:`` or is ``localhost``.
    """
    if "/" not in image:
        return ""
    first = image.split("/", 1)[0]
    if "." in first or ":" in first or first == LOCAL_DOMAIN:
        return first
    return ""


def image_reference_has_domain(image: str) -> bool:
    return image_reference_get_domain(image) != ""


@dataclass(frozen=True)
class ContainerIdentity:
    """A fully resolved container name, image and release."""

    name: str
    image: str
    release: str


class NameResolver:
    """Fill in container name, image and release from defaults.

    The default release is the configured one, else the host's VERSION_ID.
    The configured default container and image apply only to the default
    release; any other release derives both from the release itself.
    """

    def __init__(
        self,
        config: ToolboxConfig | None = None,
        host_release: str | None = None,
    ):
        self._config = config or ToolboxConfig()
        self._host_release = host_release

    @property
    def default_release(self) -> str | None:
        if self._config.release:
            return parse_release(self._config.release)
        return self._host_release

    @property
    def default_container(self) -> str:
        return self._config.container or CONTAINER_NAME_DEFAULT

    @staticmethod
    def container_name_for_release(release: str) -> str:
        return f"{CONTAINER_NAME_PREFIX}-{release}"

    @staticmethod
    def image_for_release(release: str) -> str:
        return f"{IMAGE_NAME_BASE}:{release}"

    def resolve(
        self,
        container: str | None = None,
        image: str | None = None,
        release: str | None = None,
    ) -> ContainerIdentity:
        """Resolve the identity of the container a command works on.

        Raises:
            InvalidNameError: A given or configured name is not valid.
            EnvironmentUnresolvedError: No release was given and none is
                known for the host.
        """
        logger.debug("Resolving container and image names")
        logger.debug("Container: '%s'", container or "")
        logger.debug("Image: '%s'", image or "")
        logger.debug("Release: '%s'", release or "")

        if container:
            validate_container_name(container)

        default_release = self.default_release
        if not release:
            release = default_release
        if not release:
            raise EnvironmentUnresolvedError("failed to get the release of the host")

        is_default_release = release == default_release

        if not image:
            if is_default_release and self._config.image:
                image = self._config.image
            else:
                image = self.image_for_release(release)

        if not container:
            if is_default_release:
                container = self.default_container
                validate_container_name(container, "general.container")
            else:
                container = self.container_name_for_release(release)

        logger.debug("Resolved container and image names")
        logger.debug("Container: '%s'", container)
        logger.debug("Image: '%s'", image)
        logger.debug("Release: '%s'", release)

        return ContainerIdentity(name=container, image=image, release=release)

    def enter_command(self, identity: ContainerIdentity, executable_base: str = "toolbox") -> str:
        """The command that enters the container named by *identity*."""
        if identity.name == self.default_container:
            return f"{executable_base} enter"
        if identity.name == self.container_name_for_release(identity.release):
            return f"{executable_base} enter --release {identity.release}"
        return f"{executable_base} enter --container {identity.name}"
