# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Find the base image of a container locally, or pull it."""

from __future__ import annotations

import logging
from collections.abc import Callable

import typer

from ..errors import InternalError, MalformedEngineResponseError, PodmanError, UserCancelledError
from ..naming import (
    LOCAL_DOMAIN,
    REGISTRY_IMAGE_TEMPLATE,
    image_reference_can_be_id,
    image_reference_get_domain,
    image_reference_has_domain,
)
from ..output import out
from ..podman import PodmanClient

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def ask_for_confirmation(prompt: str) -> bool:
    """Yes/no question on the terminal; an empty answer means no."""
    try:
        return typer.confirm(prompt, default=False)
    except typer.Abort:
        return False


def qualify_image(image: str, release: str) -> str:
    """Name *image* in the default registry unless it already has a domain."""
    if image_reference_has_domain(image):
        return image
    return REGISTRY_IMAGE_TEMPLATE.format(release=release, image=image)


def find_local_image(podman: PodmanClient, image: str, release: str) -> str | None:
    """Look for *image* locally and return the reference that matched.

    The lookups happen in a fixed order and the first hit wins:

    1. *image* as an image ID,
    2. ``localhost/<image>`` when *image* has no domain,
    3. the fully qualified reference from :func:`qualify_image`.
    """
    if image_reference_can_be_id(image):
        logger.debug("Looking for image %s", image)
        if podman.image_exists(image):
            return image

    if not image_reference_has_domain(image):
        image_local = f"{LOCAL_DOMAIN}/{image}"
        logger.debug("Looking for image %s", image_local)
        if podman.image_exists(image_local):
            return image_local

    image_full = qualify_image(image, release)
    logger.debug("Looking for image %s", image_full)
    if podman.image_exists(image_full):
        return image_full

    return None


def ensure_image(
    podman: PodmanClient,
    image: str,
    release: str,
    assume_yes: bool = False,
    confirm: Confirm = ask_for_confirmation,
) -> bool:
    """Make sure *image* is available locally.

    Returns:
        True if the image had to be pulled, False if it was already there.

    Raises:
        UserCancelledError: The user declined the download.
        PullError: Pulling failed.
    """
    found = find_local_image(podman, image, release)
    if found is not None:
        logger.debug("Found image %s", found)
        return False

    image_full = qualify_image(image, release)
    domain = image_reference_get_domain(image_full)
    if not domain:
        raise InternalError(f"failed to get domain from {image_full}")

    if assume_yes or domain == LOCAL_DOMAIN:
        should_pull = True
    else:
        out.info("Image required to create toolbox container.")
        should_pull = confirm(f"Download {image_full} (500MB)?")

    if not should_pull:
        raise UserCancelledError("cancelled by user")

    logger.debug("Pulling image %s", image_full)
    with out.status(f"Pulling {image_full}: "):
        podman.pull(image_full)
    return True


def get_fully_qualified_image_name(podman: PodmanClient, image: str) -> str:
    """Return the reference podman knows *image* by, including its domain."""
    if image_reference_has_domain(image):
        return image

    try:
        info = podman.inspect_image(image)
    except MalformedEngineResponseError:
        raise
    except PodmanError as e:
        raise type(e)(f"failed to inspect image {image}", e.exit_code, e.stderr) from e

    if info.repo_tags is None:
        raise MalformedEngineResponseError(f"missing RepoTag for image {image}")
    if not info.repo_tags:
        raise MalformedEngineResponseError(f"empty RepoTag for image {image}")
    return info.repo_tags[0]
