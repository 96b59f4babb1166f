# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Tests for finding and pulling base images."""

from __future__ import annotations

import pytest

from toolbox.container.images import (
    ensure_image,
    find_local_image,
    get_fully_qualified_image_name,
    qualify_image,
)
from toolbox.errors import (
    CommandInvocationError,
    InternalError,
    MalformedEngineResponseError,
    PodmanError,
    UserCancelledError,
)

REGISTRY_IMAGE = "registry.fedoraproject.org/f35/fedora-toolbox:35"


def _never_asked(prompt: str) -> bool:
    raise AssertionError(f"unexpected prompt: {prompt}")


def test_qualify_image() -> None:
    assert qualify_image("fedora-toolbox:35", "35") == REGISTRY_IMAGE
    assert qualify_image("quay.io/me/box", "35") == "quay.io/me/box"


def test_local_tag_is_used_without_pulling(podman) -> None:
    podman.add_image("localhost/fedora-toolbox:35")

    pulled = ensure_image(podman, "fedora-toolbox:35", "35", confirm=_never_asked)

    assert pulled is False
    assert podman.pulled == []


def test_declined_prompt_cancels_without_pulling(podman) -> None:
    prompts: list[str] = []

    def decline(prompt: str) -> bool:
        prompts.append(prompt)
        return False

    with pytest.raises(UserCancelledError):
        ensure_image(podman, "fedora-toolbox:35", "35", confirm=decline)

    assert prompts == [f"Download {REGISTRY_IMAGE} (500MB)?"]
    assert podman.pulled == []


def test_accepted_prompt_pulls_qualified_image(podman) -> None:
    pulled = ensure_image(podman, "fedora-toolbox:35", "35", confirm=lambda prompt: True)

    assert pulled is True
    assert podman.pulled == [REGISTRY_IMAGE]


def test_assume_yes_skips_prompt(podman) -> None:
    ensure_image(podman, "fedora-toolbox:36", "36", assume_yes=True, confirm=_never_asked)
    assert podman.pulled == ["registry.fedoraproject.org/f36/fedora-toolbox:36"]


def test_localhost_domain_skips_prompt(podman) -> None:
    ensure_image(podman, "localhost/custom:1", "35", confirm=_never_asked)
    assert podman.pulled == ["localhost/custom:1"]


def test_unqualified_image_without_domain_is_internal_error(podman, monkeypatch) -> None:
    monkeypatch.setattr(
        "toolbox.container.images.qualify_image", lambda image, release: image,
    )
    with pytest.raises(InternalError):
        ensure_image(podman, "fedora-toolbox:35", "35", assume_yes=True)


# ---------------------------------------------------------------------------
# Lookup precedence: ID, then localhost/, then the registry
# ---------------------------------------------------------------------------


def test_local_tag_wins_over_registry_reference(podman) -> None:
    podman.add_image("localhost/fedora-toolbox:35")
    podman.add_image(REGISTRY_IMAGE)

    assert find_local_image(podman, "fedora-toolbox:35", "35") == "localhost/fedora-toolbox:35"
    assert podman.image_queries == ["localhost/fedora-toolbox:35"]


def test_id_wins_over_local_tag(podman) -> None:
    podman.add_image("abcdef123456")
    podman.add_image("localhost/abcdef123456")

    assert find_local_image(podman, "abcdef123456", "35") == "abcdef123456"
    assert podman.image_queries == ["abcdef123456"]


def test_registry_reference_is_last(podman) -> None:
    podman.add_image(REGISTRY_IMAGE)

    assert find_local_image(podman, "fedora-toolbox:35", "35") == REGISTRY_IMAGE
    assert podman.image_queries == ["localhost/fedora-toolbox:35", REGISTRY_IMAGE]


def test_qualified_reference_is_looked_up_once(podman) -> None:
    assert find_local_image(podman, "quay.io/me/box:1", "35") is None
    assert podman.image_queries == ["quay.io/me/box:1"]


# ---------------------------------------------------------------------------
# Fully qualified names
# ---------------------------------------------------------------------------


def test_fully_qualified_name_from_repo_tags(podman) -> None:
    podman.add_image(REGISTRY_IMAGE)
    assert get_fully_qualified_image_name(podman, "fedora-toolbox:35") == REGISTRY_IMAGE


def test_qualified_name_is_not_inspected(podman) -> None:
    assert get_fully_qualified_image_name(podman, "quay.io/me/box:1") == "quay.io/me/box:1"


@pytest.mark.parametrize("repo_tags", [None, []])
def test_missing_repo_tags_is_malformed(podman, repo_tags) -> None:
    podman.images["localhost/fedora-toolbox:35"] = repo_tags
    with pytest.raises(MalformedEngineResponseError):
        get_fully_qualified_image_name(podman, "fedora-toolbox:35")


def test_inspect_failure_is_reported(podman) -> None:
    with pytest.raises(PodmanError, match="failed to inspect image fedora-toolbox:35"):
        get_fully_qualified_image_name(podman, "fedora-toolbox:35")


def test_inspect_failure_keeps_error_kind(podman, monkeypatch) -> None:
    def fail(image: str) -> None:
        raise CommandInvocationError(f"failed to inspect image {image}", 126, "denied")

    monkeypatch.setattr(podman, "inspect_image", fail)

    with pytest.raises(CommandInvocationError) as excinfo:
        get_fully_qualified_image_name(podman, "fedora-toolbox:35")
    assert excinfo.value.exit_code == 126
    assert excinfo.value.stderr == "denied"
