# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest configuration and fakes shared by the toolbox unit tests."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from toolbox.config import Settings
from toolbox.container import topology
from toolbox.container.constants import TOOLBOX_LABEL, TOOLBOX_LABEL_LEGACY
from toolbox.container.create import build_args
from toolbox.context import HostContext
from toolbox.errors import EnvironmentUnresolvedError, PodmanError
from toolbox.models import (
    ContainerConfig,
    ContainerInspect,
    ContainerSummary,
    ImageInspect,
)
from toolbox.podman import normalize_version

HOME = "/home/user"
REGISTRY_IMAGE_35 = "registry.fedoraproject.org/f35/fedora-toolbox:35"
MONITOR_PATH = "/run/user/1000/.flatpak-helper/monitor"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakePodman:
    """In-memory stand-in for :class:`toolbox.podman.PodmanClient`."""

    def __init__(self, version: str = "4.9.3") -> None:
        self.version = version
        # reference -> RepoTags
        self.images: dict[str, list[str]] = {}
        # name -> labels
        self.containers: dict[str, dict[str, str]] = {}
        # filter -> `podman ps` result
        self.listings: dict[str, list[ContainerSummary]] = {}
        self.image_queries: list[str] = []
        self.pulled: list[str] = []
        self.created: list[list[str]] = []
        self.removed: list[tuple[str, bool]] = []
        self.create_error: PodmanError | None = None

    def add_image(self, reference: str, repo_tags: list[str] | None = None) -> None:
        self.images[reference] = [reference] if repo_tags is None else repo_tags

    def check_version(self, required: str) -> bool:
        return normalize_version(self.version) >= normalize_version(required)

    def image_exists(self, image: str) -> bool:
        self.image_queries.append(image)
        return image in self.images

    def container_exists(self, container: str) -> bool:
        return container in self.containers

    def pull(self, image: str) -> None:
        self.pulled.append(image)
        self.add_image(image)

    def inspect_image(self, image: str) -> ImageInspect:
        for reference, tags in self.images.items():
            if reference == image or reference.endswith("/" + image):
                return ImageInspect(id="0123456789ab", repo_tags=tags)
        raise PodmanError(f"failed to inspect image {image}", 125)

    def inspect_container(self, container: str) -> ContainerInspect:
        if container not in self.containers:
            raise PodmanError(f"failed to inspect container {container}", 125)
        return ContainerInspect(
            id=f"id-{container}",
            name=container,
            config=ContainerConfig(labels=self.containers[container]),
        )

    def list_containers(self, *args: str) -> list[ContainerSummary]:
        return self.listings.get(args[-1], [])

    def create(self, args: list[str]) -> str:
        if self.create_error is not None:
            raise self.create_error
        name = args[args.index("--name") + 1]
        self.created.append(list(args))
        self.containers[name] = {TOOLBOX_LABEL: "true", TOOLBOX_LABEL_LEGACY: "true"}
        return f"id-{name}"

    def remove_container(self, container: str, force: bool = False) -> None:
        self.removed.append((container, force))
        self.containers.pop(container, None)


class FakeBus:
    """Stand-in for :class:`toolbox.host_bus.HostBus`."""

    def __init__(self, monitor: str = MONITOR_PATH, kcm: str | None = None) -> None:
        self.monitor = monitor
        self.kcm = kcm

    def request_session_monitor(self) -> str:
        return self.monitor

    def get_kcm_socket(self) -> str:
        if self.kcm is None:
            raise EnvironmentUnresolvedError(
                "failed to get the properties of sssd-kcm.socket"
            )
        return self.kcm


class FakeFilesystem:
    """Paths and symlinks seen by the mount-topology probes."""

    def __init__(self) -> None:
        self.links: dict[str, str] = {}
        self.paths: set[str] = {"/home", HOME, "/mnt"}
        self.usr_read_write = False

    def canonicalize(self, path: str) -> str:
        for link, target in self.links.items():
            if path == link or path.startswith(link + "/"):
                return target + path[len(link):]
        return path

    def exists(self, path: str) -> bool:
        return path in self.paths or self.canonicalize(path) in self.paths


def make_host(**overrides: Any) -> HostContext:
    values: dict[str, Any] = dict(
        on_host=True,
        in_toolbox=False,
        in_sandbox=False,
        cgroups_version=2,
        uid=1000,
        username="user",
        home=HOME,
        shell="/bin/bash",
        executable="/usr/bin/toolbox",
        working_directory=HOME,
    )
    values.update(overrides)
    return HostContext(**values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Keep the real environment and root logger out of every test."""
    monkeypatch.delenv("TOOLBOX_PATH", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def podman() -> FakePodman:
    return FakePodman()


@pytest.fixture
def bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def host() -> HostContext:
    return make_host()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def host_fs(monkeypatch: pytest.MonkeyPatch) -> FakeFilesystem:
    """A host with a plain /home, no /media and a read-only /usr."""
    fs = FakeFilesystem()
    monkeypatch.setattr(topology, "_canonicalize", fs.canonicalize)
    monkeypatch.setattr(topology, "_path_exists", fs.exists)
    monkeypatch.setattr(
        topology, "get_dbus_system_socket",
        lambda environ=None: "/run/dbus/system_bus_socket",
    )
    monkeypatch.setattr(
        topology, "canonical_home", lambda host: fs.canonicalize(host.home),
    )
    monkeypatch.setattr(
        topology, "is_usr_read_write",
        lambda mountinfo_path=None: fs.usr_read_write,
    )
    monkeypatch.setattr(build_args, "get_group_for_sudo", lambda: "wheel")
    monkeypatch.setenv("XDG_RUNTIME_DIR", "/run/user/1000")
    return fs


@pytest.fixture
def make_host_context() -> Any:
    """Factory for :class:`HostContext` values with some fields overridden."""
    return make_host
