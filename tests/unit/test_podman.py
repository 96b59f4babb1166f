# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Tests for the podman command line client."""

from __future__ import annotations

import json
import subprocess
from typing import Any

import pytest

from toolbox.errors import (
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
from toolbox.podman import PodmanClient, normalize_version


class FakeRun:
    """Replacement for subprocess.run that replays canned results."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.results: list[tuple[int, str, str]] = []

    def add(self, returncode: int = 0, stdout: Any = "", stderr: str = "") -> None:
        if not isinstance(stdout, str):
            stdout = json.dumps(stdout)
        self.results.append((returncode, stdout, stderr))

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append(cmd)
        returncode, stdout, stderr = self.results.pop(0)
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)


@pytest.fixture
def run(monkeypatch) -> FakeRun:
    fake = FakeRun()
    monkeypatch.setattr("toolbox.podman.subprocess.run", fake)
    return fake


@pytest.fixture
def client() -> PodmanClient:
    return PodmanClient()


# ---------------------------------------------------------------------------
# Settings and plumbing
# ---------------------------------------------------------------------------


def test_log_level_is_passed_to_podman(run, client) -> None:
    run.add(0, [])
    client.list_containers("--all")
    assert run.calls == [["podman", "--log-level", "error", "ps", "--format", "json", "--all"]]


def test_from_settings_keeps_podman_quiet_by_default(run) -> None:
    run.add(0, [])
    PodmanClient.from_settings("debug", log_podman=False).list_images()
    assert run.calls[0][:3] == ["podman", "--log-level", "error"]


def test_from_settings_with_log_podman(run) -> None:
    run.add(0, [])
    PodmanClient.from_settings("debug", log_podman=True).list_images()
    assert run.calls[0][:3] == ["podman", "--log-level", "debug"]


def test_stderr_is_relayed_at_debug(run, capsys) -> None:
    run.add(0, [], "WARN[0000] something\n")
    PodmanClient.from_settings("debug", log_podman=False).list_images()
    assert "something" in capsys.readouterr().err


def test_missing_podman(monkeypatch, client) -> None:
    def missing(cmd: list[str], **kwargs: Any) -> None:
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr("toolbox.podman.subprocess.run", missing)
    with pytest.raises(PodmanError, match=r"podman\(1\) not found"):
        client.container_exists("x")


@pytest.mark.parametrize("code,error_cls", [
    (125, PodmanInternalError),
    (126, CommandInvocationError),
    (127, CommandInvocationError),
    (3, PodmanError),
])
def test_exit_status_mapping(run, client, code: int, error_cls: type[PodmanError]) -> None:
    run.add(code, "", "bad things")
    with pytest.raises(error_cls) as exc_info:
        client.info()
    assert exc_info.value.exit_code == code
    assert exc_info.value.stderr == "bad things"


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def test_version_from_client_section(run, client) -> None:
    run.add(0, {"Client": {"Version": "4.9.3"}, "Server": {"Version": "4.9.0"}})
    assert client.get_version() == "4.9.3"
    # Cached
    assert client.get_version() == "4.9.3"
    assert len(run.calls) == 1


def test_version_from_flat_report(run, client) -> None:
    run.add(0, {"Version": "1.4.4", "GoVersion": "go1.12"})
    assert client.get_version() == "1.4.4"
    assert not client.check_version("1.5.0")


def test_check_version_handles_suffixes(run, client) -> None:
    run.add(0, {"Client": {"Version": "2.0.0-dev"}})
    assert client.check_version("1.5.0")


def test_unknown_version_counts_as_old(run, client) -> None:
    run.add(125, "", "")
    assert not client.check_version("1.5.0")


def test_version_report_without_version_is_an_error(run, client) -> None:
    run.add(0, {"Client": {"APIVersion": "4"}})
    with pytest.raises(MalformedEngineResponseError):
        client.check_version("1.5.0")


def test_normalize_version() -> None:
    assert normalize_version("2.0.0-dev") == (2, 0, 0)
    assert normalize_version("v1.5") == (1, 5, 0)
    assert normalize_version("1.10.0") > normalize_version("1.9.9")
    with pytest.raises(ValueError):
        normalize_version("dev")


def test_malformed_json(run, client) -> None:
    run.add(0, "not json")
    with pytest.raises(MalformedEngineResponseError):
        client.list_containers()


def test_wrong_shape(run, client) -> None:
    run.add(0, [{"Names": ["no-id"]}])
    with pytest.raises(MalformedEngineResponseError):
        client.list_containers()


def test_list_containers_accepts_both_id_spellings(run, client) -> None:
    run.add(0, [
        {"ID": "aaa", "Names": "old", "Labels": None},
        {"Id": "bbb", "Names": ["new"], "Labels": {"com.github.containers.toolbox": "true"}},
    ])
    containers = client.list_containers()
    assert [c.id for c in containers] == ["aaa", "bbb"]
    assert containers[0].names == ["old"]
    assert containers[0].labels == {}
    assert containers[1].labels["com.github.containers.toolbox"] == "true"


def test_inspect_container(run, client) -> None:
    run.add(0, [{"Id": "abc", "Name": "box", "Config": {"Labels": {"a": "b"}}}])
    info = client.inspect_container("box")
    assert info.config.labels == {"a": "b"}
    assert run.calls[0][3:] == ["inspect", "--format", "json", "--type", "container", "box"]


def test_inspect_empty_result(run, client) -> None:
    run.add(0, [])
    with pytest.raises(MalformedEngineResponseError):
        client.inspect_image("fedora-toolbox:35")


def test_exists(run, client) -> None:
    run.add(0)
    run.add(1)
    assert client.image_exists("fedora-toolbox:35")
    assert not client.container_exists("box")
    assert run.calls[1][3:] == ["container", "exists", "box"]


def test_exists_propagates_other_failures(run, client) -> None:
    run.add(125, "", "storage is broken")
    with pytest.raises(PodmanInternalError):
        client.image_exists("fedora-toolbox:35")


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("stderr,error_cls", [
    ("Error: invalid status code from registry 503 (Service Unavailable)", RegistryUnavailableError),
    ("dial tcp 127.0.0.1:443: read: connection refused", RegistryConnectionRefusedError),
    ("Error: manifest unknown: manifest unknown", UnknownManifestError),
    ("Error: something else", PullError),
])
def test_pull_failures_are_classified(run, client, stderr: str, error_cls: type[PullError]) -> None:
    run.add(125, "", stderr)
    with pytest.raises(error_cls) as exc_info:
        client.pull("registry.fedoraproject.org/f35/fedora-toolbox:35")
    assert type(exc_info.value) is error_cls


def test_create_returns_id(run, client) -> None:
    run.add(0, "0123456789abcdef\n")
    assert client.create(["--name", "box", "image"]) == "0123456789abcdef"


def test_remove_force(run, client) -> None:
    run.add(0)
    client.remove_container("box", force=True)
    assert run.calls[0][3:] == ["rm", "--force", "box"]


def test_remove_missing(run, client) -> None:
    run.add(1)
    with pytest.raises(NotFoundError):
        client.remove_container("box")


def test_remove_running(run, client) -> None:
    run.add(2)
    with pytest.raises(ContainerRunningError) as exc_info:
        client.remove_container("box")
    assert "--force" in (exc_info.value.hint or "")
