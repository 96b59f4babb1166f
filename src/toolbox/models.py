# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Typed views of the JSON documents printed by podman.

Only the handful of fields toolbox reads are declared; everything else in
podman's output is ignored.  Aliases cover the spellings used by older
and newer podman releases (``ID`` vs ``Id``).
"""

from __future__ import annotations

from typing import Annotated

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field


def _none_as_empty_dict(value: object) -> object:
    return {} if value is None else value


def _names_as_list(value: object) -> object:
    # podman 1.x prints a single string, some releases print null
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


Labels = Annotated[dict[str, str], BeforeValidator(_none_as_empty_dict)]
Names = Annotated[list[str], BeforeValidator(_names_as_list)]


class _EngineModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ClientVersion(_EngineModel):
    version: str = Field(alias="Version")


class VersionReport(_EngineModel):
    """Output of ``podman version --format json``.

    Podman 1.x prints a flat object, newer releases nest the client
    details under ``Client``.
    """

    client: ClientVersion | None = Field(default=None, alias="Client")
    flat_version: str | None = Field(default=None, alias="Version")

    @property
    def version(self) -> str | None:
        if self.client is not None:
            return self.client.version
        return self.flat_version


class InfoHost(_EngineModel):
    cgroup_version: str | None = Field(default=None, alias="cgroupVersion")
    os: str | None = None


class InfoStore(_EngineModel):
    graph_driver_name: str | None = Field(default=None, alias="graphDriverName")


class InfoReport(_EngineModel):
    """Output of ``podman info --format json``."""

    host: InfoHost
    store: InfoStore | None = None


class ContainerSummary(_EngineModel):
    """One entry of ``podman ps --format json``."""

    id: str = Field(validation_alias=AliasChoices("Id", "ID"))
    names: Names = Field(default_factory=list, alias="Names")
    labels: Labels = Field(default_factory=dict, alias="Labels")
    state: str | None = Field(default=None, alias="State")


class ImageSummary(_EngineModel):
    """One entry of ``podman images --format json``."""

    id: str = Field(validation_alias=AliasChoices("Id", "ID", "id"))
    names: Names = Field(
        default_factory=list,
        validation_alias=AliasChoices("Names", "names"),
    )
    labels: Labels = Field(default_factory=dict, alias="Labels")


class ContainerConfig(_EngineModel):
    labels: Labels = Field(default_factory=dict, alias="Labels")


class ContainerState(_EngineModel):
    status: str | None = Field(default=None, alias="Status")


class ContainerInspect(_EngineModel):
    """Output of ``podman inspect --type container``."""

    id: str = Field(alias="Id")
    name: str | None = Field(default=None, alias="Name")
    config: ContainerConfig = Field(alias="Config")
    state: ContainerState | None = Field(default=None, alias="State")


class ImageInspect(_EngineModel):
    """Output of ``podman inspect --type image``.

    ``RepoTags`` is kept optional here; callers decide whether a missing
    or empty list is an error.
    """

    id: str = Field(alias="Id")
    repo_tags: list[str] | None = Field(default=None, alias="RepoTags")
