# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Toolbox configuration.

Configuration is read from (lowest to highest priority):

  1. /usr/lib/toolbox/toolbox.conf   (package defaults)
  2. /etc/toolbox/toolbox.conf       (system)
  3. ~/.config/toolbox/toolbox.conf  (user, honours $XDG_CONFIG_HOME)

Each file is TOML with a ``[general]`` table::

    [general]
    container = "my-toolbox"
    image = "registry.example.com/toolbox:latest"
    release = "38"

Keys from a higher-priority file replace those from lower ones.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)

PACKAGE_CONFIG_PATH = Path("/usr/lib/toolbox/toolbox.conf")
SYSTEM_CONFIG_PATH = Path("/etc/toolbox/toolbox.conf")
CONFIG_FILE_NAME = "toolbox.conf"

_KEYS = ("container", "image", "release")

LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}


@dataclass
class ToolboxConfig:
    """Defaults that replace the built-in container, image and release."""

    container: str | None = None
    image: str | None = None
    release: str | None = None
    sources: list[Path] = field(default_factory=list)


@dataclass(frozen=True)
class Settings:
    """Options given on the command line, shared by every sub-command."""

    log_level: str = "error"
    log_podman: bool = False
    assume_yes: bool = False

    @property
    def verbose(self) -> bool:
        return self.log_level in ("debug", "trace")


def parse_log_level(value: str, verbose: bool = False) -> str:
    """Validate a ``--log-level`` value; ``--verbose`` forces ``debug``."""
    if verbose:
        return "debug"
    level = value.strip().lower()
    if level not in LOG_LEVELS:
        raise ConfigError("failed to parse log-level")
    return level


def user_config_path(home_dir: str | None = None) -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "toolbox" / CONFIG_FILE_NAME
    home = Path(home_dir) if home_dir else Path.home()
    return home / ".config" / "toolbox" / CONFIG_FILE_NAME


def config_search_path(home_dir: str | None = None) -> list[Path]:
    """Configuration files in ascending priority."""
    return [PACKAGE_CONFIG_PATH, SYSTEM_CONFIG_PATH, user_config_path(home_dir)]


def _read_general(path: Path) -> dict[str, str]:
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"failed to parse configuration file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"failed to read configuration file {path}: {e.strerror}")

    general = data.get("general", {})
    if not isinstance(general, dict):
        raise ConfigError(f"'general' in {path} must be a table")

    values: dict[str, str] = {}
    for key, value in general.items():
        if key not in _KEYS:
            logger.debug("Ignoring unknown key general.%s in %s", key, path)
            continue
        if isinstance(value, int) and not isinstance(value, bool) and key == "release":
            value = str(value)
        if not isinstance(value, str) or not value:
            raise ConfigError(f"general.{key} in {path} must be a non-empty string")
        values[key] = value
    return values


def load_config(
    home_dir: str | None = None,
    paths: list[Path] | None = None,
) -> ToolboxConfig:
    """Load and merge every configuration file that exists.

    Args:
        home_dir: Home directory used to locate the user file.
        paths: Files to read instead of the default search path.
    """
    config = ToolboxConfig()
    for path in paths if paths is not None else config_search_path(home_dir):
        if not path.is_file():
            continue
        logger.debug("Reading configuration from %s", path)
        for key, value in _read_general(path).items():
            setattr(config, key, value)
        config.sources.append(path)
    return config
