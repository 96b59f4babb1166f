# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Tests for configuration files and logging settings."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from toolbox.config import (
    Settings,
    config_search_path,
    load_config,
    parse_log_level,
    user_config_path,
)
from toolbox.errors import ConfigError


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def test_later_files_override_earlier(tmp_path) -> None:
    package = _write(tmp_path / "usr.conf", '[general]\ncontainer = "pkg"\nimage = "pkg-image"\n')
    user = _write(tmp_path / "user.conf", '[general]\ncontainer = "mine"\n')

    config = load_config(paths=[package, tmp_path / "missing.conf", user])

    assert config.container == "mine"
    assert config.image == "pkg-image"
    assert config.release is None
    assert config.sources == [package, user]


def test_numeric_release_is_accepted(tmp_path) -> None:
    path = _write(tmp_path / "toolbox.conf", "[general]\nrelease = 38\n")
    assert load_config(paths=[path]).release == "38"


def test_unknown_keys_are_ignored(tmp_path) -> None:
    path = _write(tmp_path / "toolbox.conf", '[general]\ncolour = "blue"\n[other]\nx = 1\n')
    config = load_config(paths=[path])
    assert config.container is None
    assert config.sources == [path]


@pytest.mark.parametrize("text", [
    "[general\n",
    "general = 1\n",
    '[general]\ncontainer = ""\n',
    "[general]\nimage = true\n",
])
def test_bad_files_name_the_file(tmp_path, text: str) -> None:
    path = _write(tmp_path / "toolbox.conf", text)
    with pytest.raises(ConfigError, match=re.escape(str(path))):
        load_config(paths=[path])


def test_user_config_honours_xdg_config_home(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert user_config_path("/home/user") == tmp_path / "toolbox" / "toolbox.conf"


def test_user_config_defaults_to_home() -> None:
    assert user_config_path("/home/user") == Path("/home/user/.config/toolbox/toolbox.conf")


def test_search_path_order() -> None:
    assert [str(p) for p in config_search_path("/home/user")] == [
        "/usr/lib/toolbox/toolbox.conf",
        "/etc/toolbox/toolbox.conf",
        "/home/user/.config/toolbox/toolbox.conf",
    ]


@pytest.mark.parametrize("value,expected", [
    ("error", "error"),
    ("DEBUG", "debug"),
    ("warn", "warn"),
    ("trace", "trace"),
])
def test_parse_log_level(value: str, expected: str) -> None:
    assert parse_log_level(value) == expected


def test_verbose_forces_debug() -> None:
    assert parse_log_level("error", verbose=True) == "debug"


def test_bad_log_level() -> None:
    with pytest.raises(ConfigError, match="failed to parse log-level"):
        parse_log_level("loud")


def test_settings_verbose() -> None:
    assert not Settings().verbose
    assert Settings(log_level="trace").verbose
