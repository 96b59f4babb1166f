# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Toolbox - unprivileged development containers on top of podman."""

__version__ = "0.1.0"
