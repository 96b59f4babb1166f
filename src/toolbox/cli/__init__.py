# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Toolbox command line."""
