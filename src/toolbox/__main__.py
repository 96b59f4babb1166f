# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Entry point for ``python -m toolbox``."""

from .cli.main import cli

if __name__ == "__main__":
    cli()
