# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Terminal output for the toolbox command line."""

from __future__ import annotations

from rich.console import Console
from rich.status import Status


class Output:
    """Plain messages on stdout, errors and hints on stderr.

    Messages are printed without markup so that names and paths containing
    brackets come out verbatim.
    """

    def __init__(self) -> None:
        self.console = Console(highlight=False, soft_wrap=True)
        self.err_console = Console(stderr=True, highlight=False, soft_wrap=True)

    def info(self, msg: str) -> None:
        self.console.print(msg, markup=False)

    def hint(self, msg: str) -> None:
        self.err_console.print(msg, markup=False)

    def error(self, msg: str) -> None:
        self.err_console.print(f"Error: {msg}", markup=False)

    def status(self, msg: str) -> Status:
        """Spinner shown while a blocking call runs.

        Use as a context manager; the spinner stops when the block exits,
        however it exits.
        """
        return self.console.status(msg, spinner="line")


out = Output()
