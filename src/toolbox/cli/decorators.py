# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Decorators for CLI commands."""

from functools import wraps
from typing import Callable, TypeVar

import typer

from ..context import ensure_not_foreign_container, forward_to_host
from ..errors import ToolboxError
from ..output import out
from .state import get_state

R = TypeVar("R")


def report_errors(func: Callable[..., R]) -> Callable[..., R]:
    """Decorator that reports ToolboxError and exits with status 1."""
    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> R:
        try:
            return func(*args, **kwargs)
        except ToolboxError as e:
            out.error(str(e))
            if e.hint:
                out.hint(e.hint)
            raise typer.Exit(1)
    return wrapper


def require_host(func: Callable[..., R]) -> Callable[..., R]:
    """Decorator that runs the command on the host.

    Inside a toolbox container or a Flatpak sandbox the whole command line
    is re-run on the host and its exit code becomes ours.  The command
    must take ``ctx: typer.Context``.
    """
    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> R:
        state = get_state(kwargs["ctx"])  # type: ignore[arg-type]

        ensure_not_foreign_container(state.host)
        if state.host.needs_forward:
            code = forward_to_host(state.host, state.argv, verbose=state.settings.verbose)
            raise typer.Exit(code)

        return func(*args, **kwargs)
    return wrapper
