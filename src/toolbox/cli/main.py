#!/usr/bin/env python3
# SPDX-FileCopyrightText: 2026 Toolbox Contributors
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Toolbox CLI - Main entry point.

Usage:
    toolbox [OPTIONS] COMMAND [ARGS]...

Unprivileged development containers on top of podman that share the
user's home directory, display and D-Bus with the host.
"""

import logging
import sys
from typing import Any, List, Optional

import typer
from typer.core import TyperGroup

from ..config import LOG_LEVELS, Settings, parse_log_level
from ..context import (
    HostContext,
    ensure_not_foreign_container,
    forward_to_host,
    show_manual,
)
from ..errors import InternalError, ToolboxError, UnsupportedOperationError
from ..host_bus import HostBus
from ..naming import parse_release, validate_container_name
from ..output import out
from ..podman import PodmanClient
from .decorators import report_errors, require_host
from .state import AppState, get_state

logger = logging.getLogger(__name__)

USAGE_HINT = "Run 'toolbox --help' for usage."


# Create the main Typer app; --help shows manual pages instead
app = typer.Typer(
    name="toolbox",
    add_help_option=False,
    add_completion=False,
    no_args_is_help=False,
)


def setup_logging(level: str) -> None:
    """Log to stderr at *level*, one of :data:`LOG_LEVELS`."""
    logging.basicConfig(
        level=LOG_LEVELS[level],
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


@report_errors
def _show_help(ctx: typer.Context, manual: str) -> None:
    state = ctx.find_object(AppState)
    host = state.host if state is not None else HostContext.detect()

    ensure_not_foreign_container(host)
    if host.in_toolbox:
        argv = state.argv if state is not None else sys.argv[1:]
        verbose = state.settings.verbose if state is not None else False
        raise typer.Exit(forward_to_host(host, argv, verbose=verbose))

    show_manual(manual)
    raise typer.Exit()


def help_callback(ctx: typer.Context, value: bool) -> None:
    """Show toolbox(1), or toolbox-<command>(1) for a sub-command."""
    if not value or ctx.resilient_parsing:
        return
    manual = "toolbox" if ctx.parent is None else f"toolbox-{ctx.info_name}"
    _show_help(ctx, manual)


def help_option() -> Any:
    return typer.Option(
        False,
        "--help",
        "-h",
        help="Show the manual page and exit.",
        is_eager=True,
        expose_value=False,
        callback=help_callback,
    )


def _missing_command(ctx: typer.Context) -> None:
    out.error("missing command")
    out.hint("")
    group = ctx.command
    if not isinstance(group, TyperGroup):
        raise InternalError("the root command is not a command group")
    for name in group.list_commands(ctx):
        command = group.get_command(ctx, name)
        if command is None or command.hidden:
            continue
        out.hint(f"{name:<10}{command.get_short_help_str()}")
    out.hint("")
    out.hint(USAGE_HINT)
    raise typer.Exit(1)


@app.callback(invoke_without_command=True)
@report_errors
def main(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "error",
        "--log-level",
        metavar="LEVEL",
        help="Log messages at the specified level: trace, debug, info, warn, error, fatal or panic.",
    ),
    log_podman: bool = typer.Option(
        False,
        "--log-podman",
        help="Show the log output of Podman. The log level is handled by the log-level option.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Set log-level to 'debug'.",
    ),
    assume_yes: bool = typer.Option(
        False,
        "--assumeyes",
        "-y",
        help="Automatically answer yes for all questions.",
    ),
    help_: bool = help_option(),
) -> None:
    """
    Toolbox - tool for containerized command line environments on Linux.

    Creates containers that look like the host to the user: same home
    directory, same user, same display and session bus.
    """
    level = parse_log_level(log_level, verbose)
    setup_logging(level)

    if ctx.invoked_subcommand is None:
        _missing_command(ctx)

    host = HostContext.detect()
    logger.debug("Running as real user ID %d", host.uid)
    logger.debug("Resolved absolute path to the executable as %s", host.executable)
    if host.on_host:
        logger.debug("Running on a cgroups v%d host", host.cgroups_version)

    settings = Settings(log_level=level, log_podman=log_podman, assume_yes=assume_yes)
    ctx.obj = AppState(
        settings=settings,
        host=host,
        podman=PodmanClient.from_settings(level, log_podman),
        bus=HostBus(),
        argv=sys.argv[1:],
    )


def pick_container_name(name: Optional[str], container: Optional[str]) -> Optional[str]:
    """Choose between the positional CONTAINER and ``--container``."""
    if name and container and name != container:
        raise ToolboxError(
            "the container name was given both as CONTAINER and --container",
            hint=f"Use only one of them.\n{USAGE_HINT}",
        )
    if name:
        validate_container_name(name, "CONTAINER")
        return name
    if container:
        validate_container_name(container, "--container")
        return container
    return None


@app.command(add_help_option=False)
@report_errors
@require_host
def create(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(
        None, metavar="CONTAINER", help="Name of the toolbox container to create"
    ),
    container: Optional[str] = typer.Option(
        None,
        "--container",
        "-c",
        help="Assign a different name to the toolbox container.",
    ),
    image: Optional[str] = typer.Option(
        None,
        "--image",
        "-i",
        help="Change the name of the base image used to create the toolbox container.",
    ),
    release: Optional[str] = typer.Option(
        None,
        "--release",
        "-r",
        help="Create a toolbox container for a different operating system release than the host.",
    ),
    help_: bool = help_option(),
) -> None:
    """Create a new toolbox container.

    Without arguments the default container is created from the
    fedora-toolbox image for the host's release.  The image is downloaded
    first if it is not available locally.
    """
    state = get_state(ctx)
    container_name = pick_container_name(name, container)
    if release:
        release = parse_release(release)

    resolver = state.resolver()
    identity = resolver.resolve(container_name, image, release)
    state.containers(resolver).create_container(identity)


@app.command(add_help_option=False)
@report_errors
@require_host
def enter(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(
        None, metavar="CONTAINER", help="Name of the toolbox container to enter"
    ),
    container: Optional[str] = typer.Option(
        None,
        "--container",
        "-c",
        help="Enter a toolbox container with the given name.",
    ),
    release: Optional[str] = typer.Option(
        None,
        "--release",
        "-r",
        help="Enter a toolbox container for a different operating system release than the host.",
    ),
    help_: bool = help_option(),
) -> None:
    """Enter an existing toolbox container."""
    state = get_state(ctx)
    container_name = pick_container_name(name, container)
    if release:
        release = parse_release(release)

    resolver = state.resolver()
    identity = resolver.resolve(container_name, None, release)
    state.containers(resolver).ensure_exists(identity)

    # TODO: start the container and attach an interactive shell with `podman exec`
    raise UnsupportedOperationError(
        f"entering container {identity.name} is not supported by this build of toolbox"
    )


@app.command(
    add_help_option=False,
    context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True},
)
@report_errors
@require_host
def run(
    ctx: typer.Context,
    command: Optional[List[str]] = typer.Argument(
        None, metavar="COMMAND...", help="Command to run inside the container"
    ),
    container: Optional[str] = typer.Option(
        None,
        "--container",
        "-c",
        help="Run command inside a toolbox container with the given name.",
    ),
    release: Optional[str] = typer.Option(
        None,
        "--release",
        "-r",
        help="Run command inside a toolbox container for a different operating system release than the host.",
    ),
    help_: bool = help_option(),
) -> None:
    """Run a command in an existing toolbox container."""
    state = get_state(ctx)
    if not command:
        raise ToolboxError('missing argument for "run"', hint=USAGE_HINT)

    container_name = pick_container_name(None, container)
    if release:
        release = parse_release(release)

    resolver = state.resolver()
    identity = resolver.resolve(container_name, None, release)
    state.containers(resolver).ensure_exists(identity)

    raise UnsupportedOperationError(
        f"running commands in container {identity.name} is not supported by this build of toolbox"
    )


@app.command(add_help_option=False)
@report_errors
@require_host
def rm(
    ctx: typer.Context,
    containers: Optional[List[str]] = typer.Argument(
        None, metavar="CONTAINER...", help="Names or IDs of the containers to remove"
    ),
    all_containers: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Remove all toolbox containers.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Force the removal of running and paused toolbox containers.",
    ),
    help_: bool = help_option(),
) -> None:
    """Remove one or more toolbox containers."""
    state = get_state(ctx)
    state.containers().remove_containers(
        list(containers or []), remove_all=all_containers, force=force
    )


@app.command(add_help_option=False)
@report_errors
def reset(
    ctx: typer.Context,
    help_: bool = help_option(),
) -> None:
    """Remove all local podman (and toolbox) state."""
    state = get_state(ctx)
    if not state.host.on_host:
        raise ToolboxError("this command can only be used on the host")

    raise UnsupportedOperationError("resetting podman state is not supported by this build of toolbox")


def cli() -> None:
    """CLI entry point for setuptools."""
    app(prog_name="toolbox")


if __name__ == "__main__":
    cli()
