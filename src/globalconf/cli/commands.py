"""CLI commands for globalconf."""

import logging
from collections.abc import Callable
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from globalconf import __version__
from globalconf.core.config import (
    DEFAULT_CONFIG,
    OPTION_CATALOG,
    GlobalConfig,
    OptionKind,
    OptionSpec,
    get_config_display,
    get_config_path,
    load_config,
    save_config,
)
from globalconf.core.constants import (
    EXIT_INTERNAL_ERROR,
    EXIT_SUCCESS,
    EXIT_USER_ERROR,
)
from globalconf.core.exceptions import (
    CorruptConfigError,
    InvalidValueError,
    UnknownOptionError,
    WriteFailedError,
)
from globalconf.core.mutation import Operation, apply_operations

logger = logging.getLogger(__name__)
console = Console()
error_console = Console(stderr=True)

# Suffix of the flag that appends to a list option instead of replacing it
APPEND_SUFFIX = "-add"


def _configure_logging(debug: bool) -> None:
    """Configure logging levels based on debug flag."""
    if debug:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _append_param(spec: OptionSpec) -> str:
    return f"{spec.attr}_add"


def _option_decorators(spec: OptionSpec) -> list[Callable[[Any], Any]]:
    """Build the click options for one catalog entry."""
    if spec.kind is OptionKind.BOOL:
        # Optional value: `--flag` means true, `--flag=false` is explicit
        return [
            click.option(
                f"--{spec.name}",
                spec.attr,
                is_flag=False,
                flag_value="true",
                default=None,
                metavar="[true|false]",
                help=spec.description,
            )
        ]
    if spec.kind is OptionKind.LIST:
        return [
            click.option(
                f"--{spec.name}",
                spec.attr,
                default=None,
                metavar="LIST",
                help=f"{spec.description}. Replaces the list; empty clears it.",
            ),
            click.option(
                f"--{spec.name}{APPEND_SUFFIX}",
                _append_param(spec),
                default=None,
                metavar="LIST",
                help=f"Append unique entries to {spec.name}.",
            ),
        ]
    # Integers are validated by the mutation engine, not click
    return [
        click.option(
            f"--{spec.name}",
            spec.attr,
            default=None,
            metavar="INTEGER" if spec.kind is OptionKind.INT else "TEXT",
            help=spec.description,
        )
    ]


def catalog_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach one click option per catalog entry, listed in catalog order."""
    decorators = [d for spec in OPTION_CATALOG for d in _option_decorators(spec)]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def build_operations(params: dict[str, str | None]) -> list[Operation]:
    """Turn parsed click parameters into an ordered operation batch.

    Operations follow catalog order. For list options the replace comes
    before the append, so `--x=a --x-add=b` yields [a,b].

    Args:
        params: Parameter values keyed by click destination name. Options
            that were not given are None.

    Returns:
        Operations for every option that was given.
    """
    operations: list[Operation] = []
    for spec in OPTION_CATALOG:
        value = params.get(spec.attr)
        if spec.kind is OptionKind.LIST:
            if value is not None:
                operations.append(Operation.replace_list(spec.name, value))
            appended = params.get(_append_param(spec))
            if appended is not None:
                operations.append(Operation.append(spec.name, appended))
        elif value is not None:
            operations.append(Operation.set(spec.name, value))
    return operations


def _load_or_default() -> GlobalConfig:
    """Load the global config, falling back to defaults if it is corrupt."""
    try:
        return load_config()
    except CorruptConfigError as e:
        logger.debug("Discarding corrupt config at %s", e.path)
        error_console.print(f"[yellow]Warning:[/yellow] {escape(str(e))}", soft_wrap=True)
        error_console.print("[dim]Continuing with default configuration.[/dim]")
        return DEFAULT_CONFIG


@click.group()
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging output")
@click.version_option(version=__version__, prog_name="globalconf")
def main(debug: bool) -> None:
    """globalconf - global settings for your local development environments.

    Example: globalconf config global --help
    """
    _configure_logging(debug)


@main.group()
def config() -> None:
    """View and change configuration."""


@config.command(name="global")
@catalog_options
def config_global(**params: str | None) -> None:
    """Show or change the global configuration.

    With no options, prints the current settings. Each option given is
    applied in catalog order; if any value is invalid nothing is changed.

    Examples:
        globalconf config global
        globalconf config global --omit-containers=dba,ddev-ssh-agent
        globalconf config global --nfs-mount-enabled --table-style=bright
        globalconf config global --web-environment-add="FOO=bar"
    """
    try:
        operations = build_operations(params)
        current = _load_or_default()

        if operations:
            updated = apply_operations(current, operations)
            save_config(updated)
            logger.debug("Wrote %d change(s) to %s", len(operations), get_config_path())
        else:
            updated = current

        console.print(
            get_config_display(updated),
            end="",
            markup=False,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )
        raise SystemExit(EXIT_SUCCESS)

    except (UnknownOptionError, InvalidValueError) as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        raise SystemExit(EXIT_USER_ERROR)
    except WriteFailedError as e:
        logger.exception("Failed to save global config")
        error_console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        raise SystemExit(EXIT_INTERNAL_ERROR)
    except SystemExit:
        raise
    except Exception:
        logger.exception("Unhandled exception in config global command")
        error_console.print("[red]Unexpected error[/red]")
        raise SystemExit(EXIT_INTERNAL_ERROR)


if __name__ == "__main__":
    main()
