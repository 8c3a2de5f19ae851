"""Command-line interface for todosync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- login: Store the API token in the OS keyring
- sync: Pull remote changes into the saved state
- projects: List projects
- items: List items
- add: Create an item
- close: Complete an item
"""

from __future__ import annotations

import logging
import sys

import click

from todosync.client.cli.config import (
    build_client_config,
    get_config_dir,
    get_config_file,
    load_config,
)
from todosync.client.cli.sync import sync
from todosync.client.cli.tasks import add, close, items, projects
from todosync.client.credentials import CredentialsError, store_token


@click.group()
@click.version_option(package_name="todosync")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs.")
def cli(verbose: bool) -> None:
    """todosync - Todoist sync API client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.command()
def login() -> None:
    """Store the API token in the OS keyring."""
    token = click.prompt("API token", hide_input=True)
    try:
        store_token(token)
    except CredentialsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo("Token saved.")


cli.add_command(login)
cli.add_command(sync)
cli.add_command(projects)
cli.add_command(items)
cli.add_command(add)
cli.add_command(close)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "build_client_config",
    "get_config_dir",
    "get_config_file",
    "load_config",
]
