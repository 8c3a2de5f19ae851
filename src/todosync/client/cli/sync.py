"""Sync command for the todosync CLI.

Commands:
- sync: Pull remote changes into the saved state
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import NoReturn

import click
import httpx

from todosync.client.api import APIError
from todosync.client.cli.config import build_client_config, get_config_dir
from todosync.client.credentials import CredentialsError
from todosync.client.engine import PushError, SyncClient
from todosync.client.state import CorruptedStateError, StateDecodeError, StateStore

logger = logging.getLogger(__name__)

# Errors reported to the user instead of a traceback.
CLIENT_ERRORS: tuple[type[Exception], ...] = (
    APIError,
    PushError,
    httpx.RequestError,
)


@contextmanager
def open_client() -> Iterator[tuple[SyncClient, StateStore]]:
    """Build a client from the configuration and restore its saved state.

    If the saved state can't be used, the client starts empty and the next
    pull is a full sync.
    """
    try:
        config = build_client_config()
    except CredentialsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    store = StateStore(get_config_dir())
    client = SyncClient(config)
    try:
        client.load_state(store)
    except FileNotFoundError:
        logger.info("No saved state, will do a full sync")
    except (CorruptedStateError, StateDecodeError) as e:
        logger.warning("Could not load local data, will do a full sync: %s", e)
    try:
        yield client, store
    finally:
        client.close()


def fail(error: Exception) -> NoReturn:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


@click.command()
def sync() -> None:
    """Pull changes from the server and save them locally."""
    with open_client() as (client, store):
        try:
            client.pull()
        except CLIENT_ERRORS as e:
            fail(e)
        client.save_state(store)
        cache = client.cache
        click.echo(
            f"{len(cache.projects)} projects, {len(cache.items)} items, "
            f"{len(cache.labels)} labels, {len(cache.notes)} notes"
        )
