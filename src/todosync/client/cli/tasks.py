"""Task commands for the todosync CLI.

Commands:
- projects: List live projects
- items: List items, optionally filtered
- add: Create an item
- close: Complete an item
"""

from __future__ import annotations

import click

from todosync.client.cli.sync import CLIENT_ERRORS, fail, open_client
from todosync.client.commands import InvalidPatchError, ItemPatch
from todosync.client.engine import SyncClient
from todosync.client.models import Item
from todosync.client.state import StateStore
from todosync.core.ids import ID


def _format_item(item: Item) -> str:
    mark = "x" if item.is_checked else " "
    due = f" (due {item.due.date})" if item.due else ""
    return f"[{mark}] {item.id}\t{item.content}{due}"


def _push_and_pull(client: SyncClient, store: StateStore) -> None:
    try:
        client.push()
        client.pull()
    except (InvalidPatchError, *CLIENT_ERRORS) as e:
        fail(e)
    client.save_state(store)


@click.command()
def projects() -> None:
    """List projects that are neither deleted nor archived."""
    with open_client() as (client, store):
        try:
            client.pull()
        except CLIENT_ERRORS as e:
            fail(e)
        client.save_state(store)
        found = client.search_projects().with_is_deleted(0).with_is_archived(0).results()
        for project in sorted(found, key=lambda p: p.child_order):
            click.echo(f"{project.id}\t{project.name}")


@click.command()
@click.option("--project", "project_ids", type=int, multiple=True, help="Only items in this project.")
@click.option("--label", "label_id", type=int, help="Only items with this label.")
@click.option("--contains", help="Only items whose content contains this text.")
@click.option("--all", "show_all", is_flag=True, help="Include completed items.")
def items(
    project_ids: tuple[int, ...],
    label_id: int | None,
    contains: str | None,
    show_all: bool,
) -> None:
    """List items."""
    with open_client() as (client, store):
        try:
            client.pull()
        except CLIENT_ERRORS as e:
            fail(e)
        client.save_state(store)
        scan = client.search_items().with_is_deleted(0)
        if not show_all:
            scan.with_checked(0)
        if project_ids:
            scan.with_project_id(*project_ids)
        if label_id is not None:
            scan.with_label(label_id)
        if contains:
            scan.with_content(contains)
        for item in sorted(scan.results(), key=lambda i: (i.project_id, i.child_order)):
            click.echo(_format_item(item))


@click.command()
@click.argument("content")
@click.option("--project", "project_id", type=int, required=True, help="Project to add the item to.")
@click.option("--label", "label_ids", type=click.IntRange(min=1), multiple=True, help="Label to attach (repeatable).")
@click.option("--due", help="Due date, e.g. 2024-05-01 or 2024-05-01T09:00:00Z.")
def add(content: str, project_id: int, label_ids: tuple[int, ...], due: str | None) -> None:
    """Create an item."""
    with open_client() as (client, store):
        patch = ItemPatch().with_content(content).with_project_id(project_id)
        if label_ids:
            patch.with_labels(*(ID.permanent(label_id) for label_id in label_ids))
        if due:
            patch.with_due(due)
        temp_id = client.queue_item_add(patch)
        _push_and_pull(client, store)
        click.echo(f"Added item {client.permanent_id(temp_id)}")


@click.command()
@click.argument("item_id", type=int)
def close(item_id: int) -> None:
    """Complete an item."""
    with open_client() as (client, store):
        client.queue_item_close(item_id)
        _push_and_pull(client, store)
        click.echo(f"Closed item {item_id}")
