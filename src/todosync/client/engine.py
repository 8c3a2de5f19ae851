"""Synchronization engine for the Todoist sync API.

This module provides:
- SyncClient: Entity cache, command queue, pull and push
- PushError, CommandError: Commands rejected by the server

Workflow:
    1. Queue commands (queue_item_add, queue_item_update, ...)
    2. push() submits them all at once; temporary ids of created entities
       become resolvable with permanent_id()
    3. pull() folds committed changes (and changes made elsewhere) back
       into the cache
    4. Read from the cache (item_by_id, search_items, ...); reads never
       touch the network

The client holds no locks. Callers sharing one instance across threads
must serialize access themselves. Nothing is retried here: a failed push
may have been partially applied server-side, so the caller decides.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from todosync.client.api import APIError, HTTPClient
from todosync.client.cache import (
    EntityCache,
    EntityKind,
    ItemScan,
    LabelScan,
    NoteScan,
    ProjectScan,
)
from todosync.client.commands import (
    Command,
    CommandArgs,
    CommandQueue,
    CommandType,
    IDArgs,
    ItemPatch,
    LabelPatch,
    MoveArgs,
    NotePatch,
    ProjectPatch,
    ReorderCommand,
)
from todosync.client.models import Item, Label, Note, Project
from todosync.client.state import StateStore
from todosync.core.config import ClientConfig
from todosync.core.ids import ID

logger = logging.getLogger(__name__)

# Resource types requested on every pull.
RESOURCE_TYPES = '["items","labels","notes","projects"]'


@dataclass(frozen=True)
class CommandError:
    """A command rejected by the server."""

    uuid: str
    code: int
    message: str

    def __str__(self) -> str:
        return f"{self.uuid}: {self.message} ({self.code})"


class PushError(Exception):
    """One or more commands of a push failed.

    Attributes:
        failures: Every rejected command, not only the first.
    """

    def __init__(self, failures: list[CommandError]) -> None:
        self.failures = failures
        super().__init__("\n".join(str(failure) for failure in failures))


def _parse_pull_response(data: Any) -> tuple[str, list[Any]]:
    """Decode a whole pull response before any of it is applied."""
    if not isinstance(data, dict) or not isinstance(data.get("sync_token"), str):
        raise APIError("pull: response has no sync_token")
    try:
        entities: list[Any] = []
        for kind in EntityKind:
            entities.extend(kind.model.from_dict(raw) for raw in data.get(kind.value) or ())
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise APIError(f"pull: malformed entity in response: {e}") from e
    return data["sync_token"], entities


def _parse_push_response(data: Any) -> tuple[list[CommandError], dict[str, int]]:
    if not isinstance(data, dict):
        raise APIError("push: response is not an object")
    failures: list[CommandError] = []
    try:
        for command_uuid, status in (data.get("sync_status") or {}).items():
            if status == "ok":
                continue
            if isinstance(status, dict):
                failures.append(
                    CommandError(
                        uuid=command_uuid,
                        code=int(status.get("error_code") or 0),
                        message=str(status.get("error") or ""),
                    )
                )
            else:
                failures.append(CommandError(uuid=command_uuid, code=0, message=str(status)))
    except (AttributeError, TypeError, ValueError) as e:
        raise APIError(f"push: malformed sync_status: {e}") from e
    try:
        mapping = {
            str(temp_id): int(permanent_id)
            for temp_id, permanent_id in (data.get("temp_id_mapping") or {}).items()
        }
    except (AttributeError, TypeError, ValueError) as e:
        raise APIError(f"push: malformed temp_id_mapping: {e}") from e
    return failures, mapping


class SyncClient:
    """Stateful client for the sync API.

    The cache is only mutated by pull(); push() only records the mapping
    from temporary to permanent ids. Committed attribute values are read
    back with a later pull().
    """

    def __init__(
        self,
        config: ClientConfig,
        cache: EntityCache | None = None,
        http: HTTPClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration.
            cache: Initial cache; an empty one (full sync) if not given.
            http: Transport; built from config if not given.
            clock: Monotonic time source for the pull cooldown.
        """
        self._config = config
        self.cache = cache if cache is not None else EntityCache()
        self._http = http if http is not None else HTTPClient(config)
        self._clock = clock
        self._commands = CommandQueue()
        self._t2p: dict[str, int] = {}
        # Time of the last successful pull; None forces the next pull.
        self._last_pulled: float | None = None

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> SyncClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # === Persistence ===

    def load_state(self, store: StateStore) -> None:
        """Replace the cache with the one saved in store.

        Errors propagate and leave the current cache in place; falling back
        to a full sync is up to the caller.
        """
        self.cache = store.load()
        self._last_pulled = None

    def save_state(self, store: StateStore) -> None:
        store.save(self.cache)

    # === Reads (local only) ===

    def item_by_id(self, item_id: int) -> Item | None:
        return self.cache.items.get(item_id)

    def project_by_id(self, project_id: int) -> Project | None:
        return self.cache.projects.get(project_id)

    def label_by_id(self, label_id: int) -> Label | None:
        return self.cache.labels.get(label_id)

    def note_by_id(self, note_id: int) -> Note | None:
        return self.cache.notes.get(note_id)

    def label_by_name(self, name: str) -> Label | None:
        for label in self.cache.labels.values():
            if label.name == name:
                return label
        return None

    def search_items(self) -> ItemScan:
        return ItemScan(self.cache.items)

    def search_projects(self) -> ProjectScan:
        return ProjectScan(self.cache.projects)

    def search_labels(self) -> LabelScan:
        return LabelScan(self.cache.labels)

    def search_notes(self) -> NoteScan:
        return NoteScan(self.cache.notes)

    def permanent_id(self, temporary_id: str) -> int | None:
        """Look up the server id assigned to a temporary id by a push.

        Mappings are kept for the lifetime of the client.
        """
        return self._t2p.get(temporary_id)

    def resolve(self, entity_id: ID) -> int | None:
        """Return the permanent id behind entity_id, if known."""
        if entity_id.is_temporary:
            return self._t2p.get(entity_id.tid)
        return entity_id.pid

    # === Command queue ===

    @property
    def pending(self) -> tuple[Command, ...]:
        """Commands queued since the last push."""
        return self._commands.snapshot()

    def _enqueue(self, command: Command) -> None:
        self._commands.append(command)
        logger.debug("Queued %s (uuid=%s)", command.type.value, command.uuid)

    def _queue(self, command_type: CommandType, args: CommandArgs) -> None:
        self._enqueue(Command.new(command_type, args))

    def _queue_add(self, command_type: CommandType, args: CommandArgs) -> str:
        command = Command.new(command_type, args)
        if command.temp_id is None:
            raise ValueError(f"{command_type.value} does not create an entity")
        self._enqueue(command)
        return command.temp_id

    def queue_item_add(self, item: ItemPatch) -> str:
        """Queue the creation of an item and return its temporary id."""
        return self._queue_add(CommandType.ITEM_ADD, item)

    def queue_item_update(self, item: ItemPatch) -> None:
        self._queue(CommandType.ITEM_UPDATE, item)

    def queue_item_delete(self, item_id: int) -> None:
        self._queue(CommandType.ITEM_DELETE, IDArgs(item_id))

    def queue_item_close(self, item_id: int) -> None:
        self._queue(CommandType.ITEM_CLOSE, IDArgs(item_id))

    def queue_item_move(self, item: ID, project: ID) -> None:
        self._queue(CommandType.ITEM_MOVE, MoveArgs(item, project))

    def queue_item_reorder(self, reorder: ReorderCommand) -> None:
        reorder.entity = "items"
        self._queue(CommandType.ITEM_REORDER, reorder)

    def queue_label_add(self, label: LabelPatch) -> str:
        return self._queue_add(CommandType.LABEL_ADD, label)

    def queue_label_update(self, label: LabelPatch) -> None:
        self._queue(CommandType.LABEL_UPDATE, label)

    def queue_label_delete(self, label_id: int) -> None:
        self._queue(CommandType.LABEL_DELETE, IDArgs(label_id))

    def queue_project_add(self, project: ProjectPatch) -> str:
        return self._queue_add(CommandType.PROJECT_ADD, project)

    def queue_project_update(self, project: ProjectPatch) -> None:
        self._queue(CommandType.PROJECT_UPDATE, project)

    def queue_project_archive(self, project_id: int) -> None:
        self._queue(CommandType.PROJECT_ARCHIVE, IDArgs(project_id))

    def queue_project_delete(self, project_id: int) -> None:
        self._queue(CommandType.PROJECT_DELETE, IDArgs(project_id))

    def queue_project_reorder(self, reorder: ReorderCommand) -> None:
        reorder.entity = "projects"
        self._queue(CommandType.PROJECT_REORDER, reorder)

    def queue_note_add(self, note: NotePatch) -> str:
        return self._queue_add(CommandType.NOTE_ADD, note)

    def queue_note_update(self, note: NotePatch) -> None:
        self._queue(CommandType.NOTE_UPDATE, note)

    def queue_note_delete(self, note_id: int) -> None:
        self._queue(CommandType.NOTE_DELETE, IDArgs(note_id))

    # === Network ===

    def pull(self) -> bool:
        """Fetch everything changed since the last pull into the cache.

        Nothing happens if the last pull succeeded less than pull_cooldown
        seconds ago and no push happened since.

        Returns:
            True if a pull was made, False if it was skipped.

        Raises:
            UnhandledStatusError, APIError, httpx.RequestError: The cache
                and sync token are left unchanged.
        """
        now = self._clock()
        if self._last_pulled is not None and now - self._last_pulled < self._config.pull_cooldown:
            logger.debug("Pulled %.1fs ago, skipping", now - self._last_pulled)
            return False

        data = self._http.post(
            "pull",
            {"sync_token": self.cache.sync_token, "resource_types": RESOURCE_TYPES},
        )
        sync_token, entities = _parse_pull_response(data)

        self.cache.sync_token = sync_token
        for entity in entities:
            self.cache.replace(entity)
        self._last_pulled = self._clock()
        logger.info("Pulled %d changed entities", len(entities))
        return True

    def push(self) -> None:
        """Submit all queued commands in one request.

        On a response from the server (even with failed commands), the
        temporary id mapping is recorded, the queue is cleared, and the
        next pull is forced. Failed commands are not re-queued.

        Raises:
            InvalidPatchError: A queued patch is poisoned; nothing is sent
                and the queue is kept.
            UnhandledStatusError, APIError, httpx.RequestError: The queue is
                kept, so push() can be retried as is.
            PushError: Some commands were rejected by the server.
        """
        if not self._commands:
            logger.debug("No commands to push")
            return

        commands = self._commands.encode()
        data = self._http.post("push", {"commands": commands})
        failures, mapping = _parse_push_response(data)

        self._t2p.update(mapping)
        pushed = len(self._commands)
        self._commands.clear()
        self._last_pulled = None

        if failures:
            logger.warning("%d of %d commands failed", len(failures), pushed)
            raise PushError(failures)
        logger.info("Pushed %d commands", pushed)
