"""Mutation commands queued for the next push.

This module provides:
- CommandType: Wire names of the supported commands
- ItemPatch, ProjectPatch, LabelPatch, NotePatch: Sparse attribute builders
- ReorderCommand: Bulk child_order assignment for items or projects
- Command: One queued command with its idempotency uuid
- CommandQueue: Ordered batch of commands, encoded as one request field

Patches only carry the attributes that were explicitly set, so an update
never overwrites fields the caller did not touch. A setter that receives an
invalid value poisons the patch instead of raising; the error surfaces when
the patch is serialized, and later setters leave the patch untouched.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from todosync.core.ids import ID, ZeroIDError


class InvalidPatchError(ValueError):
    """A poisoned patch was serialized."""


class CommandType(str, Enum):
    """Command types understood by the sync API."""

    ITEM_ADD = "item_add"
    ITEM_UPDATE = "item_update"
    ITEM_DELETE = "item_delete"
    ITEM_CLOSE = "item_close"
    ITEM_MOVE = "item_move"
    ITEM_REORDER = "item_reorder"

    LABEL_ADD = "label_add"
    LABEL_UPDATE = "label_update"
    LABEL_DELETE = "label_delete"

    PROJECT_ADD = "project_add"
    PROJECT_UPDATE = "project_update"
    PROJECT_DELETE = "project_delete"
    PROJECT_ARCHIVE = "project_archive"
    PROJECT_REORDER = "project_reorder"

    NOTE_ADD = "note_add"
    NOTE_UPDATE = "note_update"
    NOTE_DELETE = "note_delete"

    @property
    def is_add(self) -> bool:
        return self.value.endswith("_add")


class CommandArgs(Protocol):
    def to_args(self) -> dict[str, Any]: ...


def _encode_ref(value: Any) -> int | str:
    if not isinstance(value, ID):
        raise TypeError(f"expected an ID, got {type(value).__name__}")
    return value.encode()


class _Patch:
    """Attributes to set on a new or existing entity."""

    def __init__(self, entity_id: int = 0) -> None:
        self.id = entity_id
        self.attrs: dict[str, Any] = {}
        self.error: Exception | None = None
        self.error_key = ""

    @property
    def poisoned(self) -> bool:
        return self.error is not None

    def _set(self, key: str, value: Any) -> Any:
        if self.error is None:
            self.attrs[key] = value
        return self

    def _set_ref(self, key: str, encode: Any) -> Any:
        if self.error is not None:
            return self
        try:
            self.attrs[key] = encode()
        except (ZeroIDError, TypeError, ValueError) as e:
            self.error = e
            self.error_key = key
        return self

    def to_args(self) -> dict[str, Any]:
        """Return the command arguments: the id, then the set attributes.

        Raises:
            InvalidPatchError: If a setter recorded an error.
        """
        if self.error is not None:
            raise InvalidPatchError(f"setting {self.error_key}: {self.error}") from self.error
        return {"id": self.id, **self.attrs}

    def __repr__(self) -> str:
        state = " poisoned" if self.poisoned else ""
        return f"<{type(self).__name__} id={self.id} attrs={sorted(self.attrs)}{state}>"


class ItemPatch(_Patch):
    def with_project_id(self, value: int) -> ItemPatch:
        return self._set("project_id", value)

    def with_content(self, value: str) -> ItemPatch:
        return self._set("content", value)

    def with_labels(self, *labels: ID) -> ItemPatch:
        """Set the item's labels.

        Temporary ids may be used, e.g. for a label added earlier in the
        same batch with queue_label_add().
        """
        return self._set_ref("labels", lambda: [_encode_ref(label) for label in labels])

    def with_due(self, date: str) -> ItemPatch:
        """Set a due date, as 2019-08-07 or 2019-08-07T21:20:34Z."""
        return self._set("due", {"date": date})

    def with_priority(self, value: int) -> ItemPatch:
        return self._set("priority", value)


class ProjectPatch(_Patch):
    def with_name(self, value: str) -> ProjectPatch:
        return self._set("name", value)

    def with_color(self, value: int) -> ProjectPatch:
        return self._set("color", value)

    def with_child_order(self, value: int) -> ProjectPatch:
        return self._set("child_order", value)


class LabelPatch(_Patch):
    def with_name(self, value: str) -> LabelPatch:
        return self._set("name", value)


class NotePatch(_Patch):
    def with_item_id(self, value: ID) -> NotePatch:
        return self._set_ref("item_id", lambda: _encode_ref(value))

    def with_content(self, value: str) -> NotePatch:
        return self._set("content", value)

    def is_empty(self) -> bool:
        return not self.attrs.get("content")


class ReorderCommand:
    """New child_order values for several items or projects at once.

    All assignments travel in a single command, however many entities move.
    """

    def __init__(self) -> None:
        self.entity = ""
        self.assignments: list[tuple[int, int]] = []

    def add(self, entity_id: int, child_order: int) -> ReorderCommand:
        self.assignments.append((entity_id, child_order))
        return self

    def is_empty(self) -> bool:
        return not self.assignments

    def to_args(self) -> dict[str, Any]:
        if not self.entity:
            raise InvalidPatchError("reorder command was not queued for items or projects")
        return {
            self.entity: [
                {"id": entity_id, "child_order": child_order}
                for entity_id, child_order in self.assignments
            ]
        }


@dataclass
class IDArgs:
    """Arguments of commands that only name an entity (delete, close...)."""

    id: int

    def to_args(self) -> dict[str, Any]:
        return {"id": self.id}


@dataclass
class MoveArgs:
    """Move an item to another project.

    The project can't be changed with an item update; this is how the API
    works.
    """

    id: ID
    project_id: ID

    def to_args(self) -> dict[str, Any]:
        try:
            return {"id": _encode_ref(self.id), "project_id": _encode_ref(self.project_id)}
        except (ZeroIDError, TypeError, ValueError) as e:
            raise InvalidPatchError(f"moving item: {e}") from e


@dataclass
class Command:
    """One command of a push batch.

    Attributes:
        type: Command type.
        uuid: Idempotency token, also used to find this command's status in
            the push response.
        args: Patch or other arguments, serialized with to_args().
        temp_id: Temporary id of the created entity (add commands only).
    """

    type: CommandType
    uuid: str
    args: CommandArgs
    temp_id: str | None = None

    @classmethod
    def new(cls, command_type: CommandType, args: CommandArgs) -> Command:
        """Create a command with a fresh uuid, and a temp_id if it adds."""
        temp_id = str(uuid.uuid4()) if command_type.is_add else None
        return cls(type=command_type, uuid=str(uuid.uuid4()), args=args, temp_id=temp_id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value}
        if self.temp_id:
            data["temp_id"] = self.temp_id
        data["uuid"] = self.uuid
        data["args"] = self.args.to_args()
        return data


class CommandQueue:
    """Commands waiting to be pushed, in submission order.

    The queue only grows until a push clears all of it.
    """

    def __init__(self) -> None:
        self._commands: list[Command] = []

    def append(self, command: Command) -> Command:
        self._commands.append(command)
        return command

    def clear(self) -> None:
        self._commands.clear()

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __bool__(self) -> bool:
        return bool(self._commands)

    def snapshot(self) -> tuple[Command, ...]:
        return tuple(self._commands)

    def encode(self) -> str:
        """Serialize the whole batch as JSON text.

        Raises:
            InvalidPatchError: If any command's arguments can't be
                serialized; nothing is sent in that case.
        """
        return json.dumps(
            [command.to_dict() for command in self._commands],
            separators=(",", ":"),
        )
