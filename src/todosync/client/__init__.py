"""Todoist sync API client.

Architecture:
    SyncClient → HTTPClient (pull / push) → EntityCache ↔ StateStore

Components:
- **SyncClient**: Queues commands, pushes them, pulls changes into the cache
- **EntityCache**: Latest known projects, items, notes and labels
- **CommandQueue** and patches: Sparse mutations awaiting the next push
- **StateStore**: Saves the cache with a SHA-256 digest between runs
- **HTTPClient**: Form-encoded POSTs to the sync endpoint
"""

from todosync.client.api import APIError, HTTPClient, UnhandledStatusError, WireLog
from todosync.client.cache import (
    FULL_SYNC_TOKEN,
    EntityCache,
    EntityKind,
    ItemScan,
    LabelScan,
    NoteScan,
    ProjectScan,
)
from todosync.client.commands import (
    Command,
    CommandQueue,
    CommandType,
    InvalidPatchError,
    ItemPatch,
    LabelPatch,
    NotePatch,
    ProjectPatch,
    ReorderCommand,
)
from todosync.client.engine import CommandError, PushError, SyncClient
from todosync.client.models import Due, Item, Label, Note, Project
from todosync.client.state import CorruptedStateError, StateDecodeError, StateStore

__all__ = [
    # Engine
    "SyncClient",
    "PushError",
    "CommandError",
    # Transport
    "HTTPClient",
    "WireLog",
    "APIError",
    "UnhandledStatusError",
    # Cache
    "FULL_SYNC_TOKEN",
    "EntityCache",
    "EntityKind",
    "ItemScan",
    "LabelScan",
    "NoteScan",
    "ProjectScan",
    # Commands
    "Command",
    "CommandQueue",
    "CommandType",
    "InvalidPatchError",
    "ItemPatch",
    "LabelPatch",
    "NotePatch",
    "ProjectPatch",
    "ReorderCommand",
    # Models
    "Due",
    "Item",
    "Label",
    "Note",
    "Project",
    # Persistence
    "CorruptedStateError",
    "StateDecodeError",
    "StateStore",
]
