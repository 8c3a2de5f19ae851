"""Entities returned by the sync API.

This module provides read-only snapshots of server state:
- Project, Item, Note, Label: the four cached resource types
- Due: due date attached to an item

Only a subset of the attributes the API returns is kept. Entities are
frozen; a newer version from a pull replaces the old one wholesale.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


def _parse_rfc3339(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class Due:
    """Due date of an item.

    Attributes:
        date: Due date as YYYY-MM-DD, or a full RFC 3339 date and time.
            For recurring dates, the date of the current iteration.
        timezone: Always null in API v8; kept for completeness.
        string: Human-readable form of the due date, in the user's language.
        lang: Language used to parse ``string``.
        is_recurring: Whether the due date repeats.
    """

    date: str
    timezone: str | None = None
    string: str = ""
    lang: str = ""
    is_recurring: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Due:
        """Create from API response dictionary."""
        return cls(
            date=data.get("date") or "",
            timezone=data.get("timezone"),
            string=data.get("string") or "",
            lang=data.get("lang") or "",
            is_recurring=bool(data.get("is_recurring", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def time(self) -> datetime | None:
        """Resolve the due date to an aware datetime.

        A date without a time component is due at the end of that day (UTC).
        """
        date = self.date
        if "T" not in date:
            date += "T23:59:59+00:00"
        try:
            return _parse_rfc3339(date)
        except ValueError as e:
            logger.warning("Could not parse due date %r: %s", self.date, e)
            return None


@dataclass(frozen=True)
class Project:
    """Project snapshot from server."""

    id: int
    name: str = ""
    child_order: int = 0
    color: int = 0
    is_deleted: int = 0
    is_archived: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        """Create from API response dictionary."""
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            child_order=int(data.get("child_order") or 0),
            color=int(data.get("color") or 0),
            is_deleted=int(data.get("is_deleted") or 0),
            is_archived=int(data.get("is_archived") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def is_removed(self) -> bool:
        """True if the project is deleted or archived."""
        return bool(self.is_deleted or self.is_archived)


@dataclass(frozen=True)
class Item:
    """Item (task) snapshot from server."""

    id: int
    project_id: int = 0
    labels: tuple[int, ...] = field(default_factory=tuple)
    content: str = ""
    child_order: int = 0
    checked: int = 0
    is_deleted: int = 0
    priority: int = 1
    due: Due | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        """Create from API response dictionary."""
        due = data.get("due")
        return cls(
            id=int(data["id"]),
            project_id=int(data.get("project_id") or 0),
            labels=tuple(int(label) for label in data.get("labels") or ()),
            content=data.get("content") or "",
            child_order=int(data.get("child_order") or 0),
            checked=int(data.get("checked") or 0),
            is_deleted=int(data.get("is_deleted") or 0),
            priority=int(data.get("priority") or 1),
            due=Due.from_dict(due) if due else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["labels"] = list(self.labels)
        return data

    @property
    def is_checked(self) -> bool:
        return bool(self.checked)

    @property
    def is_removed(self) -> bool:
        return bool(self.is_deleted)


@dataclass(frozen=True)
class Note:
    """Note (comment on an item) snapshot from server."""

    id: int
    item_id: int = 0
    project_id: int = 0
    content: str = ""
    is_deleted: int = 0
    posted: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Note:
        """Create from API response dictionary."""
        return cls(
            id=int(data["id"]),
            item_id=int(data.get("item_id") or 0),
            project_id=int(data.get("project_id") or 0),
            content=data.get("content") or "",
            is_deleted=int(data.get("is_deleted") or 0),
            posted=data.get("posted") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def posted_at(self) -> datetime | None:
        """Time the note was posted, or None if it can't be parsed."""
        if not self.posted:
            return None
        try:
            return _parse_rfc3339(self.posted)
        except ValueError:
            return None


@dataclass(frozen=True)
class Label:
    """Label snapshot from server."""

    id: int
    name: str = ""
    item_order: int = 0
    is_deleted: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Label:
        """Create from API response dictionary."""
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            item_order=int(data.get("item_order") or 0),
            is_deleted=int(data.get("is_deleted") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


Entity = Project | Item | Note | Label
