"""In-memory cache of synced entities and the queries over it.

This module provides:
- EntityKind: The four resource types and their wire names
- EntityCache: One dict per resource type plus the sync token
- ItemScan, ProjectScan, LabelScan, NoteScan: Chainable linear scans

There is no index. Scans walk the full dict of one resource type, which is
fine for a single user's task data. Nothing here ever touches the network.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from enum import Enum
from typing import Any, Generic, TypeVar

from todosync.client.models import Entity, Item, Label, Note, Project

# Sync token asking the server for everything.
FULL_SYNC_TOKEN = "*"


class EntityKind(str, Enum):
    """Resource types cached by the client, valued by their wire names."""

    PROJECTS = "projects"
    ITEMS = "items"
    NOTES = "notes"
    LABELS = "labels"

    @property
    def model(self) -> type[Entity]:
        return _MODELS[self]


_MODELS: dict[EntityKind, type[Any]] = {
    EntityKind.PROJECTS: Project,
    EntityKind.ITEMS: Item,
    EntityKind.NOTES: Note,
    EntityKind.LABELS: Label,
}


class EntityCache:
    """Latest known state of every entity, keyed by permanent id.

    Entries are only ever replaced as a whole. The sync token correlates
    the last pull with the next one; FULL_SYNC_TOKEN requests a full sync.
    """

    def __init__(self, sync_token: str = FULL_SYNC_TOKEN) -> None:
        self.sync_token = sync_token
        self.projects: dict[int, Project] = {}
        self.items: dict[int, Item] = {}
        self.notes: dict[int, Note] = {}
        self.labels: dict[int, Label] = {}

    def collection(self, kind: EntityKind) -> dict[int, Any]:
        """Return the dict holding entities of the given kind."""
        return getattr(self, kind.value)

    def get(self, kind: EntityKind, entity_id: int) -> Entity | None:
        return self.collection(kind).get(entity_id)

    def replace(self, entity: Entity) -> None:
        """Insert an entity, or overwrite the one with the same id."""
        for kind, model in _MODELS.items():
            if isinstance(entity, model):
                self.collection(kind)[entity.id] = entity
                return
        raise TypeError(f"not a cacheable entity: {type(entity).__name__}")

    def __len__(self) -> int:
        return sum(len(self.collection(kind)) for kind in EntityKind)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntityCache):
            return NotImplemented
        return self.sync_token == other.sync_token and all(
            self.collection(kind) == other.collection(kind) for kind in EntityKind
        )

    def __repr__(self) -> str:
        counts = ", ".join(f"{kind.value}={len(self.collection(kind))}" for kind in EntityKind)
        return f"EntityCache(sync_token={self.sync_token!r}, {counts})"

    def to_dict(self) -> dict[str, Any]:
        """Serializable form, with entity maps keyed by stringified id."""
        data: dict[str, Any] = {"sync_token": self.sync_token}
        for kind in EntityKind:
            data[kind.value] = {
                str(entity_id): entity.to_dict()
                for entity_id, entity in self.collection(kind).items()
            }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntityCache:
        """Rebuild a cache from the output of to_dict().

        Raises:
            KeyError, TypeError, ValueError: If data does not have the
                expected shape.
        """
        cache = cls(sync_token=str(data["sync_token"]))
        for kind in EntityKind:
            target = cache.collection(kind)
            for key, value in (data.get(kind.value) or {}).items():
                entity = kind.model.from_dict(value)
                if entity.id != int(key):
                    raise ValueError(f"{kind.value}: key {key} does not match id {entity.id}")
                target[entity.id] = entity
        return cache


E = TypeVar("E")


class _Scan(Generic[E]):
    """Linear scan over one collection with ANDed predicates."""

    def __init__(self, entities: dict[int, E]) -> None:
        self._entities = entities
        self._predicates: list[Callable[[E], bool]] = []

    def _add(self, predicate: Callable[[E], bool]) -> Any:
        self._predicates.append(predicate)
        return self

    def not_(self) -> Any:
        """Negate the last predicate added."""
        if not self._predicates:
            raise ValueError("no predicate to negate")
        last = self._predicates[-1]
        self._predicates[-1] = lambda entity: not last(entity)
        return self

    def match(self, entity: E) -> bool:
        return all(predicate(entity) for predicate in self._predicates)

    def results(self) -> list[E]:
        return [entity for entity in self._entities.values() if self.match(entity)]

    def __iter__(self) -> Iterator[E]:
        return iter(self.results())


class ItemScan(_Scan[Item]):
    def with_project_id(self, *project_ids: int) -> ItemScan:
        """Match items in any of the given projects."""
        wanted = set(project_ids)
        return self._add(lambda item: item.project_id in wanted)

    def with_checked(self, value: int) -> ItemScan:
        return self._add(lambda item: item.checked == value)

    def with_label(self, label_id: int) -> ItemScan:
        return self._add(lambda item: label_id in item.labels)

    def with_content(self, needle: str) -> ItemScan:
        """Match items whose content contains the given substring."""
        return self._add(lambda item: needle in item.content)

    def with_due(self) -> ItemScan:
        return self._add(lambda item: item.due is not None)

    def with_is_deleted(self, value: int) -> ItemScan:
        return self._add(lambda item: item.is_deleted == value)


class ProjectScan(_Scan[Project]):
    def with_is_archived(self, value: int) -> ProjectScan:
        return self._add(lambda project: project.is_archived == value)

    def with_is_deleted(self, value: int) -> ProjectScan:
        return self._add(lambda project: project.is_deleted == value)

    def with_name(self, needle: str) -> ProjectScan:
        """Match projects whose name contains needle, ignoring case."""
        needle = needle.lower()
        return self._add(lambda project: needle in project.name.lower())


class LabelScan(_Scan[Label]):
    def with_is_deleted(self, value: int) -> LabelScan:
        return self._add(lambda label: label.is_deleted == value)

    def with_name(self, name: str) -> LabelScan:
        return self._add(lambda label: label.name == name)


class NoteScan(_Scan[Note]):
    def with_is_deleted(self, value: int) -> NoteScan:
        return self._add(lambda note: note.is_deleted == value)

    def with_item_id(self, item_id: int) -> NoteScan:
        return self._add(lambda note: note.item_id == item_id)
