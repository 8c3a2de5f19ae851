"""Tests for the entity cache and scans."""

import pytest

from todosync.client.cache import FULL_SYNC_TOKEN, EntityCache, EntityKind, ItemScan, ProjectScan
from todosync.client.models import Due, Item, Label, Note, Project


@pytest.fixture
def cache() -> EntityCache:
    """A cache with a few entities of every kind."""
    c = EntityCache(sync_token="abc")
    for project in (
        Project(id=1, name="Inbox"),
        Project(id=2, name="Work Stuff", is_archived=1),
        Project(id=3, name="Home", is_deleted=1),
    ):
        c.replace(project)
    for item in (
        Item(id=10, project_id=1, content="buy milk", labels=(100,)),
        Item(id=11, project_id=2, content="write report", checked=1, due=Due(date="2024-01-01")),
        Item(id=12, project_id=3, content="fix sink", labels=(100, 101)),
    ):
        c.replace(item)
    c.replace(Label(id=100, name="errand"))
    c.replace(Label(id=101, name="old", is_deleted=1))
    c.replace(Note(id=1000, item_id=10, content="skimmed"))
    c.replace(Note(id=1001, item_id=11, content="gone", is_deleted=1))
    return c


class TestEntityCache:
    """Tests for EntityCache."""

    def test_new_cache_requests_full_sync(self) -> None:
        c = EntityCache()
        assert c.sync_token == FULL_SYNC_TOKEN == "*"
        assert len(c) == 0

    def test_get(self, cache: EntityCache) -> None:
        assert cache.get(EntityKind.ITEMS, 10) == Item(id=10, project_id=1, content="buy milk", labels=(100,))
        assert cache.get(EntityKind.PROJECTS, 1).name == "Inbox"  # type: ignore[union-attr]
        assert cache.get(EntityKind.ITEMS, 999) is None

    def test_replace_is_whole(self, cache: EntityCache) -> None:
        """A newer version replaces the old one; nothing is merged."""
        cache.replace(Item(id=10, content="buy oat milk"))
        item = cache.items[10]
        assert item.content == "buy oat milk"
        assert item.project_id == 0
        assert item.labels == ()

    def test_replace_rejects_other_types(self, cache: EntityCache) -> None:
        with pytest.raises(TypeError):
            cache.replace("not an entity")  # type: ignore[arg-type]

    def test_dict_round_trip(self, cache: EntityCache) -> None:
        restored = EntityCache.from_dict(cache.to_dict())
        assert restored == cache
        assert restored.sync_token == "abc"

    def test_from_dict_rejects_mismatched_key(self) -> None:
        data = EntityCache().to_dict()
        data["items"] = {"1": Item(id=2).to_dict()}
        with pytest.raises(ValueError):
            EntityCache.from_dict(data)

    def test_equality_checks_token(self, cache: EntityCache) -> None:
        other = EntityCache.from_dict(cache.to_dict())
        other.sync_token = "different"
        assert other != cache

    def test_len(self, cache: EntityCache) -> None:
        assert len(cache) == 10


class TestItemScan:
    """Tests for item scans."""

    def test_no_predicates_returns_all(self, cache: EntityCache) -> None:
        assert {i.id for i in ItemScan(cache.items).results()} == {10, 11, 12}

    def test_project_ids_are_ored(self, cache: EntityCache) -> None:
        found = ItemScan(cache.items).with_project_id(1, 2).results()
        assert {i.id for i in found} == {10, 11}

    def test_predicates_are_anded(self, cache: EntityCache) -> None:
        found = ItemScan(cache.items).with_label(100).with_project_id(3).results()
        assert [i.id for i in found] == [12]

    def test_not_negates_last(self, cache: EntityCache) -> None:
        found = ItemScan(cache.items).with_label(100).with_content("milk").not_().results()
        assert [i.id for i in found] == [12]

    def test_not_without_predicate(self, cache: EntityCache) -> None:
        with pytest.raises(ValueError):
            ItemScan(cache.items).not_()

    def test_checked_and_due(self, cache: EntityCache) -> None:
        assert [i.id for i in ItemScan(cache.items).with_checked(1).results()] == [11]
        assert [i.id for i in ItemScan(cache.items).with_due().results()] == [11]

    def test_content_substring(self, cache: EntityCache) -> None:
        assert [i.id for i in ItemScan(cache.items).with_content("report")] == [11]


class TestOtherScans:
    """Tests for project, label and note scans."""

    def test_project_name_case_insensitive(self, cache: EntityCache) -> None:
        found = ProjectScan(cache.projects).with_name("work").results()
        assert [p.id for p in found] == [2]

    def test_live_projects(self, cache: EntityCache) -> None:
        found = ProjectScan(cache.projects).with_is_deleted(0).with_is_archived(0).results()
        assert [p.id for p in found] == [1]
