"""Tests for patches, commands and the command queue."""

import json

import pytest

from todosync.client.commands import (
    Command,
    CommandQueue,
    CommandType,
    IDArgs,
    InvalidPatchError,
    ItemPatch,
    LabelPatch,
    MoveArgs,
    NotePatch,
    ProjectPatch,
    ReorderCommand,
)
from todosync.core.ids import ID


def dumps(patch: object) -> str:
    return json.dumps(patch.to_args(), separators=(",", ":"))  # type: ignore[attr-defined]


class TestItemPatch:
    """Tests for ItemPatch."""

    @pytest.mark.parametrize(
        ("item_id", "setter", "expected"),
        [
            (0, lambda p: p, '{"id":0}'),
            (2, lambda p: p.with_project_id(45), '{"id":2,"project_id":45}'),
            (3, lambda p: p.with_content("something"), '{"id":3,"content":"something"}'),
            (4, lambda p: p.with_content('it "quoted" the quote'), r'{"id":4,"content":"it \"quoted\" the quote"}'),
            (5, lambda p: p.with_labels(), '{"id":5,"labels":[]}'),
            (6, lambda p: p.with_labels(ID.permanent(654)), '{"id":6,"labels":[654]}'),
            (7, lambda p: p.with_labels(ID.permanent(654), ID.permanent(88)), '{"id":7,"labels":[654,88]}'),
            (8, lambda p: p.with_labels(ID.permanent(654), ID.temporary("eighty")), '{"id":8,"labels":[654,"eighty"]}'),
            (9, lambda p: p.with_due("2019-08-07"), '{"id":9,"due":{"date":"2019-08-07"}}'),
        ],
    )
    def test_only_set_attributes(self, item_id, setter, expected) -> None:  # type: ignore[no-untyped-def]
        """Only explicitly set attributes are serialized."""
        patch = ItemPatch(item_id)
        setter(patch)
        assert dumps(patch) == expected

    def test_poisoned_by_raw_label(self) -> None:
        """A label that isn't an ID poisons the patch; the error surfaces on serialization."""
        patch = ItemPatch(13)

        patch.with_labels(ID.permanent(1), 5)  # type: ignore[arg-type]

        assert patch.poisoned
        assert isinstance(patch.error, TypeError)
        assert "labels" not in patch.attrs
        with pytest.raises(InvalidPatchError, match="labels"):
            patch.to_args()

    def test_setters_after_poisoning_are_noops(self) -> None:
        patch = ItemPatch(13).with_labels(None)  # type: ignore[arg-type]

        patch.with_content("ignored").with_due("2020-01-01").with_labels(ID.permanent(1))

        assert patch.attrs == {}
        with pytest.raises(InvalidPatchError):
            patch.to_args()

    def test_chaining(self) -> None:
        patch = ItemPatch(1).with_content("a").with_priority(4)
        assert patch.to_args() == {"id": 1, "content": "a", "priority": 4}


class TestOtherPatches:
    """Tests for project, label and note patches."""

    def test_project_patch(self) -> None:
        assert dumps(ProjectPatch(0)) == '{"id":0}'
        assert dumps(ProjectPatch(1).with_name("foobar")) == '{"id":1,"name":"foobar"}'
        assert dumps(ProjectPatch(2).with_color(7)) == '{"id":2,"color":7}'
        assert dumps(ProjectPatch(3).with_child_order(2)) == '{"id":3,"child_order":2}'

    def test_label_patch(self) -> None:
        assert dumps(LabelPatch().with_name("waiting")) == '{"id":0,"name":"waiting"}'

    def test_note_patch_item_reference(self) -> None:
        patch = NotePatch().with_item_id(ID.temporary("tmp")).with_content("hello")
        assert patch.to_args() == {"id": 0, "item_id": "tmp", "content": "hello"}
        assert not patch.is_empty()
        assert NotePatch().is_empty()

    def test_note_patch_poisoned(self) -> None:
        patch = NotePatch().with_item_id(None).with_content("x")  # type: ignore[arg-type]
        assert patch.poisoned
        assert patch.attrs == {}
        with pytest.raises(InvalidPatchError, match="item_id"):
            patch.to_args()


class TestReorderCommand:
    """Tests for ReorderCommand."""

    def test_single_command_for_many_entities(self) -> None:
        reorder = ReorderCommand().add(1, 3).add(2, 1).add(3, 2)
        reorder.entity = "items"
        assert reorder.to_args() == {
            "items": [
                {"id": 1, "child_order": 3},
                {"id": 2, "child_order": 1},
                {"id": 3, "child_order": 2},
            ]
        }

    def test_empty(self) -> None:
        assert ReorderCommand().is_empty()
        assert not ReorderCommand().add(1, 1).is_empty()

    def test_unqueued_reorder_fails(self) -> None:
        with pytest.raises(InvalidPatchError):
            ReorderCommand().add(1, 1).to_args()


class TestCommand:
    """Tests for Command."""

    def test_add_gets_temp_id(self) -> None:
        command = Command.new(CommandType.ITEM_ADD, ItemPatch())
        assert command.temp_id
        assert command.uuid
        assert command.temp_id != command.uuid

    def test_non_add_has_no_temp_id(self) -> None:
        command = Command.new(CommandType.ITEM_CLOSE, IDArgs(5))
        assert command.temp_id is None
        assert command.to_dict() == {"type": "item_close", "uuid": command.uuid, "args": {"id": 5}}

    def test_uuids_are_unique(self) -> None:
        uuids = {Command.new(CommandType.LABEL_ADD, LabelPatch()).uuid for _ in range(50)}
        assert len(uuids) == 50

    def test_add_to_dict(self) -> None:
        command = Command.new(CommandType.LABEL_ADD, LabelPatch().with_name("x"))
        assert command.to_dict() == {
            "type": "label_add",
            "temp_id": command.temp_id,
            "uuid": command.uuid,
            "args": {"id": 0, "name": "x"},
        }

    def test_move_args(self) -> None:
        args = MoveArgs(ID.permanent(1), ID.temporary("proj"))
        assert args.to_args() == {"id": 1, "project_id": "proj"}

    @pytest.mark.parametrize(
        "args",
        [
            MoveArgs(1, ID.permanent(2)),  # type: ignore[arg-type]
            MoveArgs(ID.permanent(1), None),  # type: ignore[arg-type]
        ],
    )
    def test_move_args_rejects_raw_ids(self, args: MoveArgs) -> None:
        with pytest.raises(InvalidPatchError, match="moving item"):
            args.to_args()

    @pytest.mark.parametrize("command_type", list(CommandType))
    def test_is_add(self, command_type: CommandType) -> None:
        assert command_type.is_add == command_type.value.endswith("_add")


class TestCommandQueue:
    """Tests for CommandQueue."""

    def test_encode_preserves_order(self) -> None:
        queue = CommandQueue()
        first = queue.append(Command.new(CommandType.LABEL_ADD, LabelPatch().with_name("a")))
        second = queue.append(Command.new(CommandType.ITEM_DELETE, IDArgs(3)))

        decoded = json.loads(queue.encode())

        assert [c["uuid"] for c in decoded] == [first.uuid, second.uuid]
        assert len(queue) == 2

    def test_poisoned_patch_fails_whole_batch(self) -> None:
        queue = CommandQueue()
        queue.append(Command.new(CommandType.ITEM_DELETE, IDArgs(3)))
        queue.append(Command.new(CommandType.ITEM_UPDATE, ItemPatch(1).with_labels(5)))  # type: ignore[arg-type]

        with pytest.raises(InvalidPatchError):
            queue.encode()
        assert len(queue) == 2

    def test_clear(self) -> None:
        queue = CommandQueue()
        queue.append(Command.new(CommandType.ITEM_DELETE, IDArgs(3)))
        queue.clear()
        assert not queue
        assert queue.encode() == "[]"
