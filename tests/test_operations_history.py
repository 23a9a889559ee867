"""Tests for atma.core.operations and atma.core.history."""

import pytest

from atma.core import persist
from atma.core.colors import Color
from atma.core.errors import SerializationError, StateError
from atma.core.history import History
from atma.core.operations import (
    AddMembers,
    Batch,
    CreateGroup,
    InsertCell,
    MoveCells,
    Recorder,
    RemoveCell,
    SetAttribute,
    from_dict,
)
from atma.core.store import PaletteStore

RED = Color(255, 0, 0)
GREEN = Color(0, 255, 0)
BLUE = Color(0, 0, 255)


def three_cells() -> PaletteStore:
    store = PaletteStore()
    for i, c in enumerate((RED, GREEN, BLUE)):
        store.insert_cell(i, c, f'c{i}')
    return store


class TestOperations:
    def test_insert_inverse_removes(self):
        store = PaletteStore()
        op = InsertCell.perform(store, 0, RED, 'r', None)
        op.inverse().apply(store)
        assert len(store) == 0
        op.apply(store)
        assert store.cell(0).name == 'r'

    def test_remove_inverse_restores_rank_and_membership(self):
        store = three_cells()
        store.create_group('g', [2, 1])
        before = persist.dumps(store)
        op = RemoveCell.perform(store, 1)
        op.inverse().apply(store)
        assert persist.dumps(store) == before

    def test_move_inverse(self):
        store = three_cells()
        op = MoveCells.perform(store, [2], 0)
        assert op.before == (0, 1, 2)
        assert op.after == (2, 0, 1)
        op.inverse().apply(store)
        assert store.order == (0, 1, 2)

    def test_set_attribute_inverse(self):
        store = three_cells()
        op = SetAttribute.perform(store, 0, 'color', BLUE)
        assert op.old == RED
        op.inverse().apply(store)
        assert store.cell(0).color == RED

    def test_batch_inverse_reverses_order(self):
        store = PaletteStore()
        ops = (
            InsertCell.perform(store, 0, RED, None, None),
            CreateGroup.perform(store, 'g'),
            AddMembers.perform(store, 'g', [0]),
        )
        batch = Batch(ops)
        batch.inverse().apply(store)
        assert len(store) == 0
        assert not store.has_group('g')
        batch.apply(store)
        assert store.group('g') == (0,)

    def test_batch_apply_is_all_or_nothing(self):
        store = three_cells()
        batch = Batch((SetAttribute(0, 'name', 'c0', 'x'), SetAttribute(1, 'name', 'c1', 'c2')))
        with pytest.raises(StateError):
            batch.apply(store)
        assert store.cell(0).name == 'c0'


class TestRecorder:
    def test_result_shapes(self):
        store = three_cells()
        rec = Recorder(store)
        assert rec.result() is None
        op = rec.record(SetAttribute.perform(store, 0, 'name', 'x'))
        assert rec.result() is op
        rec.record(SetAttribute.perform(store, 1, 'name', 'y'))
        assert isinstance(rec.result(), Batch)

    def test_rollback_restores_store(self):
        store = three_cells()
        before = persist.dumps(store)
        rec = Recorder(store)
        rec.record(RemoveCell.perform(store, 2))
        rec.record(SetAttribute.perform(store, 0, 'color', BLUE))
        rec.rollback()
        assert persist.dumps(store) == before
        assert rec.result() is None


class TestSerializedOperations:
    def test_batch_round_trip(self):
        store = three_cells()
        batch = Batch((RemoveCell.perform(store, 1), SetAttribute.perform(store, 0, 'color', BLUE)))
        assert from_dict(batch.to_dict()) == batch

    def test_unknown_kind(self):
        with pytest.raises(SerializationError):
            from_dict({'op': 'teleport'})

    def test_malformed_entry(self):
        with pytest.raises(SerializationError):
            from_dict({'op': 'move', 'before': [0]})


class TestHistory:
    def _edit(self, store, history, cell_id, color):
        history.execute(SetAttribute.perform(store, cell_id, 'color', color))

    def test_undo_redo(self):
        store = three_cells()
        history = History()
        self._edit(store, history, 0, BLUE)
        self._edit(store, history, 1, BLUE)
        assert history.undo(store, 2) == 2
        assert [c.color for c in store.cells()] == [RED, GREEN, BLUE]
        assert history.redo(store, 2) == 2
        assert [c.color for c in store.cells()] == [BLUE, BLUE, BLUE]

    def test_redo_replays_in_original_order(self):
        store = PaletteStore()
        history = History()
        history.execute(InsertCell.perform(store, 0, RED, None, None))
        history.execute(MoveCells.perform(store, [0], 0))
        history.execute(InsertCell.perform(store, 1, GREEN, None, 0))
        assert history.undo(store, 3) == 3
        assert history.redo(store, 3) == 3
        assert store.order == (1, 0)

    def test_short_depth_performs_what_it_can(self):
        store = three_cells()
        history = History()
        self._edit(store, history, 0, BLUE)
        assert history.undo(store, 5) == 1
        assert history.undo(store) == 0
        assert history.redo(store, 3) == 1

    def test_execute_clears_redo(self):
        store = three_cells()
        history = History()
        self._edit(store, history, 0, BLUE)
        history.undo(store)
        assert history.redo_depth == 1
        self._edit(store, history, 1, BLUE)
        assert history.redo_depth == 0
        assert history.redo(store) == 0

    def test_failed_undo_keeps_entry(self):
        store = three_cells()
        history = History()
        history.execute(InsertCell(7, RED, None, 0))  # recorded but never applied
        with pytest.raises(StateError):
            history.undo(store)
        assert history.undo_depth == 1

    def test_clear(self):
        store = three_cells()
        history = History()
        self._edit(store, history, 0, BLUE)
        history.undo(store)
        history.clear()
        assert (history.undo_depth, history.redo_depth) == (0, 0)
