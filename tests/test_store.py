"""Tests for atma.core.store: palette invariants enforced by the mutators."""

import pytest

from atma.core.colors import Color
from atma.core.errors import StateError
from atma.core.store import PaletteStore

RED = Color(255, 0, 0)
GREEN = Color(0, 255, 0)
BLUE = Color(0, 0, 255)


def store_with(*names: str) -> PaletteStore:
    store = PaletteStore()
    for i, name in enumerate(names):
        store.insert_cell(i, Color(i, i, i), name)
    return store


class TestInsertCell:
    def test_append_by_default(self):
        store = PaletteStore()
        assert store.insert_cell(0, RED) == 0
        assert store.insert_cell(1, GREEN) == 1
        assert store.order == (0, 1)

    def test_insert_at_rank(self):
        store = store_with('a', 'b')
        assert store.insert_cell(2, BLUE, 'c', rank=0) == 0
        assert store.order == (2, 0, 1)
        assert [c.position for c in store.cells()] == [0, 1, 2]

    def test_rank_is_clamped(self):
        store = store_with('a')
        assert store.insert_cell(1, BLUE, rank=99) == 1

    def test_next_id_follows_highest_id(self):
        store = PaletteStore()
        store.insert_cell(5, RED)
        assert store.next_id == 6
        store.insert_cell(2, GREEN)
        assert store.next_id == 6

    def test_duplicate_id_rejected(self):
        store = store_with('a')
        with pytest.raises(StateError):
            store.insert_cell(0, RED)

    def test_duplicate_name_rejected(self):
        store = store_with('a')
        with pytest.raises(StateError, match='already used'):
            store.insert_cell(1, RED, 'a')
        assert len(store) == 1


class TestRemoveCell:
    def test_returns_prior_state(self):
        store = store_with('a', 'b', 'c')
        store.create_group('g', [2, 1])
        removed = store.remove_cell(1)
        assert (removed.id, removed.name, removed.rank) == (1, 'b', 1)
        assert removed.memberships == (('g', 1),)

    def test_cascades_out_of_groups_keeping_order(self):
        store = store_with('a', 'b', 'c', 'd')
        store.create_group('g', [3, 1, 0])
        store.remove_cell(1)
        assert store.group('g') == (3, 0)

    def test_positions_renormalized(self):
        store = store_with('a', 'b', 'c')
        store.remove_cell(0)
        assert [(c.id, c.position) for c in store.cells()] == [(1, 0), (2, 1)]

    def test_ids_not_reused(self):
        store = store_with('a', 'b')
        store.remove_cell(1)
        assert store.next_id == 2

    def test_missing_cell(self):
        with pytest.raises(StateError):
            PaletteStore().remove_cell(0)


class TestOrdering:
    def test_move_block_among_remaining(self):
        store = store_with('a', 'b', 'c', 'd', 'e')
        prior = store.move_cells([3, 0], 1)
        assert prior == (0, 1, 2, 3, 4)
        assert store.order == (1, 3, 0, 2, 4)

    def test_move_to_end_is_clamped(self):
        store = store_with('a', 'b', 'c')
        store.move_cells([0], 10)
        assert store.order == (1, 2, 0)

    def test_set_order_requires_permutation(self):
        store = store_with('a', 'b')
        with pytest.raises(StateError):
            store.set_order([0])
        with pytest.raises(StateError):
            store.set_order([0, 0])
        assert store.order == (0, 1)

    def test_cell_at_and_rank_of(self):
        store = store_with('a', 'b')
        store.move_cells([1], 0)
        assert store.cell_at(0).name == 'b'
        assert store.cell_at(5) is None
        assert store.rank_of(0) == 1


class TestAttributes:
    def test_rename_returns_old(self):
        store = store_with('a')
        assert store.rename_cell(0, 'z') == 'a'
        assert store.find_name('z').id == 0

    def test_rename_to_own_name_allowed(self):
        store = store_with('a')
        assert store.rename_cell(0, 'a') == 'a'

    def test_rename_clash(self):
        store = store_with('a', 'b')
        with pytest.raises(StateError):
            store.rename_cell(0, 'b')

    def test_set_color(self):
        store = store_with('a')
        old = store.set_cell_attribute(0, 'color', RED)
        assert old == Color(0, 0, 0)
        assert store.cell(0).color == RED

    def test_set_color_requires_color(self):
        store = store_with('a')
        with pytest.raises(StateError):
            store.set_cell_attribute(0, 'color', '#ff0000')

    def test_unknown_attribute(self):
        store = store_with('a')
        with pytest.raises(StateError):
            store.set_cell_attribute(0, 'weight', 3)


class TestGroups:
    def test_create_and_read(self):
        store = store_with('a', 'b')
        store.create_group('g', [1, 0])
        assert store.has_group('g')
        assert store.groups() == {'g': (1, 0)}

    def test_create_rejects_dangling_and_duplicates(self):
        store = store_with('a')
        with pytest.raises(StateError):
            store.create_group('g', [7])
        with pytest.raises(StateError):
            store.create_group('g', [0, 0])
        assert not store.has_group('g')

    def test_create_existing(self):
        store = store_with('a')
        store.create_group('g')
        with pytest.raises(StateError):
            store.create_group('g')

    def test_delete_group_leaves_cells(self):
        store = store_with('a', 'b')
        store.create_group('g', [0, 1])
        assert store.delete_group('g') == (0, 1)
        assert len(store) == 2

    def test_add_members_skips_existing(self):
        store = store_with('a', 'b', 'c')
        store.create_group('g', [1])
        assert store.add_members('g', [0, 1, 2]) == ((1, 0), (2, 2))
        assert store.group('g') == (1, 0, 2)

    def test_remove_and_insert_members(self):
        store = store_with('a', 'b', 'c', 'd')
        store.create_group('g', [0, 1, 2, 3])
        removed = store.remove_members('g', [3, 1])
        assert removed == ((1, 1), (3, 3))
        assert store.group('g') == (0, 2)
        store.insert_members('g', removed)
        assert store.group('g') == (0, 1, 2, 3)

    def test_unknown_group(self):
        with pytest.raises(StateError):
            PaletteStore().group('nope')

    def test_snapshot_is_detached(self):
        store = store_with('a')
        snap = store.snapshot()
        store.rename_cell(0, 'b')
        assert snap.cells[0].name == 'a'
