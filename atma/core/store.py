"""In-memory palette store: cells, display order, groups and id issue.

The store knows nothing about history. Its mutators are the only way cell
and group state changes, and each one:

  - checks the palette invariants before touching anything, raising
    StateError and leaving the store unchanged on violation
  - returns the prior state the caller needs to build an inverse edit

Invariants held after every mutator:

  1. Live ids are unique and next_id is greater than every id ever issued.
  2. Group members are live cells, listed at most once per group.
     Removing a cell removes it from every group, keeping the order of
     the remaining members. Deleting a group leaves its cells alone.
  3. Cell positions are the contiguous ranks 0..n-1 of the display order.
  4. Cell names are unique when present.
"""

from __future__ import annotations

from dataclasses import dataclass

from atma.core.colors import Color
from atma.core.commands import COLOR_ATTRIBUTE, NAME_ATTRIBUTE
from atma.core.errors import StateError
from atma.core.types import Cell, PaletteSnapshot


@dataclass(frozen=True)
class RemovedCell:
    """Everything needed to put a removed cell back exactly where it was."""

    id: int
    color: Color
    name: str | None
    rank: int
    memberships: tuple[tuple[str, int], ...] = ()  # (group, index within group)


class PaletteStore:
    """Ordered live cells, named groups of cell ids, and the next id to issue."""

    def __init__(self) -> None:
        self._cells: dict[int, Cell] = {}
        self._order: list[int] = []
        self._groups: dict[str, list[int]] = {}
        self.next_id = 0

    # -- reads -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, cell_id: int) -> bool:
        return cell_id in self._cells

    @property
    def order(self) -> tuple[int, ...]:
        return tuple(self._order)

    def cells(self) -> list[Cell]:
        """Live cells in display order."""
        return [self._cells[i] for i in self._order]

    def cell(self, cell_id: int) -> Cell:
        try:
            return self._cells[cell_id]
        except KeyError:
            raise StateError(f'no cell with id {cell_id}') from None

    def cell_at(self, rank: int) -> Cell | None:
        if 0 <= rank < len(self._order):
            return self._cells[self._order[rank]]
        return None

    def find_name(self, name: str) -> Cell | None:
        for cell in self._cells.values():
            if cell.name == name:
                return cell
        return None

    def rank_of(self, cell_id: int) -> int:
        return self.cell(cell_id).position

    def has_group(self, name: str) -> bool:
        return name in self._groups

    def group(self, name: str) -> tuple[int, ...]:
        try:
            return tuple(self._groups[name])
        except KeyError:
            raise StateError(f'no group named {name!r}') from None

    def groups(self) -> dict[str, tuple[int, ...]]:
        return {name: tuple(members) for name, members in self._groups.items()}

    def snapshot(self) -> PaletteSnapshot:
        cells = tuple(Cell(c.id, c.color, c.name, c.position) for c in self.cells())
        return PaletteSnapshot(cells=cells, groups=self.groups(), next_id=self.next_id)

    # -- checks ------------------------------------------------------------

    def _renumber(self) -> None:
        for rank, cell_id in enumerate(self._order):
            self._cells[cell_id].position = rank

    def _check_name_free(self, name: str | None, owner: int | None = None) -> None:
        if name is None:
            return
        if not name:
            raise StateError('cell names must not be empty')
        other = self.find_name(name)
        if other is not None and other.id != owner:
            raise StateError(f'name {name!r} is already used by cell {other.id}')

    def _check_live(self, ids) -> list[int]:
        ids = list(ids)
        for cell_id in ids:
            if cell_id not in self._cells:
                raise StateError(f'no cell with id {cell_id}')
        if len(set(ids)) != len(ids):
            raise StateError('cell ids must not repeat')
        return ids

    def _members(self, name: str) -> list[int]:
        try:
            return self._groups[name]
        except KeyError:
            raise StateError(f'no group named {name!r}') from None

    # -- cell mutators -----------------------------------------------------

    def insert_cell(
        self,
        cell_id: int,
        color: Color,
        name: str | None = None,
        rank: int | None = None,
        memberships: tuple[tuple[str, int], ...] = (),
    ) -> int:
        """Insert a cell at rank (clamped; None appends). Returns the rank used."""
        if cell_id < 0:
            raise StateError(f'invalid cell id {cell_id}')
        if cell_id in self._cells:
            raise StateError(f'cell id {cell_id} is already live')
        self._check_name_free(name)
        for group, index in memberships:
            members = self._members(group)
            if not 0 <= index <= len(members):
                raise StateError(f'group {group!r} has no slot {index}')

        rank = len(self._order) if rank is None else max(0, min(rank, len(self._order)))
        self._cells[cell_id] = Cell(cell_id, color, name, rank)
        self._order.insert(rank, cell_id)
        for group, index in memberships:
            self._groups[group].insert(index, cell_id)
        self.next_id = max(self.next_id, cell_id + 1)
        self._renumber()
        return rank

    def remove_cell(self, cell_id: int) -> RemovedCell:
        """Remove a cell and its group memberships."""
        cell = self.cell(cell_id)
        memberships = []
        for group, members in self._groups.items():
            if cell_id in members:
                memberships.append((group, members.index(cell_id)))
                members.remove(cell_id)
        rank = self._order.index(cell_id)
        del self._order[rank]
        del self._cells[cell_id]
        self._renumber()
        return RemovedCell(cell.id, cell.color, cell.name, rank, tuple(memberships))

    def move_cells(self, ids, rank: int) -> tuple[int, ...]:
        """Move cells as a block, in the given order, to rank among the rest.

        Returns the previous display order.
        """
        ids = self._check_live(ids)
        moving = set(ids)
        rest = [i for i in self._order if i not in moving]
        rank = max(0, min(rank, len(rest)))
        return self.set_order(rest[:rank] + ids + rest[rank:])

    def set_order(self, order) -> tuple[int, ...]:
        """Replace the display order with a permutation of the live ids."""
        order = list(order)
        if sorted(order) != sorted(self._order):
            raise StateError('new order must list every live cell exactly once')
        prior = tuple(self._order)
        self._order = order
        self._renumber()
        return prior

    def rename_cell(self, cell_id: int, name: str | None) -> str | None:
        """Set or clear a cell's name. Returns the old name."""
        cell = self.cell(cell_id)
        self._check_name_free(name, owner=cell_id)
        old = cell.name
        cell.name = name
        return old

    def set_cell_attribute(self, cell_id: int, attribute: str, value):
        """Set `color` or `name` on a cell. Returns the old value."""
        if attribute == NAME_ATTRIBUTE:
            return self.rename_cell(cell_id, value)
        if attribute == COLOR_ATTRIBUTE:
            if not isinstance(value, Color):
                raise StateError(f'color must be a Color, got {type(value).__name__}')
            cell = self.cell(cell_id)
            old = cell.color
            cell.color = value
            return old
        raise StateError(f'unknown attribute {attribute!r}')

    # -- group mutators ----------------------------------------------------

    def create_group(self, name: str, members=()) -> None:
        if not name:
            raise StateError('group names must not be empty')
        if name in self._groups:
            raise StateError(f'group {name!r} already exists')
        self._groups[name] = self._check_live(members)

    def delete_group(self, name: str) -> tuple[int, ...]:
        """Delete a group. Returns its members; the cells are untouched."""
        members = self._members(name)
        del self._groups[name]
        return tuple(members)

    def add_members(self, name: str, ids) -> tuple[tuple[int, int], ...]:
        """Append cells not already in the group. Returns the (index, id) pairs added."""
        members = self._members(name)
        ids = self._check_live(ids)
        added = []
        for cell_id in ids:
            if cell_id not in members:
                members.append(cell_id)
                added.append((len(members) - 1, cell_id))
        return tuple(added)

    def insert_members(self, name: str, entries) -> None:
        """Put (index, id) pairs back into a group, lowest index first."""
        members = self._members(name)
        entries = sorted(entries)
        self._check_live([cell_id for _, cell_id in entries])
        for k, (index, cell_id) in enumerate(entries):
            if cell_id in members:
                raise StateError(f'cell {cell_id} is already in group {name!r}')
            if not 0 <= index <= len(members) + k:
                raise StateError(f'group {name!r} has no slot {index}')
        for index, cell_id in entries:
            members.insert(index, cell_id)

    def remove_members(self, name: str, ids) -> tuple[tuple[int, int], ...]:
        """Drop cells from a group. Returns the removed (index, id) pairs, by index."""
        members = self._members(name)
        drop = set(ids)
        removed = tuple((i, cell_id) for i, cell_id in enumerate(members) if cell_id in drop)
        self._groups[name] = [cell_id for cell_id in members if cell_id not in drop]
        return removed
