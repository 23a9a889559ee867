"""Invertible edit records.

An Operation is a concrete, fully resolved description of one applied
edit. It can be re-applied (redo) and it can produce its exact inverse
(undo). Operations hold plain values only: cell ids, colours, names,
ranks. They never hold references into the store.

Each primitive operation has a `perform` classmethod used the first time
an edit happens. It calls the store mutator and builds the record from the
prior state the mutator hands back, so the record always matches what
actually changed.

  InsertCell      <-> RemoveCell
  MoveCells       <-> MoveCells with before/after swapped
  SetAttribute    <-> SetAttribute with old/new swapped
  CreateGroup     <-> DeleteGroup
  AddMembers      <-> RemoveMembers
  Batch           <-> Batch of the inverses, in reverse order

A command that touches several cells records one Batch, so one undo
reverts the whole command.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

from atma.core.colors import Color, parse_color
from atma.core.commands import COLOR_ATTRIBUTE
from atma.core.errors import AtmaError, SerializationError
from atma.core.store import PaletteStore

logger = logging.getLogger(__name__)


class Operation:
    kind: ClassVar[str] = ''

    def apply(self, store: PaletteStore) -> None:
        raise NotImplementedError

    def inverse(self) -> Operation:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    def describe(self) -> str:
        return self.kind


def _memberships(data) -> tuple[tuple[str, int], ...]:
    return tuple((str(group), int(index)) for group, index in data)


def _entries(data) -> tuple[tuple[int, int], ...]:
    return tuple((int(index), int(cell_id)) for index, cell_id in data)


@dataclass(frozen=True)
class InsertCell(Operation):
    kind: ClassVar[str] = 'insert'

    cell_id: int
    color: Color
    name: str | None
    rank: int
    memberships: tuple[tuple[str, int], ...] = ()

    @classmethod
    def perform(cls, store: PaletteStore, cell_id: int, color: Color, name: str | None, rank: int | None) -> InsertCell:
        used = store.insert_cell(cell_id, color, name, rank)
        return cls(cell_id, color, name, used)

    def apply(self, store: PaletteStore) -> None:
        store.insert_cell(self.cell_id, self.color, self.name, self.rank, self.memberships)

    def inverse(self) -> RemoveCell:
        return RemoveCell(self.cell_id, self.color, self.name, self.rank, self.memberships)

    def to_dict(self) -> dict[str, Any]:
        return {
            'op': self.kind,
            'id': self.cell_id,
            'color': self.color.hex,
            'name': self.name,
            'rank': self.rank,
            'memberships': [list(m) for m in self.memberships],
        }

    def describe(self) -> str:
        return f'insert cell {self.cell_id} ({self.color}) at {self.rank}'


@dataclass(frozen=True)
class RemoveCell(Operation):
    kind: ClassVar[str] = 'remove'

    cell_id: int
    color: Color
    name: str | None
    rank: int
    memberships: tuple[tuple[str, int], ...] = ()

    @classmethod
    def perform(cls, store: PaletteStore, cell_id: int) -> RemoveCell:
        removed = store.remove_cell(cell_id)
        return cls(removed.id, removed.color, removed.name, removed.rank, removed.memberships)

    def apply(self, store: PaletteStore) -> None:
        store.remove_cell(self.cell_id)

    def inverse(self) -> InsertCell:
        return InsertCell(self.cell_id, self.color, self.name, self.rank, self.memberships)

    def to_dict(self) -> dict[str, Any]:
        data = self.inverse().to_dict()
        data['op'] = self.kind
        return data

    def describe(self) -> str:
        return f'remove cell {self.cell_id} from {self.rank}'


@dataclass(frozen=True)
class MoveCells(Operation):
    kind: ClassVar[str] = 'move'

    before: tuple[int, ...]
    after: tuple[int, ...]

    @classmethod
    def perform(cls, store: PaletteStore, ids, rank: int) -> MoveCells:
        before = store.move_cells(ids, rank)
        return cls(before, store.order)

    def apply(self, store: PaletteStore) -> None:
        store.set_order(self.after)

    def inverse(self) -> MoveCells:
        return MoveCells(self.after, self.before)

    def to_dict(self) -> dict[str, Any]:
        return {'op': self.kind, 'before': list(self.before), 'after': list(self.after)}


@dataclass(frozen=True)
class SetAttribute(Operation):
    kind: ClassVar[str] = 'set'

    cell_id: int
    attribute: str
    old: Any
    new: Any

    @classmethod
    def perform(cls, store: PaletteStore, cell_id: int, attribute: str, value) -> SetAttribute:
        old = store.set_cell_attribute(cell_id, attribute, value)
        return cls(cell_id, attribute, old, value)

    def apply(self, store: PaletteStore) -> None:
        store.set_cell_attribute(self.cell_id, self.attribute, self.new)

    def inverse(self) -> SetAttribute:
        return SetAttribute(self.cell_id, self.attribute, self.new, self.old)

    def to_dict(self) -> dict[str, Any]:
        if self.attribute == COLOR_ATTRIBUTE:
            old, new = self.old.hex, self.new.hex
        else:
            old, new = self.old, self.new
        return {'op': self.kind, 'id': self.cell_id, 'attribute': self.attribute, 'old': old, 'new': new}

    def describe(self) -> str:
        return f'set {self.attribute} of cell {self.cell_id}: {self.old} -> {self.new}'


@dataclass(frozen=True)
class CreateGroup(Operation):
    kind: ClassVar[str] = 'create_group'

    name: str
    members: tuple[int, ...] = ()

    @classmethod
    def perform(cls, store: PaletteStore, name: str) -> CreateGroup:
        store.create_group(name)
        return cls(name)

    def apply(self, store: PaletteStore) -> None:
        store.create_group(self.name, self.members)

    def inverse(self) -> DeleteGroup:
        return DeleteGroup(self.name, self.members)

    def to_dict(self) -> dict[str, Any]:
        return {'op': self.kind, 'name': self.name, 'members': list(self.members)}


@dataclass(frozen=True)
class DeleteGroup(Operation):
    kind: ClassVar[str] = 'delete_group'

    name: str
    members: tuple[int, ...] = ()

    @classmethod
    def perform(cls, store: PaletteStore, name: str) -> DeleteGroup:
        return cls(name, store.delete_group(name))

    def apply(self, store: PaletteStore) -> None:
        store.delete_group(self.name)

    def inverse(self) -> CreateGroup:
        return CreateGroup(self.name, self.members)

    def to_dict(self) -> dict[str, Any]:
        return {'op': self.kind, 'name': self.name, 'members': list(self.members)}


@dataclass(frozen=True)
class AddMembers(Operation):
    kind: ClassVar[str] = 'add_members'

    group: str
    entries: tuple[tuple[int, int], ...]  # (index, cell id)

    @classmethod
    def perform(cls, store: PaletteStore, group: str, ids) -> AddMembers:
        return cls(group, store.add_members(group, ids))

    def apply(self, store: PaletteStore) -> None:
        store.insert_members(self.group, self.entries)

    def inverse(self) -> RemoveMembers:
        return RemoveMembers(self.group, self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {'op': self.kind, 'group': self.group, 'entries': [list(e) for e in self.entries]}


@dataclass(frozen=True)
class RemoveMembers(Operation):
    kind: ClassVar[str] = 'remove_members'

    group: str
    entries: tuple[tuple[int, int], ...]

    @classmethod
    def perform(cls, store: PaletteStore, group: str, ids) -> RemoveMembers:
        return cls(group, store.remove_members(group, ids))

    def apply(self, store: PaletteStore) -> None:
        store.remove_members(self.group, [cell_id for _, cell_id in self.entries])

    def inverse(self) -> AddMembers:
        return AddMembers(self.group, self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {'op': self.kind, 'group': self.group, 'entries': [list(e) for e in self.entries]}


@dataclass(frozen=True)
class Batch(Operation):
    """Several operations applied, undone and redone as one."""

    kind: ClassVar[str] = 'batch'

    ops: tuple[Operation, ...]

    def apply(self, store: PaletteStore) -> None:
        done: list[Operation] = []
        try:
            for op in self.ops:
                op.apply(store)
                done.append(op)
        except AtmaError:
            for op in reversed(done):
                op.inverse().apply(store)
            raise

    def inverse(self) -> Batch:
        return Batch(tuple(op.inverse() for op in reversed(self.ops)))

    def to_dict(self) -> dict[str, Any]:
        return {'op': self.kind, 'ops': [op.to_dict() for op in self.ops]}

    def describe(self) -> str:
        return f'batch of {len(self.ops)}'


class Recorder:
    """Collects the operations performed for one command.

    If the command fails part-way, `rollback` undoes what was already
    performed so the store is left as it was before the command.
    """

    def __init__(self, store: PaletteStore):
        self.store = store
        self.ops: list[Operation] = []

    def record(self, op: Operation) -> Operation:
        self.ops.append(op)
        return op

    def rollback(self) -> None:
        for op in reversed(self.ops):
            op.inverse().apply(self.store)
        logger.debug('rolled back %d operation(s)', len(self.ops))
        self.ops.clear()

    def result(self) -> Operation | None:
        """None when nothing changed, the op itself for one, a Batch for more."""
        if not self.ops:
            return None
        if len(self.ops) == 1:
            return self.ops[0]
        return Batch(tuple(self.ops))


def _cell_fields(data: dict) -> tuple:
    return (
        int(data['id']),
        parse_color(data['color']),
        data.get('name'),
        int(data['rank']),
        _memberships(data.get('memberships', [])),
    )


def from_dict(data: dict[str, Any]) -> Operation:
    """Rebuild an operation from its to_dict() form. Raises SerializationError."""
    try:
        kind = data['op']
        if kind == InsertCell.kind:
            return InsertCell(*_cell_fields(data))
        if kind == RemoveCell.kind:
            return RemoveCell(*_cell_fields(data))
        if kind == MoveCells.kind:
            return MoveCells(tuple(int(i) for i in data['before']), tuple(int(i) for i in data['after']))
        if kind == SetAttribute.kind:
            attribute = data['attribute']
            old, new = data['old'], data['new']
            if attribute == COLOR_ATTRIBUTE:
                old, new = parse_color(old), parse_color(new)
            return SetAttribute(int(data['id']), attribute, old, new)
        if kind == CreateGroup.kind:
            return CreateGroup(data['name'], tuple(int(i) for i in data['members']))
        if kind == DeleteGroup.kind:
            return DeleteGroup(data['name'], tuple(int(i) for i in data['members']))
        if kind == AddMembers.kind:
            return AddMembers(data['group'], _entries(data['entries']))
        if kind == RemoveMembers.kind:
            return RemoveMembers(data['group'], _entries(data['entries']))
        if kind == Batch.kind:
            return Batch(tuple(from_dict(op) for op in data['ops']))
    except (KeyError, TypeError, ValueError) as exc:
        raise SerializationError(f'malformed history entry: {exc}') from exc
    raise SerializationError(f'unknown history entry {kind!r}')
