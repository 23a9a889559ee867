"""JSON persistence for palettes and CLI sessions.

Palette format:

    {
      "cells": [{"id": 0, "color": "#ff0000", "name": "accent", "position": 0}, ...],
      "groups": {"warm": [0, 2]},
      "next_id": 3
    }

A session file is a palette file with an extra "history" object holding
the serialized undo and redo stacks, so undo works across CLI runs.
Loading a palette file ignores any "history" key.

Loading validates the whole document before building anything, so a bad
file never replaces the palette already in memory.
"""

import json
import logging
from typing import Any

from atma.core import operations
from atma.core.colors import parse_color
from atma.core.errors import SerializationError, StateError
from atma.core.history import History
from atma.core.store import PaletteStore

logger = logging.getLogger(__name__)


def palette_to_dict(store: PaletteStore) -> dict[str, Any]:
    return {
        'cells': [
            {'id': c.id, 'color': c.color.hex, 'name': c.name, 'position': c.position}
            for c in store.cells()
        ],
        'groups': {name: list(members) for name, members in store.groups().items()},
        'next_id': store.next_id,
    }


def dumps(store: PaletteStore) -> str:
    """Canonical JSON text for a palette."""
    return json.dumps(palette_to_dict(store), indent=2)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_cell(i: int, raw: Any) -> tuple[int, Any, str | None, int]:
    if not isinstance(raw, dict):
        raise SerializationError(f'cells[{i}]: expected an object')
    missing = {'id', 'color', 'position'} - set(raw)
    if missing:
        raise SerializationError(f'cells[{i}]: missing {", ".join(sorted(missing))}')
    cell_id, position, name = raw['id'], raw['position'], raw.get('name')
    if not _is_int(cell_id) or cell_id < 0:
        raise SerializationError(f'cells[{i}]: id must be a non-negative integer')
    if not _is_int(position):
        raise SerializationError(f'cells[{i}]: position must be an integer')
    if name is not None and (not isinstance(name, str) or not name):
        raise SerializationError(f'cells[{i}]: name must be a non-empty string or null')
    if not isinstance(raw['color'], str):
        raise SerializationError(f'cells[{i}]: color must be a string')
    try:
        color = parse_color(raw['color'])
    except ValueError:
        raise SerializationError(f'cells[{i}]: invalid color {raw["color"]!r}') from None
    return cell_id, color, name, position


def palette_from_dict(data: Any) -> PaletteStore:
    """Validate a palette document and build a store from it."""
    if not isinstance(data, dict):
        raise SerializationError('palette must be a JSON object')
    for key in ('cells', 'groups', 'next_id'):
        if key not in data:
            raise SerializationError(f'missing {key!r}')
    if not isinstance(data['cells'], list):
        raise SerializationError("'cells' must be a list")
    if not isinstance(data['groups'], dict):
        raise SerializationError("'groups' must be an object")
    next_id = data['next_id']
    if not _is_int(next_id) or next_id < 0:
        raise SerializationError("'next_id' must be a non-negative integer")

    cells = [_check_cell(i, raw) for i, raw in enumerate(data['cells'])]
    ids = [c[0] for c in cells]
    if len(set(ids)) != len(ids):
        raise SerializationError('cell ids are not unique')
    names = [c[2] for c in cells if c[2] is not None]
    if len(set(names)) != len(names):
        raise SerializationError('cell names are not unique')
    if ids and next_id <= max(ids):
        raise SerializationError(f'next_id {next_id} must be greater than every cell id (max {max(ids)})')

    live = set(ids)
    groups: dict[str, list[int]] = {}
    for name, members in data['groups'].items():
        if not name:
            raise SerializationError('group names must not be empty')
        if not isinstance(members, list) or not all(_is_int(m) for m in members):
            raise SerializationError(f'group {name!r}: members must be a list of cell ids')
        dangling = [m for m in members if m not in live]
        if dangling:
            raise SerializationError(f'group {name!r} references missing cell(s) {dangling}')
        if len(set(members)) != len(members):
            raise SerializationError(f'group {name!r} lists a cell more than once')
        groups[name] = members

    store = PaletteStore()
    try:
        for cell_id, color, name, _position in sorted(cells, key=lambda c: (c[3], c[0])):
            store.insert_cell(cell_id, color, name)
        for name, members in groups.items():
            store.create_group(name, members)
    except StateError as exc:
        raise SerializationError(exc.message) from exc
    store.next_id = next_id
    return store


def _read_json(path: str) -> Any:
    try:
        with open(path, encoding='utf-8') as f:
            return json.load(f)
    except OSError as exc:
        raise SerializationError(f'cannot read {path}: {exc.strerror or exc}') from exc
    except UnicodeDecodeError as exc:
        raise SerializationError(f'{path}: not a UTF-8 text file (bad byte at offset {exc.start})') from exc
    except json.JSONDecodeError as exc:
        raise SerializationError(f'{path}: not valid JSON ({exc.msg} at line {exc.lineno})') from exc


def _write_json(path: str, data: dict[str, Any]) -> None:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
            f.write('\n')
    except OSError as exc:
        raise SerializationError(f'cannot write {path}: {exc.strerror or exc}') from exc


def save_palette(store: PaletteStore, path: str) -> None:
    _write_json(path, palette_to_dict(store))
    logger.info('saved %d cell(s) to %s', len(store), path)


def load_palette(path: str) -> PaletteStore:
    store = palette_from_dict(_read_json(path))
    logger.info('loaded %d cell(s) from %s', len(store), path)
    return store


def history_to_dict(history: History) -> dict[str, Any]:
    return {
        'undo': [op.to_dict() for op in history.undo_stack],
        'redo': [op.to_dict() for op in history.redo_stack],
    }


def history_from_dict(data: Any) -> History:
    if not isinstance(data, dict):
        raise SerializationError("'history' must be an object")
    undo = [operations.from_dict(op) for op in data.get('undo', [])]
    redo = [operations.from_dict(op) for op in data.get('redo', [])]
    return History(undo, redo)


def save_session(store: PaletteStore, history: History, path: str) -> None:
    data = palette_to_dict(store)
    data['history'] = history_to_dict(history)
    _write_json(path, data)
    logger.debug('session written to %s (undo %d, redo %d)', path, history.undo_depth, history.redo_depth)


def load_session(path: str) -> tuple[PaletteStore, History]:
    data = _read_json(path)
    store = palette_from_dict(data)
    history = history_from_dict(data.get('history', {}))
    return store, history
