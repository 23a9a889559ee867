"""Script interpreter: the Engine that runs commands against a palette.

An Engine bundles everything one palette session needs: the store, its
history, configuration and the console that `list`/`grid` draw on. There
is no module-level palette state; independent engines never interact.

Scripts run strictly line by line:

    parse -> validate -> resolve selectors -> perform -> record in history

Each line is its own commit. When line k fails at any stage, lines 1..k-1
stay applied and recorded, execution stops, and the ScriptResult carries
the error with its line and column. A command that fails part-way is
rolled back first, so the store never holds half a command.

Selectors are resolved when their command runs, against the store as
earlier lines left it. What an empty match means depends on the command:

    delete, move, rename, export          ResolutionError
    set, group, ungroup <sel>, list, grid no-op

`undo` and `redo` hand straight to the History and record nothing.
`save` records nothing. `load` and `new` replace the store and clear the
history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import assert_never

from rich.console import Console

from atma.core import commands as cmd
from atma.core import persist, script_parser
from atma.core.config import Config
from atma.core.errors import AtmaError, HistoryError, ResolutionError, StateError
from atma.core.export import write_png
from atma.core.history import History
from atma.core.operations import (
    AddMembers,
    CreateGroup,
    DeleteGroup,
    InsertCell,
    MoveCells,
    Operation,
    Recorder,
    RemoveCell,
    RemoveMembers,
    SetAttribute,
)
from atma.core.render import render_grid, render_list
from atma.core.store import PaletteStore
from atma.core.types import PaletteSnapshot
from atma.core.validator import validate

logger = logging.getLogger(__name__)

EMPTY_IS_ERROR = 'error'
EMPTY_IS_NOOP = 'noop'

EMPTY_MATCH_POLICY: dict[type, str] = {
    cmd.Delete: EMPTY_IS_ERROR,
    cmd.Move: EMPTY_IS_ERROR,
    cmd.Rename: EMPTY_IS_ERROR,
    cmd.Export: EMPTY_IS_ERROR,
    cmd.Set: EMPTY_IS_NOOP,
    cmd.Group: EMPTY_IS_NOOP,
    cmd.Ungroup: EMPTY_IS_NOOP,
    cmd.List: EMPTY_IS_NOOP,
    cmd.Grid: EMPTY_IS_NOOP,
}


@dataclass(frozen=True)
class Resolution:
    """The cell ids a selector matched, in selection order."""

    selector: cmd.Selector
    ids: tuple[int, ...]

    @property
    def empty(self) -> bool:
        return not self.ids


def resolve(store: PaletteStore, selector: cmd.Selector) -> Resolution:
    """Resolve a selector against the current store.

    Index and range selectors address display positions. A group selector
    yields members in group order; `@group:i..j` slices that order. A
    selection list yields the union of its parts, in the order they first
    match. Naming a group that does not exist is a ResolutionError, even
    inside a list; everything else that matches nothing is an empty
    Resolution for the caller to judge.
    """
    match selector:
        case cmd.IndexSelector(index=index):
            cell = store.cell_at(index)
            ids = (cell.id,) if cell is not None else ()
        case cmd.NameSelector(name=name):
            cell = store.find_name(name)
            ids = (cell.id,) if cell is not None else ()
        case cmd.RangeSelector(start=start, end=end):
            ids = store.order[start : end + 1]
        case cmd.GroupSelector(group=group):
            if not store.has_group(group):
                raise ResolutionError(f'no group named {group!r}')
            ids = store.group(group)
        case cmd.GroupIndexSelector(group=group, start=start, end=end):
            if not store.has_group(group):
                raise ResolutionError(f'no group named {group!r}')
            ids = tuple(store.group(group))[start : end + 1]
        case cmd.SelectionList(selectors=selectors):
            # dict keeps first-seen order and drops repeats
            union: dict[int, None] = {}
            for part in selectors:
                union.update(dict.fromkeys(resolve(store, part).ids))
            ids = tuple(union)
        case cmd.AllSelector():
            ids = store.order
        case _:
            assert_never(selector)
    return Resolution(selector, tuple(ids))


@dataclass
class CommandOutcome:
    """What one successfully executed command did."""

    command: cmd.Command
    operation: Operation | None = None
    performed: int | None = None  # undo/redo steps actually taken
    message: str = ''
    warning: HistoryError | None = None


@dataclass
class ScriptResult:
    """Typed outcome of running a script.

    `committed` counts commands that completed before the first failure
    (or all of them). `error` is that failure, located, or None.
    """

    committed: int = 0
    outcomes: list[CommandOutcome] = field(default_factory=list)
    error: AtmaError | None = None
    warnings: list[HistoryError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class Engine:
    """A palette session: store + history + config + output console."""

    def __init__(
        self,
        store: PaletteStore | None = None,
        history: History | None = None,
        config: Config | None = None,
        console: Console | None = None,
    ):
        self.store = store if store is not None else PaletteStore()
        self.history = history if history is not None else History()
        self.config = config if config is not None else Config()
        self.console = console if console is not None else Console()

    # -- scripts -------------------------------------------------------------

    def run_script(self, text: str) -> ScriptResult:
        """Run a script line by line, stopping at the first failure."""
        result = ScriptResult()
        nodes = script_parser.iter_script(text)
        while True:
            try:
                node = next(nodes)
            except StopIteration:
                break
            except AtmaError as exc:
                result.error = exc
                break
            try:
                outcome = self.execute_node(node)
            except AtmaError as exc:
                result.error = exc
                break
            result.outcomes.append(outcome)
            result.committed += 1
            if outcome.warning is not None:
                result.warnings.append(outcome.warning)

        if result.error is not None:
            logger.info('script stopped after %d command(s): %s', result.committed, result.error)
        return result

    def run_bytes(self, data: bytes) -> ScriptResult:
        """Run a script given as raw bytes. Bytes that are not UTF-8 fail like a syntax error."""
        try:
            text = script_parser.decode_script(data)
        except AtmaError as exc:
            return ScriptResult(error=exc)
        return self.run_script(text)

    def run_file(self, path: str) -> ScriptResult:
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError as exc:
            return ScriptResult(error=AtmaError(f'cannot read script {path}: {exc.strerror or exc}'))
        return self.run_bytes(data)

    def execute_node(self, node: cmd.CommandNode) -> CommandOutcome:
        """Validate and execute one parsed command. Errors carry its location."""
        try:
            command = validate(node)
            outcome = self.execute(command)
        except AtmaError as exc:
            raise exc.at(node.line, node.column)
        if outcome.warning is not None:
            outcome.warning.at(node.line, node.column)
        return outcome

    # -- commands ------------------------------------------------------------

    def execute(self, command: cmd.Command) -> CommandOutcome:
        """Execute one validated command against the current store."""
        logger.debug('execute %s', command)
        match command:
            case cmd.New():
                return self._replace(PaletteStore(), command, 'new palette')
            case cmd.Insert():
                return self._commit(command, self._insert)
            case cmd.Delete():
                return self._commit(command, self._delete)
            case cmd.Move():
                return self._commit(command, self._move)
            case cmd.Rename():
                return self._commit(command, self._rename)
            case cmd.Set():
                return self._commit(command, self._set)
            case cmd.Group():
                return self._commit(command, self._group)
            case cmd.Ungroup():
                return self._commit(command, self._ungroup)
            case cmd.Undo(count=count):
                return self._step(command, 'undo', count, self.history.undo)
            case cmd.Redo(count=count):
                return self._step(command, 'redo', count, self.history.redo)
            case cmd.Save(path=path):
                persist.save_palette(self.store, path)
                return CommandOutcome(command, message=f'saved to {path}')
            case cmd.Load(path=path):
                return self._replace(persist.load_palette(path), command, f'loaded {path}')
            case cmd.List(selector=selector):
                render_list(self.snapshot(self._select(command, selector)), self.console)
                return CommandOutcome(command)
            case cmd.Grid(selector=selector):
                snapshot = self.snapshot(self._select(command, selector))
                render_grid(snapshot, self.console, columns=self.config.grid_columns)
                return CommandOutcome(command)
            case cmd.Export(path=path, selector=selector):
                snapshot = self.snapshot(self._select(command, selector))
                write_png(snapshot, path, swatch=self.config.swatch_size, columns=self.config.grid_columns)
                return CommandOutcome(command, message=f'exported to {path}')
            case _:
                assert_never(command)

    def undo(self, count: int = 1) -> CommandOutcome:
        return self.execute(cmd.Undo(count))

    def redo(self, count: int = 1) -> CommandOutcome:
        return self.execute(cmd.Redo(count))

    def snapshot(self, ids: tuple[int, ...] | None = None) -> PaletteSnapshot:
        """Read-only view of the palette, optionally limited to ids (in that order)."""
        full = self.store.snapshot()
        if ids is None:
            return full
        by_id = {c.id: c for c in full.cells}
        return PaletteSnapshot(cells=tuple(by_id[i] for i in ids), groups=full.groups, next_id=full.next_id)

    # -- helpers -------------------------------------------------------------

    def _resolve(self, command: cmd.Command, selector: cmd.Selector) -> tuple[int, ...]:
        resolution = resolve(self.store, selector)
        if resolution.empty and EMPTY_MATCH_POLICY[type(command)] == EMPTY_IS_ERROR:
            raise ResolutionError(f'{selector} matches no cells')
        return resolution.ids

    def _select(self, command: cmd.Command, selector: cmd.Selector | None) -> tuple[int, ...]:
        return self._resolve(command, selector if selector is not None else cmd.AllSelector())

    def _commit(self, command: cmd.Command, perform) -> CommandOutcome:
        recorder = Recorder(self.store)
        try:
            perform(recorder, command)
        except AtmaError:
            recorder.rollback()
            raise
        op = recorder.result()
        if op is None:
            logger.debug('%s changed nothing', type(command).__name__.lower())
            return CommandOutcome(command, message='nothing to do')
        self.history.execute(op)
        logger.info('%s', op.describe())
        return CommandOutcome(command, operation=op)

    def _step(self, command: cmd.Command, action: str, count: int, step) -> CommandOutcome:
        performed = step(self.store, count)
        warning = None
        if performed < count:
            warning = HistoryError(action, count, performed)
            logger.warning('%s', warning.message)
        return CommandOutcome(command, performed=performed, message=f'{performed} {action} step(s)', warning=warning)

    def _replace(self, store: PaletteStore, command: cmd.Command, message: str) -> CommandOutcome:
        self.store = store
        self.history.clear()
        logger.info('%s; history cleared', message)
        return CommandOutcome(command, message=message)

    # -- performers (one per committing command) ------------------------------

    def _insert(self, rec: Recorder, command: cmd.Insert) -> None:
        rec.record(InsertCell.perform(self.store, self.store.next_id, command.color, command.name, command.position))

    def _delete(self, rec: Recorder, command: cmd.Delete) -> None:
        ids = self._resolve(command, command.selector)
        for cell_id in sorted(ids, key=self.store.rank_of, reverse=True):
            rec.record(RemoveCell.perform(self.store, cell_id))

    def _move(self, rec: Recorder, command: cmd.Move) -> None:
        ids = self._resolve(command, command.selector)
        op = MoveCells.perform(self.store, ids, command.position)
        if op.before != op.after:
            rec.record(op)

    def _rename(self, rec: Recorder, command: cmd.Rename) -> None:
        ids = self._resolve(command, command.selector)
        if len(ids) > 1:
            raise ResolutionError(f'{command.selector} matches {len(ids)} cells; rename needs exactly one')
        rec.record(SetAttribute.perform(self.store, ids[0], cmd.NAME_ATTRIBUTE, command.name))

    def _set(self, rec: Recorder, command: cmd.Set) -> None:
        ids = self._resolve(command, command.selector)
        if command.attribute == cmd.NAME_ATTRIBUTE and len(ids) > 1:
            raise StateError(f'cannot give the name {command.value!r} to {len(ids)} cells')
        for cell_id in ids:
            rec.record(SetAttribute.perform(self.store, cell_id, command.attribute, command.value))

    def _group(self, rec: Recorder, command: cmd.Group) -> None:
        ids = self._resolve(command, command.selector)
        if not self.store.has_group(command.name):
            rec.record(CreateGroup.perform(self.store, command.name))
        op = AddMembers.perform(self.store, command.name, ids)
        if op.entries:
            rec.record(op)

    def _ungroup(self, rec: Recorder, command: cmd.Ungroup) -> None:
        if not self.store.has_group(command.name):
            raise ResolutionError(f'no group named {command.name!r}')
        if command.selector is None:
            rec.record(DeleteGroup.perform(self.store, command.name))
            return
        ids = self._resolve(command, command.selector)
        op = RemoveMembers.perform(self.store, command.name, ids)
        if op.entries:
            rec.record(op)
