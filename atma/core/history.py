"""Two-stack undo/redo over Operations.

    execute(op)      push op on the undo stack, clear the redo stack
    undo(store, n)   pop up to n ops, newest first; apply each inverse;
                     push the original op on the redo stack
    redo(store, n)   pop up to n ops from the redo stack; re-apply each;
                     push it back on the undo stack

Popping from the redo stack yields the most recently undone op first,
which is the oldest of the ones undone, so redo replays them forward in
their original order.

Asking for more steps than are recorded is not an error here: as many as
possible are performed and the count is returned. Capacity is unbounded.
"""

import logging

from atma.core.operations import Operation
from atma.core.store import PaletteStore

logger = logging.getLogger(__name__)


class History:
    def __init__(self, undo_stack: list[Operation] | None = None, redo_stack: list[Operation] | None = None):
        self.undo_stack: list[Operation] = list(undo_stack or [])
        self.redo_stack: list[Operation] = list(redo_stack or [])

    @property
    def undo_depth(self) -> int:
        return len(self.undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self.redo_stack)

    def execute(self, op: Operation) -> None:
        """Record an already applied operation."""
        self.undo_stack.append(op)
        if self.redo_stack:
            logger.debug('discarding %d redo entr(ies)', len(self.redo_stack))
        self.redo_stack.clear()

    def undo(self, store: PaletteStore, count: int = 1) -> int:
        """Undo up to count operations. Returns how many were undone."""
        performed = 0
        while performed < count and self.undo_stack:
            op = self.undo_stack.pop()
            try:
                op.inverse().apply(store)
            except Exception:
                self.undo_stack.append(op)
                raise
            self.redo_stack.append(op)
            performed += 1
            logger.debug('undo: %s', op.describe())
        return performed

    def redo(self, store: PaletteStore, count: int = 1) -> int:
        """Redo up to count operations. Returns how many were redone."""
        performed = 0
        while performed < count and self.redo_stack:
            op = self.redo_stack.pop()
            try:
                op.apply(store)
            except Exception:
                self.redo_stack.append(op)
                raise
            self.undo_stack.append(op)
            performed += 1
            logger.debug('redo: %s', op.describe())
        return performed

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()
