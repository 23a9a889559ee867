"""Error taxonomy for atma.

Every error the core reports is an AtmaError. Errors raised while running a
script carry the line and column of the offending command (or argument), and
render as `line:column: kind: message`.

  ScriptSyntaxError   malformed script text
  ValidationError     unknown command or attribute, wrong arity, bad literal
  ResolutionError     selector matches nothing, or names an unknown group
  StateError          an edit would break a palette invariant
  SerializationError  persisted data fails schema or integrity checks
  HistoryError        undo/redo asked for more steps than were available
"""

from __future__ import annotations


class AtmaError(Exception):
    """Base class for all errors reported by the atma core."""

    kind = 'error'

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def at(self, line: int | None, column: int | None) -> AtmaError:
        """Attach a source location unless one is already set. Returns self."""
        if self.line is None and line is not None:
            self.line = line
            self.column = column
        return self

    @property
    def location(self) -> str | None:
        if self.line is None:
            return None
        if self.column is None:
            return str(self.line)
        return f'{self.line}:{self.column}'

    def __str__(self) -> str:
        loc = self.location
        if loc:
            return f'{loc}: {self.kind}: {self.message}'
        return f'{self.kind}: {self.message}'


class ScriptSyntaxError(AtmaError):
    kind = 'syntax error'


class ValidationError(AtmaError):
    kind = 'validation error'


class ResolutionError(AtmaError):
    kind = 'resolution error'


class StateError(AtmaError):
    kind = 'state error'


class SerializationError(AtmaError):
    kind = 'load error'


LoadError = SerializationError


class HistoryError(AtmaError):
    """Non-fatal: fewer undo/redo steps were available than requested."""

    kind = 'history'

    def __init__(self, action: str, requested: int, performed: int, line: int | None = None, column: int | None = None):
        super().__init__(
            f'{action} requested {requested} step(s), performed {performed}',
            line=line,
            column=column,
        )
        self.action = action
        self.requested = requested
        self.performed = performed
