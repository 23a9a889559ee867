"""Script command types.

Two layers:

  CommandNode  what the parser produces: a command word plus literal
               arguments, each tagged with its source location. Nothing
               has been checked beyond the grammar.
  Command      what the validator produces: one frozen dataclass per
               command kind, with typed fields. The set is closed; the
               interpreter matches on it exhaustively.

Selectors stay unresolved in both layers. They are turned into cell ids
only when a command executes, against the palette as it is at that moment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from atma.core.colors import Color

# Literal argument kinds produced by the parser
HEX_COLOR = 'hex_color'
FUNC_COLOR = 'func_color'
INT = 'int'
RANGE = 'range'
GROUP_REF = 'group_ref'
GROUP_INDEX = 'group_index'
SELECTION = 'selection'
ALL = 'all'
STRING = 'string'
WORD = 'word'


@dataclass(frozen=True)
class Arg:
    """One literal argument as written in the script."""

    kind: str
    value: Any
    line: int
    column: int
    keyword: str | None = None


@dataclass(frozen=True)
class CommandNode:
    """A parsed, not yet validated command."""

    name: str
    args: tuple[Arg, ...]
    line: int
    column: int
    source: str = ''

    @property
    def positional(self) -> list[Arg]:
        return [a for a in self.args if a.keyword is None]

    @property
    def keywords(self) -> list[Arg]:
        return [a for a in self.args if a.keyword is not None]


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IndexSelector:
    index: int

    def __str__(self) -> str:
        return str(self.index)


@dataclass(frozen=True)
class NameSelector:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class RangeSelector:
    """Inclusive range of display positions."""

    start: int
    end: int

    def __str__(self) -> str:
        return f'{self.start}..{self.end}'


@dataclass(frozen=True)
class GroupSelector:
    group: str

    def __str__(self) -> str:
        return f'@{self.group}'


@dataclass(frozen=True)
class AllSelector:
    def __str__(self) -> str:
        return '*'


@dataclass(frozen=True)
class GroupIndexSelector:
    """Members of a group by their place in it: `@warm:1` or `@warm:0..2`."""

    group: str
    start: int
    end: int

    def __str__(self) -> str:
        if self.start == self.end:
            return f'@{self.group}:{self.start}'
        return f'@{self.group}:{self.start}..{self.end}'


@dataclass(frozen=True)
class SelectionList:
    """Comma-separated selectors. Matches their union, first match first, no repeats."""

    selectors: tuple[Selector, ...]

    def __str__(self) -> str:
        return ', '.join(str(s) for s in self.selectors)


Selector = Union[
    IndexSelector, NameSelector, RangeSelector, GroupSelector, AllSelector, GroupIndexSelector, SelectionList
]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

COLOR_ATTRIBUTE = 'color'
NAME_ATTRIBUTE = 'name'
ATTRIBUTES = (COLOR_ATTRIBUTE, NAME_ATTRIBUTE)


@dataclass(frozen=True)
class New:
    pass


@dataclass(frozen=True)
class Insert:
    color: Color
    name: str | None = None
    position: int | None = None  # None appends


@dataclass(frozen=True)
class Delete:
    selector: Selector


@dataclass(frozen=True)
class Move:
    selector: Selector
    position: int


@dataclass(frozen=True)
class Rename:
    selector: Selector
    name: str


@dataclass(frozen=True)
class Set:
    selector: Selector
    attribute: str
    value: Color | str


@dataclass(frozen=True)
class Group:
    name: str
    selector: Selector


@dataclass(frozen=True)
class Ungroup:
    name: str
    selector: Selector | None = None  # None deletes the whole group


@dataclass(frozen=True)
class Undo:
    count: int = 1


@dataclass(frozen=True)
class Redo:
    count: int = 1


@dataclass(frozen=True)
class Save:
    path: str


@dataclass(frozen=True)
class Load:
    path: str


@dataclass(frozen=True)
class List:
    selector: Selector | None = None


@dataclass(frozen=True)
class Grid:
    selector: Selector | None = None


@dataclass(frozen=True)
class Export:
    path: str
    selector: Selector | None = None


Command = Union[New, Insert, Delete, Move, Rename, Set, Group, Ungroup, Undo, Redo, Save, Load, List, Grid, Export]
