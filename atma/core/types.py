"""Shared types for atma: Cell, PaletteSnapshot, Subcommand."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from atma.core.colors import Color


@dataclass
class Cell:
    """One palette entry."""

    id: int
    color: Color
    name: str | None = None
    position: int = 0  # display rank, renormalized to 0..n-1 by the store


@dataclass(frozen=True)
class PaletteSnapshot:
    """Read-only view of a palette handed to renderers and exporters."""

    cells: tuple[Cell, ...] = ()
    groups: dict[str, tuple[int, ...]] = field(default_factory=dict)
    next_id: int = 0

    def groups_of(self, cell_id: int) -> list[str]:
        return [name for name, members in self.groups.items() if cell_id in members]


class Subcommand:
    """A self-registering CLI subcommand.

    Usage in a subcommand module:

        subcommand = Subcommand(name='list', help='List palette cells')

        @subcommand.arguments
        def arguments(parser):
            parser.add_argument('--json', action='store_true')

        @subcommand.run
        def run(engine, args):
            ...

    Run functions receive the Engine for the active session.
    `needs_session` subcommands get the saved session loaded before run;
    `writes_session` ones have it written back afterwards.
    """

    def __init__(self, name: str, help: str = '', needs_session: bool = True, writes_session: bool = False):
        self.name = name
        self.help = help
        self.needs_session = needs_session
        self.writes_session = writes_session
        self._run_fn: Callable | None = None
        self._args_fn: Callable | None = None

    def run(self, fn: Callable) -> Callable:
        """Decorator to register the run function."""
        self._run_fn = fn
        return fn

    def arguments(self, fn: Callable) -> Callable:
        """Decorator to register a function adding argparse arguments."""
        self._args_fn = fn
        return fn

    def add_arguments(self, parser: Any) -> None:
        if self._args_fn is not None:
            self._args_fn(parser)

    def execute(self, engine: Any, args: Any) -> int:
        """Execute the subcommand's run function. Returns the exit code."""
        if self._run_fn is None:
            raise RuntimeError(f'Subcommand {self.name} has no run function')
        code = self._run_fn(engine, args)
        return 0 if code is None else code
