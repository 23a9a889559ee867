"""Redo the last n undone commands (default 1).

History survives between runs because it is stored in the session file.
Any new editing command clears the redo stack. Asking for more steps
than are available redoes what it can and prints a warning; that is
not an error.

Example:
    atma redo
    atma redo 3
"""

from atma.core.types import Subcommand
from atma.subcommands._common import positive_int, print_warnings

subcommand = Subcommand(name='redo', help='Redo the last n undone commands.', writes_session=True)


@subcommand.arguments
def arguments(parser):
    parser.add_argument('count', nargs='?', type=positive_int, default=1, help='Steps to redo (default 1)')


@subcommand.run
def run(engine, args):
    outcome = engine.redo(args.count)
    if outcome.warning is not None:
        print_warnings([outcome.warning])
    print(f'redid {outcome.performed} command(s)')
