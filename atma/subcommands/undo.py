"""Undo the last n commands of the active palette (default 1).

History survives between runs because it is stored in the session file.
Asking for more steps than are available undoes what it can and prints a
warning; that is not an error.

Example:
    atma undo
    atma undo 3
"""

from atma.core.types import Subcommand
from atma.subcommands._common import positive_int, print_warnings

subcommand = Subcommand(name='undo', help='Undo the last n commands.', writes_session=True)


@subcommand.arguments
def arguments(parser):
    parser.add_argument('count', nargs='?', type=positive_int, default=1, help='Steps to undo (default 1)')


@subcommand.run
def run(engine, args):
    outcome = engine.undo(args.count)
    if outcome.warning is not None:
        print_warnings([outcome.warning])
    print(f'undid {outcome.performed} command(s)')
