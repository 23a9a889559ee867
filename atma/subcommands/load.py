"""Load a palette JSON file, replacing the active palette.

The file is validated in full first; a bad file leaves the active palette
untouched. Loading clears undo/redo history.

Example:
    atma load brand.json
"""

from atma.core import commands as cmd
from atma.core.types import Subcommand

subcommand = Subcommand(
    name='load',
    help='Load a palette JSON file (clears history).',
    needs_session=False,
    writes_session=True,
)


@subcommand.arguments
def arguments(parser):
    parser.add_argument('path', help='Palette file to read')


@subcommand.run
def run(engine, args):
    outcome = engine.execute(cmd.Load(args.path))
    print(outcome.message)
