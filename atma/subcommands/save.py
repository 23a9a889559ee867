"""Save the active palette to a JSON file.

The file holds cells and groups only, not history. Saving is not an
editing step, so it never appears in undo/redo.

Example:
    atma save brand.json
"""

from atma.core import commands as cmd
from atma.core.types import Subcommand

subcommand = Subcommand(name='save', help='Save the palette to a JSON file.')


@subcommand.arguments
def arguments(parser):
    parser.add_argument('path', help='File to write')


@subcommand.run
def run(engine, args):
    outcome = engine.execute(cmd.Save(args.path))
    print(outcome.message)
