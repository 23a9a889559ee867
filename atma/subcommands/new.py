"""Start a fresh, empty palette.

Replaces the active session palette and clears its undo/redo history.
Use `atma save` first if the current palette should be kept.

Example:
    atma new
"""

from atma.core import commands as cmd
from atma.core.types import Subcommand

subcommand = Subcommand(
    name='new',
    help='Start a fresh, empty palette (clears history).',
    needs_session=False,
    writes_session=True,
)


@subcommand.run
def run(engine, args):
    engine.execute(cmd.New())
    print('new palette')
