"""List palette cells as a table: position, id, swatch, colour, name, groups.

An optional selector limits the listing, using the same syntax as
scripts (`3`, `0..4`, `accent`, `@warm`, `*`). A selector that matches
nothing prints an empty listing. `--json` prints a machine-readable form
including RGB and HSL values.

Example:
    atma list
    atma list @warm
    atma list --json
"""

from atma.core import commands as cmd
from atma.core.interpreter import resolve
from atma.core.render import format_json
from atma.core.types import Subcommand
from atma.subcommands._common import parse_selector

subcommand = Subcommand(name='list', help='List palette cells (optionally a selection).')


@subcommand.arguments
def arguments(parser):
    parser.add_argument('selector', nargs='?', help='Cells to list (default: all)')
    parser.add_argument('-j', '--json', action='store_true', help='Output JSON instead of a table')


@subcommand.run
def run(engine, args):
    selector = parse_selector(args.selector)
    if args.json:
        ids = resolve(engine.store, selector or cmd.AllSelector()).ids
        print(format_json(engine.snapshot(ids)))
        return
    engine.execute(cmd.List(selector))
