"""Show the palette as a grid of colour swatches.

Each swatch is labelled with its position and its name (or hex value when
unnamed). The grid width comes from ATMA_GRID_COLUMNS unless --columns is
given.

Example:
    atma grid
    atma grid @warm --columns 4
"""

import dataclasses

from atma.core import commands as cmd
from atma.core.types import Subcommand
from atma.subcommands._common import parse_selector, positive_int

subcommand = Subcommand(name='grid', help='Show palette swatches as a grid.')


@subcommand.arguments
def arguments(parser):
    parser.add_argument('selector', nargs='?', help='Cells to show (default: all)')
    parser.add_argument('--columns', type=positive_int, default=None, help='Swatches per row')


@subcommand.run
def run(engine, args):
    if args.columns is not None:
        engine.config = dataclasses.replace(engine.config, grid_columns=args.columns)
    engine.execute(cmd.Grid(parse_selector(args.selector)))
