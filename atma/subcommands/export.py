"""Export palette swatches to a PNG image.

Cells are drawn as square swatches in display order, left to right, wrapping
after --columns swatches (ATMA_GRID_COLUMNS by default). Swatch size
defaults to ATMA_SWATCH_SIZE pixels. Alpha is preserved.

Exporting an empty selection is an error.

Example:
    atma export palette.png
    atma export warm.png @warm --swatch 64
"""

import dataclasses

from atma.core import commands as cmd
from atma.core.types import Subcommand
from atma.subcommands._common import parse_selector, positive_int

subcommand = Subcommand(name='export', help='Export swatches to a PNG image.')


@subcommand.arguments
def arguments(parser):
    parser.add_argument('path', help='PNG file to write')
    parser.add_argument('selector', nargs='?', help='Cells to export (default: all)')
    parser.add_argument('--swatch', type=positive_int, default=None, help='Swatch edge in pixels')
    parser.add_argument('--columns', type=positive_int, default=None, help='Swatches per row')


@subcommand.run
def run(engine, args):
    overrides = {}
    if args.swatch is not None:
        overrides['swatch_size'] = args.swatch
    if args.columns is not None:
        overrides['grid_columns'] = args.columns
    if overrides:
        engine.config = dataclasses.replace(engine.config, **overrides)
    outcome = engine.execute(cmd.Export(args.path, parse_selector(args.selector)))
    print(outcome.message)
