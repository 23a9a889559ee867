"""Terminal rendering for `list` and `grid`, plus a JSON listing.

Renderers only ever see a PaletteSnapshot. Swatches are drawn as
background-coloured blocks through rich; on a console without colour
support they come out as blank space and the text columns still carry
the information.
"""

import json
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from atma.core.colors import nearest_colour, to_hsl
from atma.core.types import Cell, PaletteSnapshot

SWATCH_WIDTH = 6
LABEL_WIDTH = 10  # fits #rrggbbaa


def _swatch(cell: Cell, width: int = SWATCH_WIDTH) -> Text:
    r, g, b = cell.color.rgb
    return Text(' ' * width, style=f'on #{r:02x}{g:02x}{b:02x}')


def _nearest(cell: Cell) -> str:
    name, dist = nearest_colour(cell.color.rgb)
    if name is None:
        return ''
    return name if dist == 0 else f'~{name}'


def list_table(snapshot: PaletteSnapshot) -> Table:
    table = Table(title=f'{len(snapshot.cells)} cell(s)', title_justify='left')
    table.add_column('pos', justify='right')
    table.add_column('id', justify='right')
    table.add_column('')
    table.add_column('color')
    table.add_column('name')
    table.add_column('groups')
    table.add_column('nearest')
    for cell in snapshot.cells:
        table.add_row(
            str(cell.position),
            str(cell.id),
            _swatch(cell),
            cell.color.hex,
            cell.name or '',
            ', '.join(snapshot.groups_of(cell.id)),
            _nearest(cell),
        )
    return table


def render_list(snapshot: PaletteSnapshot, console: Console) -> None:
    if not snapshot.cells:
        console.print('(empty palette)')
        return
    console.print(list_table(snapshot))


def render_grid(snapshot: PaletteSnapshot, console: Console, columns: int = 8) -> None:
    """Swatches laid out `columns` to a row, each labelled with position and name."""
    if not snapshot.cells:
        console.print('(empty palette)')
        return
    columns = max(1, columns)
    grid = Table.grid(padding=(0, 1))
    for _ in range(min(columns, len(snapshot.cells))):
        grid.add_column(width=LABEL_WIDTH, no_wrap=True, overflow='ellipsis')

    cells = list(snapshot.cells)
    for start in range(0, len(cells), columns):
        row = cells[start : start + columns]
        swatches = [_swatch(c) for c in row]
        labels = [Text(f'{c.position}', style='bold') for c in row]
        names = [Text(c.name or c.color.hex) for c in row]
        for line in (swatches, swatches, labels, names):
            grid.add_row(*line)
    console.print(grid)


def snapshot_to_list(snapshot: PaletteSnapshot) -> list[dict[str, Any]]:
    rows = []
    for cell in snapshot.cells:
        h, s, l = to_hsl(cell.color)
        rows.append(
            {
                'position': cell.position,
                'id': cell.id,
                'color': cell.color.hex,
                'rgb': list(cell.color.rgb),
                'hsl': [h, s, l],
                'name': cell.name,
                'groups': snapshot.groups_of(cell.id),
            }
        )
    return rows


def format_json(snapshot: PaletteSnapshot) -> str:
    """Format a snapshot as JSON for scripting against `atma list --json`."""
    obj = {
        'cells': snapshot_to_list(snapshot),
        'groups': {name: list(members) for name, members in snapshot.groups.items()},
        'next_id': snapshot.next_id,
    }
    return json.dumps(obj, indent=2)
