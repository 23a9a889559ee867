"""PNG export of a palette as a strip of swatches.

Each cell becomes a `swatch` x `swatch` square, laid out left to right,
`columns` squares per row, in display order. Unused slots in the last row
are left transparent. The image is RGBA so cell alpha survives.
"""

import logging
import os

import numpy as np
from PIL import Image

from atma.core.errors import AtmaError, StateError
from atma.core.types import PaletteSnapshot

logger = logging.getLogger(__name__)


def swatch_array(snapshot: PaletteSnapshot, swatch: int = 32, columns: int = 8) -> np.ndarray:
    """Build the (h, w, 4) uint8 pixel array for a snapshot."""
    n = len(snapshot.cells)
    if n == 0:
        raise StateError('nothing to export: the selection is empty')
    swatch = max(1, swatch)
    cols = max(1, min(columns, n))
    rows = (n + cols - 1) // cols
    pixels = np.zeros((rows * swatch, cols * swatch, 4), dtype=np.uint8)
    for i, cell in enumerate(snapshot.cells):
        y, x = divmod(i, cols)
        pixels[y * swatch : (y + 1) * swatch, x * swatch : (x + 1) * swatch] = cell.color.rgba
    return pixels


def write_png(snapshot: PaletteSnapshot, path: str, swatch: int = 32, columns: int = 8) -> str:
    """Write the swatch image. Returns the path written.

    Filesystem failures surface as AtmaError so a script run reports them
    like any other failing line.
    """
    pixels = swatch_array(snapshot, swatch=swatch, columns=columns)
    parent = os.path.dirname(path)
    try:
        if parent:
            os.makedirs(parent, exist_ok=True)
        Image.fromarray(pixels).save(path, format='PNG')
    except OSError as exc:
        raise AtmaError(f'cannot write {path}: {exc.strerror or exc}') from exc
    logger.info('exported %d cell(s) to %s', len(snapshot.cells), path)
    return path
