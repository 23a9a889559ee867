"""Colour values: parsing, formatting and nearest-name lookup.

Colour literals are parsed by Pillow's ImageColor, which accepts:
  #rgb, #rgba, #rrggbb, #rrggbbaa
  rgb(255, 0, 0), rgb(100%, 0%, 0%), rgba(...)
  hsl(0, 100%, 50%), hsv(...) / hsb(...)
  CSS colour names (red, slateblue, ...), case-insensitive

The palette core treats a Color as an opaque validated value. Everything
that needs to look inside one (rendering, export, distance) goes through
this module.
"""

import colorsys
import functools
from dataclasses import dataclass

import numpy as np
from PIL import ImageColor


@dataclass(frozen=True)
class Color:
    """An sRGB colour with 8-bit channels."""

    r: int
    g: int
    b: int
    a: int = 255

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    @property
    def rgba(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    @property
    def hex(self) -> str:
        """Lowercase hex. Alpha is appended only when not fully opaque."""
        if self.a == 255:
            return f'#{self.r:02x}{self.g:02x}{self.b:02x}'
        return f'#{self.r:02x}{self.g:02x}{self.b:02x}{self.a:02x}'

    def __str__(self) -> str:
        return self.hex


def parse_color(text: str) -> Color:
    """Parse a colour literal. Raises ValueError if Pillow cannot read it."""
    value = ImageColor.getrgb(text.strip())
    if len(value) == 4:
        r, g, b, a = value
        return Color(r, g, b, a)
    r, g, b = value
    return Color(r, g, b)


def to_hsl(color: Color) -> tuple[float, float, float]:
    """Return (h: 0-360, s: 0-100, l: 0-100)."""
    h, l, s = colorsys.rgb_to_hls(color.r / 255, color.g / 255, color.b / 255)
    return (round(h * 360, 1), round(s * 100, 1), round(l * 100, 1))


@functools.lru_cache(maxsize=1)
def named_colours() -> dict[str, tuple[int, int, int]]:
    """CSS colour names known to Pillow, mapped to RGB."""
    names = {}
    for name in sorted(ImageColor.colormap):
        value = ImageColor.getrgb(name)
        names[name] = (value[0], value[1], value[2])
    return names


def nearest_colour(rgb: tuple[int, int, int], threshold: float | None = None) -> tuple[str | None, float]:
    """Find the nearest CSS colour name.

    Returns (name, distance). Name is None when the nearest candidate is
    further away than threshold.
    """
    names = named_colours()
    table = np.array(list(names.values()), dtype=int)
    dists = np.linalg.norm(table - np.array(rgb, dtype=int), axis=-1)
    i = int(np.argmin(dists))
    dist = float(dists[i])
    if threshold is not None and dist > threshold:
        return None, dist
    return list(names)[i], dist
