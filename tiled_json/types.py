"""Small value types shared by the decoders: colours, points and rectangles."""

from typing import NamedTuple, Union

Number = Union[int, float]


class Color(NamedTuple):
    """
    RGBA colour, each channel 0-255.

    Tiled writes colours alpha first (#AARRGGBB); the decoder reorders them,
    so the tuple is always (r, g, b, a). Color() is transparent black.
    """
    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 0


class Vec2(NamedTuple):
    """A 2D coordinate pair (pixels or grid cells, depending on the caller)."""
    x: Number
    y: Number


class TileRect(NamedTuple):
    """
    Location and size of a tile on its tile set image.

    Suitable for a blit source rectangle.
    """
    x: int
    y: int
    width: int
    height: int
