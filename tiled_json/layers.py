"""
Layer tree: tile layers, object groups, image layers and groups

=============================================================================
LAYER TYPES
=============================================================================

Every layer record carries an explicit "type" tag:

    "tilelayer"     -> TileLayer    grid of GIDs (or chunks on infinite maps)
    "objectgroup"   -> ObjectGroup  list of MapObjects
    "imagelayer"    -> ImageLayer   a single image
    "group"         -> Group        nested layers, same rules recursively

The common attributes (name, opacity, visibility, offsets, ...) live on
Layer; the type-specific part lives in Layer.layer_type:

    Layer(name='Ground', opacity=1.0, ..., layer_type=TileLayer(...))

Layer order is paint order: the first layer is drawn first (bottom).

=============================================================================
INFINITE MAPS
=============================================================================

On infinite maps a tile layer has no "data" but a list of chunks, each a
small rectangle of the unbounded grid. Chunk origins can be negative since
the map grows from (0, 0) in every direction:

    Chunk(x=-16, y=0, width=16, height=16, data=[...256 GIDs...])

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import numpy as np

from .errors import FormatError
from .loader import TiledLoader
from .objects import MapObject
from .parsers import (
    expect_record, get_bool, get_color, get_enum, get_float, get_int, get_list, get_str,
    parse_data, parse_path,
)
from .properties import TiledValue, get_properties
from .types import Color, Vec2

logger = logging.getLogger(__name__)


def _tile_data(record: Dict[str, Any]) -> np.ndarray:
    data = record.get('data')
    return parse_data(data if data is not None else [])


# =============================================================================
# TILE LAYER
# =============================================================================

@dataclass(frozen=True, eq=False)
class Chunk:
    """Rectangular piece of an infinite tile layer."""
    data: np.ndarray                     # uint32 GIDs, row-major
    width: int                           # Width in tiles
    height: int                          # Height in tiles
    x: int                               # Origin in tiles, may be negative
    y: int

    @classmethod
    def from_json(cls, record: Any) -> 'Chunk':
        record = expect_record(record, 'chunk')
        return cls(
            data=_tile_data(record),
            width=get_int(record, 'width'),
            height=get_int(record, 'height'),
            x=get_int(record, 'x'),
            y=get_int(record, 'y'),
        )

    def __eq__(self, other):
        if not isinstance(other, Chunk):
            return NotImplemented
        return ((self.width, self.height, self.x, self.y) == (other.width, other.height, other.x, other.y)
                and np.array_equal(self.data, other.data))

    def tile_position(self, index: int) -> Vec2:
        """Absolute grid position of the index-th GID of this chunk."""
        return Vec2(self.x + index % self.width, self.y + index // self.width)


@dataclass(frozen=True, eq=False)
class TileLayer:
    """
    Grid of tile references.

    data is a flat, read-only uint32 array. Index i is the cell at
    column i % width, row i // width. Values are raw GIDs: 0 is an empty
    cell, and the top four bits may hold flip flags (see decode_gid).

    ==========================================================================
    ENCODING
    ==========================================================================

    encoding is "csv" for a plain JSON array and "base64" for packed words.
    compression ("zlib", "gzip", "zstd") is recorded but NOT undone, so a
    compressed layer holds meaningless values.

    ==========================================================================
    """
    width: int                                       # Width in tiles
    height: int                                      # Height in tiles
    data: np.ndarray                                 # Flat GID array
    chunks: Optional[List[Chunk]] = None             # Only on infinite maps
    encoding: str = 'csv'                            # "csv" or "base64"
    compression: Optional[str] = None                # Declared, never applied

    @classmethod
    def from_json(cls, record: Dict[str, Any]) -> 'TileLayer':
        chunks = get_list(record, 'chunks', None)
        layer = cls(
            width=get_int(record, 'width'),
            height=get_int(record, 'height'),
            data=_tile_data(record),
            chunks=[Chunk.from_json(c) for c in chunks] if chunks is not None else None,
            encoding=get_str(record, 'encoding', 'csv'),
            compression=get_str(record, 'compression', None) or None,
        )

        if layer.compression:
            logger.warning(f"layer {record.get('name', '')!r} uses {layer.compression} compression, "
                           f"which is not supported; tile data left compressed")
        return layer

    def __eq__(self, other):
        if not isinstance(other, TileLayer):
            return NotImplemented
        return ((self.width, self.height, self.chunks, self.encoding, self.compression)
                == (other.width, other.height, other.chunks, other.encoding, other.compression)
                and np.array_equal(self.data, other.data))

    def grid(self) -> np.ndarray:
        """
        Tile data as a 2D (height, width) view.

        Access a cell as grid()[y, x]. Raises ValueError when data does not
        hold width * height values (for example on chunked layers).
        """
        return self.data.reshape(self.height, self.width)

    def tile_position_on_layer(self, index: int) -> Vec2:
        """Column and row (in tiles, not pixels) of a flat data index."""
        if self.width == 0:
            raise ValueError('layer has no width')
        return Vec2(index % self.width, index // self.width)


# =============================================================================
# OBJECT GROUP
# =============================================================================

class DrawOrder(str, Enum):
    TOPDOWN = 'topdown'                  # Sorted by y
    INDEX = 'index'                      # In list order


@dataclass(frozen=True)
class ObjectGroup:
    """
    Layer of vector objects, also used for per-tile collision shapes.
    """
    draw_order: DrawOrder = DrawOrder.TOPDOWN
    objects: List[MapObject] = field(default_factory=list)

    @classmethod
    def from_json(cls, record: Any, loader: TiledLoader) -> 'ObjectGroup':
        record = expect_record(record, 'object group')
        return cls(
            draw_order=get_enum(record, 'draworder', DrawOrder, DrawOrder.TOPDOWN),
            objects=[MapObject.from_json(o, loader) for o in get_list(record, 'objects', [])],
        )


# =============================================================================
# IMAGE LAYER AND GROUP
# =============================================================================

@dataclass(frozen=True)
class ImageLayer:
    image: Optional[Path] = None                     # None when no image is set
    transparent_color: Color = Color()               # Colour key, transparent black if unset

    @classmethod
    def from_json(cls, record: Dict[str, Any]) -> 'ImageLayer':
        # Tiled writes "image": "" for an image layer without an image
        image = record.get('image')
        return cls(
            image=None if image is None or image == '' else parse_path(image, 'image'),
            transparent_color=get_color(record, 'transparentcolor', Color()),
        )


@dataclass(frozen=True)
class Group:
    """Folder of layers. Children are decoded with the same rules."""
    layers: List['Layer'] = field(default_factory=list)

    @classmethod
    def from_json(cls, record: Dict[str, Any], loader: TiledLoader) -> 'Group':
        return cls(layers=parse_layers(get_list(record, 'layers', []), loader))


LayerType = Union[TileLayer, ObjectGroup, ImageLayer, Group]


# =============================================================================
# LAYER
# =============================================================================

@dataclass(frozen=True)
class Layer:
    """
    One entry of the layer tree.

    Holds what every layer type shares. The type-specific payload is in
    layer_type; dispatch on it with isinstance().
    """
    layer_type: LayerType                            # TileLayer, ObjectGroup, ImageLayer or Group
    name: str = ''                                   # Layer name
    id: int = 0                                      # Unique per map (Tiled >= 1.2)
    offset_x: float = 0.0                            # Rendering offset in pixels
    offset_y: float = 0.0
    opacity: float = 1.0                             # 0.0 - 1.0, not checked
    visible: bool = True                             # Is layer visible?
    parallax_x: float = 1.0                          # Scroll factor
    parallax_y: float = 1.0
    tint_color: Optional[Color] = None               # Multiplied with the layer's pixels
    x: int = 0                                       # Always 0 in current Tiled
    y: int = 0
    properties: Dict[str, TiledValue] = field(default_factory=dict)

    @classmethod
    def from_json(cls, record: Any, loader: TiledLoader) -> 'Layer':
        """
        Decode a layer record, recursing into groups.

        Raises FormatError when "type" is missing or not one of tilelayer,
        objectgroup, imagelayer, group.
        """
        record = expect_record(record, 'layer')
        tag = get_str(record, 'type')

        if tag == 'tilelayer':
            layer_type = TileLayer.from_json(record)
        elif tag == 'objectgroup':
            layer_type = ObjectGroup.from_json(record, loader)
        elif tag == 'imagelayer':
            layer_type = ImageLayer.from_json(record)
        elif tag == 'group':
            layer_type = Group.from_json(record, loader)
        else:
            raise FormatError(f"unknown layer type {tag!r}", 'type')

        return cls(
            layer_type=layer_type,
            name=get_str(record, 'name'),
            id=get_int(record, 'id', 0),
            offset_x=get_float(record, 'offsetx', 0.0),
            offset_y=get_float(record, 'offsety', 0.0),
            opacity=get_float(record, 'opacity'),
            visible=get_bool(record, 'visible'),
            parallax_x=get_float(record, 'parallaxx', 1.0),
            parallax_y=get_float(record, 'parallaxy', 1.0),
            tint_color=get_color(record, 'tintcolor', None),
            x=get_int(record, 'x', 0),
            y=get_int(record, 'y', 0),
            properties=get_properties(record),
        )


def parse_layers(records: List[Any], loader: TiledLoader) -> List[Layer]:
    """Decode an ordered layer list, keeping paint order."""
    return [Layer.from_json(record, loader) for record in records]


def walk_layers(layers: List[Layer]) -> Iterator[Layer]:
    """
    Depth-first iteration over a layer tree.

    A group is yielded before its children, so the sequence is the order
    in which the layers are painted.
    """
    for layer in layers:
        yield layer
        if isinstance(layer.layer_type, Group):
            yield from walk_layers(layer.layer_type.layers)
