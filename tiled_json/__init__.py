"""
tiled_json - read Tiled JSON maps into typed, immutable Python objects

Usage:
    from tiled_json import load_map_from_path

    game_map = load_map_from_path("maps/level1.json", base_dir="maps")
    ground = game_map.layer_by_name("Ground")
    rect = game_map.tile_position_on_image(42)
"""

from .errors import AmbiguousShapeError, ExternalReferenceError, FormatError, TiledError
from .types import Color, TileRect, Vec2
from .parsers import TileFlags, decode_gid, parse_color, parse_data, parse_path
from .properties import PropertyType, TiledValue, parse_properties
from .loader import TiledLoader
from .objects import (
    Ellipse, MapObject, ObjectType, Point, PolyLine, Polygon, Template, Text, TextStyle,
    parse_object_type,
)
from .wangs import WangColor, WangSet, WangTile
from .layers import Chunk, DrawOrder, Group, ImageLayer, Layer, LayerType, ObjectGroup, TileLayer
from .tileset import Frame, Terrain, Tile, TileSet
from .map import (
    Map, Orientation, RenderOrder, StaggerAxis, StaggerIndex,
    load_map_from_path, load_map_from_text,
)

__version__ = "0.1.0"
__all__ = [
    "load_map_from_path",
    "load_map_from_text",
    "Map",
    "Orientation",
    "RenderOrder",
    "StaggerAxis",
    "StaggerIndex",
    "Layer",
    "LayerType",
    "TileLayer",
    "Chunk",
    "ObjectGroup",
    "DrawOrder",
    "ImageLayer",
    "Group",
    "TileSet",
    "Tile",
    "Frame",
    "Terrain",
    "WangSet",
    "WangColor",
    "WangTile",
    "MapObject",
    "ObjectType",
    "Ellipse",
    "Point",
    "Polygon",
    "PolyLine",
    "Text",
    "TextStyle",
    "Template",
    "parse_object_type",
    "PropertyType",
    "TiledValue",
    "parse_properties",
    "Color",
    "Vec2",
    "TileRect",
    "TileFlags",
    "decode_gid",
    "parse_color",
    "parse_data",
    "parse_path",
    "TiledLoader",
    "TiledError",
    "FormatError",
    "ExternalReferenceError",
    "AmbiguousShapeError",
]
