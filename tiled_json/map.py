"""
The map root, the load entry points, and lookups on a loaded map

=============================================================================
LOADING
=============================================================================

    game_map = load_map_from_path("maps/level1.json", base_dir="maps")
    game_map = load_map_from_text(json_text)

Both return a fully resolved Map: external tile sets and object templates
have already been read and merged. base_dir is where relative "source" and
"template" paths are looked up; without it they are relative to the current
working directory (see loader.py).

=============================================================================
GLOBAL TILE IDs (GIDs)
=============================================================================

Tiles are referenced by Global IDs across all tile sets:

    TileSet A (first_gid=1,  tile_count=100):  GIDs 1-100
    TileSet B (first_gid=101, tile_count=100): GIDs 101-200

    GID 0   = empty tile (no graphic, never resolves)
    GID 50  = tile 49 of A
    GID 150 = tile 49 of B (150 - 101)

The lookups below take plain GIDs. Strip flip flags from raw layer values
with decode_gid() first.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from .layers import Layer, TileLayer, parse_layers, walk_layers
from .loader import TiledLoader, decode_json
from .parsers import expect_record, get_bool, get_color, get_enum, get_int, get_list, get_str
from .properties import TiledValue, get_properties
from .tileset import TileSet
from .types import Color, TileRect, Vec2

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Orientation(str, Enum):
    ORTHOGONAL = 'orthogonal'
    ISOMETRIC = 'isometric'
    STAGGERED = 'staggered'
    HEXAGONAL = 'hexagonal'


class RenderOrder(str, Enum):
    RIGHT_DOWN = 'right-down'
    RIGHT_UP = 'right-up'
    LEFT_DOWN = 'left-down'
    LEFT_UP = 'left-up'


class StaggerAxis(str, Enum):
    X = 'x'
    Y = 'y'


class StaggerIndex(str, Enum):
    ODD = 'odd'
    EVEN = 'even'


@dataclass(frozen=True)
class Map:
    """
    Complete Tiled map - the root of the decoded tree.

    It contains:
    - Map metadata (size, orientation, tile size)
    - Tile sets (collections of tile graphics)
    - Layers (tile layers, object groups, image layers, groups)
    - Custom properties

    ==========================================================================
    MAP ORIENTATIONS
    ==========================================================================

    ORTHOGONAL (most common):
        Standard square grid, tiles aligned in rows and columns.

    ISOMETRIC:
        Diamond-shaped tiles for pseudo-3D effect.

    STAGGERED / HEXAGONAL:
        Offset rows or columns. stagger_axis and stagger_index say which,
        hex_side_length gives the hexagon edge. These are stored as found;
        nothing checks they match the orientation.

    ==========================================================================
    RENDER ORDER
    ==========================================================================

    Determines which corner rendering starts from:
    - right-down: Left-to-right, top-to-bottom (most common)
    - right-up: Left-to-right, bottom-to-top
    - left-down: Right-to-left, top-to-bottom
    - left-up: Right-to-left, bottom-to-top

    ==========================================================================
    """
    orientation: Orientation                         # Map orientation
    width: int                                       # Map width in tiles
    height: int                                      # Map height in tiles
    tile_width: int                                  # Tile width in pixels
    tile_height: int                                 # Tile height in pixels
    infinite: bool = False                           # Is map infinite (chunked)?
    background_color: Color = Color()                # Transparent black if unset
    render_order: Optional[RenderOrder] = None
    hex_side_length: Optional[int] = None            # Hexagonal maps only
    stagger_axis: Optional[StaggerAxis] = None       # Staggered and hexagonal maps
    stagger_index: Optional[StaggerIndex] = None
    layers: List[Layer] = field(default_factory=list)
    tilesets: List[TileSet] = field(default_factory=list)
    properties: Dict[str, TiledValue] = field(default_factory=dict)
    version: Optional[str] = None                    # JSON format version
    tiled_version: Optional[str] = None              # Tiled editor version
    next_layer_id: Optional[int] = None
    next_object_id: Optional[int] = None

    @classmethod
    def from_json(cls, record: Any, loader: TiledLoader) -> 'Map':
        """Decode the root record of a map document."""
        record = expect_record(record, 'map')

        # Older exports write the version as a number
        version = record.get('version')
        if version is not None and not isinstance(version, str):
            version = str(version)

        # -----------------------------------------------------------------
        # Tile sets are resolved before layers
        # -----------------------------------------------------------------
        tilesets = [TileSet.from_json(entry, loader) for entry in get_list(record, 'tilesets')]
        layers = parse_layers(get_list(record, 'layers'), loader)

        return cls(
            orientation=get_enum(record, 'orientation', Orientation),
            width=get_int(record, 'width'),
            height=get_int(record, 'height'),
            tile_width=get_int(record, 'tilewidth'),
            tile_height=get_int(record, 'tileheight'),
            infinite=get_bool(record, 'infinite', False),
            background_color=get_color(record, 'backgroundcolor', Color()),
            render_order=get_enum(record, 'renderorder', RenderOrder, None),
            hex_side_length=get_int(record, 'hexsidelength', None),
            stagger_axis=get_enum(record, 'staggeraxis', StaggerAxis, None),
            stagger_index=get_enum(record, 'staggerindex', StaggerIndex, None),
            layers=layers,
            tilesets=tilesets,
            properties=get_properties(record),
            version=version,
            tiled_version=get_str(record, 'tiledversion', None),
            next_layer_id=get_int(record, 'nextlayerid', None),
            next_object_id=get_int(record, 'nextobjectid', None),
        )

    @classmethod
    def load(cls, path: PathLike, base_dir: Optional[PathLike] = None) -> 'Map':
        """
        Load a map file from disk.

        Parameters:
        -----------
        path : str or Path
            Path to the map's .json file
        base_dir : str or Path, optional
            Directory that relative tile set and template paths are
            resolved against. Defaults to the current working directory.

        Returns:
        --------
        Map : Parsed map, with every external reference resolved

        Raises:
        -------
        ExternalReferenceError : the map or a file it references can't be read
        FormatError : malformed JSON or a bad value anywhere in the tree
        AmbiguousShapeError : a tile set or object record has no known shape
        """
        loader = TiledLoader(base_dir)
        # The map path is the caller's, not a reference: don't resolve it
        path = Path(path).absolute()
        record = loader.read_record(path, 'map')
        with loader.errors_in(path):
            game_map = cls.from_json(record, loader)

        logger.debug(f"loaded map {path}: {game_map.width}x{game_map.height}, "
                     f"{len(game_map.layers)} layers, {len(game_map.tilesets)} tile sets")
        return game_map

    @classmethod
    def loads(cls, text: Union[str, bytes], base_dir: Optional[PathLike] = None) -> 'Map':
        """Parse a map from a JSON string. See load() for errors."""
        loader = TiledLoader(base_dir)
        return cls.from_json(decode_json(text), loader)

    # -------------------------------------------------------------------------
    # Tile set lookups
    # -------------------------------------------------------------------------

    def tileset_for_gid(self, gid: int) -> Optional[TileSet]:
        """
        Find which tile set contains a given GID.

        Parameters:
        -----------
        gid : int
            Global tile id, without flip flags

        Returns:
        --------
        TileSet or None : The first tile set (in map order) whose range
            contains gid. None for gid 0 or when no set covers it.

        Ranges are not checked for overlap; when two sets overlap the one
        listed first wins.
        """
        if gid == 0:
            return None
        for tileset in self.tilesets:
            if tileset.contains_gid(gid):
                return tileset
        return None

    def tileset_image_path(self, gid: int) -> Optional[Path]:
        """Spritesheet image of the tile set owning gid."""
        tileset = self.tileset_for_gid(gid)
        return tileset.image if tileset is not None else None

    def tileset_name(self, gid: int) -> Optional[str]:
        tileset = self.tileset_for_gid(gid)
        return tileset.name if tileset is not None else None

    def tile_position_on_image(self, gid: int) -> Optional[TileRect]:
        """Source rectangle of gid on its tile set's spritesheet."""
        tileset = self.tileset_for_gid(gid)
        if tileset is None:
            return None
        return tileset.tile_position_on_image(gid - tileset.first_gid)

    def tile_position_on_map(self, index: int, gid: int) -> Optional[Vec2]:
        """
        Pixel position of the index-th cell of a map-sized tile layer.

        Both axes are scaled by the owning tile set's tile_width, the
        vertical one included:

            x = (index % width) * tile_width
            y = (index // width) * tile_width

        This matches long-standing behaviour and is only correct for square
        tiles. Use row * tile_height yourself for non-square tiles.

        Returns None when no tile set covers gid.
        """
        tileset = self.tileset_for_gid(gid)
        if tileset is None:
            return None
        if self.width == 0:
            raise ValueError('map has no width')
        column = index % self.width
        row = index // self.width
        return Vec2(column * tileset.tile_width, row * tileset.tile_width)

    # -------------------------------------------------------------------------
    # Layer lookups
    # -------------------------------------------------------------------------

    def layer_by_name(self, name: str) -> Optional[Layer]:
        """
        Find a layer by name (searches recursively through groups).

        Returns the first match in paint order, or None.
        """
        for layer in walk_layers(self.layers):
            if layer.name == name:
                return layer
        return None

    def iter_layers(self) -> Iterator[Layer]:
        """Every layer in paint order, groups followed by their children."""
        return walk_layers(self.layers)

    def tile_layers(self) -> List[Layer]:
        """All layers whose payload is a TileLayer, in paint order."""
        return [layer for layer in walk_layers(self.layers) if isinstance(layer.layer_type, TileLayer)]


def load_map_from_path(path: PathLike, base_dir: Optional[PathLike] = None) -> Map:
    """Load a Tiled JSON map file. Same as Map.load()."""
    return Map.load(path, base_dir)


def load_map_from_text(text: Union[str, bytes], base_dir: Optional[PathLike] = None) -> Map:
    """Load a Tiled JSON map from a string. Same as Map.loads()."""
    return Map.loads(text, base_dir)
