"""
Tile sets, per-tile metadata, and resolution of external tile set files
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import AmbiguousShapeError, FormatError
from .layers import ObjectGroup
from .loader import TiledLoader
from .parsers import (
    expect_record, get_color, get_dict, get_float, get_int, get_int_list, get_list, get_path,
    get_str, has_keys, missing_keys,
)
from .properties import TiledValue, get_properties
from .types import Color, TileRect, Vec2
from .wangs import WangSet

logger = logging.getLogger(__name__)


# =============================================================================
# PER-TILE DATA
# =============================================================================

@dataclass(frozen=True)
class Frame:
    """One step of a tile animation."""
    tile_id: int                         # Local id of the tile shown
    duration: int                        # Milliseconds

    @classmethod
    def from_json(cls, record: Any) -> 'Frame':
        record = expect_record(record, 'animation frame')
        return cls(tile_id=get_int(record, 'tileid'), duration=get_int(record, 'duration'))


@dataclass(frozen=True)
class Terrain:
    name: str
    tile: int                            # Local id of the tile representing the terrain

    @classmethod
    def from_json(cls, record: Any) -> 'Terrain':
        record = expect_record(record, 'terrain')
        return cls(name=get_str(record, 'name'), tile=get_int(record, 'tile'))


@dataclass(frozen=True)
class Tile:
    """
    Extra information about one tile of a tile set.

    Only tiles that have something special (animation, collision shapes,
    properties, own image...) get an entry. Ids are LOCAL: they start at 0
    in every tile set, unlike the GIDs stored in layers.

    ==========================================================================
    TERRAIN
    ==========================================================================

    terrain holds four indexes into TileSet.terrains, one per corner:

        (top-left, top-right, bottom-left, bottom-right)

    -1 means the corner has no terrain.

    ==========================================================================
    """
    id: int                                          # Local tile id
    animation: Optional[List[Frame]] = None          # Frames, in play order
    image: Optional[Path] = None                     # Own image (image collection sets)
    image_width: int = 0
    image_height: int = 0
    object_group: Optional[ObjectGroup] = None       # Collision shapes
    terrain: Optional[Tuple[int, int, int, int]] = None
    tile_type: Optional[str] = None                  # "type" (or "class" since Tiled 1.9)
    probability: Optional[float] = None              # Weight for random placement
    properties: Dict[str, TiledValue] = field(default_factory=dict)

    @classmethod
    def from_json(cls, record: Any, loader: TiledLoader) -> 'Tile':
        record = expect_record(record, 'tile')

        terrain = get_int_list(record, 'terrain', None)
        if terrain is not None and len(terrain) != 4:
            raise FormatError(f"terrain needs 4 corner indexes, got {len(terrain)}", 'terrain')

        animation = get_list(record, 'animation', None)
        object_group = get_dict(record, 'objectgroup', None)

        tile_type = get_str(record, 'type', None)
        if tile_type is None:
            tile_type = get_str(record, 'class', None)

        return cls(
            id=get_int(record, 'id'),
            animation=[Frame.from_json(f) for f in animation] if animation is not None else None,
            image=get_path(record, 'image', None),
            image_width=get_int(record, 'imagewidth', 0),
            image_height=get_int(record, 'imageheight', 0),
            object_group=ObjectGroup.from_json(object_group, loader) if object_group is not None else None,
            terrain=terrain,
            tile_type=tile_type,
            probability=get_float(record, 'probability', None),
            properties=get_properties(record),
        )


# =============================================================================
# TILE SET
# =============================================================================

@dataclass(frozen=True)
class TileSet:
    """
    Tile set - a collection of tile graphics addressed by a GID range.

    ==========================================================================
    TILE SET TYPES
    ==========================================================================

    1. SPRITESHEET TILE SET (most common):
       One large image divided into a grid of tiles.

       +---+---+---+---+
       | 0 | 1 | 2 | 3 |
       +---+---+---+---+
       | 4 | 5 | 6 | 7 |
       +---+---+---+---+

       Attributes used: image, tile_width, tile_height, columns

    2. IMAGE COLLECTION TILE SET:
       Each tile is a separate image file, listed in tiles.
       image is None and columns is 0.

    ==========================================================================
    EMBEDDED vs EXTERNAL
    ==========================================================================

    EMBEDDED: the definition is inside the map
        {"firstgid": 1, "name": "terrain", "tilewidth": 32, ...}

    EXTERNAL: the map only points at a separate JSON file
        {"firstgid": 1, "source": "terrain.json"}

    External tile sets are read while the map loads and become ordinary
    TileSet values. first_gid always comes from the map entry, never from
    the external file; source remembers where the definition came from.

    ==========================================================================
    GID RANGE
    ==========================================================================

    A tile set covers GIDs first_gid .. first_gid + tile_count - 1:

        TileSet A: first_gid=1,  tile_count=10   -> GIDs 1-10
        TileSet B: first_gid=11, tile_count=5    -> GIDs 11-15

        local id = gid - first_gid

    ==========================================================================
    """
    name: str                                        # Tile set name
    tile_width: int                                  # Tile width in pixels
    tile_height: int                                 # Tile height in pixels
    tile_count: int                                  # Total number of tiles
    columns: int                                     # Tiles per row (0 for image collections)
    first_gid: int = 0                               # First global id
    image: Optional[Path] = None                     # Spritesheet image
    image_width: int = 0
    image_height: int = 0
    margin: int = 0                                  # Pixels around edge
    spacing: int = 0                                 # Pixels between tiles
    tile_offset: Optional[Vec2] = None               # Drawing offset in pixels
    transparent_color: Color = Color()               # Colour key
    terrains: Optional[List[Terrain]] = None
    tiles: Optional[List[Tile]] = None               # Per-tile metadata
    wang_sets: Optional[List[WangSet]] = None
    properties: Dict[str, TiledValue] = field(default_factory=dict)
    source: Optional[Path] = None                    # External file, None if embedded

    CANDIDATES = ('internal', 'external')
    INTERNAL_KEYS = ('name', 'tilewidth', 'tileheight', 'tilecount', 'columns')
    EXTERNAL_KEYS = ('firstgid', 'source')

    @classmethod
    def from_json(cls, entry: Any, loader: TiledLoader) -> 'TileSet':
        """
        Decode a map's tile set entry, reading the external file if needed.

        Parameters:
        -----------
        entry : dict
            One element of the map's "tilesets" list
        loader : TiledLoader
            Resolves and reads "source" files

        Raises:
        -------
        AmbiguousShapeError : neither a full definition nor firstgid + source
        ExternalReferenceError : source file missing or unreadable
        FormatError : bad value in the entry or in the source file
        """
        entry = expect_record(entry, 'tile set')

        # -----------------------------------------------------------------
        # 1. Full definition embedded in the map
        # -----------------------------------------------------------------
        if has_keys(entry, cls.INTERNAL_KEYS):
            return cls._from_internal(entry, loader)

        # -----------------------------------------------------------------
        # 2. Reference to an external file
        # -----------------------------------------------------------------
        if has_keys(entry, cls.EXTERNAL_KEYS):
            first_gid = get_int(entry, 'firstgid')
            source = get_path(entry, 'source')
            return cls._from_external(first_gid, source, loader)

        reason = f"missing {', '.join(missing_keys(entry, cls.INTERNAL_KEYS))}"
        raise AmbiguousShapeError('tile set', cls.CANDIDATES, reason)

    @classmethod
    def _from_internal(cls, record: Dict[str, Any], loader: TiledLoader) -> 'TileSet':
        terrains = get_list(record, 'terrains', None)
        tiles = get_list(record, 'tiles', None)
        wang_sets = get_list(record, 'wangsets', None)
        offset = get_dict(record, 'tileoffset', None)

        return cls(
            name=get_str(record, 'name'),
            tile_width=get_int(record, 'tilewidth'),
            tile_height=get_int(record, 'tileheight'),
            tile_count=get_int(record, 'tilecount'),
            columns=get_int(record, 'columns'),
            first_gid=get_int(record, 'firstgid', 0),
            image=get_path(record, 'image', None),
            image_width=get_int(record, 'imagewidth', 0),
            image_height=get_int(record, 'imageheight', 0),
            margin=get_int(record, 'margin', 0),
            spacing=get_int(record, 'spacing', 0),
            tile_offset=Vec2(get_int(offset, 'x', 0), get_int(offset, 'y', 0)) if offset is not None else None,
            transparent_color=get_color(record, 'transparentcolor', Color()),
            terrains=[Terrain.from_json(t) for t in terrains] if terrains is not None else None,
            tiles=[Tile.from_json(t, loader) for t in tiles] if tiles is not None else None,
            wang_sets=[WangSet.from_json(w) for w in wang_sets] if wang_sets is not None else None,
            properties=get_properties(record),
        )

    @classmethod
    def _from_external(cls, first_gid: int, source: Path, loader: TiledLoader) -> 'TileSet':
        path = loader.resolve(source)
        record = loader.read_record(source, 'tile set')
        with loader.errors_in(path):
            tileset = cls._from_internal(record, loader)

        logger.debug(f"loaded tile set {tileset.name!r} from {path} at firstgid {first_gid}")
        # The firstgid stored in the file (if any) is meaningless for a shared set
        return replace(tileset, first_gid=first_gid, source=source)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def contains_gid(self, gid: int) -> bool:
        """True if gid is in [first_gid, first_gid + tile_count)."""
        return self.first_gid <= gid < self.first_gid + self.tile_count

    def get_tile(self, local_id: int) -> Optional[Tile]:
        """Per-tile metadata for a local id, or None if the tile has none."""
        for tile in self.tiles or ():
            if tile.id == local_id:
                return tile
        return None

    def tile_position_on_image(self, local_id: int) -> TileRect:
        """
        Source rectangle of a tile on the spritesheet.

        Parameters:
        -----------
        local_id : int
            Tile id within this set (gid - first_gid)

        Returns:
        --------
        TileRect : (column * tile_width, row * tile_height, tile_width, tile_height)

        Margin and spacing are not applied.
        """
        if self.columns <= 0:
            raise ValueError(f"tile set {self.name!r} has no columns")
        column = local_id % self.columns
        row = local_id // self.columns
        return TileRect(column * self.tile_width, row * self.tile_height,
                        self.tile_width, self.tile_height)
