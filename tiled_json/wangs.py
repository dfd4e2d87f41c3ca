"""
Wang sets: edge and corner colour metadata for automatic tile selection

Tiled uses Wang sets when filling or brushing to pick tiles whose edges and
corners match their neighbours. The data is decoded as written; nothing
here interprets it.

Two layouts exist in the wild:

    Tiled < 1.5   "cornercolors": [...], "edgecolors": [...]
    Tiled >= 1.5  "colors": [...], and wang tiles without flip flags

Both decode into the same WangSet; lists the file does not have are empty.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .parsers import expect_record, get_bool, get_color, get_float, get_int, get_int_list, get_list, get_str
from .properties import TiledValue, get_properties
from .types import Color


@dataclass(frozen=True)
class WangColor:
    color: Color
    name: str
    probability: float = 1.0             # Weight used when randomizing
    tile: int = -1                       # Local tile id shown for this colour, -1 = none

    @classmethod
    def from_json(cls, record: Any) -> 'WangColor':
        record = expect_record(record, 'wang colour')
        return cls(
            color=get_color(record, 'color'),
            name=get_str(record, 'name'),
            probability=get_float(record, 'probability', 1.0),
            tile=get_int(record, 'tile', -1),
        )


@dataclass(frozen=True)
class WangTile:
    tile_id: int                         # Local tile id
    wang_id: Tuple[int, ...]             # Colour index per edge/corner, clockwise from top
    d_flip: bool = False
    h_flip: bool = False
    v_flip: bool = False

    @classmethod
    def from_json(cls, record: Any) -> 'WangTile':
        record = expect_record(record, 'wang tile')
        return cls(
            tile_id=get_int(record, 'tileid'),
            wang_id=get_int_list(record, 'wangid'),
            d_flip=get_bool(record, 'dflip', False),
            h_flip=get_bool(record, 'hflip', False),
            v_flip=get_bool(record, 'vflip', False),
        )


@dataclass(frozen=True)
class WangSet:
    """One named set of Wang colours and the tiles that use them."""
    name: str
    tile: int                                        # Local tile id representing the set
    corner_colors: List[WangColor] = field(default_factory=list)
    edge_colors: List[WangColor] = field(default_factory=list)
    colors: List[WangColor] = field(default_factory=list)
    wang_tiles: List[WangTile] = field(default_factory=list)
    properties: Dict[str, TiledValue] = field(default_factory=dict)

    @classmethod
    def from_json(cls, record: Any) -> 'WangSet':
        record = expect_record(record, 'wang set')

        def colors(key):
            return [WangColor.from_json(c) for c in get_list(record, key, [])]

        return cls(
            name=get_str(record, 'name'),
            tile=get_int(record, 'tile', -1),
            corner_colors=colors('cornercolors'),
            edge_colors=colors('edgecolors'),
            colors=colors('colors'),
            wang_tiles=[WangTile.from_json(t) for t in get_list(record, 'wangtiles', [])],
            properties=get_properties(record),
        )
