"""
Map objects and the rules that decide what shape an object is

=============================================================================
OBJECT SHAPES
=============================================================================

Tiled JSON has no "shape" field. The shape of an object is implied by which
optional keys it carries:

    {"ellipse": true, ...}                       -> Ellipse
    {"point": true, ...}                         -> Point
    {"polygon": [{"x": 0, "y": 0}, ...], ...}    -> Polygon
    {"polyline": [{"x": 0, "y": 0}, ...], ...}   -> PolyLine
    {"text": {"text": "Hello", ...}, ...}        -> Text
    none of the above                            -> None (plain rectangle)

The keys are checked in exactly that order and the first one that fits
wins. A key that is present but does not have the right JSON shape is
skipped, so an odd record degrades to a rectangle instead of failing.

    {"ellipse": false, "polygon": [...]}         -> None

A false ellipse/point flag is a definite answer: the object is a plain
rectangle and the remaining keys are not consulted.

=============================================================================
TEMPLATES
=============================================================================

An object can be stored in a separate template file and only referenced
from the map:

    map:       {"id": 12, "template": "chest.json", "x": 64, "y": 32}
    chest.json {"type": "template", "object": {"name": "chest", "width": 16,
                "height": 16, "rotation": 0, "gid": 5, ...}}

The finished MapObject takes everything from the template except:
- id          always from the map (ids are unique per map, not per template)
- x, y        from the map, default 0
- properties  from the map, default empty
- visible     from the map when present

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from enum import IntFlag
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .errors import AmbiguousShapeError
from .loader import TiledLoader
from .parsers import (
    expect_record, get_bool, get_color, get_dict, get_float, get_int, get_path, get_str, has_keys,
    missing_keys,
)
from .properties import TiledValue, get_properties
from .types import Color, Vec2

logger = logging.getLogger(__name__)

TEXT_COLOR = Color(0, 0, 0, 255)        # Text is opaque black unless told otherwise


# =============================================================================
# SHAPE VARIANTS
# =============================================================================

class TextStyle(IntFlag):
    """Style bits folded into Text.flags."""
    NONE = 0
    BOLD = 1
    ITALIC = 2
    WRAP = 4


@dataclass(frozen=True)
class Ellipse:
    """Ellipse inscribed in the object's bounding box."""


@dataclass(frozen=True)
class Point:
    """Single position; width and height are meaningless."""


@dataclass(frozen=True)
class Polygon:
    """Closed shape. Points are relative to the object's x, y."""
    points: Tuple[Vec2, ...]


@dataclass(frozen=True)
class PolyLine:
    """Open line strip. Points are relative to the object's x, y."""
    points: Tuple[Vec2, ...]


@dataclass(frozen=True)
class Text:
    flags: TextStyle                     # BOLD | ITALIC | WRAP
    color: Color                         # Opaque black by default
    text: str                            # String to draw
    font_family: str = 'sans-serif'
    pixel_size: int = 16
    halign: str = 'left'                 # left, center, right, justify
    valign: str = 'top'                  # top, center, bottom

    @property
    def bold(self) -> bool:
        return bool(self.flags & TextStyle.BOLD)

    @property
    def italic(self) -> bool:
        return bool(self.flags & TextStyle.ITALIC)

    @property
    def wrap(self) -> bool:
        return bool(self.flags & TextStyle.WRAP)


@dataclass(frozen=True)
class Template:
    """Reference to an object template file, replaced during loading."""
    path: Path


ObjectType = Union[Ellipse, Point, Polygon, PolyLine, Text, Template]

# Sentinel for "this candidate does not apply, try the next one"
_NO_MATCH = object()


# -----------------------------------------------------------------------------
# Shape candidates
# -----------------------------------------------------------------------------

def _flag_shape(record: Dict[str, Any], key: str, shape: type) -> Any:
    value = record.get(key)
    if not isinstance(value, bool):
        return _NO_MATCH
    return shape() if value else None


def _points(value: Any) -> Any:
    if not isinstance(value, list):
        return _NO_MATCH

    points = []
    for item in value:
        if not isinstance(item, dict):
            return _NO_MATCH
        x, y = item.get('x'), item.get('y')
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (x, y)):
            return _NO_MATCH
        points.append(Vec2(x, y))
    return tuple(points)


def _polygon(record: Dict[str, Any]) -> Any:
    points = _points(record.get('polygon'))
    return points if points is _NO_MATCH else Polygon(points)


def _polyline(record: Dict[str, Any]) -> Any:
    points = _points(record.get('polyline'))
    return points if points is _NO_MATCH else PolyLine(points)


def _text(record: Dict[str, Any]) -> Any:
    text = record.get('text')
    if not isinstance(text, dict) or not isinstance(text.get('text'), str):
        return _NO_MATCH

    flags = TextStyle.NONE
    if get_bool(text, 'bold', False):
        flags |= TextStyle.BOLD
    if get_bool(text, 'italic', False):
        flags |= TextStyle.ITALIC
    if get_bool(text, 'wrap', False):
        flags |= TextStyle.WRAP

    return Text(
        flags=flags,
        color=get_color(text, 'color', TEXT_COLOR),
        text=text['text'],
        font_family=get_str(text, 'fontfamily', 'sans-serif'),
        pixel_size=get_int(text, 'pixelsize', 16),
        halign=get_str(text, 'halign', 'left'),
        valign=get_str(text, 'valign', 'top'),
    )


_SHAPE_CANDIDATES = (
    lambda record: _flag_shape(record, 'ellipse', Ellipse),
    lambda record: _flag_shape(record, 'point', Point),
    _polygon,
    _polyline,
    _text,
)


def parse_object_type(record: Dict[str, Any]) -> Optional[ObjectType]:
    """
    Work out the shape of an object record.

    Returns Ellipse, Point, Polygon, PolyLine, Text, or None for a plain
    rectangle. Never raises for a missing or unrecognised shape; only a
    recognised text record with a bad field raises FormatError.
    """
    for candidate in _SHAPE_CANDIDATES:
        shape = candidate(record)
        if shape is not _NO_MATCH:
            return shape
    return None


# =============================================================================
# MAP OBJECT
# =============================================================================

@dataclass(frozen=True)
class MapObject:
    """
    Object placed in an object layer or in a tile's collision group.

    Objects are used for:
    - Collision shapes (rectangles, ellipses, polygons)
    - Spawn points
    - Trigger areas
    - Entity placement (tile objects, which carry a gid)
    - Labels (text objects)
    """
    id: Optional[int]                                # Unique per map; absent in templates
    name: str                                        # Object name
    custom_type: str                                 # "type" (or "class" since Tiled 1.9)
    x: float                                         # X position in pixels
    y: float                                         # Y position in pixels
    width: float                                     # Width (0 for points)
    height: float                                    # Height (0 for points)
    rotation: float                                  # Degrees, clockwise
    gid: Optional[int] = None                        # Raw tile GID for tile objects
    visible: bool = True                             # Shown in the editor?
    properties: Dict[str, TiledValue] = field(default_factory=dict)
    object_type: Optional[ObjectType] = None         # None = rectangle

    CANDIDATES = ('inline', 'template')
    INLINE_KEYS = ('name', 'rotation', 'width', 'height')
    TEMPLATE_KEYS = ('id', 'template')

    @classmethod
    def from_json(cls, record: Any, loader: TiledLoader) -> 'MapObject':
        """
        Decode one object record, following a template reference if needed.

        The shape is picked from the keys present: a complete object has
        name, rotation, width and height and no template; a template
        reference has id and template. Value errors inside the chosen
        shape are reported as FormatError.

        Raises:
        -------
        AmbiguousShapeError : neither a complete object nor a template reference
        ExternalReferenceError : template file missing or unreadable
        FormatError : bad value, or a malformed template file
        """
        record = expect_record(record, 'object')

        if record.get('template') is None and has_keys(record, cls.INLINE_KEYS):
            return cls._from_inline(record)
        if has_keys(record, cls.TEMPLATE_KEYS):
            return cls._from_template(record, loader)

        if record.get('template') is not None:
            reason = f"template reference missing {', '.join(missing_keys(record, cls.TEMPLATE_KEYS))}"
        else:
            reason = f"object missing {', '.join(missing_keys(record, cls.INLINE_KEYS))}"
        raise AmbiguousShapeError('object', cls.CANDIDATES, reason)

    @classmethod
    def _from_inline(cls, record: Dict[str, Any]) -> 'MapObject':
        # -----------------------------------------------------------------
        # A complete object always has these four
        # -----------------------------------------------------------------
        name = get_str(record, 'name')
        rotation = get_float(record, 'rotation')
        width = get_float(record, 'width')
        height = get_float(record, 'height')

        # -----------------------------------------------------------------
        # "type" was renamed "class" in Tiled 1.9
        # -----------------------------------------------------------------
        custom_type = get_str(record, 'type', None)
        if custom_type is None:
            custom_type = get_str(record, 'class', '')

        return cls(
            id=get_int(record, 'id', None),
            name=name,
            custom_type=custom_type,
            x=get_float(record, 'x', 0.0),
            y=get_float(record, 'y', 0.0),
            width=width,
            height=height,
            rotation=rotation,
            gid=get_int(record, 'gid', None),
            visible=get_bool(record, 'visible', True),
            properties=get_properties(record),
            object_type=parse_object_type(record),
        )

    @classmethod
    def _from_template(cls, record: Dict[str, Any], loader: TiledLoader) -> 'MapObject':
        reference = Template(get_path(record, 'template'))
        path = loader.resolve(reference.path)

        document = loader.read_record(reference.path, 'template')
        with loader.errors_in(path):
            base = cls._from_inline(get_dict(document, 'object'))

        logger.debug(f"object {record.get('id')} uses template {path}")
        return cls(
            id=get_int(record, 'id'),
            name=base.name,
            custom_type=base.custom_type,
            x=get_float(record, 'x', 0.0),
            y=get_float(record, 'y', 0.0),
            width=base.width,
            height=base.height,
            rotation=base.rotation,
            gid=base.gid,
            visible=get_bool(record, 'visible', base.visible),
            properties=get_properties(record),
            object_type=base.object_type,
        )
