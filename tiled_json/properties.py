"""
Custom properties attached to maps, layers, tile sets, tiles and objects

=============================================================================
JSON FORMAT
=============================================================================

Tiled writes properties as an ordered list of typed records:

    "properties": [
        {"name": "solid",  "type": "bool",  "value": true},
        {"name": "damage", "type": "int",   "value": 10},
        {"name": "tint",   "type": "color", "value": "#ff20c0a0"}
    ]

The "type" tag - not the JSON shape of "value" - decides the Python value:

    tag      value in JSON         TiledValue.value
    -------  --------------------  ----------------------
    bool     true / false          bool
    int      1                     int
    float    1.6 or 1              float
    string   "text"                str
    file     "maps/other.json"     str (path as written)
    color    "#AARRGGBB"           Color
    object   12                    int (referenced object id)
    class    {...}                 dict, left undecoded

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import FormatError
from .parsers import expect_record, get_str, parse_color
from .types import Color


class PropertyType(str, Enum):
    """Type tags Tiled uses for property values."""
    BOOL = 'bool'
    FLOAT = 'float'
    INT = 'int'
    COLOR = 'color'
    STRING = 'string'
    FILE = 'file'
    CLASS = 'class'
    OBJECT = 'object'


@dataclass(frozen=True)
class TiledValue:
    """
    A decoded property value together with its type tag.

    Because PropertyType is a str enum, TiledValue('bool', True) compares
    equal to TiledValue(PropertyType.BOOL, True).
    """
    type: PropertyType                   # Tag selected the conversion
    value: Any                           # Converted Python value
    property_type: Optional[str] = None  # Custom type name for class/enum values


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def convert_value(tag: PropertyType, value: Any, name: str) -> Any:
    """
    Convert a raw JSON value according to its type tag.

    Raises FormatError when the value does not fit the tag.
    """
    if tag == PropertyType.BOOL:
        if isinstance(value, bool):
            return value
    elif tag == PropertyType.INT or tag == PropertyType.OBJECT:
        if _is_number(value) and float(value).is_integer():
            return int(value)
    elif tag == PropertyType.FLOAT:
        if _is_number(value):
            return float(value)
    elif tag == PropertyType.COLOR:
        # Tiled writes "" for a colour property that was never set
        if value == '':
            return Color()
        return parse_color(value, name)
    elif tag == PropertyType.STRING or tag == PropertyType.FILE:
        if isinstance(value, str):
            return value
    elif tag == PropertyType.CLASS:
        if isinstance(value, dict):
            return value

    raise FormatError(f"property '{name}' of type {tag.value} cannot hold {value!r}", 'value')


def parse_property(record: Any) -> Tuple[str, TiledValue]:
    """Decode one {name, type, value} record into (name, TiledValue)."""
    record = expect_record(record, 'property')
    name = get_str(record, 'name')

    # Records without a tag are plain strings (older Tiled versions)
    tag_text = get_str(record, 'type', PropertyType.STRING.value)
    try:
        tag = PropertyType(tag_text)
    except ValueError:
        raise FormatError(f"property '{name}' has unknown type {tag_text!r}", 'type') from None

    if 'value' not in record:
        raise FormatError(f"property '{name}' has no value", 'value')

    value = convert_value(tag, record['value'], name)
    return name, TiledValue(tag, value, get_str(record, 'propertytype', None))


def parse_properties(records: Optional[List[Any]]) -> Dict[str, TiledValue]:
    """
    Decode a property list into a name -> TiledValue mapping.

    Order of the JSON list is preserved in the dict. When a name appears
    twice the later record wins. None or [] gives {}.
    """
    properties: Dict[str, TiledValue] = {}
    if records is None:
        return properties
    if not isinstance(records, list):
        raise FormatError('properties must be a list', 'properties')

    for record in records:
        name, value = parse_property(record)
        properties[name] = value
    return properties


def get_properties(record: Dict[str, Any]) -> Dict[str, TiledValue]:
    """Shortcut for the "properties" key of any record."""
    return parse_properties(record.get('properties'))
