"""
Primitive decoders for Tiled JSON values

=============================================================================
WHAT LIVES HERE
=============================================================================

The leaves of the decoding tree. Everything else in tiled_json is built from
these functions:

- parse_color:  "#RRGGBB" / "#AARRGGBB" -> Color(r, g, b, a)
- parse_data:   [1, 2, 3] or "AQAAAAIAAAADAAAA" -> uint32 GID array
- parse_path:   "tiles/grass.png" -> Path
- decode_gid:   raw GID with flip bits -> (gid, TileFlags)

plus a family of typed field accessors (get_int, get_str, ...) that every
record decoder uses, so a wrong JSON shape always surfaces as a FormatError
naming the offending key.

=============================================================================
TILE DATA ENCODINGS
=============================================================================

Tiled JSON stores layer data in one of two ways:

    "data": [1, 2, 1, 2, 3, 1, ...]             plain array (csv export)
    "data": "AQAAAAIAAAABAAAA..."               base64 of packed words

The base64 form is a sequence of unsigned 32-bit little-endian integers:

    bytes:  01 00 00 00 | 02 00 00 00 | 01 00 00 00
    words:       1      |      2      |      1

Tiled can also compress the packed bytes (zlib, gzip, zstd) before base64
encoding. Decompression is NOT supported: compressed data decodes to
meaningless words, or fails the 4-byte length check.

=============================================================================
"""

import base64
import binascii
import string
from enum import Enum, IntFlag
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import numpy as np

from .errors import FormatError
from .types import Color

REQUIRED = object()                      # Sentinel: field has no default

_HEX_DIGITS = frozenset(string.hexdigits)
_U32_MAX = 0xFFFFFFFF

E = TypeVar('E', bound=Enum)


# =============================================================================
# COLOURS
# =============================================================================

def parse_color(text: Any, field: Optional[str] = None) -> Color:
    """
    Decode a Tiled hex colour.

    Tiled puts alpha FIRST:

        #AARRGGBB   -> Color(RR, GG, BB, AA)
        #RRGGBB     -> Color(RR, GG, BB, 255)

    Raises:
    -------
    FormatError : not a string, no leading '#', wrong length, or non-hex digit
    """
    if not isinstance(text, str):
        raise FormatError(f"colour must be a string, got {type(text).__name__}", field)
    if len(text) < 7 or not text.startswith('#'):
        raise FormatError(f"colour {text!r} is not in #RRGGBB or #AARRGGBB form", field)

    digits = text[1:]
    if len(digits) == 6:
        # No alpha channel written means fully opaque
        digits = 'ff' + digits
    elif len(digits) != 8:
        raise FormatError(f"colour {text!r} has {len(digits)} digits, expected 6 or 8", field)

    if not _HEX_DIGITS.issuperset(digits):
        raise FormatError(f"colour {text!r} contains non-hex digits", field)

    alpha, red, green, blue = (int(digits[i:i + 2], 16) for i in range(0, 8, 2))
    return Color(red, green, blue, alpha)


# =============================================================================
# TILE DATA
# =============================================================================

def parse_data(value: Any, field: str = 'data') -> np.ndarray:
    """
    Decode layer or chunk tile data into a read-only uint32 array.

    Parameters:
    -----------
    value : list of int or str
        Either the GIDs themselves or a base64 string of packed
        little-endian uint32 words
    field : str
        Key name used in error messages

    Returns:
    --------
    np.ndarray : 1-D, dtype uint32, row-major (index = y * width + x)
    """
    if isinstance(value, str):
        words = _decode_base64_words(value, field)
    elif isinstance(value, list):
        for gid in value:
            if not _is_int(gid) or not 0 <= gid <= _U32_MAX:
                raise FormatError(f"tile data entry {gid!r} is not an unsigned 32-bit integer",
                                  field)
        words = np.array(value, dtype=np.uint32)
    else:
        raise FormatError(f"tile data must be a list or a base64 string, "
                          f"got {type(value).__name__}", field)

    words.setflags(write=False)
    return words


def _decode_base64_words(text: str, field: str) -> np.ndarray:
    payload = ''.join(text.split())
    # Some exporters drop the trailing '=' padding
    payload += '=' * (-len(payload) % 4)
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FormatError(f"invalid base64 tile data: {exc}", field) from exc

    if len(raw) % 4:
        raise FormatError(f"packed tile data is {len(raw)} bytes, "
                          f"not a whole number of 32-bit words", field)

    # '<u4' pins little-endian regardless of the host byte order
    return np.frombuffer(raw, dtype='<u4').astype(np.uint32)


# =============================================================================
# GID FLAGS
# =============================================================================

class TileFlags(IntFlag):
    """
    Transformation bits Tiled stores in the top of a raw GID.

    A GID read from layer data may have these set when the tile was
    flipped or rotated in the editor. Mask them off before looking up
    the tile set.
    """
    NONE = 0
    ROTATED_HEXAGONAL_120 = 0x10000000
    FLIPPED_DIAGONALLY = 0x20000000
    FLIPPED_VERTICALLY = 0x40000000
    FLIPPED_HORIZONTALLY = 0x80000000


_FLAG_BITS = 0xF0000000
_GID_BITS = 0x0FFFFFFF


def decode_gid(raw_gid: int) -> Tuple[int, TileFlags]:
    """
    Split a raw GID into the tile GID and its transformation flags.

        decode_gid(0x80000005) -> (5, TileFlags.FLIPPED_HORIZONTALLY)
    """
    raw_gid = int(raw_gid)
    return raw_gid & _GID_BITS, TileFlags(raw_gid & _FLAG_BITS)


# =============================================================================
# PATHS
# =============================================================================

def parse_path(text: Any, field: Optional[str] = None) -> Path:
    """Return the string as a Path. No existence check, no normalisation."""
    if not isinstance(text, str):
        raise FormatError(f"path must be a string, got {type(text).__name__}", field)
    return Path(text)


# =============================================================================
# TYPED FIELD ACCESS
# =============================================================================
#
# Every getter takes the record, the key, and an optional default. Without a
# default the key is required. A present key whose JSON type is wrong is
# always an error, even when a default exists.

def _is_int(value: Any) -> bool:
    # bool is a subclass of int in Python; JSON true/false are not integers
    return isinstance(value, int) and not isinstance(value, bool)


def _lookup(record: Dict[str, Any], key: str, default: Any) -> Tuple[bool, Any]:
    if key not in record or record[key] is None:
        if default is REQUIRED:
            raise FormatError('missing required value', key)
        return False, default
    return True, record[key]


def expect_record(value: Any, what: str, field: Optional[str] = None) -> Dict[str, Any]:
    """Check that a JSON value is an object (dict)."""
    if not isinstance(value, dict):
        raise FormatError(f"{what} must be a JSON object, got {type(value).__name__}", field)
    return value


def get_int(record: Dict[str, Any], key: str, default: Any = REQUIRED) -> Any:
    found, value = _lookup(record, key, default)
    if found and not _is_int(value):
        raise FormatError(f"expected an integer, got {value!r}", key)
    return value


def get_float(record: Dict[str, Any], key: str, default: Any = REQUIRED) -> Any:
    found, value = _lookup(record, key, default)
    if not found:
        return value
    if not (_is_int(value) or isinstance(value, float)):
        raise FormatError(f"expected a number, got {value!r}", key)
    return float(value)


def get_bool(record: Dict[str, Any], key: str, default: Any = REQUIRED) -> Any:
    found, value = _lookup(record, key, default)
    if found and not isinstance(value, bool):
        raise FormatError(f"expected true or false, got {value!r}", key)
    return value


def get_str(record: Dict[str, Any], key: str, default: Any = REQUIRED) -> Any:
    found, value = _lookup(record, key, default)
    if found and not isinstance(value, str):
        raise FormatError(f"expected a string, got {value!r}", key)
    return value


def get_list(record: Dict[str, Any], key: str, default: Any = REQUIRED) -> Any:
    found, value = _lookup(record, key, default)
    if found and not isinstance(value, list):
        raise FormatError(f"expected a list, got {type(value).__name__}", key)
    return value


def get_dict(record: Dict[str, Any], key: str, default: Any = REQUIRED) -> Any:
    found, value = _lookup(record, key, default)
    if found and not isinstance(value, dict):
        raise FormatError(f"expected an object, got {type(value).__name__}", key)
    return value


def get_color(record: Dict[str, Any], key: str, default: Any = REQUIRED) -> Any:
    found, value = _lookup(record, key, default)
    return parse_color(value, key) if found else value


def get_path(record: Dict[str, Any], key: str, default: Any = REQUIRED) -> Any:
    found, value = _lookup(record, key, default)
    return parse_path(value, key) if found else value


def get_int_list(record: Dict[str, Any], key: str, default: Any = REQUIRED) -> Any:
    """A list whose every entry must be an integer; returned as a tuple."""
    values = get_list(record, key, default)
    if values is default:
        return values
    ints: List[int] = []
    for value in values:
        if not _is_int(value):
            raise FormatError(f"expected a list of integers, found {value!r}", key)
        ints.append(value)
    return tuple(ints)


def get_enum(record: Dict[str, Any], key: str, enum_type: Type[E], default: Any = REQUIRED) -> Any:
    """A string that must be one of the values of a str-valued Enum."""
    found, value = _lookup(record, key, default)
    if not found:
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ', '.join(member.value for member in enum_type)
        raise FormatError(f"{value!r} is not one of: {allowed}", key) from None


def has_keys(record: Dict[str, Any], keys: Tuple[str, ...]) -> bool:
    """True if every key is present with a non-null value."""
    return all(record.get(key) is not None for key in keys)


def missing_keys(record: Dict[str, Any], keys: Tuple[str, ...]) -> List[str]:
    return [key for key in keys if record.get(key) is None]
