"""Tests for the primitive decoders and typed field accessors."""

import base64
import struct
from pathlib import Path

import numpy as np
import pytest

from tiled_json import Color, FormatError, TileFlags, decode_gid, parse_color, parse_data, parse_path
from tiled_json.parsers import get_float, get_int, get_int_list, get_str, has_keys, missing_keys


class TestParseColor:
    """Test hex colour decoding."""

    def test_rgb_gets_full_alpha(self) -> None:
        """Test #RRGGBB implies alpha 255."""
        assert parse_color("#ffffff") == Color(255, 255, 255, 255)
        assert parse_color("#102030") == Color(16, 32, 48, 255)

    def test_alpha_comes_first(self) -> None:
        """Test #AARRGGBB is reordered to (r, g, b, a)."""
        assert parse_color("#fff22a9c") == Color(0xF2, 0x2A, 0x9C, 0xFF)
        assert parse_color("#80203040") == Color(0x20, 0x30, 0x40, 0x80)

    def test_uppercase_digits(self) -> None:
        """Test hex digits are case-insensitive."""
        assert parse_color("#FFAA00") == parse_color("#ffaa00")

    def test_default_is_transparent_black(self) -> None:
        """Test Color() is (0, 0, 0, 0)."""
        assert Color() == (0, 0, 0, 0)

    @pytest.mark.parametrize("text", ["#fff", "ffffff", "#fffff", "#fffffff", "#ffffffffff", "#gg0000"])
    def test_malformed_colour_rejected(self, text: str) -> None:
        """Test wrong length, missing '#' and non-hex digits fail."""
        with pytest.raises(FormatError):
            parse_color(text)

    def test_non_string_rejected(self) -> None:
        """Test a number is not a colour."""
        with pytest.raises(FormatError):
            parse_color(0xFFFFFF)

    def test_error_names_field(self) -> None:
        """Test the offending key is reported."""
        with pytest.raises(FormatError) as excinfo:
            parse_color("#xyz", "backgroundcolor")
        assert excinfo.value.field == "backgroundcolor"
        assert "backgroundcolor" in str(excinfo.value)


class TestParseData:
    """Test tile data decoding."""

    def test_plain_list(self) -> None:
        """Test a JSON array becomes a uint32 array."""
        data = parse_data([1, 2, 0, 4294967295])
        assert data.dtype == np.uint32
        assert data.tolist() == [1, 2, 0, 4294967295]

    def test_base64_matches_plain_list(self) -> None:
        """Test 8 packed little-endian words decode to the same values as the array."""
        values = [1, 2, 3, 0, 256, 65536, 0x80000005, 7]
        payload = base64.b64encode(struct.pack("<8I", *values)).decode("ascii")

        assert np.array_equal(parse_data(payload), parse_data(values))
        assert parse_data(payload).tolist() == values

    def test_base64_is_little_endian(self) -> None:
        """Test bytes 01 02 00 00 decode to 0x0201."""
        payload = base64.b64encode(bytes([1, 2, 0, 0])).decode("ascii")
        assert parse_data(payload).tolist() == [0x0201]

    def test_base64_whitespace_ignored(self) -> None:
        """Test line breaks inside the payload are skipped."""
        assert parse_data("AQAA\nAAIA\nAAA=").tolist() == [1, 2]

    def test_empty_data(self) -> None:
        """Test empty list and empty string give no words."""
        assert parse_data([]).size == 0
        assert parse_data("").size == 0

    def test_partial_word_rejected(self) -> None:
        """Test a byte count that is not a multiple of 4 fails."""
        payload = base64.b64encode(bytes([1, 0, 0, 0, 2, 0])).decode("ascii")
        with pytest.raises(FormatError):
            parse_data(payload)

    def test_invalid_base64_rejected(self) -> None:
        """Test characters outside the base64 alphabet fail."""
        with pytest.raises(FormatError):
            parse_data("AQAA*AAA")

    @pytest.mark.parametrize("value", [[1, -1], [1, 2 ** 32], [1, "2"], [True], [1.5]])
    def test_bad_list_entries_rejected(self, value: list) -> None:
        """Test list entries must be unsigned 32-bit integers."""
        with pytest.raises(FormatError):
            parse_data(value)

    def test_wrong_type_rejected(self) -> None:
        """Test data must be a list or a string."""
        with pytest.raises(FormatError):
            parse_data({"data": []})

    def test_result_is_read_only(self) -> None:
        """Test decoded arrays cannot be modified."""
        data = parse_data([1, 2, 3])
        with pytest.raises(ValueError):
            data[0] = 5


class TestDecodeGid:
    """Test splitting flip flags from raw GIDs."""

    def test_plain_gid(self) -> None:
        """Test a GID without flags is unchanged."""
        assert decode_gid(42) == (42, TileFlags.NONE)

    def test_horizontal_flip(self) -> None:
        """Test the top bit is the horizontal flip."""
        assert decode_gid(0x80000005) == (5, TileFlags.FLIPPED_HORIZONTALLY)

    def test_all_flags(self) -> None:
        """Test every flag bit is recognised."""
        gid, flags = decode_gid(0xF0000001)
        assert gid == 1
        assert flags & TileFlags.FLIPPED_HORIZONTALLY
        assert flags & TileFlags.FLIPPED_VERTICALLY
        assert flags & TileFlags.FLIPPED_DIAGONALLY
        assert flags & TileFlags.ROTATED_HEXAGONAL_120

    def test_numpy_value(self) -> None:
        """Test values taken from a decoded array work."""
        data = parse_data([0x40000003])
        assert decode_gid(data[0]) == (3, TileFlags.FLIPPED_VERTICALLY)


class TestFieldAccess:
    """Test typed field accessors."""

    def test_parse_path(self) -> None:
        """Test paths are kept as written."""
        assert parse_path("../tiles/grass.png") == Path("../tiles/grass.png")
        assert parse_path("tiles/grass.png").name == "grass.png"

    def test_missing_required(self) -> None:
        """Test a missing required key names the key."""
        with pytest.raises(FormatError) as excinfo:
            get_int({}, "width")
        assert excinfo.value.field == "width"

    def test_default_used_when_missing(self) -> None:
        """Test defaults apply to missing and null keys."""
        assert get_int({}, "width", 0) == 0
        assert get_str({"name": None}, "name", "") == ""

    def test_has_keys(self) -> None:
        """Test null values count as missing when picking a shape."""
        record = {"id": 3, "template": None}
        assert has_keys(record, ("id",))
        assert not has_keys(record, ("id", "template"))
        assert missing_keys(record, ("id", "template", "x")) == ["template", "x"]

    def test_bool_is_not_int(self) -> None:
        """Test JSON true is not accepted as an integer."""
        with pytest.raises(FormatError):
            get_int({"width": True}, "width")

    def test_float_accepts_int(self) -> None:
        """Test integral JSON numbers are valid floats."""
        value = get_float({"opacity": 1}, "opacity")
        assert value == 1.0
        assert isinstance(value, float)

    def test_int_list(self) -> None:
        """Test integer lists come back as tuples."""
        assert get_int_list({"wangid": [2, 0, 1]}, "wangid") == (2, 0, 1)
        with pytest.raises(FormatError):
            get_int_list({"wangid": [2, "0"]}, "wangid")
