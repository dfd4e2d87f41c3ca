"""Tests for reference resolution and file reading."""

from pathlib import Path

import pytest

from tiled_json import ExternalReferenceError, FormatError, TiledLoader
from tiled_json.loader import decode_json


class TestResolve:
    """Test how references become paths."""

    def test_without_base_dir(self) -> None:
        """Test references stay relative to the working directory."""
        assert TiledLoader().resolve("tiles/a.json") == Path("tiles/a.json")

    def test_with_base_dir(self, tmp_path: Path) -> None:
        """Test relative references are joined to base_dir."""
        assert TiledLoader(tmp_path).resolve("a.json") == tmp_path / "a.json"

    def test_absolute_unchanged(self, tmp_path: Path) -> None:
        """Test absolute references ignore base_dir."""
        target = tmp_path / "a.json"
        assert TiledLoader("/elsewhere").resolve(target) == target


class TestRead:
    """Test reading JSON files."""

    def test_read_json(self, loader: TiledLoader) -> None:
        """Test a file is read and parsed."""
        assert loader.read_json("chest.json")["type"] == "template"

    def test_read_record_requires_object(self, tmp_path: Path) -> None:
        """Test a file holding a JSON array is rejected."""
        (tmp_path / "list.json").write_text("[1, 2]")
        with pytest.raises(FormatError) as excinfo:
            TiledLoader(tmp_path).read_record("list.json", "tile set")
        assert excinfo.value.path == tmp_path / "list.json"

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file keeps the resolved path and a reason."""
        with pytest.raises(ExternalReferenceError) as excinfo:
            TiledLoader(tmp_path).read_json("gone.json")
        assert excinfo.value.path == tmp_path / "gone.json"
        assert excinfo.value.reason
        assert "gone.json" in str(excinfo.value)

    def test_directory_is_unreadable(self, tmp_path: Path) -> None:
        """Test a directory is reported as a reference error."""
        (tmp_path / "folder").mkdir()
        with pytest.raises(ExternalReferenceError):
            TiledLoader(tmp_path).read_json("folder")


class TestErrors:
    """Test error decoration."""

    def test_decode_json_error(self) -> None:
        """Test syntax errors become FormatError."""
        with pytest.raises(FormatError):
            decode_json(b"{nope")

    def test_errors_in_adds_path(self, loader: TiledLoader) -> None:
        """Test the file is attached to errors raised inside the block."""
        with pytest.raises(FormatError) as excinfo:
            with loader.errors_in("level.json"):
                raise FormatError("bad value", "width")
        assert excinfo.value.path == Path("level.json")
        assert excinfo.value.field == "width"
        assert str(excinfo.value) == "bad value (field 'width', in level.json)"

    def test_errors_in_keeps_inner_path(self, loader: TiledLoader) -> None:
        """Test the innermost file is reported."""
        with pytest.raises(FormatError) as excinfo:
            with loader.errors_in("outer.json"):
                raise FormatError("bad value", path="inner.json")
        assert excinfo.value.path == Path("inner.json")
