"""Tests for tile set decoding and external tile set resolution."""

from pathlib import Path

import pytest

from tiled_json import (
    AmbiguousShapeError, Color, Ellipse, ExternalReferenceError, FormatError, Frame, Terrain,
    TileRect, TileSet, TiledLoader, Vec2,
)


def make_tileset(**extra) -> dict:
    record = {
        "columns": 8, "firstgid": 1, "image": "tiles.png", "imageheight": 64, "imagewidth": 256,
        "margin": 0, "name": "tiles", "spacing": 0, "tilecount": 16, "tileheight": 32,
        "tilewidth": 32,
    }
    record.update(extra)
    return record


class TestInternalTileSet:
    """Test tile sets embedded in the map."""

    def test_basic_fields(self, loader: TiledLoader) -> None:
        """Test the grid geometry is decoded."""
        tileset = TileSet.from_json(make_tileset(margin=3, spacing=1), loader)

        assert tileset.name == "tiles"
        assert tileset.first_gid == 1
        assert (tileset.tile_width, tileset.tile_height) == (32, 32)
        assert (tileset.tile_count, tileset.columns) == (16, 8)
        assert tileset.image == Path("tiles.png")
        assert (tileset.margin, tileset.spacing) == (3, 1)
        assert tileset.transparent_color == Color()
        assert tileset.source is None

    def test_optional_sections(self, loader: TiledLoader) -> None:
        """Test offset, colour key, terrains and properties."""
        tileset = TileSet.from_json(make_tileset(
            tileoffset={"x": 2, "y": -4},
            transparentcolor="#ff00ff",
            terrains=[{"name": "grass", "tile": 0}],
            properties=[{"name": "kind", "type": "string", "value": "outdoor"}],
        ), loader)

        assert tileset.tile_offset == Vec2(2, -4)
        assert tileset.transparent_color == Color(255, 0, 255, 255)
        assert tileset.terrains == [Terrain("grass", 0)]
        assert tileset.properties["kind"].value == "outdoor"
        assert tileset.tiles is None
        assert tileset.wang_sets is None

    def test_tiles(self, loader: TiledLoader) -> None:
        """Test per-tile metadata."""
        tileset = TileSet.from_json(make_tileset(tiles=[
            {"id": 3, "terrain": [0, 0, -1, 1], "type": "water", "probability": 0.5},
            {"id": 5, "animation": [{"tileid": 5, "duration": 100}, {"tileid": 6, "duration": 80}]},
            {"id": 7, "image": "tree.png", "imagewidth": 40, "imageheight": 64, "class": "tree"},
        ]), loader)

        water = tileset.get_tile(3)
        assert water.terrain == (0, 0, -1, 1)
        assert water.tile_type == "water"
        assert water.probability == 0.5

        assert tileset.get_tile(5).animation == [Frame(5, 100), Frame(6, 80)]

        tree = tileset.get_tile(7)
        assert tree.image == Path("tree.png")
        assert (tree.image_width, tree.image_height) == (40, 64)
        assert tree.tile_type == "tree"

        assert tileset.get_tile(4) is None

    def test_tile_collision_shapes(self, loader: TiledLoader) -> None:
        """Test a tile's object group is decoded into objects."""
        tileset = TileSet.from_json(make_tileset(tiles=[{
            "id": 0,
            "objectgroup": {"draworder": "index", "objects": [
                {"id": 1, "name": "", "rotation": 0, "width": 8, "height": 8, "x": 0, "y": 0, "ellipse": True},
            ]},
        }]), loader)

        shapes = tileset.tiles[0].object_group.objects
        assert shapes[0].object_type == Ellipse()

    def test_terrain_needs_four_corners(self, loader: TiledLoader) -> None:
        """Test a terrain list of the wrong length is a FormatError on "terrain"."""
        with pytest.raises(FormatError) as excinfo:
            TileSet.from_json(make_tileset(tiles=[{"id": 0, "terrain": [0, 1, 2]}]), loader)
        assert excinfo.value.field == "terrain"

    def test_bad_colour_key(self, loader: TiledLoader) -> None:
        """Test a bad value in an embedded set is reported as itself."""
        with pytest.raises(FormatError) as excinfo:
            TileSet.from_json(make_tileset(transparentcolor="#zzzzzz"), loader)
        assert isinstance(excinfo.value, ValueError)
        assert excinfo.value.field == "transparentcolor"

    def test_image_collection(self, loader: TiledLoader) -> None:
        """Test a tile set without a spritesheet still decodes."""
        record = make_tileset(columns=0, tiles=[{"id": 0, "image": "rock.png"}])
        for key in ("image", "imagewidth", "imageheight"):
            del record[key]

        tileset = TileSet.from_json(record, loader)
        assert tileset.image is None
        assert tileset.tiles[0].image == Path("rock.png")

    def test_wang_sets(self, loader: TiledLoader) -> None:
        """Test Wang sets are decoded as written."""
        tileset = TileSet.from_json(make_tileset(wangsets=[{
            "cornercolors": [{"color": "#d31313", "name": "Rails", "probability": 1, "tile": 18}],
            "edgecolors": [],
            "name": "rails",
            "tile": 42,
            "wangtiles": [{"dflip": False, "hflip": True, "tileid": 0, "vflip": False,
                           "wangid": [2, 0, 1, 0, 1, 0, 2, 0]}],
        }]), loader)

        wang = tileset.wang_sets[0]
        assert wang.name == "rails"
        assert wang.tile == 42
        assert wang.corner_colors[0].color == Color(0xD3, 0x13, 0x13, 255)
        assert wang.corner_colors[0].probability == 1.0
        assert wang.edge_colors == []
        assert wang.wang_tiles[0].wang_id == (2, 0, 1, 0, 1, 0, 2, 0)
        assert wang.wang_tiles[0].h_flip is True

    def test_newer_wang_layout(self, loader: TiledLoader) -> None:
        """Test the single colour list and missing flip flags of newer exports."""
        tileset = TileSet.from_json(make_tileset(wangsets=[{
            "colors": [{"color": "#00ff00", "name": "Grass", "probability": 1, "tile": -1}],
            "name": "terrain",
            "tile": -1,
            "wangtiles": [{"tileid": 4, "wangid": [1, 1, 1, 1, 1, 1, 1, 1]}],
        }]), loader)

        wang = tileset.wang_sets[0]
        assert wang.colors[0].name == "Grass"
        assert wang.corner_colors == []
        assert wang.wang_tiles[0].d_flip is False


class TestExternalTileSet:
    """Test tile sets stored in their own file."""

    def test_first_gid_from_reference(self, loader: TiledLoader) -> None:
        """Test the referencing firstgid replaces the file's own."""
        tileset = TileSet.from_json({"firstgid": 1, "source": "props.json"}, loader)

        assert tileset.first_gid == 1
        assert tileset.name == "props"
        assert tileset.source == Path("props.json")
        assert tileset.properties["shared"].value is True

    def test_external_tiles(self, loader: TiledLoader) -> None:
        """Test per-tile data of the external file is kept."""
        tileset = TileSet.from_json({"firstgid": 11, "source": "props.json"}, loader)
        torch = tileset.get_tile(1)

        assert torch.tile_type == "torch"
        assert torch.animation == [Frame(1, 100), Frame(2, 150)]
        assert torch.object_group.objects[0].object_type == Ellipse()

    def test_missing_file(self, loader: TiledLoader) -> None:
        """Test an unreadable source names the path."""
        with pytest.raises(ExternalReferenceError) as excinfo:
            TileSet.from_json({"firstgid": 1, "source": "missing.json"}, loader)
        assert excinfo.value.path.name == "missing.json"

    def test_malformed_file(self, loader: TiledLoader) -> None:
        """Test a bad value in the external file reports file and field."""
        with pytest.raises(FormatError) as excinfo:
            TileSet.from_json({"firstgid": 1, "source": "broken_tileset.json"}, loader)
        assert excinfo.value.path.name == "broken_tileset.json"
        assert excinfo.value.field == "transparentcolor"

    def test_invalid_json_file(self, loader: TiledLoader) -> None:
        """Test a source that is not JSON is a FormatError."""
        with pytest.raises(FormatError) as excinfo:
            TileSet.from_json({"firstgid": 1, "source": "not_json.json"}, loader)
        assert excinfo.value.path.name == "not_json.json"

    def test_neither_shape(self, loader: TiledLoader) -> None:
        """Test an entry with neither a definition nor a source fails."""
        with pytest.raises(AmbiguousShapeError) as excinfo:
            TileSet.from_json({"firstgid": 1, "name": "half"}, loader)
        assert excinfo.value.candidates == ("internal", "external")
        assert "tilewidth" in str(excinfo.value)

    def test_definition_wins_over_source(self, loader: TiledLoader) -> None:
        """Test an entry with both a full definition and a source is embedded."""
        tileset = TileSet.from_json(make_tileset(source="props.json"), loader)
        assert tileset.name == "tiles"
        assert tileset.source is None


class TestTileSetGeometry:
    """Test GID ranges and source rectangles."""

    def test_contains_gid(self, loader: TiledLoader) -> None:
        """Test the range is [first_gid, first_gid + tile_count)."""
        tileset = TileSet.from_json(make_tileset(firstgid=11, tilecount=5), loader)
        assert not tileset.contains_gid(10)
        assert tileset.contains_gid(11)
        assert tileset.contains_gid(15)
        assert not tileset.contains_gid(16)

    def test_tile_position_on_image(self, loader: TiledLoader) -> None:
        """Test columns wrap into rows, scaled by tile width and height."""
        tileset = TileSet.from_json(make_tileset(columns=4, tilewidth=16, tileheight=24), loader)

        assert tileset.tile_position_on_image(0) == TileRect(0, 0, 16, 24)
        assert tileset.tile_position_on_image(3) == TileRect(48, 0, 16, 24)
        assert tileset.tile_position_on_image(5) == TileRect(16, 24, 16, 24)

    def test_no_columns(self, loader: TiledLoader) -> None:
        """Test image collections have no source rectangles."""
        tileset = TileSet.from_json(make_tileset(columns=0), loader)
        with pytest.raises(ValueError):
            tileset.tile_position_on_image(0)
