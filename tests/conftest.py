"""Shared fixtures for tiled_json tests."""

from pathlib import Path

import pytest

from tiled_json import TiledLoader

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def data_dir() -> Path:
    """Directory holding the JSON fixture files."""
    return DATA_DIR


@pytest.fixture
def loader() -> TiledLoader:
    """Loader resolving references against the fixture directory."""
    return TiledLoader(DATA_DIR)
