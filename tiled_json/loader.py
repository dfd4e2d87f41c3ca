"""
Reference context and file access for a single map load

=============================================================================
RELATIVE REFERENCES
=============================================================================

A map can point at other files:

    "tilesets": [{"firstgid": 1, "source": "terrain.json"}]
    "objects":  [{"id": 7, "template": "chest.json", "x": 64, "y": 32}]

These paths are resolved against the loader's base_dir. When no base_dir is
given they are resolved against the process working directory. They are
NOT resolved against the directory of the file that contains them:

    cwd = /game
    load_map_from_path("maps/level1.json")
        "terrain.json" -> /game/terrain.json      (not /game/maps/terrain.json)

Pass base_dir="maps" to get the other behaviour.

=============================================================================
FILE HANDLES
=============================================================================

read_json() opens, reads and closes the file before any decoding happens,
so no handle outlives the step that needed it. A reference that points at
another reference is resolved by a new read_json() call further down the
same depth-first descent.

=============================================================================
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import orjson

from .errors import ExternalReferenceError, FormatError
from .parsers import expect_record

PathLike = Union[str, Path]


class TiledLoader:
    """
    Resolves and reads the files a Tiled document refers to.

    One loader is created per top-level load and handed down to every
    decoder that may need to follow a reference (tile sets, templates).
    It holds no cache and no state besides base_dir.
    """

    def __init__(self, base_dir: Optional[PathLike] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def resolve(self, reference: PathLike) -> Path:
        """Turn a reference as written in the document into a filesystem path."""
        path = Path(reference)
        if self.base_dir is None or path.is_absolute():
            return path
        return self.base_dir / path

    def read_json(self, reference: PathLike) -> Any:
        """
        Read and parse one JSON file.

        Raises:
        -------
        ExternalReferenceError : file missing or unreadable
        FormatError : file is not valid JSON
        """
        path = self.resolve(reference)
        try:
            with path.open('rb') as f:
                raw = f.read()
        except OSError as exc:
            raise ExternalReferenceError(path, exc.strerror or str(exc)) from exc

        self.logger.debug(f"read {len(raw)} bytes from {path}")
        return decode_json(raw, path)

    def read_record(self, reference: PathLike, what: str) -> Dict[str, Any]:
        """read_json() for files whose root must be a JSON object."""
        path = self.resolve(reference)
        with self.errors_in(path):
            return expect_record(self.read_json(reference), what)

    @contextmanager
    def errors_in(self, path: PathLike) -> Iterator[None]:
        """
        Tag FormatErrors raised inside the block with the file being decoded.

        Errors that already name a file (from a deeper reference) are left
        untouched so the innermost file is reported.
        """
        try:
            yield
        except FormatError as exc:
            if exc.path is not None:
                raise
            raise FormatError(exc.message, exc.field, path) from exc


def decode_json(raw: Union[bytes, str], path: Optional[PathLike] = None) -> Any:
    """Parse JSON text, reporting syntax errors as FormatError."""
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise FormatError(f"invalid JSON: {exc}", path=path) from exc
