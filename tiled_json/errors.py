"""
Error types raised while loading a Tiled JSON map

=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure during a load aborts the whole load. There is no partial map:
a renderer or game should never see a half-decoded tree.

    TiledError
    ├── FormatError            malformed value or wrong JSON shape
    ├── ExternalReferenceError referenced file missing or unreadable
    └── AmbiguousShapeError    record matches none of its candidate shapes

FormatError also derives from ValueError so callers that already catch
ValueError around parsing keep working.

=============================================================================
"""

from pathlib import Path
from typing import Optional, Sequence, Union


class TiledError(Exception):
    """Base class for every error raised by tiled_json."""


class FormatError(TiledError, ValueError):
    """
    A scalar or record does not have the shape the format requires.

    Examples: a colour that is not hex, truncated base64 tile data, a
    property tagged "int" holding a string, an unknown layer type.

    Attributes:
    -----------
    field : str or None
        The JSON key that held the bad value, when known
    path : Path or None
        The file being decoded, when the error came from an external file
    """

    def __init__(self, message: str, field: Optional[str] = None,
                 path: Optional[Union[str, Path]] = None):
        self.message = message
        self.field = field
        self.path = Path(path) if path is not None else None

        details = []
        if field is not None:
            details.append(f"field '{field}'")
        if self.path is not None:
            details.append(f"in {self.path}")
        if details:
            message = f"{message} ({', '.join(details)})"

        super().__init__(message)


class ExternalReferenceError(TiledError):
    """
    A file named by the document could not be opened or read.

    Raised for the map file itself, external tile sets and object
    templates. The offending path is kept on the exception.
    """

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"cannot read '{self.path}': {reason}")


class AmbiguousShapeError(TiledError):
    """A record lacks the keys that identify any of its candidate shapes."""

    def __init__(self, kind: str, candidates: Sequence[str], reason: str = ''):
        self.kind = kind
        self.candidates = tuple(candidates)
        message = f"{kind} record matches none of: {', '.join(self.candidates)}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
