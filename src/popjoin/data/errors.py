"""Errors raised while reading polygon and point sources."""

from pathlib import Path
from typing import Union


class SourceError(Exception):
    """A source file could not be turned into polygons or points."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class SourceIOError(SourceError):
    """Source file is missing or unreadable."""


class SourceEncodingError(SourceError):
    """Source text could not be decoded."""


class SourceParseError(SourceError):
    """Source content is structurally malformed."""
