"""Reading polygon and weighted point sources."""

from popjoin.data.errors import (
    SourceEncodingError,
    SourceError,
    SourceIOError,
    SourceParseError,
)
from popjoin.data.manager import DataManager, DataNotAvailableError
from popjoin.data.readers import (
    polygons_from_frame,
    read_features,
    read_polygons,
    read_weighted_points,
    weighted_points_from_frame,
)

__all__ = [
    "DataManager",
    "DataNotAvailableError",
    "SourceError",
    "SourceIOError",
    "SourceEncodingError",
    "SourceParseError",
    "read_features",
    "read_polygons",
    "read_weighted_points",
    "polygons_from_frame",
    "weighted_points_from_frame",
]
