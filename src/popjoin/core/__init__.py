"""Core functionality for popjoin."""

from popjoin.core.geometry import Envelope, Point, Polygon, WeightedPoint
from popjoin.core.join import JoinResult, JoinStrategy, compare_strategies, spatial_join
from popjoin.core.spatial import SpatialIndex

__all__ = [
    "Point",
    "WeightedPoint",
    "Envelope",
    "Polygon",
    "SpatialIndex",
    "JoinStrategy",
    "JoinResult",
    "spatial_join",
    "compare_strategies",
]
