"""
popjoin: Attribute weighted points to the polygons that contain them.

Sums point weights (e.g. population centers) per region polygon (e.g.
counties grouped by state) using one of four interchangeable lookup
strategies, and checks that the strategies agree:

- naive: test every polygon
- envelope: skip polygons whose bounding box misses the point
- hierarchical: skip whole states first, then counties
- index: query an R-tree of polygon bounding boxes
"""

from popjoin.core.geometry import (
    Envelope,
    MalformedGeometryError,
    Point,
    Polygon,
    WeightedPoint,
    point_in_ring,
)
from popjoin.core.hierarchy import (
    MissingParentError,
    RegionGroup,
    build_parent_envelopes,
    build_polygon_envelopes,
    build_region_groups,
    find_parent_id,
    group_by_parent,
    make_region_id,
)
from popjoin.core.join import (
    JoinResult,
    JoinStrategy,
    StrategyDivergenceError,
    build_finder,
    check_totals,
    compare_strategies,
    merge_totals,
    run_strategy,
    spatial_join,
    spatial_join_chunked,
)
from popjoin.core.spatial import SpatialIndex
from popjoin.data import (
    DataManager,
    DataNotAvailableError,
    SourceEncodingError,
    SourceError,
    SourceIOError,
    SourceParseError,
    polygons_from_frame,
    read_polygons,
    read_weighted_points,
    weighted_points_from_frame,
)

__version__ = "0.1.0"
__all__ = [
    # Geometry
    "Point",
    "WeightedPoint",
    "Envelope",
    "Polygon",
    "point_in_ring",
    # Hierarchy
    "RegionGroup",
    "make_region_id",
    "find_parent_id",
    "group_by_parent",
    "build_polygon_envelopes",
    "build_parent_envelopes",
    "build_region_groups",
    # Index and join
    "SpatialIndex",
    "JoinStrategy",
    "JoinResult",
    "build_finder",
    "spatial_join",
    "spatial_join_chunked",
    "merge_totals",
    "run_strategy",
    "check_totals",
    "compare_strategies",
    # Data sources
    "DataManager",
    "read_polygons",
    "read_weighted_points",
    "polygons_from_frame",
    "weighted_points_from_frame",
    # Exceptions
    "MalformedGeometryError",
    "MissingParentError",
    "StrategyDivergenceError",
    "SourceError",
    "SourceIOError",
    "SourceEncodingError",
    "SourceParseError",
    "DataNotAvailableError",
]
