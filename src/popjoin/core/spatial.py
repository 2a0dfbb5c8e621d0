"""Spatial index for envelope-intersection queries over polygons."""

import logging
from typing import Iterable, List, Tuple

import numpy as np
import shapely
from shapely import STRtree

from popjoin.core.geometry import Envelope, Point, Polygon

logger = logging.getLogger(__name__)


class SpatialIndex:
    """
    Static R-tree over polygon envelopes.

    Bulk-loaded once with the Sort-Tile-Recursive algorithm (shapely's
    STRtree, the tree behind GeoPandas ``sindex``). The polygon set cannot
    change after construction, so a single index can be shared read-only
    between any number of queries.

    Queries are a filter only: every polygon containing a point is returned,
    along with polygons whose envelope merely overlaps it. Run the exact
    containment test on each candidate.
    """

    def __init__(self, polygons: Iterable[Polygon], node_capacity: int = 10):
        """
        Bulk-load the index.

        Args:
            polygons: Polygons to index
            node_capacity: Maximum number of children per tree node
        """
        self._polygons: Tuple[Polygon, ...] = tuple(polygons)

        bounds = np.array(
            [p.envelope.bounds for p in self._polygons], dtype=float
        ).reshape(-1, 4)
        boxes = shapely.box(bounds[:, 0], bounds[:, 1], bounds[:, 2], bounds[:, 3])
        self._tree = STRtree(boxes, node_capacity=node_capacity)

        logger.debug("Built spatial index over %d polygons", len(self._polygons))

    def __len__(self) -> int:
        return len(self._polygons)

    @property
    def polygons(self) -> Tuple[Polygon, ...]:
        """Indexed polygons in input order."""
        return self._polygons

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Bounding box of all indexed polygons as (min_x, min_y, max_x, max_y)."""
        envelope = Envelope.empty()
        for polygon in self._polygons:
            envelope = envelope.expand(polygon.envelope)
        return envelope.bounds

    def query(self, envelope: Envelope) -> List[Polygon]:
        """
        Find polygons whose envelope intersects a query envelope.

        Bounds are inclusive: an envelope touching the query on an edge or
        corner is returned.

        Args:
            envelope: Query box; may be degenerate (a single point)

        Returns:
            Candidate polygons in input order
        """
        if envelope.is_empty or not self._polygons:
            return []

        if envelope.min_x == envelope.max_x and envelope.min_y == envelope.max_y:
            geom = shapely.Point(envelope.min_x, envelope.min_y)
        else:
            geom = shapely.box(*envelope.bounds)

        indices = np.sort(self._tree.query(geom))
        return [self._polygons[i] for i in indices]

    def query_point(self, point: Point) -> List[Polygon]:
        """Find polygons whose envelope contains a point."""
        return self.query(Envelope.from_point(point))

    def lookup(self, point: Point) -> List[str]:
        """
        Find ids of all polygons containing a point.

        Uses two-phase approach:
        1. Query the tree for candidate polygons (bbox intersection)
        2. Exact point-in-polygon test on candidates
        """
        return [p.id for p in self.query_point(point) if p.contains(point)]
