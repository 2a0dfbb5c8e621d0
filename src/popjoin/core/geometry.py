"""Planar geometry primitives and the point-in-polygon test."""

import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence, Tuple


class MalformedGeometryError(ValueError):
    """Polygon ring is too short or not closed."""

    def __init__(self, polygon_id: str, message: str):
        self.polygon_id = polygon_id
        super().__init__(f"Malformed ring for polygon {polygon_id!r}: {message}")


@dataclass(frozen=True)
class Point:
    """A 2D coordinate (longitude, latitude treated as planar x, y)."""

    x: float
    y: float


@dataclass(frozen=True)
class WeightedPoint:
    """A point carrying a scalar weight, e.g. a population center."""

    x: float  # longitude
    y: float  # latitude
    weight: float

    def as_point(self) -> Point:
        """Return the location without its weight."""
        return Point(self.x, self.y)


@dataclass(frozen=True)
class Envelope:
    """
    Axis-aligned bounding box.

    The empty envelope (minima at +inf, maxima at -inf) is the identity for
    ``expand`` and contains no point.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def empty(cls) -> "Envelope":
        """Return the identity envelope for merging."""
        return cls(math.inf, math.inf, -math.inf, -math.inf)

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> "Envelope":
        """
        Compute the tight bounding box of a sequence of points.

        Point order does not matter. An empty sequence yields the empty
        envelope.
        """
        min_x = min_y = math.inf
        max_x = max_y = -math.inf
        for p in points:
            min_x = min(min_x, p.x)
            min_y = min(min_y, p.y)
            max_x = max(max_x, p.x)
            max_y = max(max_y, p.y)
        return cls(min_x, min_y, max_x, max_y)

    @classmethod
    def from_point(cls, point: Point) -> "Envelope":
        """Return the degenerate envelope collapsed onto a single point."""
        return cls(point.x, point.y, point.x, point.y)

    @property
    def is_empty(self) -> bool:
        """True if the envelope has no extent on either axis."""
        return self.min_x > self.max_x or self.min_y > self.max_y

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Return (min_x, min_y, max_x, max_y), shapely's bounds order."""
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def expand(self, other: "Envelope") -> "Envelope":
        """Return the smallest envelope covering both this one and ``other``."""
        return Envelope(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def contains(self, point: Point) -> bool:
        """Inclusive containment test on all four bounds."""
        return (
            self.min_x <= point.x <= self.max_x
            and self.min_y <= point.y <= self.max_y
        )

    def intersects(self, other: "Envelope") -> bool:
        """Inclusive overlap test; touching edges count as intersecting."""
        return (
            self.min_x <= other.max_x
            and other.min_x <= self.max_x
            and self.min_y <= other.max_y
            and other.min_y <= self.max_y
        )


def point_in_ring(point: Point, ring: Sequence[Point]) -> bool:
    """
    Winding-number point-in-polygon test.

    Adapted from Dan Sunday's inclusion algorithm
    (http://geomalgorithms.com/a03-_inclusion.html). The ring must be simple
    and closed (first point equals last) with at least three distinct
    vertices. These preconditions are asserted, not recovered from; rings are
    validated once when a Polygon is built.

    Points lying exactly on the boundary resolve by edge direction: for a
    counter-clockwise ring, left and bottom edges count as inside, right and
    top edges as outside.

    Args:
        point: Point to test
        ring: Closed ring of vertices

    Returns:
        True if the winding number around the point is non-zero
    """
    assert len(ring) > 3, "ring needs at least 3 vertices plus the closing point"
    assert ring[0] == ring[-1], "ring is not closed"

    px = point.x
    py = point.y
    wn = 0
    for start, end in zip(ring, ring[1:]):
        if px > start.x and px > end.x:
            # Edge lies entirely to the left
            continue

        # Two halves of the cross product (lx - rx)
        lx = (end.x - start.x) * (py - start.y)
        rx = (end.y - start.y) * (px - start.x)

        if start.y <= py:
            if end.y > py and lx > rx:
                wn += 1
        elif end.y <= py and lx < rx:
            wn -= 1

    return wn != 0


@dataclass(frozen=True)
class Polygon:
    """
    A labeled region bounded by a single closed ring.

    Only the outer ring of a source geometry is kept; holes are ignored.
    The envelope is computed once from the ring at construction.
    """

    id: str
    coords: Tuple[Point, ...]
    envelope: Envelope = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        coords = tuple(self.coords)
        if len(coords) <= 3:
            raise MalformedGeometryError(
                self.id, f"expected more than 3 points, got {len(coords)}"
            )
        if coords[0] != coords[-1]:
            raise MalformedGeometryError(self.id, "first and last points differ")

        object.__setattr__(self, "coords", coords)
        object.__setattr__(self, "envelope", Envelope.from_points(coords))

    @classmethod
    def from_xy(cls, polygon_id: str, xy: Iterable[Sequence[float]]) -> "Polygon":
        """Build a polygon from raw (x, y) pairs, e.g. GeoJSON positions."""
        return cls(polygon_id, tuple(Point(float(c[0]), float(c[1])) for c in xy))

    def contains(self, point: Point) -> bool:
        """Exact containment test against the ring."""
        return point_in_ring(point, self.coords)
