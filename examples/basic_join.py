"""Basic example of using popjoin on in-memory data."""

from popjoin import JoinStrategy, Polygon, SpatialIndex, WeightedPoint, run_strategy

# Two counties sharing the edge x=4, plus one in another state
counties = [
    Polygon.from_xy("06-001", [(0, 0), (4, 0), (4, 4), (0, 4), (0, 0)]),
    Polygon.from_xy("06-003", [(4, 0), (8, 0), (8, 4), (4, 4), (4, 0)]),
    Polygon.from_xy("36-001", [(20, 0), (24, 0), (24, 4), (20, 4), (20, 0)]),
]

# Population centers: (longitude, latitude, population)
centers = [
    WeightedPoint(1.0, 1.0, 1200.0),
    WeightedPoint(4.0, 2.0, 300.0),  # on the shared edge
    WeightedPoint(6.5, 3.0, 800.0),
    WeightedPoint(22.0, 1.5, 5000.0),
    WeightedPoint(12.0, 2.0, 40.0),  # outside every county
]

print("=" * 60)
print("Population per county (rtree)")
print("=" * 60)

result = run_strategy(JoinStrategy.INDEX, centers, counties)
for county_id, population in result.to_series().items():
    print(f"  {county_id}: {population:,.0f}")
print(f"Counties populated: {result.regions_populated}")
print(f"Took {result.elapsed_seconds * 1000:.2f}ms")

# Single point lookup against the index
print("\n" + "=" * 60)
print("Point lookup")
print("=" * 60)

index = SpatialIndex(counties)
for center in centers:
    point = center.as_point()
    print(f"({point.x}, {point.y}) -> {index.lookup(point) or 'no county'}")
