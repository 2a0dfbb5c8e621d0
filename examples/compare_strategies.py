"""Compare the four join strategies on the Census boundary files.

Expects the following files in ./data:
- us_popdens_z14.csv.gz
- gz_2010_us_050_00_5m.json.gz
- gz_2010_us_040_00_5m.json.gz
"""

from pathlib import Path

from popjoin import DataManager, compare_strategies

manager = DataManager(data_dir=Path("data"))

centers = manager.load_weighted_points()
counties = manager.load_counties()
state_envelopes = manager.load_state_envelopes()
print(f"Loaded {len(centers)} centers, {len(counties)} county polygons")

# Raises StrategyDivergenceError if any strategy disagrees with the first
results = compare_strategies(
    centers,
    counties,
    parent_envelopes=state_envelopes,
    progress=True,
)

for result in results:
    print(
        f"{result.strategy.description:>28}: "
        f"{result.elapsed_seconds * 1000:10.0f}ms, "
        f"{result.regions_populated} counties populated"
    )

print(f"\nTotal population attributed: {results[0].total_weight:,.0f}")
