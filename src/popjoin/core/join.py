"""Spatial join of weighted points onto polygons, with four lookup strategies."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
)

import pandas as pd
from tqdm import tqdm

from popjoin.core.geometry import Envelope, Point, Polygon, WeightedPoint
from popjoin.core.hierarchy import build_region_groups
from popjoin.core.spatial import SpatialIndex

logger = logging.getLogger(__name__)


class JoinStrategy(Enum):
    """How candidate polygons are found for each point."""

    NAIVE = "naive"
    ENVELOPE = "envelope"
    HIERARCHICAL = "hierarchical"
    INDEX = "index"

    @property
    def description(self) -> str:
        """Human readable label used in reports."""
        descriptions = {
            JoinStrategy.NAIVE: "brute force",
            JoinStrategy.ENVELOPE: "county envelopes",
            JoinStrategy.HIERARCHICAL: "state and county envelopes",
            JoinStrategy.INDEX: "rtree",
        }
        return descriptions[self]


class StrategyDivergenceError(Exception):
    """Two strategies produced different per-region totals."""

    def __init__(
        self,
        missing: Sequence[str],
        extra: Sequence[str],
        differing: Mapping[str, tuple],
        base_name: str = "base",
        other_name: str = "other",
    ):
        self.missing = list(missing)
        self.extra = list(extra)
        self.differing = dict(differing)
        parts = []
        if self.missing:
            parts.append(f"missing from {other_name}: {_sample(self.missing)}")
        if self.extra:
            parts.append(f"only in {other_name}: {_sample(self.extra)}")
        if self.differing:
            values = [
                f"{key} ({a!r} != {b!r})" for key, (a, b) in list(self.differing.items())[:5]
            ]
            parts.append(f"{len(self.differing)} differing totals: {', '.join(values)}")
        super().__init__(
            f"Population counts differ between {base_name} and {other_name}; "
            + "; ".join(parts)
        )


def _sample(keys: Sequence[str], limit: int = 5) -> str:
    shown = ", ".join(sorted(keys)[:limit])
    if len(keys) > limit:
        shown += f", ... ({len(keys)} total)"
    return shown


class CandidateFinder(Protocol):
    """Returns polygons that may contain a point (never fewer than do)."""

    strategy: JoinStrategy

    def find_candidates(self, point: Point) -> Iterable[Polygon]: ...


class ExhaustiveFinder:
    """Every polygon is a candidate."""

    strategy = JoinStrategy.NAIVE

    def __init__(self, polygons: Iterable[Polygon]):
        self._polygons = tuple(polygons)

    def find_candidates(self, point: Point) -> Iterable[Polygon]:
        return self._polygons


class EnvelopeFinder:
    """Polygons whose own envelope contains the point."""

    strategy = JoinStrategy.ENVELOPE

    def __init__(self, polygons: Iterable[Polygon]):
        self._polygons = tuple(polygons)

    def find_candidates(self, point: Point) -> Iterable[Polygon]:
        return [p for p in self._polygons if p.envelope.contains(point)]


class GroupedFinder:
    """
    Prune whole parent groups by the parent envelope, then by each child
    envelope.
    """

    strategy = JoinStrategy.HIERARCHICAL

    def __init__(
        self,
        polygons: Iterable[Polygon],
        parent_envelopes: Optional[Mapping[str, Envelope]] = None,
    ):
        self._groups = build_region_groups(polygons, parent_envelopes)

    def find_candidates(self, point: Point) -> Iterable[Polygon]:
        candidates: List[Polygon] = []
        for group in self._groups:
            candidates.extend(group.candidates(point))
        return candidates


class IndexFinder:
    """Candidates from an R-tree envelope query."""

    strategy = JoinStrategy.INDEX

    def __init__(self, polygons: Iterable[Polygon], node_capacity: int = 10):
        self.index = SpatialIndex(polygons, node_capacity=node_capacity)

    def find_candidates(self, point: Point) -> Iterable[Polygon]:
        return self.index.query_point(point)


def build_finder(
    strategy: JoinStrategy,
    polygons: Sequence[Polygon],
    parent_envelopes: Optional[Mapping[str, Envelope]] = None,
) -> CandidateFinder:
    """
    Build the auxiliary structure a strategy needs.

    Args:
        strategy: Lookup strategy
        polygons: Polygons to join against
        parent_envelopes: Optional parent envelopes for the hierarchical
            strategy; ignored by the others

    Raises:
        MissingParentError: If the hierarchical strategy cannot group a
            polygon under a parent
    """
    if strategy is JoinStrategy.NAIVE:
        return ExhaustiveFinder(polygons)
    elif strategy is JoinStrategy.ENVELOPE:
        return EnvelopeFinder(polygons)
    elif strategy is JoinStrategy.HIERARCHICAL:
        return GroupedFinder(polygons, parent_envelopes)
    elif strategy is JoinStrategy.INDEX:
        return IndexFinder(polygons)
    raise ValueError(f"Unknown join strategy: {strategy}")


def spatial_join(
    points: Iterable[WeightedPoint],
    finder: CandidateFinder,
    progress: bool = False,
) -> Dict[str, float]:
    """
    Sum point weights per containing polygon id.

    A point inside no polygon contributes nothing. A point inside several
    polygons contributes its full weight to each of them.

    Args:
        points: Weighted points to attribute
        finder: Candidate source; the exact containment test is applied to
            every candidate it returns
        progress: Show a tqdm progress bar

    Returns:
        Mapping of polygon id to accumulated weight. Polygons that contain no
        point are absent.
    """
    totals: Dict[str, float] = {}
    if progress:
        points = tqdm(points, desc=f"Joining ({finder.strategy.value})", unit="pt")

    for center in points:
        point = center.as_point()
        for polygon in finder.find_candidates(point):
            if polygon.contains(point):
                totals[polygon.id] = totals.get(polygon.id, 0.0) + center.weight

    return totals


def merge_totals(*mappings: Mapping[str, float]) -> Dict[str, float]:
    """Sum partial per-id totals, e.g. from independently joined shards."""
    merged: Dict[str, float] = {}
    for mapping in mappings:
        for key, value in mapping.items():
            merged[key] = merged.get(key, 0.0) + value
    return merged


def spatial_join_chunked(
    points: Sequence[WeightedPoint],
    finder: CandidateFinder,
    chunk_size: int = 100_000,
) -> Dict[str, float]:
    """
    Join fixed-size chunks of points into private mappings and merge them.

    Each chunk is independent, so chunks may be handed to separate workers
    sharing one finder. Per-id sums can differ from ``spatial_join`` in the
    last bits because the additions are grouped differently.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    partials = [
        spatial_join(points[start : start + chunk_size], finder)
        for start in range(0, len(points), chunk_size)
    ]
    return merge_totals(*partials)


@dataclass
class JoinResult:
    """Outcome of running one strategy."""

    strategy: JoinStrategy
    totals: Dict[str, float] = field(default_factory=dict)
    build_seconds: float = 0.0
    join_seconds: float = 0.0

    @property
    def elapsed_seconds(self) -> float:
        """Build plus join time."""
        return self.build_seconds + self.join_seconds

    @property
    def regions_populated(self) -> int:
        """Number of polygon ids that received any weight."""
        return len(self.totals)

    @property
    def total_weight(self) -> float:
        """Sum of all accumulated weight."""
        return sum(self.totals.values())

    def to_dict(self) -> Dict[str, object]:
        """Summary without the per-region totals."""
        return {
            "strategy": self.strategy.value,
            "build_seconds": self.build_seconds,
            "join_seconds": self.join_seconds,
            "regions_populated": self.regions_populated,
            "total_weight": self.total_weight,
        }

    def to_series(self) -> pd.Series:
        """Per-region totals as a pandas Series indexed by region id."""
        series = pd.Series(self.totals, dtype="float64", name=self.strategy.value)
        series.index.name = "region_id"
        return series.sort_index()


def run_strategy(
    strategy: JoinStrategy,
    points: Iterable[WeightedPoint],
    polygons: Sequence[Polygon],
    parent_envelopes: Optional[Mapping[str, Envelope]] = None,
    progress: bool = False,
) -> JoinResult:
    """Build the strategy's lookup structure, join, and time both phases."""
    started = time.perf_counter()
    finder = build_finder(strategy, polygons, parent_envelopes)
    built = time.perf_counter()
    totals = spatial_join(points, finder, progress=progress)
    finished = time.perf_counter()

    result = JoinResult(
        strategy=strategy,
        totals=totals,
        build_seconds=built - started,
        join_seconds=finished - built,
    )
    logger.info(
        "Strategy %s populated %d regions in %.3fs",
        strategy.value,
        result.regions_populated,
        result.elapsed_seconds,
    )
    return result


def check_totals(
    base: Mapping[str, float],
    other: Mapping[str, float],
    base_name: str = "base",
    other_name: str = "other",
) -> None:
    """
    Require two per-region mappings to be exactly equal.

    Raises:
        StrategyDivergenceError: If key sets or any value differ
    """
    if base == other:
        return

    missing = [key for key in base if key not in other]
    extra = [key for key in other if key not in base]
    differing = {
        key: (value, other[key])
        for key, value in base.items()
        if key in other and other[key] != value
    }
    raise StrategyDivergenceError(missing, extra, differing, base_name, other_name)


def compare_strategies(
    points: Sequence[WeightedPoint],
    polygons: Sequence[Polygon],
    strategies: Optional[Sequence[JoinStrategy]] = None,
    parent_envelopes: Optional[Mapping[str, Envelope]] = None,
    progress: bool = False,
    on_result: Optional[Callable[[JoinResult], None]] = None,
) -> List[JoinResult]:
    """
    Run several strategies and verify they agree.

    The first strategy is the baseline; every later result is checked against
    it as soon as it finishes.

    Args:
        points: Weighted points (must be re-iterable)
        polygons: Polygons to join against
        strategies: Strategies to run; defaults to all four in declaration order
        parent_envelopes: Optional parent envelopes for the hierarchical strategy
        progress: Show progress bars
        on_result: Called with each result before it is checked

    Returns:
        One JoinResult per strategy, in run order

    Raises:
        StrategyDivergenceError: On the first disagreement with the baseline
    """
    if strategies is None:
        strategies = list(JoinStrategy)

    results: List[JoinResult] = []
    for strategy in strategies:
        result = run_strategy(strategy, points, polygons, parent_envelopes, progress)
        if on_result is not None:
            on_result(result)
        if results:
            base = results[0]
            check_totals(
                base.totals,
                result.totals,
                base_name=base.strategy.value,
                other_name=strategy.value,
            )
        results.append(result)

    return results
