"""Region id parsing and parent (state) grouping."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from popjoin.core.geometry import Envelope, Point, Polygon

# Region ids look like "{state}" or "{state}-{county}"
REGION_SEPARATOR = "-"


class MissingParentError(KeyError):
    """A region id does not name a parent, or the parent has no envelope."""

    def __init__(self, region_id: str, message: str = "no parent id"):
        self.region_id = region_id
        self.message = message
        super().__init__(region_id)

    def __str__(self) -> str:
        return f"Missing parent for region {self.region_id!r}: {self.message}"


def make_region_id(state_id: str, county_id: Optional[str] = None) -> str:
    """Build a region id from state and optional county identifiers."""
    if county_id is None:
        return state_id
    return f"{state_id}{REGION_SEPARATOR}{county_id}"


def find_parent_id(region_id: str) -> str:
    """
    Return the parent id of a child region id.

    Args:
        region_id: Id of the form "{state}-{county}"

    Returns:
        The substring before the first separator

    Raises:
        MissingParentError: If the id has no separator
    """
    parent_id, sep, _ = region_id.partition(REGION_SEPARATOR)
    if not sep:
        raise MissingParentError(region_id)
    return parent_id


def group_by_parent(polygons: Iterable[Polygon]) -> Dict[str, List[Polygon]]:
    """Partition polygons by parent id, keeping input order within groups."""
    groups: Dict[str, List[Polygon]] = {}
    for polygon in polygons:
        groups.setdefault(find_parent_id(polygon.id), []).append(polygon)
    return groups


def build_polygon_envelopes(polygons: Iterable[Polygon]) -> Dict[str, Envelope]:
    """
    Merge the envelopes of polygons sharing an id.

    Multi-part regions are read as one Polygon per part; this collapses them
    back to one envelope per region.
    """
    envelopes: Dict[str, Envelope] = {}
    for polygon in polygons:
        current = envelopes.get(polygon.id, Envelope.empty())
        envelopes[polygon.id] = current.expand(polygon.envelope)
    return envelopes


def build_parent_envelopes(groups: Mapping[str, Iterable[Polygon]]) -> Dict[str, Envelope]:
    """Merge child envelopes into one envelope per parent."""
    envelopes = {}
    for parent_id, members in groups.items():
        envelope = Envelope.empty()
        for polygon in members:
            envelope = envelope.expand(polygon.envelope)
        envelopes[parent_id] = envelope
    return envelopes


@dataclass(frozen=True)
class RegionGroup:
    """Child polygons of one parent region, with the parent's envelope."""

    parent_id: str
    envelope: Envelope
    members: Tuple[Polygon, ...]

    def candidates(self, point: Point) -> List[Polygon]:
        """Members whose own envelope contains the point."""
        if not self.envelope.contains(point):
            return []
        return [p for p in self.members if p.envelope.contains(point)]


def build_region_groups(
    polygons: Iterable[Polygon],
    parent_envelopes: Optional[Mapping[str, Envelope]] = None,
) -> List[RegionGroup]:
    """
    Group polygons by parent and attach a parent envelope to each group.

    Args:
        polygons: Child polygons with "{parent}-{child}" ids
        parent_envelopes: Envelopes read from a separate parent boundary
            source. If omitted, each parent's envelope is the merge of its
            children's envelopes.

    Returns:
        One RegionGroup per parent, in first-seen order

    Raises:
        MissingParentError: If a polygon id has no parent, or a parent is
            absent from ``parent_envelopes``
    """
    groups = group_by_parent(polygons)
    if parent_envelopes is None:
        parent_envelopes = build_parent_envelopes(groups)

    result = []
    for parent_id, members in groups.items():
        envelope = parent_envelopes.get(parent_id)
        if envelope is None:
            raise MissingParentError(parent_id, "no envelope for parent region")
        result.append(RegionGroup(parent_id, envelope, tuple(members)))
    return result
