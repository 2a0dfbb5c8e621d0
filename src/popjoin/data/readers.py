"""Read region polygons from GeoJSON and weighted points from CSV."""

import gzip
import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import geopandas as gpd
import pandas as pd
from shapely.errors import ShapelyError
from shapely.geometry import MultiPolygon
from shapely.geometry import Polygon as ShapelyPolygon

from popjoin.core.geometry import Polygon, WeightedPoint
from popjoin.core.hierarchy import make_region_id
from popjoin.data.constants import (
    COUNTY_PROPERTY,
    GEOJSON_ENCODING,
    LATITUDE_COLUMN,
    LONGITUDE_COLUMN,
    STATE_PROPERTY,
    WEIGHT_COLUMN,
)
from popjoin.data.errors import (
    SourceEncodingError,
    SourceIOError,
    SourceParseError,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_bytes(path: Path) -> bytes:
    """Read a file, transparently decompressing .gz files."""
    try:
        if path.suffix == ".gz":
            with gzip.open(path, "rb") as f:
                return f.read()
        return path.read_bytes()
    except (OSError, EOFError) as e:
        raise SourceIOError(path, f"cannot read file ({e})") from e


def read_features(path: PathLike, encoding: str = GEOJSON_ENCODING) -> List[dict]:
    """
    Load the features of a GeoJSON FeatureCollection.

    Args:
        path: Path to a .json or .json.gz file
        encoding: Text encoding. Census cartographic boundary files are
            ISO-8859-1, not UTF-8.

    Raises:
        SourceIOError: File missing or unreadable
        SourceEncodingError: Bytes are not valid in ``encoding``
        SourceParseError: Not JSON, or not a FeatureCollection
    """
    path = Path(path)
    raw = _read_bytes(path)

    try:
        text = raw.decode(encoding)
    except UnicodeDecodeError as e:
        raise SourceEncodingError(path, f"cannot decode as {encoding} ({e})") from e

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise SourceParseError(path, f"invalid JSON ({e})") from e

    if not isinstance(document, dict) or document.get("type") != "FeatureCollection":
        raise SourceParseError(path, "supplied GeoJSON is not a feature collection")

    features = document.get("features")
    if not isinstance(features, list):
        raise SourceParseError(path, "feature collection has no feature list")

    logger.info("%s yielded %d features", path, len(features))
    return features


def _property_text(value: Any, name: str) -> Optional[str]:
    """Return a stripped string property, None if missing."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if not isinstance(value, str):
        raise TypeError(f"property {name} is {type(value).__name__}, expected string")
    return value.strip()


def _outer_rings(geometry) -> List[Any]:
    """Exterior ring coordinates of each part of a (multi)polygon."""
    if isinstance(geometry, ShapelyPolygon):
        return [geometry.exterior.coords]
    if isinstance(geometry, MultiPolygon):
        return [part.exterior.coords for part in geometry.geoms]
    raise TypeError(f"unexpected geometry type {geometry.geom_type}")


def polygons_from_frame(
    gdf: gpd.GeoDataFrame,
    state_column: str = STATE_PROPERTY,
    county_column: str = COUNTY_PROPERTY,
) -> List[Polygon]:
    """
    Convert a boundary GeoDataFrame into Polygons.

    Each row becomes one Polygon per outer ring, all sharing the id
    "{state}" or "{state}-{county}". Holes are dropped. Rows without a state
    id or without a geometry are skipped.

    Args:
        gdf: Frame with (Multi)Polygon geometries
        state_column: Column holding the state id
        county_column: Column holding the county id, if present

    Raises:
        TypeError: On a non-string id or a non-polygonal geometry
        MalformedGeometryError: On a ring that is too short
    """
    if gdf.empty:
        return []

    states = gdf[state_column] if state_column in gdf.columns else [None] * len(gdf)
    counties = gdf[county_column] if county_column in gdf.columns else [None] * len(gdf)

    polygons: List[Polygon] = []
    skipped = 0
    for state, county, geometry in zip(states, counties, gdf.geometry):
        state_id = _property_text(state, state_column)
        if state_id is None or geometry is None or geometry.is_empty:
            skipped += 1
            continue

        region_id = make_region_id(state_id, _property_text(county, county_column))
        for ring in _outer_rings(geometry):
            polygons.append(Polygon.from_xy(region_id, ring))

    if skipped:
        logger.debug("Skipped %d features without an id or geometry", skipped)
    return polygons


def read_polygons(path: PathLike, encoding: str = GEOJSON_ENCODING) -> List[Polygon]:
    """
    Read region polygons from a (gzipped) GeoJSON FeatureCollection.

    Args:
        path: Path to the boundary file
        encoding: Text encoding of the file

    Returns:
        One Polygon per outer ring; multi-part regions yield several
        Polygons with the same id

    Raises:
        SourceIOError, SourceEncodingError, SourceParseError
    """
    path = Path(path)
    features = read_features(path, encoding=encoding)
    if not features:
        return []

    # from_features requires both members; absent ones read as null
    features = [
        {**f, "geometry": f.get("geometry"), "properties": f.get("properties")}
        if isinstance(f, dict)
        else f
        for f in features
    ]

    try:
        gdf = gpd.GeoDataFrame.from_features(features)
        return polygons_from_frame(gdf)
    except (KeyError, TypeError, ValueError, ShapelyError) as e:
        # Malformed rings raise ValueError
        raise SourceParseError(path, str(e)) from e


def weighted_points_from_frame(
    df: pd.DataFrame,
    lon_column: str = LONGITUDE_COLUMN,
    lat_column: str = LATITUDE_COLUMN,
    weight_column: str = WEIGHT_COLUMN,
) -> List[WeightedPoint]:
    """
    Convert a DataFrame of coordinates and weights into WeightedPoints.

    Raises:
        KeyError: If a column is missing
        ValueError: If any value is missing or not numeric
    """
    columns = [lon_column, lat_column, weight_column]
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(f"missing columns: {missing}")

    values = df[columns].astype("float64")
    bad_rows = values.index[values.isna().any(axis=1)]
    if len(bad_rows) > 0:
        raise ValueError(f"empty values in row(s) {list(bad_rows[:5])}")

    return [
        WeightedPoint(x, y, w)
        for x, y, w in zip(
            values[lon_column].tolist(),
            values[lat_column].tolist(),
            values[weight_column].tolist(),
        )
    ]


def read_weighted_points(path: PathLike, encoding: str = "utf-8") -> List[WeightedPoint]:
    """
    Read population centers from a (gzipped) CSV file.

    Reading is strict: a missing column, a non-numeric value or an empty
    field aborts the whole read.

    Args:
        path: Path to a .csv or .csv.gz file with longitude, latitude and
            population_2020 columns
        encoding: Text encoding of the file

    Raises:
        SourceIOError, SourceEncodingError, SourceParseError
    """
    path = Path(path)
    try:
        df = pd.read_csv(path, compression="infer", encoding=encoding)
    except UnicodeDecodeError as e:
        raise SourceEncodingError(path, f"cannot decode as {encoding} ({e})") from e
    except (OSError, EOFError) as e:
        raise SourceIOError(path, f"cannot read file ({e})") from e
    except ValueError as e:
        # pandas ParserError and EmptyDataError are ValueErrors
        raise SourceParseError(path, str(e)) from e

    try:
        points = weighted_points_from_frame(df)
    except (KeyError, ValueError) as e:
        raise SourceParseError(path, str(e)) from e

    logger.info("%s yielded %d weighted points", path, len(points))
    return points
