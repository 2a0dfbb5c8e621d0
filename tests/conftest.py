"""Pytest fixtures for popjoin tests."""

import ast
import gzip
import json
import re
from pathlib import Path

import pytest

from popjoin import Polygon, WeightedPoint


# =============================================================================
# Import enforcement: tests should only use the public API
# =============================================================================

# Allowed import patterns for popjoin
# - "popjoin" (the public API)
# - "popjoin.cli" or "popjoin.cli.commands" (CLI testing is allowed)
ALLOWED_IMPORT_PATTERNS = [
    r"^popjoin$",  # Public API root
    r"^popjoin\.cli(\..+)?$",  # CLI module and submodules
]


def _is_allowed_import(module_name: str) -> bool:
    """Check if a popjoin import is allowed."""
    if not module_name.startswith("popjoin"):
        return True  # Not a popjoin import, always allowed
    return any(re.match(pattern, module_name) for pattern in ALLOWED_IMPORT_PATTERNS)


def _check_file_imports(filepath: Path) -> list[str]:
    """Check a test file for disallowed internal imports.

    Returns list of error messages for any violations found.
    """
    try:
        content = filepath.read_text()
        tree = ast.parse(content)
    except (SyntaxError, UnicodeDecodeError):
        return []  # Skip files that can't be parsed

    errors = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if not _is_allowed_import(alias.name):
                    errors.append(
                        f"{filepath}:{node.lineno}: "
                        f"Internal import not allowed: 'import {alias.name}'. "
                        f"Use 'from popjoin import ...' instead."
                    )
        elif isinstance(node, ast.ImportFrom):
            if node.module and not _is_allowed_import(node.module):
                names = ", ".join(a.name for a in node.names)
                errors.append(
                    f"{filepath}:{node.lineno}: "
                    f"Internal import not allowed: 'from {node.module} import {names}'. "
                    f"Use 'from popjoin import ...' instead."
                )
    return errors


def pytest_collect_file(parent, file_path):
    """Check test files for internal imports during collection."""
    if file_path.suffix == ".py" and file_path.name.startswith("test_"):
        errors = _check_file_imports(file_path)
        if errors:
            # Raise an error during collection to fail fast
            error_msg = "\n".join(errors)
            pytest.fail(
                f"\n\nInternal import violations detected:\n{error_msg}\n\n"
                "Tests should only import from the public API:\n"
                "  - from popjoin import Polygon, SpatialIndex, ...\n"
                "  - from popjoin.cli.commands import cli  (for CLI tests)\n"
            )


# =============================================================================
# Geometry helpers
# =============================================================================


def square(polygon_id: str, x: float, y: float, size: float) -> Polygon:
    """Counter-clockwise square with lower-left corner at (x, y)."""
    return Polygon.from_xy(
        polygon_id,
        [(x, y), (x + size, y), (x + size, y + size), (x, y + size), (x, y)],
    )


def square_coords(x: float, y: float, size: float) -> list:
    """Closed GeoJSON ring for a square."""
    return [[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]]


@pytest.fixture
def unit_square():
    """The 4x4 square [(0,0),(4,0),(4,4),(0,4),(0,0)]."""
    return square("06-001", 0, 0, 4)


@pytest.fixture
def l_shaped():
    """Concave L-shaped polygon; its bbox covers the notch at (3, 3)."""
    return Polygon.from_xy(
        "06-005",
        [(0, 0), (4, 0), (4, 2), (2, 2), (2, 4), (0, 4), (0, 0)],
    )


@pytest.fixture
def county_grid():
    """
    Counties of two states laid out on a grid.

    State 06 covers x in [0, 8], y in [0, 4] with two 4x4 counties sharing
    the edge x=4, plus a concave county above them. State 36 sits apart at
    x in [20, 24].
    """
    return [
        square("06-001", 0, 0, 4),
        square("06-003", 4, 0, 4),
        Polygon.from_xy(
            "06-005",
            [(0, 4), (8, 4), (8, 6), (2, 6), (2, 8), (0, 8), (0, 4)],
        ),
        square("36-001", 20, 0, 4),
    ]


@pytest.fixture
def weighted_points():
    """Population centers scattered over and around the county grid."""
    return [
        WeightedPoint(1.0, 1.0, 10.0),
        WeightedPoint(3.5, 2.0, 20.0),
        WeightedPoint(6.0, 1.0, 30.0),
        WeightedPoint(4.0, 2.0, 40.0),  # shared edge of 06-001 and 06-003
        WeightedPoint(1.0, 5.0, 50.0),
        WeightedPoint(5.0, 7.0, 60.0),  # inside 06-005's bbox, outside the polygon
        WeightedPoint(22.0, 2.0, 70.0),
        WeightedPoint(12.0, 2.0, 80.0),  # between the states
        WeightedPoint(-50.0, -50.0, 90.0),  # far away
        WeightedPoint(0.0, 0.0, 0.5),  # vertex of 06-001
    ]


# =============================================================================
# Source file fixtures
# =============================================================================


def feature(properties: dict, geometry) -> dict:
    """GeoJSON feature dict."""
    return {"type": "Feature", "properties": properties, "geometry": geometry}


def write_geojson(path: Path, features: list, encoding: str = "latin-1") -> Path:
    """Write a FeatureCollection, gzipped if the path ends in .gz."""
    text = json.dumps({"type": "FeatureCollection", "features": features}, ensure_ascii=False)
    data = text.encode(encoding)
    if path.suffix == ".gz":
        with gzip.open(path, "wb") as f:
            f.write(data)
    else:
        path.write_bytes(data)
    return path


def write_csv(path: Path, text: str) -> Path:
    """Write CSV text, gzipped if the path ends in .gz."""
    if path.suffix == ".gz":
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(text)
    else:
        path.write_text(text)
    return path


@pytest.fixture
def counties_features():
    """County features for states 06 and 36, one of them multi-part."""
    return [
        feature(
            {"STATE": "06", "COUNTY": "001", "NAME": "Alameda"},
            {"type": "Polygon", "coordinates": [square_coords(0, 0, 4)]},
        ),
        feature(
            {"STATE": "06", "COUNTY": "003", "NAME": "Alpine"},
            {
                "type": "MultiPolygon",
                "coordinates": [
                    [square_coords(4, 0, 4)],
                    [square_coords(10, 0, 1)],
                ],
            },
        ),
        feature(
            {"STATE": "36", "COUNTY": "001", "NAME": "Doña Ana"},
            {"type": "Polygon", "coordinates": [square_coords(20, 0, 4)]},
        ),
    ]


@pytest.fixture
def states_features():
    """State boundaries matching counties_features."""
    return [
        feature(
            {"STATE": "06", "NAME": "California"},
            {
                "type": "MultiPolygon",
                "coordinates": [
                    [[[0, 0], [8, 0], [8, 4], [0, 4], [0, 0]]],
                    [square_coords(10, 0, 1)],
                ],
            },
        ),
        feature(
            {"STATE": "36", "NAME": "New York"},
            {"type": "Polygon", "coordinates": [square_coords(20, 0, 4)]},
        ),
    ]


POPULATION_CSV = """longitude,latitude,population_2020
1.0,1.0,100.0
2.0,3.0,50.5
6.0,2.0,25.0
10.5,0.5,4.0
22.0,2.0,300.0
50.0,50.0,999.0
"""


@pytest.fixture
def data_dir(tmp_path, counties_features, states_features):
    """Data directory holding the three default source files."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    write_geojson(data_dir / "gz_2010_us_050_00_5m.json.gz", counties_features)
    write_geojson(data_dir / "gz_2010_us_040_00_5m.json.gz", states_features)
    write_csv(data_dir / "us_popdens_z14.csv.gz", POPULATION_CSV)
    return data_dir


@pytest.fixture
def make_square():
    """Factory for counter-clockwise square polygons."""
    return square


@pytest.fixture
def make_feature():
    """Factory for GeoJSON feature dicts."""
    return feature


@pytest.fixture
def geojson_writer():
    """Writes FeatureCollections to disk."""
    return write_geojson


@pytest.fixture
def csv_writer():
    """Writes CSV text to disk."""
    return write_csv
