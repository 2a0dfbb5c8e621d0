"""Default source file names and column names."""

from typing import Dict

# Census 2010 cartographic boundary files (GeoJSON, gzipped, ISO-8859-1)
COUNTIES_FILENAME = "gz_2010_us_050_00_5m.json.gz"
STATES_FILENAME = "gz_2010_us_040_00_5m.json.gz"

# Population density centers (CSV, gzipped)
POPULATION_FILENAME = "us_popdens_z14.csv.gz"

DEFAULT_FILES: Dict[str, str] = {
    "population": POPULATION_FILENAME,
    "counties": COUNTIES_FILENAME,
    "states": STATES_FILENAME,
}

# Feature properties holding region identifiers
STATE_PROPERTY = "STATE"
COUNTY_PROPERTY = "COUNTY"

# Text encoding of the boundary files
GEOJSON_ENCODING = "latin-1"

# Population CSV columns, mapped to WeightedPoint fields
LONGITUDE_COLUMN = "longitude"
LATITUDE_COLUMN = "latitude"
WEIGHT_COLUMN = "population_2020"
