"""Locate and load the population and boundary files in a data directory."""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from popjoin.core.geometry import Envelope, Polygon, WeightedPoint
from popjoin.core.hierarchy import build_polygon_envelopes
from popjoin.data.constants import DEFAULT_FILES
from popjoin.data.errors import SourceIOError
from popjoin.data.readers import read_polygons, read_weighted_points

logger = logging.getLogger(__name__)


class DataNotAvailableError(SourceIOError):
    """Required source file is not in the data directory."""

    def __init__(self, path: Path, data_type: str):
        self.data_type = data_type
        super().__init__(path, f"{data_type} data not found")


class DataManager:
    """
    Resolves and loads source files.

    Directory structure:
    data/
    ├── us_popdens_z14.csv.gz          # Population centers
    ├── gz_2010_us_050_00_5m.json.gz   # County boundaries
    └── gz_2010_us_040_00_5m.json.gz   # State boundaries
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        files: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize DataManager.

        Args:
            data_dir: Directory holding the source files. Defaults to ./data
            files: Overrides for the file names of "population", "counties"
                and "states"
        """
        self.data_dir = Path(data_dir) if data_dir is not None else Path("data")
        self.files = {**DEFAULT_FILES, **(files or {})}

    def path_for(self, data_type: str) -> Path:
        """Return the path of a source file by data type."""
        if data_type not in self.files:
            valid = ", ".join(sorted(self.files))
            raise ValueError(f"Unknown data type: {data_type}. Valid types: {valid}")
        return self.data_dir / self.files[data_type]

    def _existing_path(self, data_type: str) -> Path:
        path = self.path_for(data_type)
        if not path.is_file():
            raise DataNotAvailableError(path, data_type)
        return path

    def available_files(self) -> Dict[str, bool]:
        """Report which source files are present."""
        return {data_type: self.path_for(data_type).is_file() for data_type in self.files}

    def load_weighted_points(self) -> List[WeightedPoint]:
        """Read all population centers."""
        return read_weighted_points(self._existing_path("population"))

    def load_counties(self) -> List[Polygon]:
        """Read county polygons, one per outer ring."""
        return read_polygons(self._existing_path("counties"))

    def load_state_envelopes(self) -> Dict[str, Envelope]:
        """Read state boundaries and merge them into one envelope per state."""
        envelopes = build_polygon_envelopes(read_polygons(self._existing_path("states")))
        logger.debug("Merged into %d state envelopes", len(envelopes))
        return envelopes
