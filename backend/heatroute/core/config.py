"""
Project Configuration and Constants

This module centralizes configuration settings, paths, and constants
used across the heat stress routing service.

Contents:
---------
- API and endpoint settings (prefix, allowed frontend origin)
- Data file locations (OSM extract, weather station series, segment weather file)
- Thermal comfort constants (comfort floor, heat index validity domain)
- Optimizer tuning (restarts, tolerances, evaluation budget, seed)
- Nearby search defaults and the supported place types

Key Concepts:
-------------
- Comfort floor: temperatures and heat index values below 20 are treated as
  comfortable and priced at the floor, never lower.
- Time buffer: minimum slack kept between arrival and a place's closing time.
- Request configuration: `FinderConfig` and `NearbySearchConfig` are immutable
  per-call settings; nothing in the search pipeline mutates them.

Usage:
------
Import any constant from this module for use in the application:

    from heatroute.core.config import WALKING_SPEED, DEFAULT_TIME_BUFFER

Environment Variables:
----------------------
- `.env` file is loaded on import.
- `HEATROUTE_DATA_DIR`, `HEATROUTE_OSM_FILE`, `HEATROUTE_WEATHER_FILE`,
  `HEATROUTE_SEGMENTS_FILE`, `HEATROUTE_GRAPH_FILE` override data locations.
- `HEATROUTE_FRONTEND` overrides the CORS origin.

Notes:
------
- Constants use `Final` from `typing` to indicate immutability.
- Directory creation ensures the log path exists on startup.
"""

from dotenv import load_dotenv
import os
import osmnx as ox
if "foot" not in ox.settings.useful_tags_way:
    ox.settings.useful_tags_way = [*ox.settings.useful_tags_way, "foot"]

from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Final, NamedTuple, Optional, Tuple

# === General API Settings ===

load_dotenv()

API_PREFIX: Final[str] = "/heatstressrouting/api/v1"
ROOT_PATH: Final[str] = os.getenv("HEATROUTE_ROOT_PATH", "")
FRONTEND: Final[str] = os.getenv("HEATROUTE_FRONTEND", "http://127.0.0.1:5500") # Location of the frontend

# === Directories ===

ROOT_DIR: Final[Path] = Path(__file__).resolve().parents[3]
DATA_PATH: Final[Path] = Path(os.getenv("HEATROUTE_DATA_DIR", str(ROOT_DIR / "data")))
LOG_PATH: Final[Path] = DATA_PATH / "logs"

LOG_PATH.mkdir(parents=True, exist_ok=True)

OSM_FILE: Final[Path] = Path(os.getenv("HEATROUTE_OSM_FILE", str(DATA_PATH / "karlsruhe.osm")))
WEATHER_FILE: Final[Path] = Path(os.getenv("HEATROUTE_WEATHER_FILE", str(DATA_PATH / "weather_data.csv")))
SEGMENTS_FILE: Final[Path] = Path(os.getenv("HEATROUTE_SEGMENTS_FILE", str(DATA_PATH / "weighted_lines.csv")))
GRAPH_FILE: Final[Path] = Path(os.getenv("HEATROUTE_GRAPH_FILE", str(DATA_PATH / "walk_graph.graphml")))  # osmnx graph cache
LOG_FILE: Final[Path] = LOG_PATH / "debug.log"

# === Routing ===

WALKING_SPEED: Final[float] = 5.0 * 1000 / 3600  # Walking speed in m/s
MAX_SNAP_DISTANCE: Final[float] = 500.0  # Max distance (m) between a request point and its graph node

# Highway values that are never routed on foot
EXCLUDED_HIGHWAYS: Final[Tuple[str, ...]] = (
    "motorway", "motorway_link", "trunk", "trunk_link", "construction", "proposed"
)

# === Thermal Comfort ===

COMFORT_TEMPERATURE: Final[float] = 20.0  # °C, air temperature regarded as comfortable
COMFORT_HEAT_INDEX: Final[float] = 20.0   # heat index regarded as comfortable

HEAT_INDEX_MIN_TEMPERATURE: Final[float] = 20.0
HEAT_INDEX_MAX_TEMPERATURE: Final[float] = 50.0
HEAT_INDEX_MIN_HUMIDITY: Final[float] = 0.0
HEAT_INDEX_MAX_HUMIDITY: Final[float] = 100.0

# Weighted product defaults for the weighted heat index edge weighting
WEIGHT_DISTANCE: Final[float] = 0.5
WEIGHT_THERMAL_COMFORT: Final[float] = 0.5

# === Optimal Time Search ===

DEFAULT_TIME_BUFFER: Final[timedelta] = timedelta(minutes=15)
DEFAULT_STARTS: Final[int] = 10  # Random restarts of the Brent optimizer
ABSOLUTE_THRESHOLD: Final[float] = 0.1  # seconds
MAX_EVAL: Final[int] = 100  # Objective evaluations per restart
SEED: Final[int] = 82  # Random seed for reproducibility

# === Nearby Search ===

MAX_RESULTS: Final[int] = 5
MAX_DISTANCE: Final[float] = 1000.0  # meters
PARALLEL_NEARBY_SEARCH: Final[bool] = True
MAX_WORKERS: Final[int] = min(8, os.cpu_count() or 1)

OPENING_HOURS_KEY: Final[str] = "opening_hours"

# User facing place types and the OSM tag (key, value) they stand for
PLACE_TYPES: Final[Dict[str, Tuple[str, str]]] = {
    "supermarket": ("shop", "supermarket"),
    "bakery": ("shop", "bakery"),
    "kiosk": ("shop", "kiosk"),
    "chemist": ("shop", "chemist"),
    "cafe": ("amenity", "cafe"),
    "drinking_water": ("amenity", "drinking_water"),
    "fast_food": ("amenity", "fast_food"),
    "ice_cream": ("amenity", "ice_cream"),
    "taxi": ("amenity", "taxi"),
    "atm": ("amenity", "atm"),
    "bank": ("amenity", "bank"),
    "clinic": ("amenity", "clinic"),
    "dentist": ("amenity", "dentist"),
    "doctors": ("amenity", "doctors"),
    "hospital": ("amenity", "hospital"),
    "pharmacy": ("amenity", "pharmacy"),
    "police": ("amenity", "police"),
    "post_box": ("amenity", "post_box"),
    "post_office": ("amenity", "post_office"),
    "toilets": ("amenity", "toilets"),
}


class FinderConfig(NamedTuple):
    """
    Immutable settings for one optimal time search.

    Attributes:
        time_buffer (timedelta): Slack kept between arrival and closing time.
        earliest_time (Optional[datetime]): Global lower bound for the departure time.
        latest_time (Optional[datetime]): Global upper bound for the departure time.
        starts (int): Number of random restarts of the local optimizer.
        seed (int): Seed of the restart generator; fixes the result for equal inputs.
    """
    time_buffer: timedelta = DEFAULT_TIME_BUFFER
    earliest_time: Optional[datetime] = None
    latest_time: Optional[datetime] = None
    starts: int = DEFAULT_STARTS
    seed: int = SEED

    def validate(self) -> "FinderConfig":
        if self.time_buffer < timedelta(0):
            raise ValueError("time_buffer must be non negative")
        if self.starts < 1:
            raise ValueError("starts must be at least 1")
        if (
            self.earliest_time is not None
            and self.latest_time is not None
            and not self.earliest_time < self.latest_time
        ):
            raise ValueError(
                "if earliest_time and latest_time are specified, "
                "then earliest_time must be before latest_time"
            )
        return self
