"""
Stationary Routing Data Cache

This module provides the `StationaryData` class, responsible for one-time loading
and in-memory caching of the data every routing and optimal time request reads.

Location:
---------
- heatroute.core.cache

Responsibilities:
-----------------
- Parse the weather station series, the segment weather file and the OSM extract.
- Build the walking graph (cached as GraphML), the router and the routing helper.
- Replace the weather series atomically for later searches (`swap_weather`).

Key Components:
---------------
- `StationaryData`: Singleton-style class that prevents redundant parsing.
- `load()`: Entry point for loading all data if not already loaded.
- `_load_*()`: Private helpers for the individual inputs.

Usage:
------
Typical use pattern in the application:

    from heatroute.core.cache import stationary_data
    stationary_data.load()
    helper = stationary_data.routing_helper

Dependencies:
-------------
- `networkx`, `osmnx`, `pandas`, `rtree`, `tqdm`
"""


import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional

from networkx import MultiDiGraph
from tqdm import tqdm

from heatroute.core.config import GRAPH_FILE, OSM_FILE, SEGMENTS_FILE, WEATHER_FILE
from heatroute.data.osm_data import OSMData, load_osm_file
from heatroute.data.segments import SegmentStore, parse_segment_file
from heatroute.data.weather import WeatherSeries, parse_weather_file
from heatroute.utils.routing import Router, RoutingHelper, build_graph

logger = logging.getLogger(__name__)

class StationaryData:
    """
    Preloads and caches the data shared by all requests.

    All members are read-only after loading. A weather refresh replaces
    `routing_helper` as a whole; searches already running keep the helper
    they started with.

    Attributes:
        loaded (bool): Indicates whether the data has been loaded.
        weather (WeatherSeries): Station weather series.
        segments (SegmentStore): Segment weather records.
        osm_data (OSMData): Way and place index.
        G (MultiDiGraph): Walking graph.
        router (Router): Path engine over `G`.
        routing_helper (RoutingHelper): Entry point for weighted routing.
    """

    def __init__(
        self,
        osm_file: Path = OSM_FILE,
        weather_file: Path = WEATHER_FILE,
        segments_file: Path = SEGMENTS_FILE,
        graph_file: Optional[Path] = GRAPH_FILE
    ) -> None:
        self.osm_file = osm_file
        self.weather_file = weather_file
        self.segments_file = segments_file
        self.graph_file = graph_file

        self.loaded: bool = False
        self.weather: Optional[WeatherSeries] = None
        self.segments: Optional[SegmentStore] = None
        self.osm_data: Optional[OSMData] = None
        self.G: Optional[MultiDiGraph] = None
        self.router: Optional[Router] = None
        self.routing_helper: Optional[RoutingHelper] = None
        self._lock = threading.Lock()

    def load(self) -> None:
        """
        Loads and caches all data if not already loaded.

        Raises:
            HeatRouteError: If an input file is malformed; the service must not
                start with partial data.
        """
        with self._lock:
            if self.loaded:
                return

            logger.info("Loading stationary routing data (weather, segments, OSM extract)...")

            loading_tasks = [
                ("Weather Data", self._load_weather),
                ("Segment Data", self._load_segments),
                ("OSM Data", self._load_osm),
            ]

            with ThreadPoolExecutor() as executor:
                futures = {executor.submit(func): name for name, func in loading_tasks}
                for future in tqdm(as_completed(futures), total=len(futures), desc="Loading Static Data"):
                    name = futures[future]
                    try:
                        future.result()
                        logger.info(f"{name} loaded successfully.")
                    except Exception as e:
                        logger.error(f"Error loading {name}: {e}")
                        raise

            self._load_graph()
            self.routing_helper = RoutingHelper(self.router, self.weather, self.segments, self.osm_data)
            self.loaded = True
            logger.info("Stationary data preloaded.")

    def _load_weather(self) -> None:
        self.weather = parse_weather_file(self.weather_file)

    def _load_segments(self) -> None:
        self.segments = parse_segment_file(self.segments_file)
        logger.debug(f"Minimal temperature delta: {self.segments.min_temperature_delta()}")

    def _load_osm(self) -> None:
        self.osm_data = load_osm_file(self.osm_file)

    def _load_graph(self) -> None:
        """
        Builds the osmnx walking graph, or loads it from the GraphML cache, and
        the router over it.
        """
        self.G = build_graph(self.osm_file, self.graph_file)
        self.router = Router(self.G)

    def swap_weather(self, weather: WeatherSeries) -> RoutingHelper:
        """
        Replaces the weather series for all later requests.

        Args:
            weather (WeatherSeries): The new series.

        Returns:
            RoutingHelper: The new routing helper.
        """
        helper = RoutingHelper(self.router, weather, self.segments, self.osm_data)
        self.weather = weather
        self.routing_helper = helper
        logger.info(f"Weather data replaced (time range: {weather.first} - {weather.last}).")
        return helper

stationary_data: StationaryData = StationaryData()
