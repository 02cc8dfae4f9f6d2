"""
Startup Logic for the Heat Stress Routing API

This module defines the startup routine executed once when the FastAPI app launches.

Responsibilities:
-----------------
- Preload the weather series, the segment weather records and the OSM extract.
- Build the walking graph and the routing helper before the first request.

Functions:
----------
- `bind_startup_event(app: FastAPI)`: Registers the startup hook with a FastAPI app.

Usage:
------
    from heatroute.lifecycle.startup import bind_startup_event
    bind_startup_event(app)
"""

import logging
from fastapi import FastAPI

from heatroute.core.cache import stationary_data

logger = logging.getLogger(__name__)

def bind_startup_event(app: FastAPI) -> None:
    """
    Registers a startup event handler on the given FastAPI app.

    Args:
        app (FastAPI): The FastAPI application instance.

    Returns:
        None
    """

    @app.on_event("startup")
    async def startup_event() -> None:
        """
        Preloads the stationary routing data at app launch.

        A malformed input file aborts the startup.
        """
        logger.info("Starting up: Preloading weather, segment and OSM data...")
        stationary_data.load()
        first, last = stationary_data.routing_helper.time_range()
        logger.info(f"Supported time range: {first} - {last}; {stationary_data.G.number_of_nodes()} graph nodes.")
