"""
Main Application Entry Point

This script initializes the FastAPI application serving heat stress aware
pedestrian routing and optimal departure time searches.

Key Responsibilities:
---------------------
- Sets up unified structured logging.
- Preloads the weather, segment and OSM data at startup.
- Instantiates the FastAPI app and registers the API routes.
- Configures CORS middleware to allow browser-based cross-origin requests
  from the designated frontend application.
- Normalizes incoming HTTP request paths.

Application Lifecycle:
-----------------------
- @startup: preload the routing data to prevent first-request latency.

Typical Use:
------------
This module should be specified as the app entry point when running the FastAPI server,
e.g., using `uvicorn`:

    uvicorn main:app --reload
"""
from fastapi import FastAPI

from heatroute.api.endpoints.info import router as info_router
from heatroute.api.endpoints.optimal_time import router as optimal_time_router
from heatroute.api.endpoints.routing import router as routing_router
from heatroute.core.config import API_PREFIX, ROOT_PATH
from heatroute.core.logger import setup_logging
from heatroute.core.middleware import register_middleware
from heatroute.lifecycle.startup import bind_startup_event

setup_logging()

app = FastAPI(root_path=ROOT_PATH)
register_middleware(app)
app.include_router(info_router, prefix=API_PREFIX, tags=["info"])
app.include_router(routing_router, prefix=API_PREFIX, tags=["routing"])
app.include_router(optimal_time_router, prefix=API_PREFIX, tags=["optimaltime"])

bind_startup_event(app)
