"""
API Endpoint for Heat Stress Routing

`GET /routing` computes one route per requested weighting between a start
and a destination at a point in time. The shortest route is always included
as a reference.

Query Parameters:
-----------------
- `start`, `destination`: `lat,lon`
- `time`: `now` or `2015-08-31T10:00:00`; must lie in the weather time range
- `weighting`: comma separated weighting names (default `heatindex`)

All validation problems are reported together in one 400 response.
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from heatroute.api.parsing import (
    ErrorResponse, StationaryDataDep, bad_request, check_time_range, parse_list, parse_point, parse_time, path_points
)
from heatroute.core.cache import StationaryData
from heatroute.processing.weighting import WeightingType

logger = logging.getLogger(__name__)
router = APIRouter()


class RouteModel(BaseModel):
    """
    A routed path.

    Attributes:
        distance (float): Length in meters.
        duration (float): Walking duration in seconds.
        route_weight (float): Cost under the route's weighting.
        points (List[List[float]]): Geometry as `[lat, lon]` pairs.
    """
    distance: float
    duration: float
    route_weight: float
    points: List[List[float]]


class RoutingResponseModel(BaseModel):
    status: str = "OK"
    status_code: int = 200
    results: Dict[str, RouteModel]


@router.get("/routing", response_model=RoutingResponseModel, responses={400: {"model": ErrorResponse}})
def routing(
    start: Optional[str] = None,
    destination: Optional[str] = None,
    time: Optional[str] = None,
    weighting: str = "heatindex",
    data: StationaryData = StationaryDataDep
):
    helper = data.routing_helper
    messages: List[str] = []

    points = {}
    for name, value in (("start", start), ("destination", destination)):
        try:
            points[name] = parse_point(value, name)
        except ValueError as e:
            messages.append(str(e))

    try:
        t = parse_time(time)
        check_time_range(t, *helper.time_range())
    except ValueError as e:
        messages.append(str(e))

    weightings: List[WeightingType] = [WeightingType.SHORTEST]
    unknown = []
    for name in parse_list(weighting):
        try:
            w = WeightingType.from_name(name)
        except ValueError:
            unknown.append(name)
            continue
        if w not in weightings:
            weightings.append(w)
    if unknown:
        messages.append(
            f"unknown weighting(s) {', '.join(unknown)}; "
            f"supported are {', '.join(w.value for w in WeightingType)}"
        )

    if messages:
        return bad_request(messages)

    results: Dict[str, RouteModel] = {}
    for w in weightings:
        response = helper.route(points["start"], points["destination"], t, w)
        if response.path is None:
            return bad_request([f"no route found ({w.value}): {e}" for e in response.errors])
        path = response.path
        results[w.value] = RouteModel(
            distance=path.distance,
            duration=path.duration.total_seconds(),
            route_weight=path.weight,
            points=path_points(path)
        )

    logger.info(f"Routed {start} -> {destination} at {t} for {len(results)} weighting(s).")
    return RoutingResponseModel(results=results)
